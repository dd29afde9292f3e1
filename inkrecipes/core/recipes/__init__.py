"""
Recipe Resolution
=================

Recipe registry, template components, cache provider and resolver.
"""

from .cache import CacheProvider
from .registry import RecipeRegistry
from .resolver import RecipeResolver, RenderElement
from .templates import FunctionRecipe, Renderable, TemplateRecipe

__all__ = [
    "CacheProvider",
    "RecipeRegistry",
    "RecipeResolver",
    "RenderElement",
    "FunctionRecipe",
    "Renderable",
    "TemplateRecipe",
]
