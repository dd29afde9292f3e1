"""
Bundled Recipes
===============

Recipe table, screen templates, Python components and data sources shipped
with the service, wired into a RecipeRegistry by ``build_registry``.
"""

from pathlib import Path
from typing import Callable, Dict, Optional

from ..core.recipes.registry import DataSource, RecipeRegistry, load_recipe_definitions
from ..core.recipes.templates import FunctionRecipe, Renderable, TemplateRecipe
from .components import bitcoin_price, weather
from .data_sources import fetch_bitcoin_price, fetch_weather, fetch_wikipedia

RECIPES_DIR = Path(__file__).parent
RECIPES_CONFIG = RECIPES_DIR / "recipes.yaml"
SCREENS_DIR = RECIPES_DIR / "screens"

TEMPLATE_SCREENS = ("simple-text", "responsive-example", "not-found", "wikipedia")

FUNCTION_SCREENS: Dict[str, Callable] = {
    "bitcoin-price": bitcoin_price,
    "weather": weather,
}

DATA_SOURCES: Dict[str, DataSource] = {
    "bitcoin-price": fetch_bitcoin_price,
    "weather": fetch_weather,
    "wikipedia": fetch_wikipedia,
}


def _template_loader(slug: str, screens_dir: Path) -> Callable[[], Renderable]:
    return lambda: TemplateRecipe.from_file(screens_dir / f"{slug}.yaml", name=slug)


def build_registry(config_path: Optional[Path] = None, screens_dir: Optional[Path] = None) -> RecipeRegistry:
    """
    Build the registry of bundled recipes.

    Args:
        config_path: Recipe table to load instead of the bundled one
        screens_dir: Directory holding template screens

    Returns:
        Registry with definitions, lazily loaded components and data sources
    """
    registry = RecipeRegistry()
    for definition in load_recipe_definitions(config_path or RECIPES_CONFIG).values():
        registry.add_definition(definition)

    for slug in TEMPLATE_SCREENS:
        registry.register_component(slug, _template_loader(slug, screens_dir or SCREENS_DIR))
    for slug, func in FUNCTION_SCREENS.items():
        registry.register_component(slug, FunctionRecipe(func, name=slug))
    for slug, source in DATA_SOURCES.items():
        registry.register_data_source(slug, source)
    return registry


__all__ = ["build_registry", "RECIPES_CONFIG", "SCREENS_DIR"]
