"""
Recipe Registry
===============

Static dispatch table from recipe slug to its definition, component and
optional data source. Built once at startup; nothing is imported dynamically.
"""

from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from ...config.logging import get_logger
from ...models.schemas import RecipeDefinition
from ..errors import ComponentLoadFailure
from .templates import Renderable

logger = get_logger(__name__)

DataSource = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]
ComponentLoader = Callable[[], Renderable]


def load_recipe_definitions(path: Path) -> Dict[str, RecipeDefinition]:
    """
    Load the recipe configuration table.

    Args:
        path: YAML file keyed by slug

    Returns:
        Definitions by slug; malformed entries are logged and skipped

    Raises:
        OSError: If the file cannot be read
        yaml.YAMLError: If the file is not valid YAML
    """
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Recipe table {path} must be a mapping of slug to definition")

    definitions: Dict[str, RecipeDefinition] = {}
    for slug, entry in raw.items():
        try:
            definitions[slug] = RecipeDefinition(slug=slug, **(entry or {}))
        except (TypeError, ValidationError) as e:
            logger.error("Invalid recipe definition", slug=slug, error=str(e))
    logger.info("Recipe definitions loaded", count=len(definitions), path=str(path))
    return definitions


class RecipeRegistry:
    """Slug-keyed table of recipe definitions, components and data sources."""

    def __init__(self) -> None:
        self.logger: Any = logger.bind(component="recipe_registry")
        self._definitions: Dict[str, RecipeDefinition] = {}
        self._components: Dict[str, ComponentLoader] = {}
        self._data_sources: Dict[str, DataSource] = {}

    def add_definition(self, definition: RecipeDefinition) -> None:
        self._definitions[definition.slug] = definition

    def register_component(self, slug: str, component: Union[Renderable, ComponentLoader]) -> None:
        """Register a component instance, or a loader called on first use."""
        if isinstance(component, Renderable):
            instance = component
            self._components[slug] = lambda: instance
        else:
            self._components[slug] = component

    def register_data_source(self, slug: str, source: DataSource) -> None:
        self._data_sources[slug] = source

    def register(
        self,
        definition: RecipeDefinition,
        component: Optional[Union[Renderable, ComponentLoader]] = None,
        data_source: Optional[DataSource] = None,
    ) -> None:
        """Register a recipe definition with its component and data source."""
        self.add_definition(definition)
        if component is not None:
            self.register_component(definition.slug, component)
        if data_source is not None:
            self.register_data_source(definition.slug, data_source)

    def get_definition(self, slug: str) -> Optional[RecipeDefinition]:
        return self._definitions.get(slug)

    def get_data_source(self, slug: str) -> Optional[DataSource]:
        return self._data_sources.get(slug)

    def load_component(self, slug: str) -> Renderable:
        """
        Load the component registered for a slug.

        Raises:
            ComponentLoadFailure: If nothing is registered or loading fails
        """
        loader = self._components.get(slug)
        if loader is None:
            raise ComponentLoadFailure(slug, "no component registered")
        try:
            return loader()
        except ComponentLoadFailure:
            raise
        except Exception as e:
            raise ComponentLoadFailure(slug, str(e)) from e

    def definitions(self, include_unpublished: bool = False) -> List[RecipeDefinition]:
        """Definitions in registration order."""
        return [
            definition
            for definition in self._definitions.values()
            if include_unpublished or definition.published
        ]

    def __contains__(self, slug: str) -> bool:
        return slug in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)
