"""
Recipe Resolver
===============

Resolves a recipe slug into everything needed to render it: the static
definition, the component, and the props, with the data source raced against a
timeout. Results are memoized through the CacheProvider. Resolution problems
degrade to a not-found screen instead of raising.
"""

import asyncio
import time
from typing import Any, Callable, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict

from ...config.logging import get_logger
from ...models.nodes import ElementNode, FragmentNode, TextNode, element
from ...models.schemas import ParamType, RecipeDefinition, RenderInput
from ..errors import (
    ComponentLoadFailure,
    DataFetchError,
    DataFetchTimeout,
    DataValidationFailure,
    InkRecipesError,
)
from .cache import MISSING, CacheProvider, ComponentKey, ConfigKey, PropsKey, hash_params
from .registry import DataSource, RecipeRegistry
from .templates import FunctionRecipe, Renderable

logger = get_logger(__name__)

NOT_FOUND_SLUG = "not-found"
DEFAULT_FETCH_TIMEOUT = 10.0

PropsValidator = Callable[[str, Dict[str, Any]], bool]


class FetchOutcome(BaseModel):
    """Either fetched data or the error that prevented it."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    data: Optional[Dict[str, Any]] = None
    error: Optional[InkRecipesError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.data is not None


class RenderElement(BaseModel):
    """A resolved recipe ready for rendering, or its not-found stand-in."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    config: Optional[RecipeDefinition] = None
    component: Optional[Renderable] = None
    props: RenderInput
    element: Any

    @property
    def found(self) -> bool:
        return self.component is not None


def _minimal_not_found(render_input: RenderInput) -> ElementNode:
    slug = render_input.props.get("slug")
    message = f"Could not find screen: {slug}" if slug else "Screen Not Found"
    return element(
        "div",
        element("div", "Screen Not Found", class_name="text-6xl text-center"),
        element("div", message, class_name="text-xl mt-4 text-center"),
        class_name="w-full h-full bg-white flex flex-col items-center justify-center",
    )


class RecipeResolver:
    """Resolves recipe configs, components and props with memoization."""

    def __init__(
        self,
        registry: RecipeRegistry,
        cache: CacheProvider,
        allow_unpublished: bool = False,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT,
        default_width: int = 800,
        default_height: int = 480,
    ):
        self.registry = registry
        self.cache = cache
        self.allow_unpublished = allow_unpublished
        self.fetch_timeout = fetch_timeout
        self.default_width = default_width
        self.default_height = default_height
        self.logger: Any = logger.bind(component="recipe_resolver")
        self._builtin_not_found = FunctionRecipe(_minimal_not_found, name="builtin-not-found")

    async def resolve_config(self, slug: str) -> Optional[RecipeDefinition]:
        """
        Look up a recipe definition.

        Returns:
            The definition, or None when unknown or unpublished outside development
        """
        return await self.cache.get_or_compute(ConfigKey(slug=slug), lambda: self._load_config(slug))

    async def _load_config(self, slug: str) -> Optional[RecipeDefinition]:
        definition = self.registry.get_definition(slug)
        if definition is None:
            self.logger.info("Recipe not found", slug=slug)
            return None
        if not definition.published and not self.allow_unpublished:
            self.logger.info("Recipe not published", slug=slug)
            return None
        return definition

    async def resolve_component(self, slug: str) -> Optional[Renderable]:
        """Load a recipe component; load failures are logged and yield None."""
        return await self.cache.get_or_compute(ComponentKey(slug=slug), lambda: self._load_component(slug))

    async def _load_component(self, slug: str) -> Optional[Renderable]:
        try:
            return self.registry.load_component(slug)
        except ComponentLoadFailure as e:
            self.logger.error("Error loading component", slug=slug, error=str(e))
            return None

    async def fetch_data(
        self,
        slug: str,
        source: DataSource,
        params: Optional[Dict[str, Any]] = None,
        validator: Optional[PropsValidator] = None,
    ) -> FetchOutcome:
        """
        Run a data source under the fetch timeout.

        Args:
            slug: Recipe identifier, for diagnostics and the validator
            source: Data source coroutine function
            params: Parameters passed to the source
            validator: Optional check applied to the fetched mapping

        Returns:
            FetchOutcome with data, or with a DataFetchTimeout, DataFetchError
            or DataValidationFailure
        """
        start_time = time.time()
        try:
            data = await asyncio.wait_for(source(dict(params or {})), timeout=self.fetch_timeout)
        except asyncio.TimeoutError:
            return FetchOutcome(error=DataFetchTimeout(slug, self.fetch_timeout))
        except Exception as e:
            return FetchOutcome(error=DataFetchError(f"Data fetch for {slug} failed: {e}"))

        if not isinstance(data, Mapping):
            return FetchOutcome(
                error=DataValidationFailure(f"Data source for {slug} returned {type(data).__name__}")
            )
        if validator is not None and not self._accepts(validator, slug, dict(data)):
            return FetchOutcome(error=DataValidationFailure(f"Fetched data for {slug} was rejected"))

        self.logger.debug("Data fetched", slug=slug, duration=round(time.time() - start_time, 3))
        return FetchOutcome(data=dict(data))

    def _accepts(self, validator: PropsValidator, slug: str, props: Dict[str, Any]) -> bool:
        try:
            return bool(validator(slug, props))
        except Exception as e:
            self.logger.warning("Props validator raised", slug=slug, error=str(e))
            return False

    def _resolve_params(self, config: RecipeDefinition, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        resolved = config.param_defaults()
        for name, value in (params or {}).items():
            definition = config.params.get(name)
            if definition is None:
                continue
            try:
                if definition.type == ParamType.NUMBER:
                    number = float(value)
                    resolved[name] = int(number) if number.is_integer() else number
                elif definition.type == ParamType.BOOLEAN:
                    resolved[name] = value if isinstance(value, bool) else str(value).lower() in ("1", "true", "yes", "on")
                else:
                    resolved[name] = str(value)
            except (TypeError, ValueError):
                self.logger.warning("Ignoring invalid parameter", slug=config.slug, param=name, value=value)
        return resolved

    async def resolve_props(
        self,
        slug: str,
        config: RecipeDefinition,
        params: Optional[Dict[str, Any]] = None,
        validator: Optional[PropsValidator] = None,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> RenderInput:
        """
        Resolve render props for a recipe.

        Starts from the static props (plus declared params). When the recipe
        fetches data, fetched values are merged over the defaults; on timeout,
        error or rejection the defaults are used and a warning is logged.
        Fallback results are not cached so the next request retries.

        Returns:
            RenderInput for the target size
        """
        width = width or self.default_width
        height = height or self.default_height
        key = PropsKey(slug=slug, params_hash=hash_params({"params": params, "width": width, "height": height}))
        cached = self.cache.get(key)
        if cached is not MISSING:
            return cached

        resolved_params = self._resolve_params(config, params)
        props: Dict[str, Any] = dict(config.props)
        if config.params:
            props["params"] = resolved_params

        cacheable = True
        if config.has_data_fetch:
            source = self.registry.get_data_source(slug)
            if source is None:
                self.logger.warning("Recipe declares data fetch but has no data source", slug=slug)
            else:
                outcome = await self.fetch_data(slug, source, resolved_params, validator)
                if outcome.ok:
                    props.update(outcome.data or {})
                else:
                    cacheable = False
                    self.logger.warning(
                        "Invalid or missing data, using defaults",
                        slug=slug,
                        error=str(outcome.error),
                        error_type=type(outcome.error).__name__,
                    )

        render_input = RenderInput(slug=slug, props=props, width=width, height=height)
        if cacheable:
            self.cache.set(key, render_input)
        return render_input

    def fallback_element(
        self,
        slug: str,
        width: Optional[int] = None,
        height: Optional[int] = None,
        config: Optional[RecipeDefinition] = None,
    ) -> RenderElement:
        """Not-found screen carrying the requested slug."""
        render_input = RenderInput(
            slug=slug,
            props={"slug": slug},
            width=width or self.default_width,
            height=height or self.default_height,
        )
        try:
            component = self.registry.load_component(NOT_FOUND_SLUG)
            tree = component.render(render_input)
        except Exception as e:
            self.logger.error("Not-found screen failed, using built-in", error=str(e))
            tree = self._builtin_not_found.render(render_input)
        return RenderElement(config=config, component=None, props=render_input, element=tree)

    async def build_render_element(
        self,
        slug: str,
        validator: Optional[PropsValidator] = None,
        params: Optional[Dict[str, Any]] = None,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> RenderElement:
        """
        Resolve a recipe into a renderable element. Never raises.

        Unknown or unpublished recipes, component load failures, rejected
        props and component errors all yield the not-found screen for ``slug``.

        Args:
            slug: Recipe identifier
            validator: Optional props check, applied to fetched data and final props
            params: Recipe parameter overrides
            width: Target width
            height: Target height

        Returns:
            RenderElement with the built tree
        """
        try:
            config = await self.resolve_config(slug)
            component = await self.resolve_component(slug) if config else None
            if config is None or component is None:
                return self.fallback_element(slug, width, height, config)

            props = await self.resolve_props(slug, config, params, validator, width, height)
            if validator is not None and not self._accepts(validator, slug, dict(props.props)):
                self.logger.warning("Props rejected by validator", slug=slug)
                return self.fallback_element(slug, width, height, config)

            tree = component.render(props)
            if not isinstance(tree, (ElementNode, TextNode, FragmentNode)):
                raise TypeError(f"Component returned {type(tree).__name__}")
            return RenderElement(config=config, component=component, props=props, element=tree)
        except Exception as e:
            self.logger.error("Failed to build recipe element", slug=slug, error=str(e))
            return self.fallback_element(slug, width, height)
