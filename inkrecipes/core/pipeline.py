"""
Render Pipeline
===============

Ties resolution, rendering and dithering together: slug in, device bitmap
out. Recipe problems degrade to the not-found screen; only a failure to
render even that screen reaches the caller.
"""

import asyncio
import time
from typing import Any, Dict, Iterable, Optional, Tuple

from ..config.logging import get_logger
from ..config.settings import Settings
from ..models.schemas import DitherMethod, RasterImage, RenderFormat
from .dithering import render_bmp
from .errors import RenderEngineFailure
from .recipes.cache import MISSING, CacheProvider, RenderKey
from .recipes.resolver import PropsValidator, RecipeResolver, RenderElement
from .rendering.renderer import RecipeRenderer, RenderResults

logger = get_logger(__name__)


class RecipePipeline:
    """Slug to rendered outputs and device bitmaps."""

    def __init__(
        self,
        resolver: RecipeResolver,
        renderer: RecipeRenderer,
        cache: Optional[CacheProvider] = None,
        preserve_edges: bool = True,
        dither_method: DitherMethod = DitherMethod.ATKINSON,
    ):
        self.resolver = resolver
        self.renderer = renderer
        self.cache = cache or resolver.cache
        self.preserve_edges = preserve_edges
        self.dither_method = dither_method
        self.logger: Any = logger.bind(component="render_pipeline")

    @classmethod
    def from_settings(cls, resolver: RecipeResolver, renderer: RecipeRenderer, settings: Settings) -> "RecipePipeline":
        return cls(
            resolver,
            renderer,
            preserve_edges=settings.preserve_edges,
            dither_method=settings.dither_method,
        )

    async def dither_raster(self, raster: RasterImage, width: int, height: int, levels: int) -> bytes:
        """Dither a raster to BMP bytes in a worker thread, keeping the event loop free."""
        return await asyncio.to_thread(
            render_bmp,
            raster,
            width,
            height,
            levels,
            method=self.dither_method,
            preserve_edges=self.preserve_edges,
        )

    async def render_recipe(
        self,
        slug: str,
        width: int,
        height: int,
        formats: Iterable[RenderFormat],
        params: Optional[Dict[str, Any]] = None,
        validator: Optional[PropsValidator] = None,
    ) -> Tuple[RenderElement, RenderResults]:
        """
        Resolve and render a recipe.

        Complete renders of found recipes without parameter overrides are
        cached per slug, size and format set.

        Returns:
            The resolved element (possibly the not-found screen) and its outputs
        """
        requested = frozenset(formats)
        key = RenderKey(slug=slug, width=width, height=height, formats=requested)
        cacheable = params is None and validator is None
        if cacheable:
            cached = self.cache.get(key)
            if cached is not MISSING:
                return cached

        render_element = await self.resolver.build_render_element(
            slug, validator=validator, params=params, width=width, height=height
        )
        settings = render_element.config.render_settings if render_element.config else None
        results = await self.renderer.render_outputs(
            render_element.element, render_element.props, settings, requested
        )

        if cacheable and render_element.found and all(results.has(f) for f in requested):
            self.cache.set(key, (render_element, results))
        return render_element, results

    async def render_bitmap(
        self,
        slug: str,
        width: int,
        height: int,
        levels: int = 2,
        params: Optional[Dict[str, Any]] = None,
    ) -> bytes:
        """
        Render a recipe as device BMP bytes.

        When the recipe's raster cannot be produced, the not-found screen is
        rendered instead.

        Raises:
            RenderEngineFailure: If the not-found screen cannot be rendered either
            DitherInputInvalid: On an unsupported level count
        """
        start_time = time.time()
        render_element, results = await self.render_recipe(slug, width, height, {RenderFormat.RASTER}, params)
        if results.raster is None:
            self.logger.warning("Recipe raster unavailable, rendering fallback", slug=slug)
            return await self.render_fallback_bitmap(slug, width, height, levels)

        data = await self.dither_raster(results.raster, width, height, levels)
        self.logger.info(
            "Bitmap generated",
            slug=slug,
            found=render_element.found,
            width=width,
            height=height,
            levels=levels,
            size=len(data),
            duration=round(time.time() - start_time, 3),
        )
        return data

    async def render_fallback_bitmap(self, slug: str, width: int, height: int, levels: int = 2) -> bytes:
        """
        Render the not-found screen for ``slug`` as BMP bytes.

        Raises:
            RenderEngineFailure: If the raster cannot be produced
        """
        render_element = self.resolver.fallback_element(slug, width, height)
        results = await self.renderer.render_outputs(
            render_element.element, render_element.props, None, {RenderFormat.RASTER}
        )
        if results.raster is None:
            raise RenderEngineFailure(f"Fallback render failed for {slug}", RenderFormat.RASTER.value)
        return await self.dither_raster(results.raster, width, height, levels)
