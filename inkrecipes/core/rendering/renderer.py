"""
Recipe Renderer
===============

Renders a recipe element to one or more output formats at a target
resolution. Each format is produced independently; a failing format is logged
and left empty without affecting the others.
"""

import asyncio
import time
from typing import Any, Awaitable, Iterable, List, Optional, Set

from pydantic import BaseModel, ConfigDict

from ...config.logging import get_logger
from ...models.nodes import FragmentNode
from ...models.schemas import RasterImage, RenderFormat, RenderInput, RenderSettings
from ..style import NormalizeOptions, normalize
from .html_generator import HTMLGenerator
from .png_generator import RenderEngine
from .svg_generator import SVGGenerator, placeholder_svg

logger = get_logger(__name__)


class RenderResults(BaseModel):
    """Outputs of one render; a format that was not requested or failed is None."""
    model_config = ConfigDict(frozen=True)

    raster: Optional[RasterImage] = None
    raw_export: Optional[bytes] = None
    vector: Optional[str] = None

    def has(self, render_format: RenderFormat) -> bool:
        if render_format == RenderFormat.RASTER:
            return self.raster is not None
        if render_format == RenderFormat.PNG:
            return self.raw_export is not None
        return self.vector is not None


def scale_factor(settings: Optional[RenderSettings]) -> int:
    return 2 if settings is not None and settings.double_size_for_sharper_text else 1


class RecipeRenderer:
    """Multi-format renderer over a pluggable PNG engine."""

    def __init__(
        self,
        engine: RenderEngine,
        html_generator: Optional[HTMLGenerator] = None,
        svg_generator: Optional[SVGGenerator] = None,
        gap_shorthand: bool = True,
    ):
        self.engine = engine
        self.html_generator = html_generator or HTMLGenerator()
        self.svg_generator = svg_generator or SVGGenerator()
        self.gap_shorthand = gap_shorthand
        self.logger: Any = logger.bind(component="recipe_renderer")

    async def render_outputs(
        self,
        element: Any,
        render_input: RenderInput,
        settings: Optional[RenderSettings],
        formats: Iterable[RenderFormat],
    ) -> RenderResults:
        """
        Render an element in the requested formats concurrently.

        Args:
            element: Markup tree built by the recipe component
            render_input: Props and target size
            settings: Recipe render settings; 2x output when text doubling is on
            formats: Requested output formats

        Returns:
            RenderResults; the SVG slot always holds a document when requested
        """
        requested: Set[RenderFormat] = set(formats)
        width, height = render_input.width, render_input.height
        scale = scale_factor(settings)
        start_time = time.time()

        tree = normalize(element, NormalizeOptions(viewport_width=width, gap_shorthand=self.gap_shorthand))
        if tree is None:
            tree = FragmentNode()

        png_job: Optional["asyncio.Task[bytes]"] = None
        if requested & {RenderFormat.RASTER, RenderFormat.PNG}:
            png_job = asyncio.ensure_future(self._render_png(tree, render_input, scale))

        async def skip() -> None:
            return None

        jobs: List[Awaitable[Any]] = [
            self._raster(png_job, render_input.slug) if png_job and RenderFormat.RASTER in requested else skip(),
            self._raw_export(png_job, render_input.slug) if png_job and RenderFormat.PNG in requested else skip(),
            self._vector(tree, width, height, render_input.slug) if RenderFormat.SVG in requested else skip(),
        ]
        raster, raw_export, vector = await asyncio.gather(*jobs)

        self.logger.info(
            "Render completed",
            slug=render_input.slug,
            width=width,
            height=height,
            scale=scale,
            formats=sorted(f.value for f in requested),
            duration=round(time.time() - start_time, 3),
        )
        return RenderResults(raster=raster, raw_export=raw_export, vector=vector)

    async def _render_png(self, tree: Any, render_input: RenderInput, scale: int) -> bytes:
        document = await self.html_generator.generate(
            tree, render_input.width, render_input.height, title=render_input.slug
        )
        return await self.engine.render_png(document, render_input.width, render_input.height, scale)

    async def _raster(self, png_job: "asyncio.Task[bytes]", slug: str) -> Optional[RasterImage]:
        try:
            return RasterImage.from_png(await png_job)
        except Exception as e:
            self.logger.error("Raster render failed", slug=slug, error=str(e), error_type=type(e).__name__)
            return None

    async def _raw_export(self, png_job: "asyncio.Task[bytes]", slug: str) -> Optional[bytes]:
        try:
            return await png_job
        except Exception as e:
            self.logger.error("PNG render failed", slug=slug, error=str(e), error_type=type(e).__name__)
            return None

    async def _vector(self, tree: Any, width: int, height: int, slug: str) -> str:
        try:
            return self.svg_generator.generate(tree, width, height)
        except Exception as e:
            self.logger.error("SVG render failed, using placeholder", slug=slug, error=str(e))
            return placeholder_svg(width, height)
