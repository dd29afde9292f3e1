"""
Mixup Compositor
================

Renders several recipes into the slots of a layout and dithers the combined
canvas once, so the halftone texture is continuous across slot borders.
"""

import asyncio
import io
import time
from typing import Any, List, Mapping, Optional, Tuple

from PIL import Image, ImageOps

from ...config.logging import get_logger
from ...config.settings import Settings
from ...models.schemas import DitherMethod, LayoutOption, RasterImage, RenderFormat, ResolvedSlot
from ..dithering import DeviceBitmap, dither
from ..dithering.bitmap import validate_levels
from ..errors import SlotResizeFailure

logger = get_logger(__name__)

SlotImage = Tuple[ResolvedSlot, Image.Image]


def fit_to_slot(data: bytes, width: int, height: int) -> Image.Image:
    """
    Cover-fit encoded image bytes to an exact size, cropping around the centre.

    Raises:
        SlotResizeFailure: If the image cannot be decoded or resized
    """
    try:
        with Image.open(io.BytesIO(data)) as source:
            return ImageOps.fit(source.convert("RGBA"), (width, height), Image.Resampling.LANCZOS, centering=(0.5, 0.5))
    except Exception as e:
        raise SlotResizeFailure(f"Could not fit slot image to {width}x{height}: {e}") from e


class MixupCompositor:
    """Composites recipe renders into a layout."""

    def __init__(
        self,
        pipeline: Any,
        preserve_edges: bool = False,
        dither_method: DitherMethod = DitherMethod.ATKINSON,
    ):
        self.pipeline = pipeline
        self.preserve_edges = preserve_edges
        self.dither_method = dither_method
        self.logger: Any = logger.bind(component="mixup_compositor")

    @classmethod
    def from_settings(cls, pipeline: Any, settings: Settings) -> "MixupCompositor":
        return cls(pipeline, dither_method=settings.dither_method)

    async def render_slot(self, slot: ResolvedSlot, slug: str) -> Optional[SlotImage]:
        """Render one slot; failures are logged and yield None."""
        try:
            _, results = await self.pipeline.render_recipe(slug, slot.width, slot.height, {RenderFormat.PNG})
            if results.raw_export is None:
                self.logger.warning("Slot render produced no image", slot=slot.id, slug=slug)
                return None
            return slot, await asyncio.to_thread(fit_to_slot, results.raw_export, slot.width, slot.height)
        except SlotResizeFailure as e:
            self.logger.warning("Slot resize failed", slot=slot.id, slug=slug, error=str(e))
            return None
        except Exception as e:
            self.logger.error("Slot render failed", slot=slot.id, slug=slug, error=str(e))
            return None

    def compose(self, width: int, height: int, slot_images: List[SlotImage]) -> Image.Image:
        """White RGB canvas with every slot image pasted at its origin."""
        canvas = Image.new("RGB", (width, height), (255, 255, 255))
        for slot, image in slot_images:
            canvas.paste(image, (slot.left, slot.top), image)
        return canvas

    async def render(
        self,
        layout: LayoutOption,
        width: int,
        height: int,
        assignment: Mapping[str, Optional[str]],
        levels: int = 2,
    ) -> DeviceBitmap:
        """
        Render a mixup to a device bitmap.

        Args:
            layout: Layout whose slots are filled
            width: Canvas width
            height: Canvas height
            assignment: Slot id to recipe slug; unassigned slots stay white
            levels: Number of gray levels

        Returns:
            DeviceBitmap of exactly width x height

        Raises:
            DitherInputInvalid: On an unsupported level count
        """
        validate_levels(levels)
        start_time = time.time()
        jobs = []
        for layout_slot in layout.slots:
            slug = assignment.get(layout_slot.id)
            resolved = layout_slot.resolve(width, height)
            if not slug or resolved.is_empty:
                continue
            jobs.append(self.render_slot(resolved, slug))

        rendered = await asyncio.gather(*jobs)
        slot_images = [item for item in rendered if item is not None]

        canvas = self.compose(width, height, slot_images)
        bitmap = await asyncio.to_thread(
            dither,
            RasterImage.from_pil(canvas),
            width,
            height,
            levels,
            method=self.dither_method,
            preserve_edges=self.preserve_edges,
        )
        self.logger.info(
            "Mixup composited",
            layout=layout.id,
            width=width,
            height=height,
            slots=len(jobs),
            rendered=len(slot_images),
            duration=round(time.time() - start_time, 3),
        )
        return bitmap
