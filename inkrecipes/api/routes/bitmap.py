"""
Bitmap Routes
=============

Device-facing endpoints returning Windows BMP images: single recipes and
composited mixups.
"""

import time
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse, Response

from ...config.logging import get_logger
from ...config.settings import Settings
from ...core.dithering.bitmap import validate_levels
from ...core.errors import InvalidLayout, MixupNotFound
from ...core.mixup import get_layout_by_id
from ..dependencies import Services, get_services

logger = get_logger(__name__)

router = APIRouter(prefix="/api/bitmap", tags=["Bitmap"])


def bmp_response(data: bytes) -> Response:
    return Response(
        content=data,
        media_type="image/bmp",
        headers={"Content-Length": str(len(data)), "Cache-Control": "no-store"},
    )


def strip_bmp_suffix(name: str) -> str:
    """Devices request `<name>.bmp`; the suffix is not part of the id."""
    if name.endswith(".bmp"):
        return name[: -len(".bmp")]
    return name


def canvas_size(settings: Settings, width: Optional[int], height: Optional[int]) -> Tuple[int, int]:
    """Requested canvas size with defaults, bounded by the configured maximum."""
    width = width or settings.default_width
    height = height or settings.default_height
    if width > settings.max_width or height > settings.max_height:
        raise HTTPException(
            status_code=400,
            detail=f"Canvas {width}x{height} exceeds maximum {settings.max_width}x{settings.max_height}",
        )
    return width, height


@router.get("/mixup/{mixup_id}")
async def get_mixup_bitmap(
    mixup_id: str,
    width: Optional[int] = Query(None, gt=0, description="Canvas width"),
    height: Optional[int] = Query(None, gt=0, description="Canvas height"),
    grayscale: int = Query(2, description="Number of gray levels"),
    services: Services = Depends(get_services),
) -> Response:
    """
    Composite a persisted mixup into one device bitmap.

    Returns 404 for an unknown mixup, 400 for an unknown layout or unsupported
    level count and 503 when mixup storage is unavailable.
    """
    start_time = time.time()
    mixup_id = strip_bmp_suffix(mixup_id)
    width, height = canvas_size(services.settings, width, height)
    validate_levels(grayscale)

    record = await services.mixup_store.get_mixup(mixup_id)
    if record is None:
        raise MixupNotFound(mixup_id)
    layout = get_layout_by_id(record.layout_id)
    if layout is None:
        raise InvalidLayout(record.layout_id)

    bitmap = await services.compositor.render(layout, width, height, record.assignment(), grayscale)
    data = bitmap.to_bmp()

    logger.info(
        "Mixup bitmap served",
        mixup_id=mixup_id,
        layout=layout.id,
        size=len(data),
        duration=round(time.time() - start_time, 3),
    )
    return bmp_response(data)


@router.get("/{slug}")
async def get_bitmap(
    slug: str,
    width: Optional[int] = Query(None, gt=0, description="Canvas width"),
    height: Optional[int] = Query(None, gt=0, description="Canvas height"),
    grayscale: Optional[int] = Query(None, description="Number of gray levels"),
    services: Services = Depends(get_services),
) -> Response:
    """
    Render a recipe as a device bitmap.

    Unknown recipes render the not-found screen with status 200; a plain-text
    500 is returned only when even that screen cannot be rendered.
    """
    slug = strip_bmp_suffix(slug)
    width, height = canvas_size(services.settings, width, height)
    levels = validate_levels(services.settings.default_grayscale if grayscale is None else grayscale)

    try:
        data = await services.pipeline.render_bitmap(slug, width, height, levels)
    except Exception as e:
        logger.error("Error generating bitmap", slug=slug, error=str(e), error_type=type(e).__name__)
        return PlainTextResponse("Error generating image", status_code=500)
    return bmp_response(data)
