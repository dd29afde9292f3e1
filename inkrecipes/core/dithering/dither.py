"""
Dithering Engine
================

Quantizes continuous-tone rasters to N gray levels for e-ink panels.

Atkinson error diffusion is the default: each pixel's quantization error is
floored to eighths and pushed to six forward neighbours, and the remaining
quarter is dropped. Floyd-Steinberg and ordered 8x8 Bayer are available for
comparison. The engine is synchronous and deterministic; async callers run it
in a worker thread.

Pixel buffers are numpy arrays shaped (height, width). Only the in-row error
chain of the diffusion methods walks pixels one by one; carrying error into
the rows below and every per-pixel mapping is done on whole arrays.
"""

import math
import time
from typing import Optional

import numpy as np
from numpy.typing import ArrayLike
from PIL import Image

from ...config.logging import get_logger
from ...models.schemas import DitherMethod, RasterImage
from ..errors import DitherInputInvalid
from .bitmap import DeviceBitmap, validate_levels

logger = get_logger(__name__)

BAYER_MATRIX_8X8 = np.array([
    [0, 32, 8, 40, 2, 34, 10, 42],
    [48, 16, 56, 24, 50, 18, 58, 26],
    [12, 44, 4, 36, 14, 46, 6, 38],
    [60, 28, 52, 20, 62, 30, 54, 22],
    [3, 35, 11, 43, 1, 33, 9, 41],
    [51, 19, 59, 27, 49, 17, 57, 25],
    [15, 47, 7, 39, 13, 45, 5, 37],
    [63, 31, 55, 23, 61, 29, 53, 21],
])

BAYER_THRESHOLDS = BAYER_MATRIX_8X8 * 255 // 64

# Edge preservation thresholds
BLACK_CUTOFF = 10
WHITE_CUTOFF = 240
EDGE_FUZZINESS = 20


def nearest_level(value: float, levels: int) -> int:
    """Index of the nearest of ``levels`` evenly spaced tones, 0 = black."""
    step = 255 / (levels - 1)
    level = math.floor(value / step + 0.5)
    return min(max(level, 0), levels - 1)


def nearest_levels(values: np.ndarray, levels: int) -> np.ndarray:
    """Array form of :func:`nearest_level`."""
    step = 255 / (levels - 1)
    return np.clip(np.floor(values / step + 0.5), 0, levels - 1).astype(np.uint8)


def quantize(value: float, levels: int) -> float:
    """Nearest tone value in 0..255."""
    return nearest_level(value, levels) * (255 / (levels - 1))


def _atkinson(buffer: np.ndarray, levels: int) -> np.ndarray:
    height, width = buffer.shape
    step = 255 / (levels - 1)
    tones = np.zeros((height, width), dtype=np.uint8)
    for y in range(height):
        line = buffer[y].tolist()
        row_tones = [0] * width
        errors = [0] * width
        for x in range(width):
            old = line[x]
            level = nearest_level(old, levels)
            row_tones[x] = level
            error = math.floor((old - level * step) / 8)
            if not error:
                continue
            errors[x] = error
            if x + 1 < width:
                line[x + 1] += error
            if x + 2 < width:
                line[x + 2] += error
        tones[y] = row_tones

        # (x-1, y+1), (x, y+1), (x+1, y+1) and (x, y+2) in one pass per row
        spread = np.asarray(errors, dtype=np.float64)
        if y + 1 < height:
            below = buffer[y + 1]
            below[:-1] += spread[1:]
            below += spread
            below[1:] += spread[:-1]
        if y + 2 < height:
            buffer[y + 2] += spread
    return tones


def _floyd_steinberg(buffer: np.ndarray, levels: int) -> np.ndarray:
    height, width = buffer.shape
    step = 255 / (levels - 1)
    tones = np.zeros((height, width), dtype=np.uint8)
    for y in range(height):
        line = buffer[y].tolist()
        row_tones = [0] * width
        errors = [0.0] * width
        for x in range(width):
            old = line[x]
            level = nearest_level(old, levels)
            row_tones[x] = level
            error = old - level * step
            errors[x] = error
            if x + 1 < width:
                line[x + 1] += error * 7 / 16
        tones[y] = row_tones

        if y + 1 < height:
            spread = np.asarray(errors, dtype=np.float64)
            below = buffer[y + 1]
            below[:-1] += spread[1:] * 3 / 16
            below += spread * 5 / 16
            below[1:] += spread[:-1] * 1 / 16
    return tones


def _bayer(buffer: np.ndarray, levels: int) -> np.ndarray:
    height, width = buffer.shape
    rows = np.arange(height)[:, None] % 8
    cols = np.arange(width)[None, :] % 8
    return nearest_levels(buffer + (BAYER_THRESHOLDS[rows, cols] - 128), levels)


DIFFUSERS = {
    DitherMethod.ATKINSON: _atkinson,
    DitherMethod.FLOYD_STEINBERG: _floyd_steinberg,
    DitherMethod.BAYER: _bayer,
}


def _validate_dimensions(count: int, width: int, height: int) -> None:
    if count == 0:
        raise DitherInputInvalid("Empty input")
    if width < 1 or height < 1:
        raise DitherInputInvalid(f"Invalid dimensions {width}x{height}")
    if count != width * height:
        raise DitherInputInvalid(f"Expected {width * height} pixels for {width}x{height}, got {count}")


def dither_luminance(
    values: ArrayLike,
    width: int,
    height: int,
    levels: int = 2,
    method: DitherMethod = DitherMethod.ATKINSON,
) -> np.ndarray:
    """
    Dither luminance values to palette indices.

    Args:
        values: Luminance in row-major order or shaped (height, width),
            0 = black, 255 = white
        width: Image width
        height: Image height
        levels: Number of gray levels
        method: Halftoning algorithm

    Returns:
        uint8 array of shape (height, width); 0 = white and
        ``levels - 1`` = black

    Raises:
        DitherInputInvalid: On empty input, bad dimensions or level count
    """
    validate_levels(levels)
    buffer = np.array(values, dtype=np.float64)
    _validate_dimensions(buffer.size, width, height)
    tones = DIFFUSERS[DitherMethod(method)](buffer.reshape(height, width), levels)
    return (levels - 1) - tones


def luminance(image: RasterImage) -> np.ndarray:
    """ITU-R 601-2 luminance of an RGBA raster composited over white, shaped (height, width)."""
    rgba = image.to_pil()
    background = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
    return np.asarray(Image.alpha_composite(background, rgba).convert("L"), dtype=np.uint8)


def detect_edges(gray: np.ndarray) -> np.ndarray:
    """Interior pixels that are, or touch, a near-black or near-white pixel."""
    extreme = (gray < EDGE_FUZZINESS) | (gray > 255 - EDGE_FUZZINESS)
    edges = np.zeros(gray.shape, dtype=bool)
    edges[1:-1, 1:-1] = (
        extreme[1:-1, 1:-1]
        | extreme[1:-1, :-2]
        | extreme[1:-1, 2:]
        | extreme[:-2, 1:-1]
        | extreme[2:, 1:-1]
    )
    return edges


def snap_edges(indices: ArrayLike, gray: ArrayLike, levels: int) -> np.ndarray:
    """
    Snap solid and high-contrast pixels back to pure black or white.

    Near-black and near-white pixels ignore the diffused result, and pixels on
    a high-contrast edge (usually text) are thresholded at mid-gray. Both
    arrays are shaped (height, width).
    """
    black = levels - 1
    gray = np.asarray(gray)
    adjusted = np.array(indices, dtype=np.uint8)

    edges = detect_edges(gray)
    adjusted[edges] = np.where(gray[edges] < 128, black, 0)
    adjusted[gray > WHITE_CUTOFF] = 0
    adjusted[gray < BLACK_CUTOFF] = black
    return adjusted


def dither(
    image: Optional[RasterImage],
    width: int,
    height: int,
    levels: int = 2,
    method: DitherMethod = DitherMethod.ATKINSON,
    inverted: bool = False,
    preserve_edges: bool = False,
) -> DeviceBitmap:
    """
    Dither a raster into a packed device bitmap.

    Args:
        image: Source raster, must match the target size exactly
        width: Target width
        height: Target height
        levels: Number of gray levels, a power of two in [2, 256]
        method: Halftoning algorithm
        inverted: Swap black and white in the output
        preserve_edges: Snap solid pixels and text edges

    Returns:
        DeviceBitmap of exactly width x height

    Raises:
        DitherInputInvalid: On empty input, size mismatch or bad level count
    """
    if image is None:
        raise DitherInputInvalid("Empty input")
    validate_levels(levels)
    if image.width != width or image.height != height:
        raise DitherInputInvalid(
            f"Image is {image.width}x{image.height}, expected {width}x{height}"
        )

    gray = luminance(image)
    indices = dither_luminance(gray, width, height, levels, method)
    if preserve_edges:
        indices = snap_edges(indices, gray, levels)
    if inverted:
        indices = (levels - 1) - indices
    return DeviceBitmap.from_indices(indices, width, height, levels)


def render_bmp(
    raster: RasterImage,
    width: int,
    height: int,
    levels: int = 2,
    method: DitherMethod = DitherMethod.ATKINSON,
    inverted: bool = False,
    preserve_edges: bool = True,
) -> bytes:
    """
    Produce device BMP bytes from a rendered raster.

    A raster at exactly twice the target size (sharp-text rendering) is
    downsampled with nearest-neighbour first; any other size mismatch is an
    error.
    """
    start_time = time.time()
    if raster.width == width * 2 and raster.height == height * 2:
        resized = raster.to_pil().resize((width, height), Image.Resampling.NEAREST)
        raster = RasterImage.from_pil(resized)

    bitmap = dither(raster, width, height, levels, method, inverted, preserve_edges)
    data = bitmap.to_bmp()

    logger.debug(
        "Bitmap rendered",
        width=width,
        height=height,
        levels=levels,
        method=DitherMethod(method).value,
        size=len(data),
        duration=round(time.time() - start_time, 3),
    )
    return data
