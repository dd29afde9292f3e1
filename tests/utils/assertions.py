"""
Test Assertions
===============

Custom assertion helpers for bitmaps, rasters and API errors.
"""

import io
import struct
from typing import Any, Dict, Optional

from PIL import Image

from inkrecipes.core.dithering.bitmap import bits_per_pixel, row_stride


def assert_valid_bmp(data: bytes, width: int, height: int, levels: int = 2) -> None:
    """Assert that bytes are a palettized BMP with the expected geometry."""
    assert data[:2] == b"BM"
    file_size, _, _, offset = struct.unpack("<IHHI", data[2:14])
    assert file_size == len(data)

    header_size, bmp_width, bmp_height, planes, bpp = struct.unpack("<IiiHH", data[14:30])
    assert header_size == 40
    assert bmp_width == width
    assert bmp_height == height
    assert planes == 1
    assert bpp == bits_per_pixel(levels)

    colors_used = struct.unpack("<I", data[46:50])[0]
    assert colors_used == levels
    assert offset == 14 + 40 + levels * 4
    assert len(data) - offset == row_stride(width, bpp) * height


def assert_png_size(data: Optional[bytes], width: int, height: int) -> None:
    """Assert that bytes decode as a PNG of the given size."""
    assert data is not None
    with Image.open(io.BytesIO(data)) as image:
        assert image.format == "PNG"
        assert image.size == (width, height)


def assert_error_response(payload: Dict[str, Any], error_code: str) -> None:
    """Assert the structured error body returned by the API."""
    assert payload["error_code"] == error_code
    assert payload["error"]
    assert "timestamp" in payload


__all__ = ["assert_valid_bmp", "assert_png_size", "assert_error_response"]
