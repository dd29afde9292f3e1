"""
Dithering
=========

Error-diffusion halftoning and device BMP packing.
"""

from .bitmap import DeviceBitmap
from .dither import dither, dither_luminance, render_bmp

__all__ = ["DeviceBitmap", "dither", "dither_luminance", "render_bmp"]
