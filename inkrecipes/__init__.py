"""
Ink Recipes Renderer
====================

Renders recipe screens to device bitmaps for e-ink displays.

Components:
- core.style: utility class normalization for a fixed viewport
- core.recipes: recipe registry, resolver and cache
- core.rendering: HTML, PNG and SVG output
- core.dithering: Atkinson dithering and BMP packing
- core.mixup: multi-recipe layouts and compositing
- api: FastAPI application
"""

__version__ = "1.0.0"
