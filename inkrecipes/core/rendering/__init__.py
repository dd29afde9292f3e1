"""
Rendering
=========

HTML shell generation, Playwright PNG engine, SVG export and the
multi-format recipe renderer.
"""

from .html_generator import HTMLGenerator, render_node_html
from .png_generator import (
    BrowserPool,
    PlaywrightPNGGenerator,
    RenderEngine,
    close_browser_pool,
    get_browser_pool,
    initialize_browser_pool,
)
from .renderer import RecipeRenderer, RenderResults
from .svg_generator import SVGGenerator, placeholder_svg

__all__ = [
    "HTMLGenerator",
    "render_node_html",
    "BrowserPool",
    "PlaywrightPNGGenerator",
    "RenderEngine",
    "close_browser_pool",
    "get_browser_pool",
    "initialize_browser_pool",
    "RecipeRenderer",
    "RenderResults",
    "SVGGenerator",
    "placeholder_svg",
]
