"""
SVG Generator
=============

Vector export of a normalized tree. The markup is embedded as XHTML inside a
``foreignObject`` sized to the canvas.
"""

from typing import Any, Union

from ...config.logging import get_logger
from ...models.nodes import ElementNode, FragmentNode, TextNode
from ..errors import RenderEngineFailure
from .html_generator import render_node_html

logger = get_logger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"
XHTML_NS = "http://www.w3.org/1999/xhtml"

CANVAS_STYLE = (
    "width: 100%; height: 100%; margin: 0; background: #ffffff; color: #000000; "
    "font-size: 16px; line-height: 1.5; font-family: Arial, sans-serif; "
    "-webkit-font-smoothing: none; overflow: hidden"
)


class SVGGenerationError(RenderEngineFailure):
    """Exception raised when SVG generation fails."""

    pass


def placeholder_svg(width: int, height: int) -> str:
    """Stand-in vector document shown when SVG generation fails."""
    return (
        f'<svg width="{width}" height="{height}" viewBox="0 0 {width} {height}" xmlns="{SVG_NS}">'
        f'<rect width="{width}" height="{height}" fill="#f0f0f0"/>'
        f'<text x="50%" y="50%" font-family="Arial" font-size="24" text-anchor="middle" '
        f'dominant-baseline="middle">Unable to generate SVG content</text>'
        f"</svg>"
    )


class SVGGenerator:
    """Builds SVG documents around normalized markup."""

    def __init__(self) -> None:
        self.logger: Any = logger.bind(generator="svg")

    def generate(self, tree: Union[ElementNode, TextNode, FragmentNode], width: int, height: int) -> str:
        """
        Generate an SVG document.

        Raises:
            SVGGenerationError: If the tree cannot be serialized
        """
        try:
            body = render_node_html(tree, xhtml=True)
        except Exception as e:
            raise SVGGenerationError(f"SVG generation failed: {e}", "svg") from e

        document = (
            f'<svg width="{width}" height="{height}" viewBox="0 0 {width} {height}" xmlns="{SVG_NS}">'
            f'<foreignObject x="0" y="0" width="{width}" height="{height}">'
            f'<div xmlns="{XHTML_NS}" style="{CANVAS_STYLE}">{body}</div>'
            f"</foreignObject></svg>"
        )
        self.logger.debug("SVG generation completed", svg_length=len(document))
        return document
