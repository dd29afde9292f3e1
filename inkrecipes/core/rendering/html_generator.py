"""
HTML Generator
==============

Convert normalized markup trees into HTML documents for browser rendering.
The document shell fixes the canvas size and disables font smoothing so the
browser output dithers cleanly.
"""

from typing import Any, Dict, List, Union
from pathlib import Path
import html

import jinja2
from markupsafe import Markup

from ...config.logging import get_logger
from ...models.nodes import ElementNode, FragmentNode, TextNode
from ..errors import RenderEngineFailure

logger = get_logger(__name__)

AnyNode = Union[ElementNode, TextNode, FragmentNode]

VOID_TAGS = frozenset({"area", "br", "col", "hr", "img", "input", "meta", "source", "wbr"})


class HTMLGenerationError(RenderEngineFailure):
    """Exception raised when HTML generation fails."""

    pass


def style_to_css(style: Dict[str, str]) -> str:
    """Serialize declarations as an inline style attribute value."""
    return "; ".join(f"{prop}: {value}" for prop, value in style.items())


def _attributes(node: ElementNode) -> str:
    attributes: Dict[str, str] = dict(node.attrs)
    if node.classes:
        attributes["class"] = " ".join(node.classes)
    if node.style:
        attributes["style"] = style_to_css(node.style)
    return "".join(f' {name}="{html.escape(str(value), quote=True)}"' for name, value in attributes.items())


def render_node_html(node: AnyNode, xhtml: bool = False) -> str:
    """
    Render a node tree to markup.

    Args:
        node: Tree to render
        xhtml: Self-close void elements for embedding in XML documents

    Returns:
        Markup string with text and attribute values escaped
    """
    if isinstance(node, TextNode):
        return html.escape(node.text, quote=False)
    if isinstance(node, FragmentNode):
        return "".join(render_node_html(child, xhtml) for child in node.children)

    attributes = _attributes(node)
    if node.tag.lower() in VOID_TAGS:
        return f"<{node.tag}{attributes} />" if xhtml else f"<{node.tag}{attributes}>"
    children: List[str] = [render_node_html(child, xhtml) for child in node.children]
    return f"<{node.tag}{attributes}>{''.join(children)}</{node.tag}>"


class HTMLGenerator:
    """Jinja2-based HTML document generator."""

    def __init__(self, template_name: str = "base.html") -> None:
        self.template_name = template_name
        self.logger: Any = logger.bind(generator="jinja2")
        template_dir = Path(__file__).parent / "templates"
        self.env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            autoescape=jinja2.select_autoescape(["html", "xml"]),
            enable_async=True,
        )

    async def generate(self, tree: AnyNode, width: int, height: int, title: str = "") -> str:
        """
        Generate a full HTML document around a normalized tree.

        Args:
            tree: Normalized markup tree
            width: Canvas width in CSS pixels
            height: Canvas height in CSS pixels
            title: Document title

        Returns:
            HTML document

        Raises:
            HTMLGenerationError: If template rendering fails
        """
        try:
            template = self.env.get_template(self.template_name)
            document = await template.render_async(
                body=Markup(render_node_html(tree)),
                width=width,
                height=height,
                title=title,
            )
            self.logger.debug("HTML generation completed", html_length=len(document))
            return document
        except jinja2.TemplateError as e:
            error_msg = f"Template rendering failed: {e}"
            self.logger.error("HTML generation failed", error=error_msg)
            raise HTMLGenerationError(error_msg, "html") from e
