"""
Markup Node Tree
================

Closed tagged variant used for recipe markup: elements, text, and fragments,
discriminated by ``kind``. Nodes are frozen; transforms build new trees.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ElementNode(BaseModel):
    """An element with utility classes, inline style, attributes and children."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["element"] = "element"
    tag: str = Field("div", min_length=1)
    classes: List[str] = Field(default_factory=list)
    style: Dict[str, str] = Field(default_factory=dict)
    attrs: Dict[str, str] = Field(default_factory=dict)
    children: List["Node"] = Field(default_factory=list)


class TextNode(BaseModel):
    """Literal text content."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    text: str = ""


class FragmentNode(BaseModel):
    """Children without a wrapping element."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["fragment"] = "fragment"
    children: List["Node"] = Field(default_factory=list)


Node = Annotated[Union[ElementNode, TextNode, FragmentNode], Field(discriminator="kind")]

ElementNode.model_rebuild()
FragmentNode.model_rebuild()


def element(
    tag: str,
    *children: Union["ElementNode", "TextNode", "FragmentNode", str],
    class_name: str = "",
    style: Optional[Dict[str, Any]] = None,
    **attrs: Any,
) -> ElementNode:
    """
    Build an element node.

    String children become text nodes and ``class_name`` is split on whitespace.

    Args:
        tag: Element tag name
        children: Child nodes or strings
        class_name: Space separated utility classes
        style: Inline CSS declarations
        attrs: Extra HTML attributes

    Returns:
        New element node
    """
    return ElementNode(
        tag=tag,
        classes=class_name.split(),
        style={key: str(value) for key, value in (style or {}).items()},
        attrs={key: str(value) for key, value in attrs.items()},
        children=[text(child) if isinstance(child, str) else child for child in children],
    )


def text(value: Any) -> TextNode:
    return TextNode(text=str(value))


def fragment(*children: Union[ElementNode, TextNode, FragmentNode]) -> FragmentNode:
    return FragmentNode(children=list(children))


def iter_text(node: Union[ElementNode, TextNode, FragmentNode]) -> List[str]:
    """All text content in document order."""
    if isinstance(node, TextNode):
        return [node.text]
    collected: List[str] = []
    for child in node.children:
        collected.extend(iter_text(child))
    return collected
