"""
Style Normalizer
================

Rewrites a recipe markup tree for a fixed viewport so the rendering engine gets
literal, deterministic styles. Responsive variants are resolved against the
viewport width, utility classes become inline declarations, gap utilities are
expanded, fill patterns are inlined, and block elements get a zeroed box reset.
"""

import re
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ...models.nodes import ElementNode, FragmentNode, TextNode
from .patterns import FILL_PATTERNS
from .utilities import BREAKPOINTS, GAP_PATTERN, RESPONSIVE_PATTERN, lookup_utility, spacing_value


AnyNode = Union[ElementNode, TextNode, FragmentNode]

RESET_TAGS = frozenset({
    "h1", "h2", "h3", "h4", "h5", "h6", "p", "div", "section", "article", "header",
    "footer", "main", "aside", "nav", "ul", "ol", "li", "figure", "blockquote",
})

RESET_DECLARATIONS: Dict[str, str] = {
    "margin": "0px",
    "padding": "0px",
    "border-width": "0px",
    "border-style": "solid",
    "background-color": "transparent",
    "box-shadow": "none",
}

# Setting a shorthand clears its longhands so the later value wins
LONGHANDS: Dict[str, tuple] = {
    "padding": ("padding-top", "padding-right", "padding-bottom", "padding-left"),
    "margin": ("margin-top", "margin-right", "margin-bottom", "margin-left"),
    "border-width": ("border-top-width", "border-right-width", "border-bottom-width", "border-left-width"),
    "border-style": ("border-top-style", "border-right-style", "border-bottom-style", "border-left-style"),
    "gap": ("row-gap", "column-gap"),
    "overflow": ("overflow-x", "overflow-y"),
}


class NormalizeOptions(BaseModel):
    """Viewport and engine capabilities for one normalization pass."""
    model_config = ConfigDict(frozen=True)

    viewport_width: int = Field(..., gt=0, description="Viewport width in CSS pixels")
    gap_shorthand: bool = Field(True, description="Engine understands the gap shorthand")


def css_property(name: str) -> str:
    """Convert camelCase style keys to CSS property names."""
    return re.sub(r"(?<!^)([A-Z])", r"-\1", name).lower()


def split_classes(classes: List[str]) -> List[str]:
    return [token for entry in classes for token in entry.split()]


def resolve_responsive(tokens: List[str], viewport_width: int) -> List[str]:
    """
    Keep breakpoint variants that apply at the viewport width.

    ``bp:utility`` applies at ``viewport_width >= bp`` and ``max-bp:utility``
    below it. Surviving variants lose their prefix.
    """
    resolved: List[str] = []
    for token in tokens:
        match = RESPONSIVE_PATTERN.match(token)
        if not match:
            resolved.append(token)
            continue
        is_max, breakpoint, utility = match.groups()
        threshold = BREAKPOINTS[breakpoint]
        applies = viewport_width < threshold if is_max else viewport_width >= threshold
        if applies:
            resolved.append(utility)
    return resolved


def conflict_key(token: str) -> str:
    gap = GAP_PATTERN.match(token)
    if gap:
        axis = gap.group(1)
        return f"gap-{axis}" if axis else "gap"
    if token in FILL_PATTERNS:
        return "fill-pattern"
    utility = lookup_utility(token)
    if utility is not None:
        return utility.group
    return f"token:{token}"


def merge_classes(tokens: List[str]) -> List[str]:
    """Drop earlier tokens that conflict with a later one, keeping order."""
    kept: List[Optional[str]] = []
    positions: Dict[str, int] = {}
    for token in tokens:
        key = conflict_key(token)
        if key in positions:
            kept[positions[key]] = None
        positions[key] = len(kept)
        kept.append(token)
    return [token for token in kept if token is not None]


def expand_gap(tokens: List[str], gap_shorthand: bool = True) -> Dict[str, str]:
    """
    Turn gap utilities into declarations.

    Axis tokens set ``column-gap``/``row-gap``. A general value fills the axes
    not set explicitly, and stays a ``gap`` shorthand only when no axis token
    is present and the engine supports it. Unparseable values are dropped.
    """
    general: Optional[str] = None
    column: Optional[str] = None
    row: Optional[str] = None
    for token in tokens:
        match = GAP_PATTERN.match(token)
        if not match:
            continue
        axis, raw = match.groups()
        value = spacing_value(raw, allow_arbitrary=False)
        if value is None:
            continue
        if axis == "x":
            column = value
        elif axis == "y":
            row = value
        else:
            general = value

    declarations: Dict[str, str] = {}
    if general is not None:
        if column is None and row is None and gap_shorthand:
            declarations["gap"] = general
        else:
            declarations["row-gap"] = general
            declarations["column-gap"] = general
    if column is not None:
        declarations["column-gap"] = column
    if row is not None:
        declarations["row-gap"] = row
    return declarations


def assign(style: Dict[str, str], prop: str, value: str) -> None:
    """Set a declaration so it takes precedence over everything already set."""
    for longhand in LONGHANDS.get(prop, ()):
        style.pop(longhand, None)
    style.pop(prop, None)
    style[prop] = value


def _normalize_element(node: ElementNode, options: NormalizeOptions) -> Optional[ElementNode]:
    tokens = merge_classes(resolve_responsive(split_classes(node.classes), options.viewport_width))
    if "hidden" in tokens:
        return None

    style: Dict[str, str] = dict(RESET_DECLARATIONS) if node.tag.lower() in RESET_TAGS else {}
    passthrough: List[str] = []
    gap_tokens: List[str] = []

    for token in tokens:
        if token in FILL_PATTERNS:
            declarations = FILL_PATTERNS[token]
        elif GAP_PATTERN.match(token):
            gap_tokens.append(token)
            continue
        else:
            utility = lookup_utility(token)
            if utility is None:
                passthrough.append(token)
                continue
            declarations = utility.declarations
        for prop, value in declarations.items():
            assign(style, prop, value)

    for prop, value in expand_gap(gap_tokens, options.gap_shorthand).items():
        assign(style, prop, value)

    for prop, value in node.style.items():
        assign(style, css_property(prop), str(value))

    return ElementNode(
        tag=node.tag,
        classes=passthrough,
        style=style,
        attrs=dict(node.attrs),
        children=_normalize_children(node.children, options),
    )


def _normalize_children(children: List[Any], options: NormalizeOptions) -> List[AnyNode]:
    normalized: List[AnyNode] = []
    for child in children:
        result = normalize(child, options)
        if result is not None:
            normalized.append(result)
    return normalized


def normalize(node: AnyNode, options: NormalizeOptions) -> Optional[AnyNode]:
    """
    Normalize a markup tree for a fixed viewport.

    Args:
        node: Root of the tree to normalize
        options: Viewport width and engine capabilities

    Returns:
        A new tree, or None when the root itself is hidden at this viewport
    """
    if isinstance(node, TextNode):
        return node
    if isinstance(node, FragmentNode):
        return FragmentNode(children=_normalize_children(node.children, options))
    if isinstance(node, ElementNode):
        return _normalize_element(node, options)
    raise TypeError(f"Unsupported node type: {type(node).__name__}")
