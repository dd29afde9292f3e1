"""
Utility Vocabulary
==================

Fixed table of layout, typography and colour utility classes, each mapped to a
conflict group and literal CSS declarations.
"""

import math
import re
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple


BREAKPOINTS: Dict[str, int] = {"sm": 640, "md": 768, "lg": 1024, "xl": 1280, "2xl": 1536}

RESPONSIVE_PATTERN = re.compile(r"^(max-)?(sm|md|lg|xl|2xl):(.+)$")
GAP_PATTERN = re.compile(r"^gap-(?:(x|y)-)?(.+)$")


class Utility(NamedTuple):
    """Resolved utility: its conflict group and CSS declarations."""
    group: str
    declarations: Dict[str, str]


COLORS: Dict[str, str] = {
    "black": "#000000",
    "white": "#ffffff",
    "transparent": "transparent",
    "current": "currentColor",
    "gray-50": "#f9fafb",
    "gray-100": "#f3f4f6",
    "gray-200": "#e5e7eb",
    "gray-300": "#d1d5db",
    "gray-400": "#9ca3af",
    "gray-500": "#6b7280",
    "gray-600": "#4b5563",
    "gray-700": "#374151",
    "gray-800": "#1f2937",
    "gray-900": "#111827",
    "gray-950": "#030712",
    "red-500": "#ef4444",
    "orange-500": "#f97316",
    "yellow-500": "#eab308",
    "green-500": "#22c55e",
    "blue-500": "#3b82f6",
    "purple-500": "#a855f7",
}

FONT_SIZES: Dict[str, Tuple[str, str]] = {
    "xs": ("12px", "16px"),
    "sm": ("14px", "20px"),
    "base": ("16px", "24px"),
    "lg": ("18px", "28px"),
    "xl": ("20px", "28px"),
    "2xl": ("24px", "32px"),
    "3xl": ("30px", "36px"),
    "4xl": ("36px", "40px"),
    "5xl": ("48px", "1"),
    "6xl": ("60px", "1"),
    "7xl": ("72px", "1"),
    "8xl": ("96px", "1"),
    "9xl": ("128px", "1"),
}

FONT_WEIGHTS: Dict[str, str] = {
    "thin": "100",
    "extralight": "200",
    "light": "300",
    "normal": "400",
    "medium": "500",
    "semibold": "600",
    "bold": "700",
    "extrabold": "800",
    "black": "900",
}

RADII: Dict[str, str] = {
    "none": "0px",
    "sm": "2px",
    "": "4px",
    "md": "6px",
    "lg": "8px",
    "xl": "12px",
    "2xl": "16px",
    "3xl": "24px",
    "full": "9999px",
}

SPACING_PROPERTIES: Dict[str, Tuple[str, ...]] = {
    "p": ("padding",),
    "px": ("padding-left", "padding-right"),
    "py": ("padding-top", "padding-bottom"),
    "pt": ("padding-top",),
    "pr": ("padding-right",),
    "pb": ("padding-bottom",),
    "pl": ("padding-left",),
    "m": ("margin",),
    "mx": ("margin-left", "margin-right"),
    "my": ("margin-top", "margin-bottom"),
    "mt": ("margin-top",),
    "mr": ("margin-right",),
    "mb": ("margin-bottom",),
    "ml": ("margin-left",),
}

SIZE_PROPERTIES: Dict[str, str] = {
    "w": "width",
    "h": "height",
    "min-w": "min-width",
    "min-h": "min-height",
    "max-w": "max-width",
    "max-h": "max-height",
}

BORDER_SIDES: Dict[str, str] = {"t": "top", "r": "right", "b": "bottom", "l": "left"}


def _static_table() -> Dict[str, Utility]:
    table: Dict[str, Utility] = {}

    def add(group: str, token: str, **declarations: str) -> None:
        table[token] = Utility(group, {k.replace("_", "-"): v for k, v in declarations.items()})

    for display in ("block", "inline-block", "inline", "flex", "inline-flex", "grid", "table"):
        add("display", display, display=display)
    add("display", "hidden", display="none")

    add("flex-direction", "flex-row", flex_direction="row")
    add("flex-direction", "flex-row-reverse", flex_direction="row-reverse")
    add("flex-direction", "flex-col", flex_direction="column")
    add("flex-direction", "flex-col-reverse", flex_direction="column-reverse")
    add("flex-wrap", "flex-wrap", flex_wrap="wrap")
    add("flex-wrap", "flex-nowrap", flex_wrap="nowrap")
    add("flex", "flex-1", flex="1 1 0%")
    add("flex", "flex-auto", flex="1 1 auto")
    add("flex", "flex-initial", flex="0 1 auto")
    add("flex", "flex-none", flex="none")
    add("flex-grow", "grow", flex_grow="1")
    add("flex-grow", "grow-0", flex_grow="0")
    add("flex-shrink", "shrink", flex_shrink="1")
    add("flex-shrink", "shrink-0", flex_shrink="0")

    for name, value in (("start", "flex-start"), ("end", "flex-end"), ("center", "center"),
                        ("baseline", "baseline"), ("stretch", "stretch")):
        add("align-items", f"items-{name}", align_items=value)
        add("align-self", f"self-{name}", align_self=value)
    for name, value in (("start", "flex-start"), ("end", "flex-end"), ("center", "center"),
                        ("between", "space-between"), ("around", "space-around"),
                        ("evenly", "space-evenly")):
        add("justify-content", f"justify-{name}", justify_content=value)

    for position in ("static", "relative", "absolute", "fixed"):
        add("position", position, position=position)
    add("inset", "inset-0", top="0px", right="0px", bottom="0px", left="0px")
    for overflow in ("hidden", "visible", "auto"):
        add("overflow", f"overflow-{overflow}", overflow=overflow)

    for align in ("left", "center", "right", "justify"):
        add("text-align", f"text-{align}", text_align=align)
    add("font-style", "italic", font_style="italic")
    add("font-style", "not-italic", font_style="normal")
    add("text-transform", "uppercase", text_transform="uppercase")
    add("text-transform", "lowercase", text_transform="lowercase")
    add("text-transform", "capitalize", text_transform="capitalize")
    add("text-transform", "normal-case", text_transform="none")
    add("text-decoration", "underline", text_decoration_line="underline")
    add("text-decoration", "line-through", text_decoration_line="line-through")
    add("text-decoration", "no-underline", text_decoration_line="none")
    for whitespace in ("normal", "nowrap", "pre", "pre-line", "pre-wrap"):
        add("whitespace", f"whitespace-{whitespace}", white_space=whitespace)
    add("truncate", "truncate", overflow="hidden", text_overflow="ellipsis", white_space="nowrap")

    for name, value in (("none", "1"), ("tight", "1.25"), ("snug", "1.375"), ("normal", "1.5"),
                        ("relaxed", "1.625"), ("loose", "2")):
        add("line-height", f"leading-{name}", line_height=value)
    for name, value in (("tighter", "-0.05em"), ("tight", "-0.025em"), ("normal", "0em"),
                        ("wide", "0.025em"), ("wider", "0.05em"), ("widest", "0.1em")):
        add("letter-spacing", f"tracking-{name}", letter_spacing=value)

    for name, (size, line_height) in FONT_SIZES.items():
        add("font-size", f"text-{name}", font_size=size, line_height=line_height)
    for name, weight in FONT_WEIGHTS.items():
        add("font-weight", f"font-{name}", font_weight=weight)
    add("font-family", "font-sans", font_family="ui-sans-serif, system-ui, sans-serif")
    add("font-family", "font-serif", font_family="ui-serif, Georgia, serif")
    add("font-family", "font-mono", font_family="ui-monospace, Menlo, monospace")

    for name, color in COLORS.items():
        add("text-color", f"text-{name}", color=color)
        add("bg-color", f"bg-{name}", background_color=color)
        add("border-color", f"border-{name}", border_color=color)

    add("border-width", "border", border_width="1px", border_style="solid")
    for width in ("0", "2", "4", "8"):
        add("border-width", f"border-{width}", border_width=f"{width}px", border_style="solid")
    for short, side in BORDER_SIDES.items():
        table[f"border-{short}"] = Utility(
            f"border-{side}-width", {f"border-{side}-width": "1px", f"border-{side}-style": "solid"}
        )
        for width in ("0", "2", "4", "8"):
            table[f"border-{short}-{width}"] = Utility(
                f"border-{side}-width",
                {f"border-{side}-width": f"{width}px", f"border-{side}-style": "solid"},
            )
    for style in ("solid", "dashed", "dotted", "double", "none"):
        add("border-style", f"border-{style}", border_style=style)

    for name, radius in RADII.items():
        add("border-radius", f"rounded-{name}" if name else "rounded", border_radius=radius)

    add("box-shadow", "shadow-none", box_shadow="none")

    for columns in range(1, 13):
        add("grid-columns", f"grid-cols-{columns}",
            grid_template_columns=f"repeat({columns}, minmax(0, 1fr))")
        add("grid-column", f"col-span-{columns}", grid_column=f"span {columns} / span {columns}")

    return table


STATIC_UTILITIES: Dict[str, Utility] = _static_table()


def _format_px(value: float) -> str:
    if value == int(value):
        return f"{int(value)}px"
    return f"{value:g}px"


def spacing_value(raw: str, allow_arbitrary: bool = True) -> Optional[str]:
    """
    Convert a spacing-scale token to a CSS length.

    ``0`` is ``0px``, ``px`` is one pixel, numbers scale by 4px, and
    ``[...]`` is an arbitrary literal. Anything else is ``None``.
    """
    if raw == "0":
        return "0px"
    if raw == "px":
        return "1px"
    if raw.startswith("[") and raw.endswith("]"):
        if not allow_arbitrary:
            return None
        return raw[1:-1] or None
    try:
        number = float(raw)
    except ValueError:
        return None
    if not math.isfinite(number) or number < 0:
        return None
    return _format_px(number * 4)


def size_value(raw: str, prop: str) -> Optional[str]:
    """Spacing scale plus keywords and fractions for sizing utilities."""
    if raw == "full":
        return "100%"
    if raw == "auto":
        return "auto"
    if raw == "none" and prop.startswith("max-"):
        return "none"
    if raw == "screen":
        return "100vh" if prop.endswith("height") else "100vw"
    fraction = re.match(r"^(\d+)/(\d+)$", raw)
    if fraction:
        numerator, denominator = int(fraction.group(1)), int(fraction.group(2))
        if denominator == 0:
            return None
        return f"{round(numerator / denominator * 100, 6):g}%"
    return spacing_value(raw)


def _spacing_utility(token: str) -> Optional[Utility]:
    prefix, _, raw = token.partition("-")
    properties = SPACING_PROPERTIES.get(prefix)
    if not properties or not raw:
        return None
    value = "auto" if raw == "auto" and prefix.startswith("m") else spacing_value(raw)
    if value is None:
        return None
    return Utility(prefix, {prop: value for prop in properties})


def _size_utility(token: str) -> Optional[Utility]:
    match = re.match(r"^(min-w|min-h|max-w|max-h|w|h)-(.+)$", token)
    if not match:
        return None
    prefix, raw = match.groups()
    prop = SIZE_PROPERTIES[prefix]
    value = size_value(raw, prop)
    if value is None:
        return None
    return Utility(prefix, {prop: value})


def _arbitrary_utility(token: str) -> Optional[Utility]:
    match = re.match(r"^(text|bg|border)-\[(.+)\]$", token)
    if not match:
        return None
    prefix, raw = match.groups()
    if prefix == "text":
        if re.match(r"^\d+(\.\d+)?(px|rem|em)$", raw):
            return Utility("font-size", {"font-size": raw})
        return Utility("text-color", {"color": raw})
    if prefix == "bg":
        return Utility("bg-color", {"background-color": raw})
    return Utility("border-color", {"border-color": raw})


PARAMETERIZED: List[Callable[[str], Optional[Utility]]] = [
    _spacing_utility,
    _size_utility,
    _arbitrary_utility,
]


def lookup_utility(token: str) -> Optional[Utility]:
    """
    Resolve a utility class to its declarations.

    Args:
        token: Class token without responsive prefix

    Returns:
        Utility or None when the token is not in the vocabulary
    """
    utility = STATIC_UTILITIES.get(token)
    if utility is not None:
        return utility
    for parser in PARAMETERIZED:
        utility = parser(token)
        if utility is not None:
            return utility
    return None
