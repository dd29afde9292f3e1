"""
Recipe Components
=================

Python-built screens for recipes whose layout depends on computed values:
the price chart and the weather icon set.
"""

from typing import Any, Dict, List, Sequence, Tuple

from ..models.nodes import ElementNode, element
from ..models.schemas import RenderInput

STROKE = {"fill": "none", "stroke": "currentColor", "stroke-width": "2", "stroke-linecap": "round", "stroke-linejoin": "round"}

# 24x24 line icons
ICON_PATHS: Dict[str, List[str]] = {
    "sun": [
        "M12 8a4 4 0 1 0 0 8a4 4 0 1 0 0-8",
        "M12 2v2", "M12 20v2", "M4.9 4.9l1.4 1.4", "M17.7 17.7l1.4 1.4",
        "M2 12h2", "M20 12h2", "M6.3 17.7l-1.4 1.4", "M19.1 4.9l-1.4 1.4",
    ],
    "cloud": ["M17.5 19H9a7 7 0 1 1 6.7-9h1.8a4.5 4.5 0 1 1 0 9Z"],
    "rain": ["M20 16.6A5 5 0 0 0 18 7h-1.3A8 8 0 1 0 4 15.3", "M16 14v6", "M8 14v6", "M12 16v6"],
    "snow": ["M20 17.6A5 5 0 0 0 18 8h-1.3A8 8 0 1 0 4 16.3", "M8 15h.01", "M8 19h.01", "M12 17h.01", "M12 21h.01", "M16 15h.01", "M16 19h.01"],
    "fog": ["M4 14.9A7 7 0 1 1 15.7 8h1.8a4.5 4.5 0 0 1 2.5 8.2", "M16 17H7", "M17 21H9"],
    "thunder": ["M6 16.3A7 7 0 1 1 15.7 10h1.8a4.5 4.5 0 0 1 .5 9", "M13 11l-4 6h6l-4 6"],
    "thermometer": ["M14 4v10.5a4 4 0 1 1-4 0V4a2 2 0 0 1 4 0Z"],
    "droplet": ["M12 22a7 7 0 0 0 7-7c0-2-1-3.9-3-5.5s-3.5-4-4-6.5c-.5 2.5-2 4.9-4 6.5C6 11.1 5 13 5 15a7 7 0 0 0 7 7z"],
    "wind": ["M12.8 19.6A2 2 0 1 0 14 16H2", "M17.5 8a2.5 2.5 0 1 1 2 4H2", "M9.8 4.4A2 2 0 1 1 11 8H2"],
    "gauge": ["M10 2v8", "M12.8 21.6A2 2 0 1 0 14 18H2", "M17.5 10a2.5 2.5 0 1 1 2 4H2", "m6 6 4 4 4-4"],
    "sunrise": ["M12 2v8", "m4.9 10.9 1.4 1.4", "M2 18h2", "M20 18h2", "m19.1 10.9-1.4 1.4", "M22 22H2", "m8 6 4-4 4 4", "M16 18a4 4 0 0 0-8 0"],
    "sunset": ["M12 10V2", "m4.9 10.9 1.4 1.4", "M2 18h2", "M20 18h2", "m19.1 10.9-1.4 1.4", "M22 22H2", "m16 6-4 4-4-4", "M16 18a4 4 0 0 0-8 0"],
}


def icon(name: str, size: int = 48) -> ElementNode:
    """Inline SVG line icon."""
    return element(
        "svg",
        *[element("path", d=path) for path in ICON_PATHS[name]],
        xmlns="http://www.w3.org/2000/svg",
        viewBox="0 0 24 24",
        width=size,
        height=size,
        **STROKE,
    )


def weather_icon(description: str) -> str:
    """Icon name for a weather description."""
    lowered = description.lower()
    if "rain" in lowered or "drizzle" in lowered:
        return "rain"
    if "snow" in lowered:
        return "snow"
    if "thunder" in lowered:
        return "thunder"
    if "fog" in lowered or "mist" in lowered:
        return "fog"
    if "clear" in lowered or "sun" in lowered:
        return "sun"
    return "cloud"


def chart_points(values: Sequence[float], width: int, height: int, padding: int = 4) -> List[Tuple[float, float]]:
    """
    Scale a series into SVG coordinates, highest value at the top.

    A flat series is drawn along the vertical middle.
    """
    if not values:
        return []
    low, high = min(values), max(values)
    span = high - low
    step = (width - 2 * padding) / (len(values) - 1) if len(values) > 1 else 0.0
    points = []
    for index, value in enumerate(values):
        x = padding + index * step
        if span:
            y = padding + (high - value) / span * (height - 2 * padding)
        else:
            y = height / 2
        points.append((round(x, 1), round(y, 1)))
    return points


def price_chart(prices: Sequence[Dict[str, Any]], width: int, height: int) -> ElementNode:
    """Line chart of a price history as inline SVG."""
    values = [float(entry["price"]) for entry in prices if "price" in entry]
    points = " ".join(f"{x:g},{y:g}" for x, y in chart_points(values, width, height))
    children = [
        element("rect", x=0, y=0, width=width, height=height, fill="none", stroke="black", **{"stroke-width": 1}),
    ]
    if points:
        children.append(element("polyline", points=points, fill="none", stroke="black", **{"stroke-width": 3}))
    else:
        children.append(
            element(
                "text", "No price history",
                x=width // 2, y=height // 2, fill="black",
                **{"text-anchor": "middle", "font-size": 24, "dominant-baseline": "middle"},
            )
        )
    return element(
        "svg",
        *children,
        xmlns="http://www.w3.org/2000/svg",
        viewBox=f"0 0 {width} {height}",
        width=width,
        height=height,
    )


def bitcoin_price(render_input: RenderInput) -> ElementNode:
    props = render_input.props
    change = str(props.get("change_24h", "0"))
    positive = not change.startswith("-")
    change_value = change if positive else change[1:]
    wide = render_input.width >= 768

    stats = [
        ("Market Cap", props.get("market_cap", "N/A")),
        ("24h Volume", props.get("volume_24h", "N/A")),
        ("24h High", props.get("high_24h", "N/A")),
        ("24h Low", props.get("low_24h", "N/A")),
    ]
    chart_width = int(render_input.width * 0.55) if wide else render_input.width - 50
    chart_height = 200 if wide else min(300, render_input.height // 3)

    return element(
        "div",
        element(
            "div",
            element(
                "div",
                element("h2", f"${props.get('price', 'N/A')}", class_name="text-8xl font-bold"),
                element("div", f"{'↑' if positive else '↓'} {change_value}%", class_name="text-4xl"),
                class_name="flex flex-col",
            ),
            element("div", str(props.get("crypto_name", "Bitcoin")), class_name="text-3xl font-bold"),
            class_name="flex items-center justify-between",
        ),
        element(
            "div",
            price_chart(props.get("historical_prices") or [], chart_width, chart_height),
            element(
                "div",
                *[
                    element(
                        "div",
                        element("div", label, class_name="text-[24px] md:text-[26px] leading-none"),
                        element("div", f"${value}", class_name="text-[24px] md:text-[26px] leading-none font-bold"),
                        class_name="w-full p-2 rounded-xl border border-black flex flex-row justify-between",
                    )
                    for label, value in stats
                ],
                class_name="flex flex-col gap-2 w-full md:w-1/3",
            ),
            class_name="w-full flex flex-col gap-4 md:flex-row md:items-center md:justify-between",
        ),
        element(
            "div",
            element("div", "Bitcoin Price Tracker"),
            element("div", f"Last updated: {props.get('last_updated', 'N/A')}"),
            class_name="w-full flex flex-row justify-between items-center text-2xl p-2 rounded-xl border border-black dither-12",
        ),
        class_name="flex h-full w-full flex-col bg-white justify-between p-4",
    )


def _stat_card(label: str, value: str, icon_name: str) -> ElementNode:
    return element(
        "div",
        element("div", icon(icon_name), class_name="p-2"),
        element(
            "div",
            element("div", label, class_name="text-[28px] leading-none"),
            element("div", value, class_name="text-[28px] leading-none font-bold"),
            class_name="flex flex-col",
        ),
        class_name="p-2 rounded-xl border border-black flex-1 flex flex-row items-center",
    )


def weather(render_input: RenderInput) -> ElementNode:
    props = render_input.props
    stats = [
        ("Feels Like", f"{props.get('feels_like', 'N/A')}°C", "thermometer"),
        ("Humidity", f"{props.get('humidity', 'N/A')}%", "droplet"),
        ("Wind Speed", f"{props.get('wind_speed', 'N/A')} km/h", "wind"),
        ("Pressure", f"{props.get('pressure', 'N/A')} hPa", "gauge"),
        ("Sunrise", str(props.get("sunrise", "N/A")), "sunrise"),
        ("Sunset", str(props.get("sunset", "N/A")), "sunset"),
    ]
    description = str(props.get("description", "N/A"))

    return element(
        "div",
        element(
            "div",
            element(
                "div",
                element("h2", f"{props.get('temperature', 'N/A')}°C", class_name="text-9xl font-bold"),
                element("div", description, class_name="text-3xl"),
                class_name="flex flex-col",
            ),
            element(
                "div",
                icon(weather_icon(description), size=128),
                element(
                    "div",
                    f"↑ {props.get('high_temp', 'N/A')}°C  ↓ {props.get('low_temp', 'N/A')}°C",
                    class_name="text-4xl mt-4",
                ),
                class_name="flex flex-col items-center justify-center",
            ),
            class_name="flex-1 overflow-hidden p-4 flex items-center justify-between",
        ),
        element(
            "div",
            element("div", *[_stat_card(*stat) for stat in stats[:3]], class_name="w-full flex flex-row gap-4"),
            element("div", *[_stat_card(*stat) for stat in stats[3:]], class_name="w-full flex flex-row gap-4"),
            element(
                "div",
                element("div", str(props.get("location", "N/A"))),
                element("div", f"Last updated: {props.get('last_updated', 'N/A')}"),
                class_name="w-full flex justify-between text-2xl p-2 rounded-xl border border-black dither-12",
            ),
            class_name="flex-none p-4 flex flex-col gap-4",
        ),
        class_name="flex flex-col w-full h-full bg-white",
    )
