"""
Fill Patterns
=============

Registered ``dither-*`` fill patterns. Each pattern is a small pixel tile baked
into an SVG data URI at import time and painted as a repeating background.
"""

import base64
from typing import Dict, List


# "1" paints black, "0" leaves white
PATTERN_TILES: Dict[str, List[str]] = {
    "dither-12": ["1000", "0000", "0010", "0000"],
    "dither-25": ["10", "00"],
    "dither-50": ["10", "01"],
    "dither-75": ["11", "01"],
    "dither-87": ["0111", "1111", "1101", "1111"],
    "dither-h": ["1", "0"],
    "dither-v": ["10"],
    "dither-diag": ["1000", "0100", "0010", "0001"],
}


def tile_to_svg(rows: List[str]) -> str:
    """Render a pixel tile as a crisp SVG document."""
    height = len(rows)
    width = len(rows[0])
    rects = [
        f'<rect x="{x}" y="{y}" width="1" height="1" fill="#000"/>'
        for y, row in enumerate(rows)
        for x, cell in enumerate(row)
        if cell == "1"
    ]
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'shape-rendering="crispEdges">'
        f'<rect width="{width}" height="{height}" fill="#fff"/>'
        f'{"".join(rects)}</svg>'
    )


def _bake(rows: List[str]) -> Dict[str, str]:
    encoded = base64.b64encode(tile_to_svg(rows).encode("utf-8")).decode("ascii")
    return {
        "background-image": f'url("data:image/svg+xml;base64,{encoded}")',
        "background-repeat": "repeat",
        "background-size": f"{len(rows[0])}px {len(rows)}px",
        "image-rendering": "pixelated",
    }


FILL_PATTERNS: Dict[str, Dict[str, str]] = {name: _bake(rows) for name, rows in PATTERN_TILES.items()}
