"""
Mixup Layouts
=============

Bundled layouts in relative coordinates, resolved to pixels per canvas.
"""

from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence

from ...models.schemas import LayoutOption, LayoutSlot


class MixupLayoutId(str, Enum):
    """Bundled layout identifiers."""
    QUARTERS = "quarters"
    TOP_BANNER = "top-banner"
    LEFT_RAIL = "left-rail"
    VERTICAL_HALVES = "vertical-halves"
    HORIZONTAL_HALVES = "horizontal-halves"


def _slot(slot_id: str, label: str, x: float, y: float, width: float, height: float, **extra) -> LayoutSlot:
    return LayoutSlot(id=slot_id, label=label, x=x, y=y, width=width, height=height, **extra)


LAYOUT_OPTIONS: List[LayoutOption] = [
    LayoutOption(
        id=MixupLayoutId.QUARTERS.value,
        title="Quarters",
        description="Four equal quadrants",
        slots=[
            _slot("top-left", "Top left", 0.0, 0.0, 0.5, 0.5),
            _slot("top-right", "Top right", 0.5, 0.0, 0.5, 0.5),
            _slot("bottom-left", "Bottom left", 0.0, 0.5, 0.5, 0.5),
            _slot("bottom-right", "Bottom right", 0.5, 0.5, 0.5, 0.5),
        ],
    ),
    LayoutOption(
        id=MixupLayoutId.TOP_BANNER.value,
        title="Top banner",
        description="Full-width banner over two quadrants",
        slots=[
            _slot("top", "Top span", 0.0, 0.0, 1.0, 0.5, col_span=2, hint="2 quarters"),
            _slot("bottom-left", "Bottom left", 0.0, 0.5, 0.5, 0.5),
            _slot("bottom-right", "Bottom right", 0.5, 0.5, 0.5, 0.5),
        ],
    ),
    LayoutOption(
        id=MixupLayoutId.LEFT_RAIL.value,
        title="Left rail",
        description="Full-height left column beside two quadrants",
        slots=[
            _slot("left", "Left column", 0.0, 0.0, 0.5, 1.0, row_span=2, hint="2 quarters"),
            _slot("top-right", "Top right", 0.5, 0.0, 0.5, 0.5),
            _slot("bottom-right", "Bottom right", 0.5, 0.5, 0.5, 0.5),
        ],
    ),
    LayoutOption(
        id=MixupLayoutId.VERTICAL_HALVES.value,
        title="Vertical halves",
        description="Left and right halves",
        slots=[
            _slot("left-half", "Left half", 0.0, 0.0, 0.5, 1.0, row_span=2, hint="2 quarters"),
            _slot("right-half", "Right half", 0.5, 0.0, 0.5, 1.0, row_span=2, hint="2 quarters"),
        ],
    ),
    LayoutOption(
        id=MixupLayoutId.HORIZONTAL_HALVES.value,
        title="Horizontal halves",
        description="Top and bottom halves",
        slots=[
            _slot("top-half", "Top half", 0.0, 0.0, 1.0, 0.5, col_span=2, hint="2 quarters"),
            _slot("bottom-half", "Bottom half", 0.0, 0.5, 1.0, 0.5, col_span=2, hint="2 quarters"),
        ],
    ),
]

_LAYOUTS_BY_ID: Dict[str, LayoutOption] = {layout.id: layout for layout in LAYOUT_OPTIONS}


def get_layout_by_id(layout_id: str) -> Optional[LayoutOption]:
    return _LAYOUTS_BY_ID.get(layout_id)


def build_assignments(
    layout: LayoutOption,
    slugs: Sequence[str],
    existing: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Fill a layout's slots in order.

    Slots keep an existing assignment when one is given; otherwise the slot at
    position i takes ``slugs[i]``. Slots with neither stay unassigned.
    """
    assignments: Dict[str, str] = {}
    for index, slot in enumerate(layout.slots):
        inherited = (existing or {}).get(slot.id)
        if inherited:
            assignments[slot.id] = inherited
        elif index < len(slugs):
            assignments[slot.id] = slugs[index]
    return assignments
