"""
Mixups
======

Layouts, the compositor and mixup persistence.
"""

from .compositor import MixupCompositor
from .layouts import LAYOUT_OPTIONS, MixupLayoutId, build_assignments, get_layout_by_id
from .store import InMemoryMixupStore, MixupStore, RedisMixupStore, create_mixup_store

__all__ = [
    "MixupCompositor",
    "LAYOUT_OPTIONS",
    "MixupLayoutId",
    "build_assignments",
    "get_layout_by_id",
    "InMemoryMixupStore",
    "MixupStore",
    "RedisMixupStore",
    "create_mixup_store",
]
