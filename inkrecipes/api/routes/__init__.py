"""
API Routes
==========

Routers for bitmaps, recipes and health.
"""

from .bitmap import router as bitmap_router
from .health import router as health_router
from .recipes import router as recipes_router

__all__ = ["bitmap_router", "health_router", "recipes_router"]
