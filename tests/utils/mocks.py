"""
Test Mocks
==========

Stand-ins for the browser engine, Redis and the render pipeline.
"""

import io
from typing import Any, Dict, List, Optional, Tuple

from PIL import Image

from inkrecipes.core.errors import PersistenceUnavailable
from inkrecipes.core.mixup import MixupStore
from inkrecipes.core.rendering import RenderEngine
from inkrecipes.core.rendering.png_generator import PNGGenerationError
from inkrecipes.core.rendering.renderer import RenderResults
from inkrecipes.models.schemas import MixupRecord


def solid_png(width: int, height: int, color: Tuple[int, int, int, int] = (255, 255, 255, 255)) -> bytes:
    """PNG bytes of a single colour."""
    buffer = io.BytesIO()
    Image.new("RGBA", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeRenderEngine(RenderEngine):
    """Engine that returns a solid PNG at the requested scale and records calls."""

    def __init__(self, color: Tuple[int, int, int, int] = (255, 255, 255, 255)):
        self.color = color
        self.calls: List[Dict[str, Any]] = []

    async def render_png(self, html_content: str, width: int, height: int, scale_factor: int = 1) -> bytes:
        self.calls.append(
            {"html": html_content, "width": width, "height": height, "scale_factor": scale_factor}
        )
        return solid_png(width * scale_factor, height * scale_factor, self.color)


class FailingRenderEngine(RenderEngine):
    """Engine whose every render fails."""

    def __init__(self) -> None:
        self.calls = 0

    async def render_png(self, html_content: str, width: int, height: int, scale_factor: int = 1) -> bytes:
        self.calls += 1
        raise PNGGenerationError("Browser crashed", "png")


class UnavailableMixupStore(MixupStore):
    """Mixup store whose backend is down."""

    async def get_mixup(self, mixup_id: str) -> Optional[MixupRecord]:
        raise PersistenceUnavailable("Mixup storage unavailable: connection refused")

    async def save_mixup(self, record: MixupRecord) -> None:
        raise PersistenceUnavailable("Mixup storage unavailable: connection refused")


class MockRedisClient:
    """Mock Redis client for testing."""

    def __init__(self) -> None:
        self._data: Dict[str, Dict[str, str]] = {}

    async def hset(self, key: str, mapping: Dict[str, Any]) -> int:
        """Mock hset operation."""
        if key not in self._data:
            self._data[key] = {}
        self._data[key].update({field: str(value) for field, value in mapping.items()})
        return len(mapping)

    async def hgetall(self, key: str) -> Dict[str, str]:
        """Mock hgetall operation."""
        return dict(self._data.get(key, {}))

    async def ping(self) -> bool:
        return True


class FakePipeline:
    """
    Pipeline stand-in for compositor tests.

    Each slug maps to a fill colour; slugs in ``failing`` raise instead.
    """

    def __init__(self, colors: Dict[str, Tuple[int, int, int, int]], failing: Tuple[str, ...] = ()):
        self.colors = colors
        self.failing = failing
        self.requests: List[Tuple[str, int, int]] = []

    async def render_recipe(self, slug: str, width: int, height: int, formats: Any, params: Any = None) -> Any:
        self.requests.append((slug, width, height))
        if slug in self.failing:
            raise RuntimeError(f"render exploded for {slug}")
        color = self.colors.get(slug)
        if color is None:
            return None, RenderResults()
        return None, RenderResults(raw_export=solid_png(width, height, color))


__all__ = [
    "solid_png",
    "FakeRenderEngine",
    "FailingRenderEngine",
    "UnavailableMixupStore",
    "MockRedisClient",
    "FakePipeline",
]
