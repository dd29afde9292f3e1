"""
Error Types
===========

Exception taxonomy for the render pipeline. Resolution, data fetch, per-format
and per-slot failures are recovered where they happen; dither input, mixup
lookup, layout and persistence failures reach the caller.
"""

from typing import Optional


class InkRecipesError(Exception):
    """Base class for all pipeline errors."""
    pass


class ConfigNotFound(InkRecipesError):
    """Recipe slug is unknown or not visible in this environment."""

    def __init__(self, slug: str):
        super().__init__(f"Recipe not found: {slug}")
        self.slug = slug


class ComponentLoadFailure(InkRecipesError):
    """Recipe component could not be loaded."""

    def __init__(self, slug: str, reason: str):
        super().__init__(f"Failed to load component for {slug}: {reason}")
        self.slug = slug
        self.reason = reason


class DataFetchTimeout(InkRecipesError):
    """Data source did not finish in time."""

    def __init__(self, slug: str, timeout: float):
        super().__init__(f"Data fetch for {slug} timed out after {timeout}s")
        self.slug = slug
        self.timeout = timeout


class DataFetchError(InkRecipesError):
    """Data source raised."""
    pass


class DataValidationFailure(InkRecipesError):
    """Data source result or resolved props were rejected."""
    pass


class RenderEngineFailure(InkRecipesError):
    """One output format failed to render."""

    def __init__(self, message: str, render_format: Optional[str] = None):
        super().__init__(message)
        self.render_format = render_format


class DitherInputInvalid(InkRecipesError):
    """Dithering input is empty, mis-sized or uses an unsupported level count."""
    pass


class SlotResizeFailure(InkRecipesError):
    """A slot raster could not be fitted to its rectangle."""
    pass


class PersistenceUnavailable(InkRecipesError):
    """Mixup storage cannot be reached."""
    pass


class MixupNotFound(InkRecipesError):
    """Mixup id is unknown."""

    def __init__(self, mixup_id: str):
        super().__init__(f"Mixup not found: {mixup_id}")
        self.mixup_id = mixup_id


class InvalidLayout(InkRecipesError):
    """Layout id is unknown."""

    def __init__(self, layout_id: str):
        super().__init__(f"Invalid layout: {layout_id}")
        self.layout_id = layout_id
