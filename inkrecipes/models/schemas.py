"""
Pydantic Models and Schemas
===========================

Core data models for recipe definitions, render inputs, rasters, mixup layouts,
API responses, and internal data structures.
"""

from typing import Optional, List, Dict, Any, Literal
from datetime import datetime, timezone
from enum import Enum
import io

from PIL import Image
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# Enums
class RenderFormat(str, Enum):
    """Output encodings the renderer can produce."""
    RASTER = "raster"
    PNG = "png"
    SVG = "svg"


class DitherMethod(str, Enum):
    """Halftoning algorithms."""
    ATKINSON = "atkinson"
    FLOYD_STEINBERG = "floyd-steinberg"
    BAYER = "bayer"


class ParamType(str, Enum):
    """Recipe parameter value types."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"


# Recipe Models
class RenderSettings(BaseModel):
    """Per-recipe render settings."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    double_size_for_sharper_text: bool = Field(False, alias="doubleSizeForSharperText")


class RecipeParam(BaseModel):
    """Definition of a user-tunable recipe parameter."""
    model_config = ConfigDict(frozen=True)

    label: str = Field(..., description="Human label")
    type: ParamType = Field(ParamType.STRING, description="Value type")
    description: Optional[str] = Field(None, description="Help text")
    default: Optional[Any] = Field(None, description="Default value")


class RecipeDefinition(BaseModel):
    """Static configuration of a recipe, loaded once per process."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    slug: str = Field(..., min_length=1, description="Recipe identifier")
    title: str = Field(..., description="Human title")
    description: Optional[str] = Field(None, description="Recipe description")
    category: Optional[str] = Field(None, description="Catalog category")
    published: bool = Field(True, description="Visible outside development")
    has_data_fetch: bool = Field(False, alias="hasDataFetch", description="Recipe calls a data source")
    props: Dict[str, Any] = Field(default_factory=dict, description="Static default properties")
    params: Dict[str, RecipeParam] = Field(default_factory=dict, description="Parameter definitions")
    render_settings: RenderSettings = Field(default_factory=RenderSettings, alias="renderSettings")

    @property
    def scale_factor(self) -> int:
        return 2 if self.render_settings.double_size_for_sharper_text else 1

    def param_defaults(self) -> Dict[str, Any]:
        """Default values of declared parameters."""
        return {
            name: param.default for name, param in self.params.items() if param.default is not None
        }


class RenderInput(BaseModel):
    """Resolved properties plus target size for one render call."""
    model_config = ConfigDict(frozen=True)

    slug: str = Field(..., description="Recipe identifier")
    props: Dict[str, Any] = Field(default_factory=dict, description="Resolved properties")
    width: int = Field(800, gt=0, le=4000, description="Target width in pixels")
    height: int = Field(480, gt=0, le=4000, description="Target height in pixels")

    def template_context(self) -> Dict[str, Any]:
        """Props as seen by recipe templates, including the canvas size."""
        return {**self.props, "width": self.width, "height": self.height}


# Template Models
class TemplateNode(BaseModel):
    """One node of a declarative recipe template."""
    model_config = ConfigDict(populate_by_name=True)

    tag: str = Field("div", description="Element tag, or 'fragment'")
    class_name: Optional[str] = Field(None, alias="class", description="Utility classes, templated")
    style: Dict[str, Any] = Field(default_factory=dict, description="Inline CSS, values templated")
    attrs: Dict[str, Any] = Field(default_factory=dict, description="HTML attributes, values templated")
    text: Optional[str] = Field(None, description="Text content, templated")
    if_expr: Optional[str] = Field(None, alias="if", description="Render only when truthy")
    for_expr: Optional[str] = Field(None, alias="for", description="Repeat as 'item in items'")
    children: List["TemplateNode"] = Field(default_factory=list)


TemplateNode.model_rebuild()


class TemplateDocument(BaseModel):
    """Parsed recipe template file."""
    version: str = Field("1.0", description="Template format version")
    description: Optional[str] = Field(None, description="Template description")
    root: TemplateNode = Field(..., description="Root node")


class ParseResult(BaseModel):
    """Result of template parsing operation."""
    success: bool = Field(..., description="Whether parsing succeeded")
    document: Optional[TemplateDocument] = Field(None, description="Parsed template")
    errors: List[str] = Field(default_factory=list, description="Parsing errors")
    warnings: List[str] = Field(default_factory=list, description="Parsing warnings")
    processing_time: Optional[float] = Field(None, description="Parsing time in seconds")


# Raster Models
class RasterImage(BaseModel):
    """RGBA8 pixel buffer."""
    model_config = ConfigDict(frozen=True)

    width: int = Field(..., gt=0, description="Image width")
    height: int = Field(..., gt=0, description="Image height")
    pixels: bytes = Field(..., repr=False, description="RGBA pixel data, row-major")

    @model_validator(mode="after")
    def validate_buffer_length(self) -> "RasterImage":
        """Buffer must hold exactly width*height RGBA pixels."""
        expected = self.width * self.height * 4
        if len(self.pixels) != expected:
            raise ValueError(
                f"Pixel buffer length {len(self.pixels)} does not match {self.width}x{self.height}x4={expected}"
            )
        return self

    @classmethod
    def from_pil(cls, image: Image.Image) -> "RasterImage":
        """Build from any Pillow image."""
        rgba = image.convert("RGBA")
        return cls(width=rgba.width, height=rgba.height, pixels=rgba.tobytes())

    @classmethod
    def from_png(cls, data: bytes) -> "RasterImage":
        """Decode PNG bytes."""
        with Image.open(io.BytesIO(data)) as image:
            return cls.from_pil(image)

    def to_pil(self) -> Image.Image:
        return Image.frombytes("RGBA", (self.width, self.height), self.pixels)

    def to_png(self) -> bytes:
        buffer = io.BytesIO()
        self.to_pil().save(buffer, format="PNG")
        return buffer.getvalue()


# Mixup Models
class LayoutSlot(BaseModel):
    """Named rectangular region in relative coordinates."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Slot identifier")
    label: str = Field(..., description="Human label")
    x: float = Field(..., ge=0.0, le=1.0, description="Relative left edge")
    y: float = Field(..., ge=0.0, le=1.0, description="Relative top edge")
    width: float = Field(..., ge=0.0, le=1.0, description="Relative width")
    height: float = Field(..., ge=0.0, le=1.0, description="Relative height")
    hint: Optional[str] = Field(None, description="Content hint for the builder UI")
    row_span: Optional[int] = Field(None, ge=1, description="Grid rows covered")
    col_span: Optional[int] = Field(None, ge=1, description="Grid columns covered")

    def resolve(self, canvas_width: int, canvas_height: int) -> "ResolvedSlot":
        """Absolute pixel rectangle on a canvas, clamped to its bounds."""
        left = min(max(round(self.x * canvas_width), 0), canvas_width)
        top = min(max(round(self.y * canvas_height), 0), canvas_height)
        width = min(max(round(self.width * canvas_width), 0), canvas_width - left)
        height = min(max(round(self.height * canvas_height), 0), canvas_height - top)
        return ResolvedSlot(id=self.id, left=left, top=top, width=width, height=height)


class ResolvedSlot(BaseModel):
    """Slot resolved to integer pixel bounds."""
    model_config = ConfigDict(frozen=True)

    id: str
    left: int = Field(..., ge=0)
    top: int = Field(..., ge=0)
    width: int = Field(..., ge=0)
    height: int = Field(..., ge=0)

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0


class LayoutOption(BaseModel):
    """A named layout and its ordered slots."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Layout identifier")
    title: str = Field(..., description="Human title")
    description: str = Field("", description="Layout description")
    slots: List[LayoutSlot] = Field(..., min_length=1, description="Ordered slots")

    def slot_ids(self) -> List[str]:
        return [slot.id for slot in self.slots]


class MixupSlotRecord(BaseModel):
    """Persisted slot-to-recipe assignment."""
    slot_id: str = Field(..., description="Slot identifier")
    recipe_slug: Optional[str] = Field(None, description="Assigned recipe, None when empty")
    order_index: int = Field(0, ge=0, description="Ordering within the mixup")


class MixupRecord(BaseModel):
    """Persisted mixup: a layout plus its slot assignments."""
    id: str = Field(..., description="Mixup identifier")
    name: str = Field("", description="Mixup name")
    layout_id: str = Field(..., description="Layout identifier")
    slots: List[MixupSlotRecord] = Field(default_factory=list, description="Slot assignments")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def assignment(self) -> Dict[str, Optional[str]]:
        """Slot id to recipe slug mapping in persisted order."""
        ordered = sorted(self.slots, key=lambda record: record.order_index)
        return {record.slot_id: record.recipe_slug for record in ordered}


# API Response Models
class RecipeSummary(BaseModel):
    """Recipe listing entry."""
    slug: str
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    has_data_fetch: bool = False
    double_size_for_sharper_text: bool = False


class RecipeListResponse(BaseModel):
    """Response model for the recipe catalog."""
    recipes: List[RecipeSummary] = Field(default_factory=list)
    total: int = Field(0, ge=0)


# Health Check Models
class HealthStatus(BaseModel):
    """Health check status."""
    status: Literal["healthy", "unhealthy", "degraded"] = Field(..., description="Overall status")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="Check timestamp")
    version: str = Field(..., description="Application version")

    # Component statuses
    redis: bool = Field(..., description="Mixup persistence connectivity")
    browser_pool: bool = Field(..., description="Browser pool status")
    recipes: int = Field(0, ge=0, description="Number of registered recipes")


# Error Models
class ErrorResponse(BaseModel):
    """Standard error response model."""
    error: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Error code")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="Error timestamp")
    request_id: Optional[str] = Field(None, description="Request identifier for tracking")
