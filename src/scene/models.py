"""Scene description models handed to the renderer."""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

from ..config.settings import DEFAULTS, get_setting

# Built-in fallback; the effective default follows VRML_DEFAULT_COLOR
DEFAULT_COLOR = DEFAULTS['default_color']

Vec3 = Tuple[float, float, float]


class GeometryKind(str, Enum):
    """Geometry primitives the renderer knows how to build."""
    BOX = "box"
    SPHERE = "sphere"
    CYLINDER = "cylinder"
    CONE = "cone"
    MESH = "mesh"
    LINES = "lines"


class SceneEntity(BaseModel):
    """One renderable shape."""
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    position: Vec3 = (0.0, 0.0, 0.0)
    rotation: Optional[Vec3] = None
    scale: Optional[Vec3] = None
    color: str = Field(default_factory=lambda: get_setting('default_color'))
    emissive_color: Optional[str] = None
    transparency: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    geometry: GeometryKind = GeometryKind.BOX

    # Geometry-specific attributes
    size: Optional[Vec3] = None
    radius: Optional[float] = None
    height: Optional[float] = None
    vertices: Optional[List[float]] = None
    indices: Optional[List[int]] = None

    @field_validator('color', 'emissive_color')
    @classmethod
    def validate_hex(cls, v):
        if v is not None and (len(v) != 7 or not v.startswith('#')):
            raise ValueError(f"Expected #rrggbb color, got {v!r}")
        return v

    @computed_field
    @property
    def opacity(self) -> Optional[float]:
        """Renderer opacity (1 - transparency)."""
        if self.transparency is None:
            return None
        return 1.0 - self.transparency

    def to_dict(self) -> Dict[str, Any]:
        """Renderer-facing dictionary with camelCase keys; unset fields omitted."""
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)


class SceneDescription(BaseModel):
    """Ordered shapes in discovery order; never empty."""
    model_config = ConfigDict(frozen=True)

    shapes: List[SceneEntity] = Field(min_length=1)

    def to_dict(self) -> Dict[str, Any]:
        return {"shapes": [shape.to_dict() for shape in self.shapes]}

    def __len__(self) -> int:
        return len(self.shapes)
