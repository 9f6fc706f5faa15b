"""Layer model: one visual element inside a normalized project."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class LayerKind(str, Enum):
    VIDEO = "video"
    IMAGE = "image"
    TEXT = "text"
    SHAPE = "shape"
    ADJUSTMENT = "adjustment"


class Layer(BaseModel):
    """A layer owned by a ProjectDescriptor.

    start_time and duration are in seconds. Layers never reference each other.
    """
    id: str
    name: str
    kind: LayerKind = LayerKind.VIDEO
    start_time: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    duration: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    opacity: float = Field(default=1.0, ge=0, le=1, allow_inf_nan=False)
    blend_mode: str = "normal"
    properties: dict[str, Any] = Field(default_factory=dict)

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration
