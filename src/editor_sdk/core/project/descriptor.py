"""Canonical project descriptor produced by template ingestion."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from .effects import Effect, TextOverlay
from .layers import Layer

DEFAULT_WIDTH = 1920
DEFAULT_HEIGHT = 1080
DEFAULT_FRAME_RATE = 30


class SourceFormat(str, Enum):
    """Where a descriptor came from.

    motion: Apple Motion container (.motn)
    fcp: Final Cut Pro XML timeline (.fcp, .fcpxml)
    aep: After Effects JSON export (.aep.json)
    generic: not read from a file (e.g. a marketplace listing)
    """
    MOTION = "motion"
    FCP = "fcp"
    AEP = "aep"
    GENERIC = "generic"


class Resolution(BaseModel):
    width: int = Field(default=DEFAULT_WIDTH, gt=0)
    height: int = Field(default=DEFAULT_HEIGHT, gt=0)

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


class ProjectDescriptor(BaseModel):
    """One imported template, normalized across source formats."""
    id: str
    name: str
    source_format: SourceFormat
    duration: float = Field(default=0.0, ge=0, allow_inf_nan=False)  # seconds
    resolution: Resolution = Field(default_factory=Resolution)
    frame_rate: int = Field(default=DEFAULT_FRAME_RATE, gt=0)
    layers: list[Layer] = Field(default_factory=list)
    effects: list[Effect] = Field(default_factory=list)
    text: list[TextOverlay] = Field(default_factory=list)
    properties: dict[str, Any] = Field(default_factory=dict)

    def to_summary(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "format": self.source_format.value,
            "duration": f"{self.duration:.2f}s",
            "resolution": str(self.resolution),
            "frame_rate": self.frame_rate,
            "layer_count": len(self.layers),
            "effect_count": len(self.effects),
            "text_count": len(self.text),
        }
