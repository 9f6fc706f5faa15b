"""Effect and text overlay models.

Order matters for both: later effects compose over earlier ones, so the
declared order from the source file is kept as-is.
"""

from typing import Any

from pydantic import BaseModel, Field


class Effect(BaseModel):
    """A named effect with an opaque parameter bag."""
    id: str
    name: str = "Effect"
    type: str = "unknown"
    parameters: dict[str, Any] = Field(default_factory=dict)


class TextPosition(BaseModel):
    """Text anchor in project pixels."""
    x: float = Field(default=0.0, allow_inf_nan=False)
    y: float = Field(default=0.0, allow_inf_nan=False)


class TextOverlay(BaseModel):
    """A text element carried by the template."""
    id: str
    content: str = ""
    font_family: str = "Arial"
    font_size: float = Field(default=24, gt=0, allow_inf_nan=False)
    color: str = "#ffffff"
    position: TextPosition = Field(default_factory=TextPosition)
    alignment: str = "left"
