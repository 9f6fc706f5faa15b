"""Project package — public API re-exports."""

from .layers import Layer, LayerKind
from .effects import Effect, TextOverlay, TextPosition
from .descriptor import (
    DEFAULT_FRAME_RATE,
    DEFAULT_HEIGHT,
    DEFAULT_WIDTH,
    ProjectDescriptor,
    Resolution,
    SourceFormat,
)

__all__ = [
    "ProjectDescriptor",
    "Resolution",
    "SourceFormat",
    "Layer",
    "LayerKind",
    "Effect",
    "TextOverlay",
    "TextPosition",
    "DEFAULT_WIDTH",
    "DEFAULT_HEIGHT",
    "DEFAULT_FRAME_RATE",
]
