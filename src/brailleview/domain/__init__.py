"""Domain models for brailleview.

This package contains the core data structures, enumerations, and value
objects used throughout the system. All models use Pydantic v2 for
validation.
"""

from brailleview.domain.models import (
    AnimationFrame,
    Bounds,
    Disposal,
    DitherMethod,
    PixelState,
    PlaybackResult,
    PlaybackState,
    Raster,
)

__all__ = [
    "AnimationFrame",
    "Bounds",
    "Disposal",
    "DitherMethod",
    "PixelState",
    "PlaybackResult",
    "PlaybackState",
    "Raster",
]
