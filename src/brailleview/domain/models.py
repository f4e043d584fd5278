"""Core domain models for the brailleview system.

These models represent the data flowing through the rendering pipeline:
decoded rasters and their bounds, the three-state pixel alphabet, animation
frames with their timing and disposal metadata, and the result of a
playback session.
"""

from __future__ import annotations

import enum

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class PixelState(enum.IntEnum):
    """The reduced colour domain every image is mapped onto."""

    EMPTY = 0
    FILLED = 1
    TRANSPARENT = 2  # No information; never overwrites when composited


class Disposal(enum.IntEnum):
    """What happens to a frame's region once its delay has elapsed.

    Values follow the GIF graphic control extension numbering.
    """

    UNSPECIFIED = 0  # Treated as NONE
    NONE = 1  # Leave the frame in place (draw-over)
    BACKGROUND = 2  # Replace the frame's region with the background
    PREVIOUS = 3  # Restore the screen as it was before the frame


class DitherMethod(str, enum.Enum):
    """Reduction strategies available to the pipeline."""

    FLOYD_STEINBERG = "floyd-steinberg"
    THRESHOLD = "threshold"


class PlaybackState(str, enum.Enum):
    """States of the animation engine."""

    IDLE = "idle"
    PLAYING = "playing"
    COMPOSITING = "compositing"
    FLUSHING = "flushing"


# ---------------------------------------------------------------------------
# Geometry / Raster Models
# ---------------------------------------------------------------------------


class Bounds(BaseModel):
    """A half-open rectangle ``[min_x, max_x) x [min_y, max_y)``.

    The minimum point is not necessarily the origin; decoded animation
    frames frequently describe sub-regions of a larger canvas.
    """

    model_config = ConfigDict(frozen=True)

    min_x: int = Field(default=0, description="Left edge (inclusive)")
    min_y: int = Field(default=0, description="Top edge (inclusive)")
    max_x: int = Field(description="Right edge (exclusive)")
    max_y: int = Field(description="Bottom edge (exclusive)")

    @model_validator(mode="after")
    def _check_order(self) -> Bounds:
        if self.max_x < self.min_x or self.max_y < self.min_y:
            raise ValueError(
                f"max point ({self.max_x}, {self.max_y}) lies before "
                f"min point ({self.min_x}, {self.min_y})"
            )
        return self

    @classmethod
    def from_size(cls, width: int, height: int, x: int = 0, y: int = 0) -> Bounds:
        return cls(min_x=x, min_y=y, max_x=x + width, max_y=y + height)

    @property
    def width(self) -> int:
        return self.max_x - self.min_x

    @property
    def height(self) -> int:
        return self.max_y - self.min_y

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def contains(self, x: int, y: int) -> bool:
        return self.min_x <= x < self.max_x and self.min_y <= y < self.max_y

    def translate(self, dx: int, dy: int) -> Bounds:
        return Bounds(
            min_x=self.min_x + dx,
            min_y=self.min_y + dy,
            max_x=self.max_x + dx,
            max_y=self.max_y + dy,
        )

    def intersect(self, other: Bounds) -> Bounds:
        """Overlap of two rectangles; an empty rectangle when disjoint."""
        min_x = max(self.min_x, other.min_x)
        min_y = max(self.min_y, other.min_y)
        max_x = max(min_x, min(self.max_x, other.max_x))
        max_y = max(min_y, min(self.max_y, other.max_y))
        return Bounds(min_x=min_x, min_y=min_y, max_x=max_x, max_y=max_y)


RGBA = tuple[int, int, int, int]

TRANSPARENT_SAMPLE: RGBA = (0, 0, 0, 0)


class Raster(BaseModel):
    """A decoded image: RGBA samples plus the position of its top-left pixel.

    Samples are 8 bits per channel. Lookups outside the bounds return a
    fully transparent sample.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    pixels: np.ndarray = Field(description="RGBA uint8 array shaped (height, width, 4)")
    origin: tuple[int, int] = Field(default=(0, 0), description="Coordinates of pixels[0, 0]")

    @field_validator("pixels")
    @classmethod
    def _check_pixels(cls, value: np.ndarray) -> np.ndarray:
        if not isinstance(value, np.ndarray) or value.ndim != 3 or value.shape[2] != 4:
            raise ValueError("pixels must be an array shaped (height, width, 4)")
        if value.dtype != np.uint8:
            value = np.clip(value, 0, 255).astype(np.uint8)
        return value

    @classmethod
    def filled(cls, bounds: Bounds, color: RGBA) -> Raster:
        """A raster covering ``bounds`` where every sample is ``color``."""
        pixels = np.empty((bounds.height, bounds.width, 4), dtype=np.uint8)
        pixels[:, :] = color
        return cls(pixels=pixels, origin=(bounds.min_x, bounds.min_y))

    @property
    def bounds(self) -> Bounds:
        h, w = self.pixels.shape[:2]
        return Bounds.from_size(w, h, x=self.origin[0], y=self.origin[1])

    def sample_at(self, x: int, y: int) -> RGBA:
        if not self.bounds.contains(x, y):
            return TRANSPARENT_SAMPLE
        r, g, b, a = self.pixels[y - self.origin[1], x - self.origin[0]]
        return int(r), int(g), int(b), int(a)


# ---------------------------------------------------------------------------
# Animation Models
# ---------------------------------------------------------------------------


class AnimationFrame(BaseModel):
    """One decoded frame of an animated source."""

    model_config = ConfigDict(frozen=True)

    raster: Raster = Field(description="Decoded frame, positioned on the animation canvas")
    delay_cs: int = Field(default=0, ge=0, description="Display time in hundredths of a second")
    disposal: Disposal = Field(default=Disposal.UNSPECIFIED)
    index: int = Field(default=0, ge=0, description="Position of the frame in its source")

    @property
    def delay(self) -> float:
        """Display time in seconds."""
        return self.delay_cs / 100.0


class PlaybackResult(BaseModel):
    """What a playback session did, returned when it ends."""

    frames_flushed: int = Field(default=0, ge=0)
    loops_completed: int = Field(default=0, ge=0)
    cancelled: bool = Field(default=False)
