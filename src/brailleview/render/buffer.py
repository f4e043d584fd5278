"""Monochrome pixel buffer with explicit, possibly offset, bounds."""

from __future__ import annotations

import numpy as np

from brailleview.domain.models import Bounds, PixelState


class MonochromeBuffer:
    """A grid of three-state pixels positioned by its bounds.

    ``pix`` is a row-major ``uint8`` array of ``PixelState`` values shaped
    ``(height, width)``; ``pix[0, 0]`` is the pixel at
    ``(bounds.min_x, bounds.min_y)``. Lookups outside the bounds yield
    ``PixelState.TRANSPARENT``.
    """

    def __init__(self, bounds: Bounds, pix: np.ndarray | None = None) -> None:
        shape = (bounds.height, bounds.width)
        if pix is None:
            pix = np.full(shape, PixelState.TRANSPARENT, dtype=np.uint8)
        elif pix.shape != shape:
            raise ValueError(f"pixel array shape {pix.shape} does not match bounds {shape}")
        self._bounds = bounds
        self._pix = pix.astype(np.uint8, copy=False)

    @classmethod
    def filled(cls, bounds: Bounds, state: PixelState) -> MonochromeBuffer:
        pix = np.full((bounds.height, bounds.width), state, dtype=np.uint8)
        return cls(bounds, pix)

    @property
    def bounds(self) -> Bounds:
        return self._bounds

    @property
    def pix(self) -> np.ndarray:
        return self._pix

    @property
    def width(self) -> int:
        return self._bounds.width

    @property
    def height(self) -> int:
        return self._bounds.height

    def at(self, x: int, y: int) -> PixelState:
        if not self._bounds.contains(x, y):
            return PixelState.TRANSPARENT
        return PixelState(int(self._pix[y - self._bounds.min_y, x - self._bounds.min_x]))

    def set(self, x: int, y: int, state: PixelState) -> None:
        """Set one pixel. Coordinates outside the bounds are ignored."""
        if self._bounds.contains(x, y):
            self._pix[y - self._bounds.min_y, x - self._bounds.min_x] = state

    def copy(self) -> MonochromeBuffer:
        return MonochromeBuffer(self._bounds, self._pix.copy())

    def with_origin(self, x: int, y: int) -> MonochromeBuffer:
        """The same pixels anchored with their top-left corner at ``(x, y)``."""
        bounds = Bounds.from_size(self.width, self.height, x=x, y=y)
        return MonochromeBuffer(bounds, self._pix)

    def crop(self, bounds: Bounds) -> MonochromeBuffer:
        """Copy of the part of this buffer that overlaps ``bounds``."""
        overlap = self._bounds.intersect(bounds)
        return MonochromeBuffer(overlap, self._view(overlap).copy())

    def draw_over(self, source: MonochromeBuffer) -> None:
        """Copy every non-transparent pixel of ``source`` into this buffer."""
        overlap = self._bounds.intersect(source.bounds)
        if overlap.is_empty:
            return
        src = source._view(overlap)
        dst = self._view(overlap)
        visible = src != PixelState.TRANSPARENT
        dst[visible] = src[visible]

    def draw_exact(self, source: MonochromeBuffer) -> None:
        """Copy every pixel of ``source``, transparent ones included."""
        overlap = self._bounds.intersect(source.bounds)
        if overlap.is_empty:
            return
        self._view(overlap)[:, :] = source._view(overlap)

    def _view(self, region: Bounds) -> np.ndarray:
        # region must lie inside self._bounds
        top = region.min_y - self._bounds.min_y
        left = region.min_x - self._bounds.min_x
        return self._pix[top:top + region.height, left:left + region.width]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MonochromeBuffer):
            return NotImplemented
        return self._bounds == other._bounds and np.array_equal(self._pix, other._pix)

    def __repr__(self) -> str:
        b = self._bounds
        return f"MonochromeBuffer(({b.min_x}, {b.min_y})-({b.max_x}, {b.max_y}))"
