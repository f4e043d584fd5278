"""Abstract base class for animation frame sources.

All sources conform to this interface so the animation engine can play a
pre-decoded frame list, a GIF container or a live motion-JPEG stream
without knowing which one it has.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import AsyncIterator

from brailleview.domain.models import RGBA, TRANSPARENT_SAMPLE, AnimationFrame, Bounds

logger = logging.getLogger(__name__)


class FrameSource(ABC):
    """Abstract interface for a lazily produced sequence of frames.

    ``frames()`` may be called again after it is exhausted to start another
    pass, which is how the engine loops. Stream sources that cannot rewind
    report ``loop_count == 1``.

    Example usage::

        async with GIFSource(data) as source:
            async for frame in source.frames():
                render(frame)
    """

    def __init__(self, name: str = "<frames>") -> None:
        self._name = name
        self._is_open: bool = False

    @property
    def name(self) -> str:
        """Human-readable identifier used in log and error messages."""
        return self._name

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def canvas(self) -> Bounds | None:
        """Logical screen the frames are positioned on, or None for streams
        whose frames each cover the whole picture."""
        return None

    @property
    def background(self) -> RGBA:
        """Sample the canvas is cleared to."""
        return TRANSPARENT_SAMPLE

    @property
    def loop_count(self) -> int:
        """Number of passes over the frames; 0 repeats forever."""
        return 1

    @property
    def frame_count(self) -> int | None:
        """Number of frames per pass, or None when not known in advance."""
        return None

    @abstractmethod
    async def open(self) -> None:
        """Acquire the underlying resource and read any header.

        Raises:
            SourceError: If the input cannot be read.
            DecodeError: If the header is malformed.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release resources. Safe to call more than once."""
        ...

    @abstractmethod
    def frames(self) -> AsyncIterator[AnimationFrame]:
        """Iterate over one pass of frames in display order.

        Raises:
            SourceError: On read failures while iterating.
            DecodeError: When a frame cannot be decoded.
        """
        ...

    def _check_open(self) -> None:
        if not self._is_open:
            raise RuntimeError(f"Frame source {self._name} is not open. Call open() first.")

    async def __aenter__(self) -> FrameSource:
        await self.open()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.close()


class SourceError(Exception):
    """Raised when reading from a frame source fails."""

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(f"{source}: {message}" if source else message)
        self.source = source


class DecodeError(SourceError):
    """Raised when a frame or container header is malformed."""
