"""In-memory frame source over a list of already decoded frames."""

from __future__ import annotations

import logging
from typing import AsyncIterator, Sequence

from brailleview.domain.models import RGBA, TRANSPARENT_SAMPLE, AnimationFrame, Bounds
from brailleview.source.base import FrameSource

logger = logging.getLogger(__name__)


class FrameSequence(FrameSource):
    """Plays a fixed list of frames, restarting from the first on each pass.

    The canvas defaults to the union of the frames' bounds.
    """

    def __init__(
        self,
        frames: Sequence[AnimationFrame],
        canvas: Bounds | None = None,
        background: RGBA = TRANSPARENT_SAMPLE,
        loop_count: int = 1,
        name: str = "<sequence>",
    ) -> None:
        super().__init__(name=name)
        if loop_count < 0:
            raise ValueError(f"loop_count must be >= 0, got {loop_count}")
        self._frames = list(frames)
        self._canvas = canvas if canvas is not None else _union(self._frames)
        self._background = background
        self._loop_count = loop_count

    @property
    def canvas(self) -> Bounds | None:
        return self._canvas

    @property
    def background(self) -> RGBA:
        return self._background

    @property
    def loop_count(self) -> int:
        return self._loop_count

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    async def open(self) -> None:
        self._is_open = True
        logger.debug("Opened %s with %d frames", self._name, len(self._frames))

    async def close(self) -> None:
        self._is_open = False

    async def frames(self) -> AsyncIterator[AnimationFrame]:
        self._check_open()
        for frame in self._frames:
            yield frame


def _union(frames: list[AnimationFrame]) -> Bounds | None:
    if not frames:
        return None
    boxes = [f.raster.bounds for f in frames]
    return Bounds(
        min_x=min(b.min_x for b in boxes),
        min_y=min(b.min_y for b in boxes),
        max_x=max(b.max_x for b in boxes),
        max_y=max(b.max_y for b in boxes),
    )
