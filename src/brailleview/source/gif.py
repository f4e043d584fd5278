"""GIF frame source backed by Pillow.

Pillow composites every frame onto the full logical screen while seeking,
so each frame produced here covers the whole canvas. Replaying those frames
with their declared disposal methods gives the same picture, which keeps
the engine's compositing consistent with Pillow's.
"""

from __future__ import annotations

import asyncio
import io
import logging
from pathlib import Path
from typing import AsyncIterator, BinaryIO

from PIL import Image

from brailleview.domain.models import RGBA, TRANSPARENT_SAMPLE, AnimationFrame, Bounds, Disposal
from brailleview.source.base import DecodeError, FrameSource, SourceError
from brailleview.utils.imaging import raster_from_pil

logger = logging.getLogger(__name__)

_DECODE_ERRORS = (OSError, SyntaxError, ValueError, EOFError)


class GIFSource(FrameSource):
    """Decodes GIF frames lazily, one ``seek()`` per frame.

    Args:
        data: Raw GIF bytes, a binary file object or a path.
        name: Label used in logs and errors. Defaults to the path if given.
    """

    def __init__(self, data: bytes | BinaryIO | str | Path, name: str | None = None) -> None:
        if name is None:
            name = str(data) if isinstance(data, (str, Path)) else "<gif>"
        super().__init__(name=name)
        self._data = data
        self._image: Image.Image | None = None
        self._canvas: Bounds | None = None
        self._background: RGBA = TRANSPARENT_SAMPLE
        self._loop_count = 1
        self._frame_count = 0

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
        return self._frame_count

    async def open(self) -> None:
        """Read the GIF header: canvas size, background, loop count, frame count."""
        if self._is_open:
            return
        loop = asyncio.get_running_loop()
        self._image = await loop.run_in_executor(None, self._open_sync)
        self._is_open = True
        logger.info(
            "Opened GIF %s (%dx%d, %d frames, loop=%d)",
            self._name, self._canvas.width, self._canvas.height,
            self._frame_count, self._loop_count,
        )

    def _open_sync(self) -> Image.Image:
        data = self._data
        if isinstance(data, bytes):
            data = io.BytesIO(data)
        try:
            image = Image.open(data)
        except FileNotFoundError as e:
            raise SourceError(f"cannot open: {e}", source=self._name) from e
        except _DECODE_ERRORS as e:
            raise DecodeError(f"not a readable image: {e}", source=self._name) from e

        if image.format != "GIF":
            image.close()
            raise DecodeError(f"expected a GIF, got {image.format}", source=self._name)

        width, height = image.size
        self._canvas = Bounds.from_size(width, height)
        self._frame_count = getattr(image, "n_frames", 1)
        # Netscape extension: absent plays once, 0 repeats forever
        self._loop_count = int(image.info.get("loop", 1))
        self._background = _background_sample(image)
        return image

    async def close(self) -> None:
        if self._image is not None:
            self._image.close()
            self._image = None
        self._is_open = False

    async def frames(self) -> AsyncIterator[AnimationFrame]:
        self._check_open()
        loop = asyncio.get_running_loop()
        for index in range(self._frame_count):
            yield await loop.run_in_executor(None, self._decode_frame, index)

    def _decode_frame(self, index: int) -> AnimationFrame:
        image = self._image
        try:
            image.seek(index)
            raster = raster_from_pil(image)
        except _DECODE_ERRORS as e:
            raise DecodeError(f"frame {index}: {e}", source=self._name) from e

        duration_ms = image.info.get("duration", 0) or 0
        try:
            disposal = Disposal(getattr(image, "disposal_method", 0))
        except ValueError:
            # Values 4-7 are reserved by the format
            disposal = Disposal.UNSPECIFIED
        return AnimationFrame(
            raster=raster,
            delay_cs=round(duration_ms / 10),
            disposal=disposal,
            index=index,
        )


def _background_sample(image: Image.Image) -> RGBA:
    """Resolve the logical screen background colour from the global palette."""
    index = image.info.get("background")
    if index is None or image.info.get("transparency") == index:
        return TRANSPARENT_SAMPLE
    palette = image.getpalette() if image.mode in ("P", "PA") else None
    if not palette or 3 * index + 2 >= len(palette):
        return TRANSPARENT_SAMPLE
    r, g, b = palette[3 * index:3 * index + 3]
    return r, g, b, 255
