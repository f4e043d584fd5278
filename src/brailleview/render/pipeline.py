"""Single-frame rendering: filter, reduce, re-anchor, encode, write."""

from __future__ import annotations

import logging
from typing import TextIO

from brailleview.config.settings import RenderConfig
from brailleview.domain.models import Raster
from brailleview.render.base import ImageFilter, NoopFilter, Reducer
from brailleview.render.buffer import MonochromeBuffer
from brailleview.render.dither import get_reducer
from brailleview.render.glyph import BrailleEncoder

logger = logging.getLogger(__name__)


def redraw(
    raster: Raster,
    image_filter: ImageFilter,
    reducer: Reducer,
    config: RenderConfig | None = None,
) -> MonochromeBuffer:
    """Filter and reduce ``raster``, keeping its position on the canvas.

    When the filter changes the image size the origin is scaled by the same
    factors, so a frame at ``(10, 20)`` shrunk by half lands at ``(5, 10)``
    rather than being moved to the top-left corner. The anchor is the
    position reported by ``image_filter.place()``.
    """
    orig = raster.bounds
    target = image_filter.place(orig)
    filtered = image_filter.apply(raster)
    new = filtered.bounds

    if new.width == orig.width and new.height == orig.height:
        offset = (target.min_x, target.min_y)
    else:
        scale_x = new.width / orig.width if orig.width else 1.0
        scale_y = new.height / orig.height if orig.height else 1.0
        offset = (int(target.min_x * scale_x), int(target.min_y * scale_y))

    buffer = reducer.reduce(filtered, config)
    if (buffer.bounds.min_x, buffer.bounds.min_y) != offset:
        buffer = buffer.with_origin(*offset)
    return buffer


class Printer:
    """Renders still images to a text sink.

    Example usage::

        printer = Printer(sys.stdout, RenderConfig(luminosity=0.6))
        printer.print(raster)
    """

    def __init__(
        self,
        sink: TextIO,
        config: RenderConfig | None = None,
        image_filter: ImageFilter | None = None,
        reducer: Reducer | None = None,
    ) -> None:
        self._sink = sink
        self._config = config or RenderConfig()
        self._filter = image_filter or NoopFilter()
        self._reducer = reducer or get_reducer(self._config.dither)
        self._encoder = BrailleEncoder(self._config)

    @property
    def config(self) -> RenderConfig:
        return self._config

    def redraw(self, raster: Raster) -> MonochromeBuffer:
        return redraw(raster, self._filter, self._reducer, self._config)

    def print(self, raster: Raster) -> int:
        """Render one image. Returns the number of text rows written.

        Raises:
            OutputError: If the sink fails; output may be partial.
        """
        buffer = self.redraw(raster)
        logger.debug(
            "Printing %dx%d buffer with %s", buffer.width, buffer.height, self._reducer.name
        )
        return self._encoder.encode(buffer, self._sink)


def print_image(sink: TextIO, raster: Raster, config: RenderConfig | None = None) -> int:
    """Render ``raster`` to ``sink`` with the default filter and reducer."""
    return Printer(sink, config).print(raster)
