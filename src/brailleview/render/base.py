"""Abstract strategy interfaces for the rendering pipeline.

A ``Reducer`` maps a full-colour raster onto the three-state pixel
alphabet; an ``ImageFilter`` is an optional pre-processing hook (resize,
tone adjustments) applied before reduction. Both can be swapped without
touching the rest of the pipeline.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, TextIO

from brailleview.domain.models import Bounds, Raster

if TYPE_CHECKING:
    from brailleview.config.settings import RenderConfig
    from brailleview.render.buffer import MonochromeBuffer

logger = logging.getLogger(__name__)


class ImageFilter(ABC):
    """Pre-processing applied to each raster before it is reduced.

    A filter may return a raster of a different size. The pipeline
    re-anchors the reduced result so a non-zero origin survives scaling.

    Example usage::

        class Grayscale(ImageFilter):
            def apply(self, raster):
                ...
    """

    @abstractmethod
    def apply(self, raster: Raster) -> Raster:
        """Return the filtered raster. Must not modify ``raster``."""
        ...

    def place(self, bounds: Bounds) -> Bounds:
        """Where a raster covering ``bounds`` belongs after filtering.

        Expressed in unscaled canvas coordinates; the pipeline applies the
        filter's scale afterwards. Filters that move content (mirroring)
        override this. The default leaves the raster where it is.
        """
        return bounds


class NoopFilter(ImageFilter):
    """Filter that leaves every raster untouched."""

    def apply(self, raster: Raster) -> Raster:
        return raster


class Reducer(ABC):
    """Reduces a raster to a buffer of filled, empty and transparent pixels."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifier matching the configured dither method."""
        ...

    @abstractmethod
    def reduce(self, raster: Raster, config: RenderConfig | None = None) -> MonochromeBuffer:
        """Reduce ``raster`` into a new buffer with identical bounds.

        Args:
            raster: The source image. Read-only.
            config: Luminosity and inversion settings. Defaults apply when None.

        Returns:
            A new MonochromeBuffer covering ``raster.bounds``.
        """
        ...


class OutputError(Exception):
    """Raised when the output sink rejects a write."""


def write_text(sink: TextIO, text: str) -> None:
    """Write ``text`` to ``sink``, surfacing failures as OutputError."""
    try:
        sink.write(text)
    except (OSError, ValueError) as e:
        raise OutputError(f"Failed to write to output: {e}") from e
