"""Braille glyph encoding.

Every 2x4 block of pixels becomes one glyph from the Unicode Braille
Patterns block. Dots are numbered as in the standard cell and map to bits
of the code point offset from U+2800::

    +------+         +-----------+
    |(1)(4)|         |0x01  0x08 |
    |(2)(5)|   ->    |0x02  0x10 |
    |(3)(6)|         |0x04  0x20 |
    |(7)(8)|         |0x40  0x80 |
    +------+         +-----------+

A dot is raised only for filled pixels. Empty, transparent and
out-of-bounds pixels (blocks hanging off the right or bottom edge) leave
it unraised.

See: https://en.wikipedia.org/wiki/Braille_Patterns
"""

from __future__ import annotations

import io
import logging
import math
from typing import TextIO

import numpy as np

from brailleview.config.settings import RenderConfig
from brailleview.domain.models import PixelState
from brailleview.render.base import write_text
from brailleview.render.buffer import MonochromeBuffer

logger = logging.getLogger(__name__)

BRAILLE_OFFSET = 0x2800
BLOCK_WIDTH = 2
BLOCK_HEIGHT = 4

# DOT_BITS[dy][dx] is the bit for the dot at column dx, row dy of a block
DOT_BITS = np.array(
    [
        [0x01, 0x08],
        [0x02, 0x10],
        [0x04, 0x20],
        [0x40, 0x80],
    ],
    dtype=np.uint8,
)

GLYPHS = tuple(chr(BRAILLE_OFFSET + mask) for mask in range(256))


def glyph(mask: int) -> str:
    """The Braille character for an 8-bit dot mask."""
    if not 0 <= mask <= 0xFF:
        raise ValueError(f"dot mask out of range: {mask}")
    return GLYPHS[mask]


def mask_of(char: str) -> int:
    """Inverse of ``glyph``."""
    mask = ord(char) - BRAILLE_OFFSET
    if not 0 <= mask <= 0xFF:
        raise ValueError(f"{char!r} is not a Braille pattern")
    return mask


def rows_for_height(height: int) -> int:
    """Number of text rows needed to show ``height`` pixel rows."""
    return math.ceil(height / BLOCK_HEIGHT)


def _raises_dot(state: PixelState, config: RenderConfig) -> bool:
    if state == PixelState.FILLED:
        return True
    return (
        state == PixelState.TRANSPARENT
        and config.inverted
        and config.invert_transparent
    )


def block_mask(
    buffer: MonochromeBuffer,
    px: int,
    py: int,
    config: RenderConfig | None = None,
) -> int:
    """Dot mask of the block whose top-left pixel is ``(px, py)``."""
    config = config or RenderConfig()
    mask = 0
    for dy in range(BLOCK_HEIGHT):
        for dx in range(BLOCK_WIDTH):
            x, y = px + dx, py + dy
            # Out-of-bounds never raises a dot, whatever the transparency policy
            if not buffer.bounds.contains(x, y):
                continue
            if _raises_dot(buffer.at(x, y), config):
                mask |= int(DOT_BITS[dy, dx])
    return mask


class BrailleEncoder:
    """Encodes monochrome buffers as lines of Braille glyphs."""

    def __init__(self, config: RenderConfig | None = None) -> None:
        self._config = config or RenderConfig()

    @property
    def config(self) -> RenderConfig:
        return self._config

    def masks(self, buffer: MonochromeBuffer) -> np.ndarray:
        """Dot masks for every block, shaped ``(rows, columns)``.

        Blocks start at the buffer's own top-left corner, so the result
        does not depend on where the buffer is positioned.
        """
        pix = buffer.pix
        raised = pix == PixelState.FILLED
        if self._config.inverted and self._config.invert_transparent:
            raised |= pix == PixelState.TRANSPARENT

        h, w = raised.shape
        rows = rows_for_height(h)
        cols = math.ceil(w / BLOCK_WIDTH)
        padded = np.zeros((rows * BLOCK_HEIGHT, cols * BLOCK_WIDTH), dtype=np.uint8)
        padded[:h, :w] = raised

        masks = np.zeros((rows, cols), dtype=np.uint8)
        for dy in range(BLOCK_HEIGHT):
            for dx in range(BLOCK_WIDTH):
                masks |= padded[dy::BLOCK_HEIGHT, dx::BLOCK_WIDTH] * DOT_BITS[dy, dx]
        return masks

    def encode(self, buffer: MonochromeBuffer, sink: TextIO) -> int:
        """Write the buffer to ``sink`` one glyph row at a time.

        Returns:
            The number of text rows written.

        Raises:
            OutputError: If the sink rejects a write. Nothing is retried.
        """
        rows = 0
        for row in self.masks(buffer):
            write_text(sink, "".join(GLYPHS[m] for m in row.tolist()) + "\n")
            rows += 1
        return rows

    def render(self, buffer: MonochromeBuffer) -> str:
        """The encoded text as a single string."""
        out = io.StringIO()
        self.encode(buffer, out)
        return out.getvalue()
