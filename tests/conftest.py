"""Shared test fixtures for the brailleview test suite.

Provides common fixtures used across unit tests: rasters drawn from
ASCII art, animation frames, encoded JPEG/GIF payloads and terminals
writing to in-memory buffers.
"""

from __future__ import annotations

import io
from typing import Callable

import numpy as np
import pytest
from PIL import Image

from brailleview.animation.terminal import Terminal
from brailleview.config.settings import RenderConfig
from brailleview.domain.models import AnimationFrame, Disposal, Raster

BLACK = (0, 0, 0, 255)
WHITE = (255, 255, 255, 255)
CLEAR = (0, 0, 0, 0)

_ART = {"#": BLACK, ".": WHITE, " ": CLEAR}

RESET_PREFIX = "\x1b[999D"


def raster_from_art(rows: list[str], origin: tuple[int, int] = (0, 0)) -> Raster:
    """'#' is black, '.' is white, ' ' is transparent."""
    height = len(rows)
    width = len(rows[0]) if rows else 0
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    for y, row in enumerate(rows):
        for x, ch in enumerate(row):
            pixels[y, x] = _ART[ch]
    return Raster(pixels=pixels, origin=origin)


# ---------------------------------------------------------------------------
# Raster / Frame Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_raster() -> Callable[..., Raster]:
    """Factory building a Raster from ASCII art rows."""
    return raster_from_art


@pytest.fixture
def make_frame() -> Callable[..., AnimationFrame]:
    """Factory building an AnimationFrame from ASCII art rows."""

    def _make(
        rows: list[str],
        origin: tuple[int, int] = (0, 0),
        delay_cs: int = 0,
        disposal: Disposal = Disposal.NONE,
        index: int = 0,
    ) -> AnimationFrame:
        return AnimationFrame(
            raster=raster_from_art(rows, origin),
            delay_cs=delay_cs,
            disposal=disposal,
            index=index,
        )

    return _make


@pytest.fixture
def left_column_image() -> Raster:
    """A 2x4 image whose left column is black and right column white."""
    return raster_from_art(["#.", "#.", "#.", "#."])


@pytest.fixture
def default_config() -> RenderConfig:
    return RenderConfig()


@pytest.fixture
def threshold_config() -> RenderConfig:
    return RenderConfig(dither="threshold")


# ---------------------------------------------------------------------------
# Encoded Payload Fixtures
# ---------------------------------------------------------------------------


def encode_jpeg(color: str, size: tuple[int, int] = (8, 8)) -> bytes:
    out = io.BytesIO()
    Image.new("RGB", size, color).save(out, format="JPEG", quality=95)
    return out.getvalue()


@pytest.fixture
def jpeg_frames() -> list[bytes]:
    """Three distinct 8x8 JPEG images."""
    return [encode_jpeg("black"), encode_jpeg("white"), encode_jpeg("black")]


@pytest.fixture
def gif_bytes() -> bytes:
    """A two-frame 4x8 GIF, 20ms per frame, no loop extension."""
    first = Image.new("RGB", (4, 8), "black")
    second = Image.new("RGB", (4, 8), "white")
    second.paste((0, 0, 0), (0, 0, 2, 8))
    out = io.BytesIO()
    first.save(
        out,
        format="GIF",
        save_all=True,
        append_images=[second],
        duration=[20, 40],
        disposal=[1, 2],
    )
    return out.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    """A 2x4 PNG whose left column is black."""
    image = Image.new("RGBA", (2, 4), (255, 255, 255, 255))
    for y in range(4):
        image.putpixel((0, y), (0, 0, 0, 255))
    out = io.BytesIO()
    image.save(out, format="PNG")
    return out.getvalue()


# ---------------------------------------------------------------------------
# Terminal Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def terminal(output: io.StringIO) -> Terminal:
    """A Terminal writing to an in-memory buffer."""
    return Terminal(output)
