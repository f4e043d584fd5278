"""Image processing utilities for brailleview.

Conversion between Pillow images, numpy arrays and rasters, the tone
adjustment / scale-to-terminal filter, and MIME sniffing of raw input.
"""

from __future__ import annotations

import io
import logging

import cv2
import numpy as np
from PIL import Image

from brailleview.config.settings import AdjustConfig
from brailleview.domain.models import Bounds, Raster
from brailleview.render.base import ImageFilter
from brailleview.render.glyph import BLOCK_HEIGHT, BLOCK_WIDTH
from brailleview.source.base import DecodeError

logger = logging.getLogger(__name__)

MIME_GIF = "image/gif"
MIME_PNG = "image/png"
MIME_JPEG = "image/jpeg"
MIME_BMP = "image/bmp"
MIME_MJPEG = "video/x-motion-jpeg"
MIME_UNKNOWN = "application/octet-stream"

SNIFF_LENGTH = 512

JPEG_SOI = b"\xff\xd8"
JPEG_EOI = b"\xff\xd9"


def to_rgba_array(image: Image.Image) -> np.ndarray:
    """Convert a PIL Image of any mode to an (h, w, 4) uint8 RGBA array."""
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    return np.array(image, dtype=np.uint8)


def raster_from_pil(image: Image.Image, origin: tuple[int, int] = (0, 0)) -> Raster:
    return Raster(pixels=to_rgba_array(image), origin=origin)


def raster_from_array(array: np.ndarray, origin: tuple[int, int] = (0, 0)) -> Raster:
    """Build a raster from a grey (h, w), RGB (h, w, 3) or RGBA (h, w, 4) array."""
    if array.ndim == 2:
        array = np.stack([array] * 3, axis=-1)
    if array.ndim != 3 or array.shape[2] not in (3, 4):
        raise ValueError(f"Unsupported array shape {array.shape}")
    if array.shape[2] == 3:
        alpha = np.full(array.shape[:2] + (1,), 255, dtype=array.dtype)
        array = np.concatenate([array, alpha], axis=-1)
    return Raster(pixels=array, origin=origin)


def decode_image(data: bytes, name: str = "<image>") -> Raster:
    """Decode a still image with Pillow.

    Raises:
        DecodeError: If Pillow cannot identify or fully decode the data.
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            return raster_from_pil(image)
    except (OSError, SyntaxError, ValueError) as e:
        raise DecodeError(f"cannot decode image: {e}", source=name) from e


def detect_mime(head: bytes) -> str:
    """Guess the content type from the first bytes of the input.

    A JPEG whose sniffed prefix already holds an end-of-image marker
    followed by another start-of-image marker is taken to be a motion-JPEG
    stream, as is a multipart body announcing JPEG parts.
    """
    head = head[:SNIFF_LENGTH]
    if head.startswith((b"GIF87a", b"GIF89a")):
        return MIME_GIF
    if head.startswith(b"\x89PNG\r\n\x1a\n"):
        return MIME_PNG
    if head.startswith(JPEG_SOI + b"\xff"):
        if JPEG_EOI + JPEG_SOI in head:
            return MIME_MJPEG
        return MIME_JPEG
    if head.startswith(b"--") and b"image/jpeg" in head.lower():
        return MIME_MJPEG
    if head.startswith(b"BM"):
        return MIME_BMP
    return MIME_UNKNOWN


def fit_scale(width: int, height: int, cols: int, rows: int) -> float:
    """Largest factor <= 1 that fits ``width x height`` pixels in the terminal."""
    scale = 1.0
    if width > 0:
        scale = min(scale, cols * BLOCK_WIDTH / width)
    if height > 0:
        scale = min(scale, rows * BLOCK_HEIGHT / height)
    return scale


def _lut(func) -> np.ndarray:
    values = np.arange(256, dtype=np.float64)
    return np.clip(np.rint(func(values)), 0, 255).astype(np.uint8)


class AdjustmentFilter(ImageFilter):
    """Tone adjustments followed by a nearest-neighbour fit to the terminal.

    Adjustments are applied in a fixed order: gamma, brightness, sharpen,
    contrast, mirror, invert. The scale factor is worked out from the first
    raster seen and reused afterwards so every frame of an animation
    shrinks by the same amount. Mirroring likewise reflects every raster
    about the centre of the first one, so a sub-region frame moves to the
    mirrored side of its canvas.
    """

    def __init__(
        self,
        adjust: AdjustConfig | None = None,
        cols: int | None = None,
        rows: int | None = None,
    ) -> None:
        self._adjust = adjust or AdjustConfig()
        self._cols = cols
        self._rows = rows
        self._scale: float | None = None
        self._mirror_axis: int | None = None

    @property
    def scale(self) -> float | None:
        return self._scale

    def place(self, bounds: Bounds) -> Bounds:
        if not self._adjust.mirror:
            return bounds
        if self._mirror_axis is None:
            # min_x + max_x: twice the centre line
            self._mirror_axis = bounds.min_x + bounds.max_x
        return bounds.translate(self._mirror_axis - bounds.max_x - bounds.min_x, 0)

    def apply(self, raster: Raster) -> Raster:
        rgba = raster.pixels.copy()
        if rgba.size:
            rgba = self._correct(rgba)
            rgba = self._resize(rgba)
        return Raster(pixels=rgba, origin=raster.origin)

    def _correct(self, rgba: np.ndarray) -> np.ndarray:
        a = self._adjust
        rgb = rgba[..., :3]

        if a.gamma != 0:
            exponent = 1.0 / max(a.gamma + 1.0, 0.0001)
            rgb[:] = _lut(lambda v: 255.0 * np.power(v / 255.0, exponent))[rgb]
        if a.brightness != 0:
            shift = 255.0 * a.brightness / 100.0
            rgb[:] = _lut(lambda v: v + shift)[rgb]
        if a.sharpen > 0:
            blurred = cv2.GaussianBlur(np.ascontiguousarray(rgb), (0, 0), a.sharpen)
            rgb[:] = cv2.addWeighted(np.ascontiguousarray(rgb), 2.0, blurred, -1.0, 0)
        if a.contrast != 0:
            factor = 1.0 + a.contrast / 100.0
            rgb[:] = _lut(lambda v: ((v / 255.0 - 0.5) * factor + 0.5) * 255.0)[rgb]
        if a.mirror:
            rgba = np.ascontiguousarray(cv2.flip(rgba, 1))
            rgb = rgba[..., :3]
        if a.invert:
            # Alpha is left alone so transparent pixels stay transparent
            rgb[:] = 255 - rgb
        return rgba

    def _resize(self, rgba: np.ndarray) -> np.ndarray:
        if self._cols is None or self._rows is None:
            return rgba
        h, w = rgba.shape[:2]
        if self._scale is None:
            self._scale = fit_scale(w, h, self._cols, self._rows)
            logger.debug("Scaling %dx%d images by %.3f", w, h, self._scale)
        if self._scale >= 1.0:
            return rgba
        new_w = max(1, int(self._scale * w))
        new_h = max(1, int(self._scale * h))
        return cv2.resize(rgba, (new_w, new_h), interpolation=cv2.INTER_NEAREST)
