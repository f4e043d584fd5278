"""Reduction strategies: Floyd-Steinberg error diffusion and plain threshold."""

from __future__ import annotations

import logging

import numpy as np

from brailleview.config.settings import RenderConfig
from brailleview.domain.models import DitherMethod, PixelState, Raster
from brailleview.render.base import Reducer
from brailleview.render.buffer import MonochromeBuffer
from brailleview.render.classifier import MAX_CHANNEL, classify_array, luminance_array

logger = logging.getLogger(__name__)

# Floyd-Steinberg kernel: right, below-left, below, below-right
_RIGHT = 7 / 16
_BELOW_LEFT = 3 / 16
_BELOW = 5 / 16
_BELOW_RIGHT = 1 / 16


class ThresholdReducer(Reducer):
    """Maps each pixel straight through the classifier, no error propagation."""

    @property
    def name(self) -> str:
        return DitherMethod.THRESHOLD.value

    def reduce(self, raster: Raster, config: RenderConfig | None = None) -> MonochromeBuffer:
        return MonochromeBuffer(raster.bounds, classify_array(raster.pixels, config))


class FloydSteinbergReducer(Reducer):
    """Error diffusion against the filled / empty / transparent palette.

    Works on normalised luminance: each opaque pixel (plus the error it has
    received) is quantised to filled (0.0) when at or below the luminosity
    cut-off and to empty (1.0) otherwise, and the difference is spread to
    its unvisited neighbours. Transparent pixels stay transparent and
    neither receive nor spread error.
    """

    @property
    def name(self) -> str:
        return DitherMethod.FLOYD_STEINBERG.value

    def reduce(self, raster: Raster, config: RenderConfig | None = None) -> MonochromeBuffer:
        config = config or RenderConfig()
        rgba = raster.pixels
        opaque = rgba[..., 3] != 0
        gray = luminance_array(rgba) / MAX_CHANNEL
        filled = diffuse(gray, opaque, 1.0 - config.luminosity)
        if config.inverted:
            filled = ~filled

        pix = np.where(filled, PixelState.FILLED, PixelState.EMPTY).astype(np.uint8)
        pix[~opaque] = PixelState.TRANSPARENT
        return MonochromeBuffer(raster.bounds, pix)


def diffuse(gray: np.ndarray, opaque: np.ndarray, cutoff: float) -> np.ndarray:
    """Floyd-Steinberg quantisation of ``gray`` (values in [0, 1]) to two levels.

    Args:
        gray: 2D float array of normalised luminance.
        opaque: 2D bool array; False marks pixels excluded from diffusion.
        cutoff: Values at or below it quantise to 0.0 (filled).

    Returns:
        2D bool array, True where the pixel is filled.
    """
    h, w = gray.shape
    work = gray.astype(np.float64).tolist()
    mask = opaque.tolist()
    result = []

    for y in range(h):
        row = work[y]
        row_mask = mask[y]
        below = work[y + 1] if y + 1 < h else None
        below_mask = mask[y + 1] if below is not None else None
        out = [False] * w

        for x in range(w):
            if not row_mask[x]:
                continue
            old = row[x]
            if old <= cutoff:
                out[x] = True
                err = old
            else:
                err = old - 1.0
            if err == 0.0:
                continue

            if x + 1 < w and row_mask[x + 1]:
                row[x + 1] += err * _RIGHT
            if below is not None:
                if x > 0 and below_mask[x - 1]:
                    below[x - 1] += err * _BELOW_LEFT
                if below_mask[x]:
                    below[x] += err * _BELOW
                if x + 1 < w and below_mask[x + 1]:
                    below[x + 1] += err * _BELOW_RIGHT

        result.append(out)

    return np.array(result, dtype=bool).reshape(h, w)


_REDUCERS: dict[str, type[Reducer]] = {
    DitherMethod.FLOYD_STEINBERG.value: FloydSteinbergReducer,
    DitherMethod.THRESHOLD.value: ThresholdReducer,
}


def get_reducer(method: DitherMethod | str) -> Reducer:
    """Instantiate the reducer registered for ``method``."""
    key = method.value if isinstance(method, DitherMethod) else method
    try:
        return _REDUCERS[key]()
    except KeyError:
        raise ValueError(
            f"Unknown dither method {key!r}; expected one of {sorted(_REDUCERS)}"
        ) from None
