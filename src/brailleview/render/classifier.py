"""Monochrome classification of colour samples.

A sample is filled when its perceived luminance is at or below a cut-off
derived from the configured luminosity:

    L = 0.21 R + 0.72 G + 0.07 B
    filled  <=>  L <= 255 * (1 - luminosity)

Fully transparent samples are always ``TRANSPARENT``; inversion swaps
filled and empty only.
"""

from __future__ import annotations

import numpy as np

from brailleview.config.settings import RenderConfig
from brailleview.domain.models import RGBA, PixelState

MAX_CHANNEL = 255
LUMA_WEIGHTS = (0.21, 0.72, 0.07)

_DEFAULT_CONFIG = RenderConfig()


def luminance(r: float, g: float, b: float) -> float:
    wr, wg, wb = LUMA_WEIGHTS
    return wr * r + wg * g + wb * b


def luminance_array(rgba: np.ndarray) -> np.ndarray:
    """Per-pixel luminance of an ``(h, w, 4)`` array, as float64."""
    wr, wg, wb = LUMA_WEIGHTS
    rgb = rgba[..., :3].astype(np.float64)
    return wr * rgb[..., 0] + wg * rgb[..., 1] + wb * rgb[..., 2]


def cutoff(config: RenderConfig) -> float:
    return MAX_CHANNEL * (1.0 - config.luminosity)


def classify(sample: RGBA, config: RenderConfig | None = None) -> PixelState:
    config = config or _DEFAULT_CONFIG
    r, g, b, a = sample
    if a == 0:
        return PixelState.TRANSPARENT
    filled = luminance(r, g, b) <= cutoff(config)
    if config.inverted:
        filled = not filled
    return PixelState.FILLED if filled else PixelState.EMPTY


def classify_array(rgba: np.ndarray, config: RenderConfig | None = None) -> np.ndarray:
    """Vectorised ``classify`` over an ``(h, w, 4)`` array."""
    config = config or _DEFAULT_CONFIG
    filled = luminance_array(rgba) <= cutoff(config)
    if config.inverted:
        filled = ~filled
    states = np.where(filled, PixelState.FILLED, PixelState.EMPTY).astype(np.uint8)
    states[rgba[..., 3] == 0] = PixelState.TRANSPARENT
    return states
