"""Tests for monochrome classification."""

from __future__ import annotations

import numpy as np
import pytest

from brailleview.config.settings import RenderConfig
from brailleview.domain.models import PixelState
from brailleview.render.classifier import classify, classify_array, cutoff, luminance


class TestClassify:
    """Test the per-sample classifier."""

    def test_black_is_filled_white_is_empty(self) -> None:
        assert classify((0, 0, 0, 255)) == PixelState.FILLED
        assert classify((255, 255, 255, 255)) == PixelState.EMPTY

    @pytest.mark.parametrize("sample", [(0, 0, 0, 0), (255, 255, 255, 0), (12, 200, 40, 0)])
    def test_zero_alpha_is_transparent(self, sample: tuple[int, int, int, int]) -> None:
        assert classify(sample) == PixelState.TRANSPARENT
        assert classify(sample, RenderConfig(inverted=True)) == PixelState.TRANSPARENT

    def test_partial_alpha_is_classified_by_colour(self) -> None:
        assert classify((0, 0, 0, 1)) == PixelState.FILLED

    def test_threshold_follows_luminosity(self) -> None:
        assert cutoff(RenderConfig()) == pytest.approx(127.5)
        assert classify((127, 127, 127, 255)) == PixelState.FILLED
        assert classify((128, 128, 128, 255)) == PixelState.EMPTY
        brighter = RenderConfig(luminosity=0.2)
        assert classify((128, 128, 128, 255), brighter) == PixelState.FILLED

    def test_green_weighs_most(self) -> None:
        assert luminance(0, 255, 0) > luminance(255, 0, 0) > luminance(0, 0, 255)
        assert classify((255, 0, 0, 255)) == PixelState.FILLED
        assert classify((0, 255, 0, 255)) == PixelState.EMPTY

    def test_inversion_swaps_filled_and_empty(self) -> None:
        inverted = RenderConfig(inverted=True)
        assert classify((0, 0, 0, 255), inverted) == PixelState.EMPTY
        assert classify((255, 255, 255, 255), inverted) == PixelState.FILLED


class TestClassifyArray:
    """Test the vectorised classifier against the scalar one."""

    @pytest.mark.parametrize("config", [RenderConfig(), RenderConfig(luminosity=0.3, inverted=True)])
    def test_matches_scalar_classification(self, config: RenderConfig) -> None:
        rng = np.random.default_rng(3)
        rgba = rng.integers(0, 256, size=(6, 5, 4), dtype=np.uint8)
        rgba[0, :, 3] = 0
        states = classify_array(rgba, config)
        for y in range(6):
            for x in range(5):
                sample = tuple(int(v) for v in rgba[y, x])
                assert states[y, x] == classify(sample, config)
