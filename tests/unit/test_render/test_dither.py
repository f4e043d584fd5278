"""Tests for the reduction strategies."""

from __future__ import annotations

import numpy as np
import pytest

from brailleview.config.settings import RenderConfig
from brailleview.domain.models import Bounds, DitherMethod, PixelState, Raster
from brailleview.render.dither import (
    FloydSteinbergReducer,
    ThresholdReducer,
    diffuse,
    get_reducer,
)


def _gray(value: int, width: int = 32, height: int = 32, origin=(0, 0)) -> Raster:
    pixels = np.full((height, width, 4), value, dtype=np.uint8)
    pixels[..., 3] = 255
    return Raster(pixels=pixels, origin=origin)


class TestGetReducer:

    def test_resolves_names(self) -> None:
        assert isinstance(get_reducer("floyd-steinberg"), FloydSteinbergReducer)
        assert isinstance(get_reducer(DitherMethod.THRESHOLD), ThresholdReducer)
        assert get_reducer("threshold").name == "threshold"

    def test_unknown_name_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown dither method"):
            get_reducer("atkinson")


class TestThresholdReducer:

    def test_preserves_bounds(self, make_raster) -> None:
        raster = make_raster(["#.", ".#"], origin=(3, -2))
        buffer = ThresholdReducer().reduce(raster)
        assert buffer.bounds == Bounds(min_x=3, min_y=-2, max_x=5, max_y=0)
        assert buffer.at(3, -2) == PixelState.FILLED
        assert buffer.at(4, -2) == PixelState.EMPTY

    def test_mid_gray_is_uniform(self) -> None:
        buffer = ThresholdReducer().reduce(_gray(128))
        assert (buffer.pix == PixelState.EMPTY).all()


class TestFloydSteinbergReducer:

    def test_pure_black_and_white_match_threshold(self, make_raster) -> None:
        raster = make_raster(["#..#", ".##.", "#  #"])
        config = RenderConfig()
        assert FloydSteinbergReducer().reduce(raster, config) == ThresholdReducer().reduce(raster, config)

    def test_mid_gray_dithers_to_about_half(self) -> None:
        buffer = FloydSteinbergReducer().reduce(_gray(128))
        share = float((buffer.pix == PixelState.FILLED).mean())
        assert 0.4 < share < 0.6

    def test_luminosity_shifts_density(self) -> None:
        light = FloydSteinbergReducer().reduce(_gray(64), RenderConfig(luminosity=0.5))
        share = float((light.pix == PixelState.FILLED).mean())
        assert share > 0.6

    def test_transparent_pixels_stay_transparent(self, make_raster) -> None:
        buffer = FloydSteinbergReducer().reduce(make_raster(["# .", "  #"]))
        assert buffer.at(1, 0) == PixelState.TRANSPARENT
        assert buffer.at(0, 1) == PixelState.TRANSPARENT
        assert buffer.at(0, 0) == PixelState.FILLED

    def test_inversion_is_exact_complement(self) -> None:
        rng = np.random.default_rng(11)
        pixels = rng.integers(0, 256, size=(12, 10, 4), dtype=np.uint8)
        pixels[..., 3] = np.where(rng.random((12, 10)) < 0.2, 0, 255)
        raster = Raster(pixels=pixels)

        plain = FloydSteinbergReducer().reduce(raster, RenderConfig()).pix
        inverted = FloydSteinbergReducer().reduce(raster, RenderConfig(inverted=True)).pix

        transparent = plain == PixelState.TRANSPARENT
        assert (inverted[transparent] == PixelState.TRANSPARENT).all()
        assert ((plain == PixelState.FILLED) == (inverted[...] == PixelState.EMPTY))[~transparent].all()

    def test_does_not_modify_source(self) -> None:
        raster = _gray(100, width=4, height=4)
        before = raster.pixels.copy()
        FloydSteinbergReducer().reduce(raster)
        assert np.array_equal(raster.pixels, before)


class TestDiffuse:

    def test_error_goes_right_first(self) -> None:
        # 0.6 quantises to empty (error -0.4), pushing its right neighbour
        # from 0.6 down to 0.425, which then fills
        gray = np.array([[0.6, 0.6]])
        opaque = np.ones_like(gray, dtype=bool)
        assert diffuse(gray, opaque, 0.5).tolist() == [[False, True]]

    def test_masked_pixels_do_not_receive_error(self) -> None:
        gray = np.array([[0.6, 0.6, 0.6]])
        opaque = np.array([[True, False, True]])
        assert diffuse(gray, opaque, 0.5).tolist() == [[False, False, False]]

    def test_empty_input(self) -> None:
        assert diffuse(np.zeros((0, 3)), np.zeros((0, 3), dtype=bool), 0.5).shape == (0, 3)
