"""Tests for the pixel-art processing pipeline."""

import dataclasses

import numpy as np
import pytest
from PIL import Image

from pixquant.core.processor import (
    ProcessedImage,
    Settings,
    image_from_pixels,
    pixels_from_image,
    process_image,
    process_pixels,
)
from pixquant.core.types import DitherMethod


def _random_image(width=12, height=8, seed=0):
    rng = np.random.default_rng(seed)
    buf = rng.integers(0, 256, width * height * 4).astype(np.uint8)
    buf[3::4] = 255
    return buf


def _palette_only(result: ProcessedImage) -> bool:
    colors = {tuple(p) for p in result.pixels.reshape(-1, 4)[:, :3].tolist()}
    return colors <= {tuple(c) for c in result.palette}


class TestSettings:
    def test_default_settings(self):
        s = Settings()
        assert s.num_colors == 16
        assert s.dither == DitherMethod.NONE
        assert s.strength == 100
        assert s.hue_shift == 0
        assert s.grayscale is False
        assert s.blur_radius == 0
        assert s.strict is True

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            Settings().num_colors = 4


class TestProcessPixels:
    def test_basic_processing(self):
        img = _random_image()
        result = process_pixels(img, 12, 8, Settings(num_colors=5))

        assert isinstance(result, ProcessedImage)
        assert result.pixels.shape == img.shape
        assert len(result.palette) == 5
        assert (result.width, result.height) == (12, 8)
        assert result.fallback_palette is False
        assert _palette_only(result)

    @pytest.mark.parametrize("method", list(DitherMethod))
    def test_dither_methods(self, method):
        settings = Settings(num_colors=4, dither=method, strength=70)
        result = process_pixels(_random_image(), 12, 8, settings)
        assert _palette_only(result)

    def test_method_from_string(self):
        settings = Settings(num_colors=4, dither="floyd-steinberg")
        result = process_pixels(_random_image(), 12, 8, settings)
        assert _palette_only(result)

    def test_unknown_method_rejected_up_front(self):
        """A bad method fails before the buffer is even looked at."""
        settings = Settings(num_colors=4, dither="sepia")
        with pytest.raises(ValueError, match="DitherMethod"):
            process_pixels(_random_image(), 99, 99, settings)

    def test_transparent_image_fallback(self):
        img = np.zeros(6 * 4, dtype=np.uint8)
        result = process_pixels(img, 3, 2, Settings(num_colors=2))
        assert result.fallback_palette is True
        assert result.palette == [(0, 0, 0), (255, 255, 255)]
        assert result.pixels.tolist() == [0] * 24

    def test_grayscale_output(self):
        settings = Settings(num_colors=6, grayscale=True, dither=DitherMethod.BAYER)
        out = process_pixels(_random_image(), 12, 8, settings).pixels.reshape(-1, 4)
        assert np.array_equal(out[:, 0], out[:, 1])
        assert np.array_equal(out[:, 1], out[:, 2])

    def test_hue_shift(self):
        img = np.array([255, 0, 0, 255] * 4, dtype=np.uint8)
        result = process_pixels(img, 2, 2, Settings(num_colors=1, hue_shift=120))
        assert result.palette == [(0, 255, 0)]

    def test_blur(self):
        img = np.array([0, 0, 0, 255, 90, 90, 90, 255, 0, 0, 0, 255], dtype=np.uint8)
        result = process_pixels(img, 3, 1, Settings(num_colors=1, blur_radius=1))
        assert result.palette == [(30, 30, 30)]

    def test_deterministic(self):
        settings = Settings(num_colors=8, dither=DitherMethod.FLOYD_STEINBERG)
        a = process_pixels(_random_image(seed=4), 12, 8, settings)
        b = process_pixels(_random_image(seed=4), 12, 8, settings)
        assert np.array_equal(a.pixels, b.pixels)
        assert a.palette == b.palette


class TestImages:
    def test_pixels_from_image(self):
        img = Image.new("RGB", (5, 3), (10, 20, 30))
        pixels, width, height = pixels_from_image(img)
        assert (width, height) == (5, 3)
        assert pixels[:4].tolist() == [10, 20, 30, 255]
        assert pixels.size == 5 * 3 * 4

    def test_image_round_trip(self):
        pixels = _random_image(4, 3)
        img = image_from_pixels(pixels, 4, 3)
        assert img.mode == "RGBA"
        assert img.size == (4, 3)
        back, _, _ = pixels_from_image(img)
        assert np.array_equal(back, pixels)

    def test_process_image(self):
        img = Image.new("RGB", (10, 6), (128, 64, 200))
        out = process_image(img, Settings(num_colors=2, dither=DitherMethod.BAYER))
        assert out.mode == "RGBA"
        assert out.size == (10, 6)
        assert out.getpixel((0, 0)) == (128, 64, 200, 255)
