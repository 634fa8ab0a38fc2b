"""Tests for grayscale conversion and box blur."""

import numpy as np
import pytest

from pixquant.core.errors import PixelBufferError
from pixquant.utils.filters import box_blur, to_grayscale


class TestGrayscale:
    def test_red(self):
        # 0.299 * 255 = 76.245
        assert to_grayscale([255, 0, 0, 77]).tolist() == [76, 76, 76, 77]

    def test_white_and_black(self):
        out = to_grayscale([255, 255, 255, 255, 0, 0, 0, 10])
        assert out.tolist() == [255, 255, 255, 255, 0, 0, 0, 10]

    def test_channels_equal(self):
        rng = np.random.default_rng(4)
        out = to_grayscale(rng.integers(0, 256, 40).astype(np.uint8)).reshape(-1, 4)
        assert np.array_equal(out[:, 0], out[:, 1])
        assert np.array_equal(out[:, 1], out[:, 2])

    def test_new_buffer(self):
        src = np.array([10, 200, 30, 255], dtype=np.uint8)
        to_grayscale(src)
        assert src.tolist() == [10, 200, 30, 255]


class TestBoxBlur:
    def test_uniform_unchanged(self):
        img = np.array([40, 80, 120, 255] * 12, dtype=np.uint8)
        assert np.array_equal(box_blur(img, 4, 3, 2), img)

    def test_horizontal_average(self):
        img = [0, 0, 0, 255, 90, 90, 90, 255, 0, 0, 0, 255]
        out = box_blur(img, 3, 1, 1)
        assert out.reshape(-1, 4).tolist() == [[30, 30, 30, 255]] * 3

    def test_transparent_samples_ignored(self):
        img = [255, 0, 0, 255, 0, 0, 0, 0, 255, 0, 0, 255]
        out = box_blur(img, 3, 1, 1)
        assert out.reshape(-1, 4).tolist() == [[255, 0, 0, 255]] * 3

    def test_fully_transparent(self):
        img = [9, 9, 9, 0] * 4
        assert box_blur(img, 2, 2, 1).tolist() == [0] * 16

    def test_vertical_pass(self):
        img = [0, 0, 0, 255, 90, 90, 90, 255, 0, 0, 0, 255]
        out = box_blur(img, 1, 3, 1)
        assert out.reshape(-1, 4).tolist() == [[30, 30, 30, 255]] * 3

    def test_radius_floor_minimum_one(self):
        img = np.arange(64, dtype=np.uint8) | 1
        img[3::4] = 255
        assert np.array_equal(box_blur(img, 4, 4, 0.5), box_blur(img, 4, 4, 1))

    def test_size_mismatch(self):
        with pytest.raises(PixelBufferError):
            box_blur([0] * 16, 3, 3, 1)
