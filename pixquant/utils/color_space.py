"""RGB <-> HSL conversion and hue rotation of RGBA buffers."""

from __future__ import annotations

import colorsys
import math

import numpy as np

from pixquant.core.buffer import as_pixels
from pixquant.core.errors import PixelBufferError


def rgb_to_hsl(r: float, g: float, b: float) -> tuple[float, float, float]:
    """Convert 0-255 RGB to (h, s, l), each in [0, 1]."""
    h, l, s = colorsys.rgb_to_hls(r / 255, g / 255, b / 255)
    return h, s, l


def hsl_to_rgb(h: float, s: float, l: float) -> tuple[int, int, int]:
    """Convert (h, s, l) in [0, 1] to integer 0-255 RGB, rounding half up."""
    r, g, b = colorsys.hls_to_rgb(h, l, s)
    return (
        math.floor(r * 255 + 0.5),
        math.floor(g * 255 + 0.5),
        math.floor(b * 255 + 0.5),
    )


def _rotate_hue(rgb: np.ndarray, shift: float) -> tuple[int, int, int]:
    h, s, l = rgb_to_hsl(int(rgb[0]), int(rgb[1]), int(rgb[2]))
    return hsl_to_rgb((h + shift) % 1.0, s, l)


def _writable_view(pixels) -> np.ndarray:
    """uint8 array sharing memory with `pixels`, which must be mutable."""
    if isinstance(pixels, (bytearray, memoryview)):
        pixels = np.frombuffer(pixels, dtype=np.uint8)
    if not isinstance(pixels, np.ndarray) or pixels.dtype != np.uint8:
        raise TypeError(
            "apply_hue_shift needs a uint8 array, bytearray or memoryview "
            "to modify in place"
        )
    if not pixels.flags.c_contiguous or not pixels.flags.writeable:
        raise TypeError("apply_hue_shift needs a contiguous, writeable buffer")
    return pixels.reshape(-1)


def apply_hue_shift(pixels, angle: float):
    """Rotate the hue of every pixel by `angle` degrees, in place.

    `pixels` may be a contiguous uint8 ndarray, a bytearray or a writable
    memoryview; it is modified and returned. Alpha is left alone. Use
    hue_shifted() to keep the input.
    """
    view = _writable_view(pixels)
    if view.size % 4 != 0:
        raise PixelBufferError(f"Buffer length {view.size} is not a multiple of 4")
    if view.size == 0:
        return pixels

    grid = view.reshape(-1, 4)
    shift = angle / 360

    # Convert each distinct color once; pixel art has few of them
    unique, inverse = np.unique(grid[:, :3], axis=0, return_inverse=True)
    rotated = np.array([_rotate_hue(c, shift) for c in unique], dtype=np.uint8)
    grid[:, :3] = rotated[inverse.reshape(-1)]
    return pixels


def hue_shifted(pixels, angle: float) -> np.ndarray:
    """Like apply_hue_shift() but returns a new buffer."""
    return apply_hue_shift(as_pixels(pixels), angle)
