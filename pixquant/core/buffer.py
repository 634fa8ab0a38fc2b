"""Flat RGBA pixel buffer helpers.

A buffer is a 1-D uint8 array laid out as R, G, B, A per pixel, row-major.
"""

from __future__ import annotations

import numpy as np

from pixquant.core.errors import PixelBufferError

CHANNELS = 4


def as_pixels(data) -> np.ndarray:
    """Return a flat uint8 copy of `data`, clamping values into [0, 255].

    Accepts bytes, sequences of numbers, or arrays of any shape.
    """
    if isinstance(data, (bytes, bytearray, memoryview)):
        arr = np.frombuffer(bytes(data), dtype=np.uint8).copy()
    else:
        raw = np.asarray(data)
        if raw.dtype == np.uint8:
            arr = raw.reshape(-1).copy()
        else:
            arr = np.rint(np.clip(raw.astype(np.float64).reshape(-1), 0, 255))
            arr = arr.astype(np.uint8)
    if arr.size % CHANNELS != 0:
        raise PixelBufferError(
            f"Buffer length {arr.size} is not a multiple of {CHANNELS}"
        )
    return arr


def check_dimensions(pixels: np.ndarray, width: int, height: int) -> None:
    """Raise PixelBufferError unless `pixels` holds exactly width x height pixels."""
    if width < 0 or height < 0:
        raise PixelBufferError(f"Invalid image size {width}x{height}")
    expected = width * height * CHANNELS
    if pixels.size != expected:
        raise PixelBufferError(
            f"Buffer length {pixels.size} does not match {width}x{height} "
            f"(expected {expected})"
        )


def to_grid(pixels: np.ndarray, width: int, height: int) -> np.ndarray:
    """View a flat buffer as a (height, width, 4) array."""
    check_dimensions(pixels, width, height)
    return pixels.reshape(height, width, CHANNELS)


def from_grid(grid: np.ndarray) -> np.ndarray:
    """Flatten a (height, width, 4) array back into a buffer."""
    return np.ascontiguousarray(grid).reshape(-1)
