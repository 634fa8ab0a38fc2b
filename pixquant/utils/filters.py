"""Grayscale conversion and box blur for RGBA buffers."""

from __future__ import annotations

import math

import numpy as np

from pixquant.core.buffer import as_pixels, check_dimensions, from_grid

# ITU-R 601 luma weights
LUMA_WEIGHTS = (0.299, 0.587, 0.114)


def to_grayscale(pixels) -> np.ndarray:
    """Replace RGB with luminosity gray, keeping alpha. Returns a new buffer."""
    buf = as_pixels(pixels)
    grid = buf.reshape(-1, 4)
    rgb = grid[:, :3].astype(np.float64)
    wr, wg, wb = LUMA_WEIGHTS
    gray = wr * rgb[:, 0] + wg * rgb[:, 1] + wb * rgb[:, 2]
    gray = np.clip(np.rint(gray), 0, 255).astype(np.uint8)

    out = np.empty_like(grid)
    out[:, 0] = gray
    out[:, 1] = gray
    out[:, 2] = gray
    out[:, 3] = grid[:, 3]
    return out.reshape(-1)


def _blur_pass(grid: np.ndarray, radius: int, axis: int) -> np.ndarray:
    """Mean over a (2r+1) window along one axis, edges clamped.

    Samples with alpha 0 are left out of the mean. A window without any
    visible sample gives (0, 0, 0, 0).
    """
    n = grid.shape[axis]
    positions = np.arange(n)
    sums = np.zeros(grid.shape, dtype=np.float64)
    counts = np.zeros(grid.shape[:2], dtype=np.int64)

    for k in range(-radius, radius + 1):
        idx = np.clip(positions + k, 0, max(n - 1, 0))
        sample = np.take(grid, idx, axis=axis).astype(np.float64)
        visible = sample[..., 3] > 0
        sums += sample * visible[..., None]
        counts += visible

    out = np.zeros(grid.shape, dtype=np.uint8)
    has = counts > 0
    out[has] = np.clip(np.rint(sums[has] / counts[has][:, None]), 0, 255)
    return out


def box_blur(pixels, width: int, height: int, radius: float) -> np.ndarray:
    """Separable box blur: horizontal pass, then vertical pass.

    `radius` is floored with a minimum of 1. The horizontal result is
    rounded to bytes before the vertical pass.
    """
    buf = as_pixels(pixels)
    check_dimensions(buf, width, height)
    if buf.size == 0:
        return buf
    radius = max(1, math.floor(radius))

    grid = buf.reshape(height, width, 4)
    horizontal = _blur_pass(grid, radius, axis=1)
    return from_grid(_blur_pass(horizontal, radius, axis=0))
