"""Ordered dithering with Bayer threshold matrices (2x2, 4x4, 8x8)."""

from __future__ import annotations

import logging

import numpy as np

from pixquant.core.buffer import as_pixels, to_grid
from pixquant.core.matcher import coerce_palette, quantize_pixels
from pixquant.core.palette import apply_palette

logger = logging.getLogger("pixquant.core.bayer")


def bayer_matrix(n: int) -> np.ndarray:
    """Generate an n x n Bayer matrix (n must be a power of 2).

    Values range over 0..n*n-1.
    """
    if n <= 0 or n & (n - 1) != 0:
        raise ValueError("Bayer size must be a positive power of 2 (e.g., 2, 4, 8)")
    if n == 1:
        return np.array([[0]], dtype=np.int32)
    prev = 4 * bayer_matrix(n // 2)
    return np.block(
        [
            [prev + 0, prev + 2],
            [prev + 3, prev + 1],
        ]
    )


def _frozen(matrix: np.ndarray) -> np.ndarray:
    matrix.setflags(write=False)
    return matrix


BAYER_MATRICES: dict[int, np.ndarray] = {
    size: _frozen(bayer_matrix(size)) for size in (2, 4, 8)
}


def clamp_strength(strength: float) -> float:
    clamped = max(0.0, min(100.0, float(strength)))
    if clamped != strength:
        logger.debug("Dither strength %r clamped to %s", strength, clamped)
    return clamped


def matrix_for_strength(strength: float) -> np.ndarray:
    """Pick the threshold matrix for a strength in (0, 100].

    Up to 33.3 uses 2x2, up to 66.6 uses 4x4, above that 8x8.
    """
    if strength <= 33.3:
        return BAYER_MATRICES[2]
    if strength <= 66.6:
        return BAYER_MATRICES[4]
    return BAYER_MATRICES[8]


def threshold_map(width: int, height: int, strength: float) -> np.ndarray:
    """Per-pixel offset added to R, G and B, shape (height, width).

    Each matrix value is normalised to [0, 1), centred on zero and scaled by
    strength/100 * size^2 / 2.
    """
    matrix = matrix_for_strength(strength)
    size = matrix.shape[0]
    cells = float(size * size)
    max_offset = (strength / 100.0) * size * size / 2
    offsets = (matrix.astype(np.float64) * (1.0 / cells) - 0.5) * max_offset

    ty = (height + size - 1) // size
    tx = (width + size - 1) // size
    return np.tile(offsets, (ty, tx))[:height, :width]


def bayer_dither(
    pixels,
    width: int,
    height: int,
    palette,
    strength: float = 100,
    strict: bool = True,
) -> np.ndarray:
    """Apply ordered dithering and map the result onto `palette`.

    Args:
        pixels: flat RGBA buffer of width x height pixels.
        width: image width in pixels.
        height: image height in pixels.
        palette: sequence of RGB triples.
        strength: 0-100, clamped. 0 means plain palette mapping.
        strict: raise on an unusable palette instead of returning the input.

    Returns:
        New flat RGBA buffer. Alpha is kept; fully transparent pixels become
        (0, 0, 0, 0).
    """
    buf = as_pixels(pixels)
    colors = coerce_palette(palette, strict=strict)
    if not colors:
        logger.warning("Bayer dithering called without a usable palette")
        return buf
    if buf.size == 0:
        return buf
    grid = to_grid(buf, width, height)

    strength = clamp_strength(strength)
    if strength == 0:
        return apply_palette(buf, colors)

    offsets = threshold_map(width, height, strength)
    probes = np.clip(grid[:, :, :3].astype(np.float64) + offsets[:, :, None], 0, 255)
    return quantize_pixels(buf, probes.reshape(-1, 3), colors)
