"""Nearest palette color lookup by squared Euclidean RGB distance."""

from __future__ import annotations

import logging
from numbers import Real
from typing import Sequence

import numpy as np

from pixquant.core.errors import InvalidPaletteError
from pixquant.core.types import Color

logger = logging.getLogger("pixquant.core.matcher")

# Pixels matched per vectorised block, keeps the (block, palette, 3)
# difference array small for large images.
MATCH_CHUNK = 4096


def color_distance_squared(a: Sequence[float], b: Sequence[float]) -> float:
    """Squared distance between two RGB colors. No sqrt, the order is the same."""
    dr = a[0] - b[0]
    dg = a[1] - b[1]
    db = a[2] - b[2]
    return dr * dr + dg * dg + db * db


def _as_color(entry) -> Color | None:
    try:
        if len(entry) != 3:
            return None
    except TypeError:
        return None
    if not all(isinstance(c, Real) and not isinstance(c, bool) for c in entry):
        return None
    return Color(*(c.item() if isinstance(c, np.generic) else c for c in entry))


def coerce_palette(palette, strict: bool = True) -> list[Color]:
    """Validate a palette and return it as a list of Color.

    In strict mode an empty palette or any entry that is not three numbers
    raises InvalidPaletteError. Otherwise bad entries are skipped and the
    result may be empty.
    """
    if palette is None or len(palette) == 0:
        if strict:
            raise InvalidPaletteError("Palette is empty or missing")
        logger.warning("Empty or missing palette")
        return []

    colors: list[Color] = []
    for i, entry in enumerate(palette):
        color = _as_color(entry)
        if color is None:
            if strict:
                raise InvalidPaletteError(
                    f"Palette entry {i} is not an RGB triple: {entry!r}"
                )
            logger.warning("Invalid palette entry at index %d skipped", i)
            continue
        colors.append(color)

    if not colors and not strict:
        logger.warning("Palette has no valid entries")
    return colors


def palette_array(colors: Sequence[Color]) -> np.ndarray:
    """Palette as a (K, 3) float64 array for vectorised matching."""
    return np.asarray(colors, dtype=np.float64).reshape(-1, 3)


def find_closest_color(color: Sequence[float], palette, strict: bool = True) -> Color:
    """Return the palette entry nearest to `color`.

    `color` may hold out-of-range or fractional values. On an exact tie the
    earlier palette entry wins. With strict=False and no usable entries the
    probe color itself is returned.
    """
    colors = coerce_palette(palette, strict=strict)
    if not colors:
        return Color(color[0], color[1], color[2])

    closest = colors[0]
    min_distance = color_distance_squared(color, closest)
    for candidate in colors[1:]:
        distance = color_distance_squared(color, candidate)
        if distance < min_distance:
            min_distance = distance
            closest = candidate
    return closest


def nearest_indices(rgb: np.ndarray, palette: np.ndarray) -> np.ndarray:
    """Index of the nearest palette row for every row of `rgb`.

    Args:
        rgb: (N, 3) array of colors, any real dtype.
        palette: (K, 3) float array from palette_array().

    Returns:
        (N,) array of palette indices. Ties resolve to the lowest index.
    """
    rgb = np.asarray(rgb, dtype=np.float64).reshape(-1, 3)
    out = np.empty(rgb.shape[0], dtype=np.intp)
    for start in range(0, rgb.shape[0], MATCH_CHUNK):
        block = rgb[start : start + MATCH_CHUNK]
        diff = block[:, None, :] - palette[None, :, :]
        dist = diff[..., 0] ** 2 + diff[..., 1] ** 2 + diff[..., 2] ** 2
        out[start : start + MATCH_CHUNK] = np.argmin(dist, axis=1)
    return out


def palette_bytes(palette: np.ndarray) -> np.ndarray:
    """Palette rows as they land in a byte buffer: rounded and clamped."""
    return np.clip(np.rint(palette), 0, 255).astype(np.uint8)


def quantize_pixels(
    pixels: np.ndarray, probes: np.ndarray, colors: Sequence[Color]
) -> np.ndarray:
    """Replace each visible pixel's RGB with the palette entry nearest its probe.

    Args:
        pixels: flat RGBA buffer; supplies alpha and the visibility mask.
        probes: (N, 3) colors to match, one per pixel (original or perturbed).
        colors: validated, non-empty palette.

    Returns:
        New flat buffer. Pixels with alpha 0 become (0, 0, 0, 0), the rest
        keep their alpha.
    """
    grid = pixels.reshape(-1, 4)
    out = np.zeros_like(grid, dtype=np.uint8)
    visible = grid[:, 3] != 0
    pal = palette_array(colors)
    idx = nearest_indices(probes[visible], pal)
    out[visible, :3] = palette_bytes(pal)[idx]
    out[visible, 3] = grid[visible, 3]
    return out.reshape(-1)


def nearest_index(color: Sequence[float], palette: np.ndarray) -> int:
    """Index of the palette row nearest a single color (first on ties)."""
    diff = np.asarray(color, dtype=np.float64) - palette
    dist = diff[:, 0] ** 2 + diff[:, 1] ** 2 + diff[:, 2] ** 2
    return int(np.argmin(dist))
