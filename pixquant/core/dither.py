"""Floyd-Steinberg error diffusion dithering onto a palette."""

from __future__ import annotations

import logging

import numpy as np

from pixquant.core.buffer import as_pixels, check_dimensions, from_grid
from pixquant.core.matcher import (
    coerce_palette,
    nearest_index,
    palette_array,
    palette_bytes,
)

logger = logging.getLogger("pixquant.core.dither")


def floyd_steinberg(
    pixels,
    width: int,
    height: int,
    palette,
    strict: bool = True,
) -> np.ndarray:
    """Apply Floyd-Steinberg dithering to an RGBA buffer.

    Pixels are visited in raster order. Each visible pixel is clamped to
    [0, 255], matched to the nearest palette color, and the difference is
    spread over the right and lower neighbours. Transparent pixels become
    (0, 0, 0, 0) and spread nothing.

    Args:
        pixels: flat RGBA buffer of width x height pixels.
        width: image width in pixels.
        height: image height in pixels.
        palette: sequence of RGB triples.
        strict: raise on an unusable palette instead of returning the input.

    Returns:
        New flat RGBA buffer with only palette colors in visible pixels.
    """
    buf = as_pixels(pixels)
    colors = coerce_palette(palette, strict=strict)
    if not colors:
        logger.warning("Floyd-Steinberg dithering called without a usable palette")
        return buf
    if buf.size == 0:
        return buf
    check_dimensions(buf, width, height)

    pal = palette_array(colors)
    pal_out = palette_bytes(pal)

    # Single precision scratch holds the accumulated error
    img = buf.reshape(height, width, 4).astype(np.float32)
    out = np.zeros((height, width, 4), dtype=np.uint8)
    h, w = height, width

    for y in range(h):
        for x in range(w):
            alpha = img[y, x, 3]
            if alpha == 0:
                continue

            old = np.clip(img[y, x, :3].astype(np.float64), 0.0, 255.0)
            k = nearest_index(old, pal)
            out[y, x, :3] = pal_out[k]
            out[y, x, 3] = int(round(float(alpha)))
            err = old - pal[k]

            if x + 1 < w:
                img[y, x + 1, :3] += err * 7 / 16
            if y + 1 < h:
                if x - 1 >= 0:
                    img[y + 1, x - 1, :3] += err * 3 / 16
                img[y + 1, x, :3] += err * 5 / 16
                if x + 1 < w:
                    img[y + 1, x + 1, :3] += err * 1 / 16

    return from_grid(out)
