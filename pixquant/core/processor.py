"""Pixel-art processing pipeline.

Blur → grayscale → hue shift → palette generation → dither/palette map.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

import numpy as np
from PIL import Image

from pixquant.core.bayer import bayer_dither
from pixquant.core.buffer import as_pixels, check_dimensions
from pixquant.core.dither import floyd_steinberg
from pixquant.core.palette import apply_palette, median_cut
from pixquant.core.types import Color, DitherMethod
from pixquant.utils.color_space import hue_shifted
from pixquant.utils.filters import box_blur, to_grayscale

logger = logging.getLogger("pixquant.core.processor")


@dataclass(frozen=True)
class Settings:
    """Processing settings that affect output."""

    num_colors: int = 16  # 1 to 256
    dither: DitherMethod = DitherMethod.NONE
    strength: float = 100  # 0 to 100, Bayer only
    hue_shift: float = 0  # degrees
    grayscale: bool = False
    blur_radius: int = 0  # 0 = no blur
    strict: bool = True


@dataclass
class ProcessedImage:
    """Result of processing one image."""

    pixels: np.ndarray  # Flat RGBA uint8
    palette: list[Color] = field(default_factory=list)
    width: int = 0
    height: int = 0
    fallback_palette: bool = False


def _prepare(pixels: np.ndarray, width: int, height: int, settings: Settings) -> np.ndarray:
    """Filters applied before the palette is built."""
    if settings.blur_radius > 0:
        pixels = box_blur(pixels, width, height, settings.blur_radius)
    if settings.grayscale:
        pixels = to_grayscale(pixels)
    if settings.hue_shift:
        pixels = hue_shifted(pixels, settings.hue_shift)
    return pixels


def _disperse(
    pixels: np.ndarray,
    width: int,
    height: int,
    palette: list[Color],
    method: DitherMethod,
    settings: Settings,
) -> np.ndarray:
    if method == DitherMethod.BAYER:
        return bayer_dither(
            pixels, width, height, palette, settings.strength, strict=settings.strict
        )
    if method == DitherMethod.FLOYD_STEINBERG:
        return floyd_steinberg(pixels, width, height, palette, strict=settings.strict)
    return apply_palette(pixels, palette, strict=settings.strict)


def process_pixels(pixels, width: int, height: int, settings: Settings) -> ProcessedImage:
    """Run a flat RGBA buffer through the full pipeline."""
    started = time.perf_counter()
    method = DitherMethod(settings.dither)
    buf = as_pixels(pixels)
    check_dimensions(buf, width, height)

    prepared = _prepare(buf, width, height, settings)
    result = median_cut(prepared, settings.num_colors)
    out = _disperse(prepared, width, height, result.colors, method, settings)

    logger.debug(
        "Processed %dx%d image (%s, %d colors) in %.3f seconds",
        width,
        height,
        method.value,
        len(result.colors),
        time.perf_counter() - started,
    )
    return ProcessedImage(
        pixels=out,
        palette=result.colors,
        width=width,
        height=height,
        fallback_palette=result.fallback,
    )


def pixels_from_image(img: Image.Image) -> tuple[np.ndarray, int, int]:
    """Flat RGBA buffer and size of an in-memory PIL image."""
    rgba = img.convert("RGBA")
    arr = np.array(rgba, dtype=np.uint8)
    return arr.reshape(-1), rgba.width, rgba.height


def image_from_pixels(pixels, width: int, height: int) -> Image.Image:
    """Build an RGBA PIL image from a flat buffer."""
    buf = as_pixels(pixels)
    check_dimensions(buf, width, height)
    return Image.fromarray(buf.reshape(height, width, 4))


def process_image(img: Image.Image, settings: Settings) -> Image.Image:
    """Process a PIL image and return the pixel-art result as RGBA."""
    pixels, width, height = pixels_from_image(img)
    processed = process_pixels(pixels, width, height, settings)
    return image_from_pixels(processed.pixels, width, height)
