"""Median cut palette generation and direct palette mapping."""

from __future__ import annotations

import logging
import math
import time

import numpy as np

from pixquant.core.buffer import as_pixels
from pixquant.core.matcher import coerce_palette, quantize_pixels
from pixquant.core.types import (
    BLACK,
    MAX_COLORS,
    MAX_PALETTE_SAMPLES,
    MIN_COLORS,
    OPACITY_THRESHOLD,
    Color,
    PaletteResult,
)

logger = logging.getLogger("pixquant.core.palette")


def clamp_color_count(num_colors: float) -> int:
    """Truncate to an integer and clamp into [1, 256]. NaN becomes 1."""
    if math.isnan(num_colors):
        count = MIN_COLORS
    else:
        count = int(max(MIN_COLORS, min(MAX_COLORS, num_colors)))
    if count != num_colors:
        logger.debug("Color count %r clamped to %d", num_colors, count)
    return count


def grayscale_ramp(num_colors: int) -> list[Color]:
    """Evenly spaced gray shades from 0 to 255 (a single shade is black)."""
    spacing = 255 / (num_colors - 1 or 1)
    shades = [math.floor(i * spacing) for i in range(num_colors)]
    return [Color(s, s, s) for s in shades]


def _sample_colors(candidates: np.ndarray) -> np.ndarray:
    """Deterministically stride through large candidate sets."""
    count = candidates.shape[0]
    if count <= MAX_PALETTE_SAMPLES:
        return candidates
    step = max(1, count // MAX_PALETTE_SAMPLES)
    return candidates[::step][:MAX_PALETTE_SAMPLES]


def _channel_ranges(bucket: np.ndarray) -> tuple[int, int, int]:
    spread = bucket.max(axis=0) - bucket.min(axis=0)
    return int(spread[0]), int(spread[1]), int(spread[2])


def _split_buckets(samples: np.ndarray, num_colors: int) -> list[np.ndarray]:
    """Split the widest bucket at its median until `num_colors` buckets exist.

    The bucket with the largest single-channel range is split each round.
    Ties go to the earlier bucket, and within a bucket to R, then G, then B.
    Stops early once every bucket is a single color or has zero range.
    """
    buckets = [samples]
    ranges = [_channel_ranges(samples)]

    while len(buckets) < num_colors:
        best_index = -1
        best_channel = -1
        best_range = -1
        for i, bucket in enumerate(buckets):
            if len(bucket) <= 1:
                continue
            for channel, spread in enumerate(ranges[i]):
                if spread > best_range:
                    best_range = spread
                    best_index = i
                    best_channel = channel

        if best_index == -1 or best_range == 0:
            break

        bucket = buckets[best_index]
        ordered = bucket[np.argsort(bucket[:, best_channel], kind="stable")]
        median = len(ordered) // 2
        low, high = ordered[:median], ordered[median:]

        buckets[best_index : best_index + 1] = [low, high]
        ranges[best_index : best_index + 1] = [_channel_ranges(low), _channel_ranges(high)]

    return buckets


def _average(bucket: np.ndarray) -> Color:
    # Round half up
    mean = np.floor(bucket.sum(axis=0) / len(bucket) + 0.5).astype(int)
    return Color(int(mean[0]), int(mean[1]), int(mean[2]))


def _fit_size(colors: list[Color], num_colors: int) -> list[Color]:
    """Pad with the last color (or black) and truncate to `num_colors`."""
    fitted = list(colors[:num_colors])
    filler = fitted[-1] if fitted else BLACK
    while len(fitted) < num_colors:
        fitted.append(filler)
    return fitted


def median_cut(pixels, num_colors: float) -> PaletteResult:
    """Generate a palette of exactly `num_colors` colors by median cut.

    Only pixels with alpha above 128 are considered. An image without any
    yields a grayscale ramp with `fallback=True`. The result is fully
    deterministic for a given input.
    """
    started = time.perf_counter()
    buf = as_pixels(pixels)
    num_colors = clamp_color_count(num_colors)

    grid = buf.reshape(-1, 4)
    candidates = grid[grid[:, 3] > OPACITY_THRESHOLD, :3].astype(np.int64)
    if candidates.shape[0] == 0:
        logger.warning(
            "No opaque pixels found for palette generation, using grayscale ramp"
        )
        return PaletteResult(colors=grayscale_ramp(num_colors), fallback=True)

    samples = _sample_colors(candidates)
    buckets = _split_buckets(samples, num_colors)
    colors = _fit_size([_average(b) for b in buckets], num_colors)

    logger.debug(
        "Median cut: %d samples -> %d buckets in %.3f seconds",
        samples.shape[0],
        len(buckets),
        time.perf_counter() - started,
    )
    return PaletteResult(colors=colors)


def generate_palette(pixels, num_colors: float) -> list[Color]:
    """Palette colors from median_cut(), without the fallback flag."""
    return median_cut(pixels, num_colors).colors


def apply_palette(pixels, palette, strict: bool = True) -> np.ndarray:
    """Map every visible pixel to its nearest palette color.

    Fully transparent pixels become (0, 0, 0, 0); alpha is otherwise kept.
    With strict=False an unusable palette returns an unchanged copy.
    """
    buf = as_pixels(pixels)
    colors = coerce_palette(palette, strict=strict)
    if not colors:
        logger.warning("No usable palette, returning pixels unchanged")
        return buf
    probes = buf.reshape(-1, 4)[:, :3]
    return quantize_pixels(buf, probes, colors)
