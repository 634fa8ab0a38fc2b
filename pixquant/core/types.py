"""Shared value types and constants."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple, Union

Number = Union[int, float]

# Pixels with alpha above this take part in palette generation
OPACITY_THRESHOLD = 128

# Upper bound on colors sampled for median cut
MAX_PALETTE_SAMPLES = 65536

MIN_COLORS = 1
MAX_COLORS = 256


class Color(NamedTuple):
    r: Number
    g: Number
    b: Number


BLACK = Color(0, 0, 0)


class DitherMethod(str, Enum):
    NONE = "none"
    BAYER = "bayer"
    FLOYD_STEINBERG = "floyd-steinberg"


@dataclass(frozen=True)
class PaletteResult:
    """Palette produced by median cut.

    `fallback` is True when the image had no opaque pixels and the colors
    are the synthetic grayscale ramp instead.
    """

    colors: list[Color] = field(default_factory=list)
    fallback: bool = False

    def __len__(self) -> int:
        return len(self.colors)
