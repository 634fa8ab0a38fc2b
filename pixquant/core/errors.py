"""Exceptions raised for invalid palettes and pixel buffers."""

from __future__ import annotations


class PixquantError(ValueError):
    """Base class for all pixquant input errors."""


class InvalidPaletteError(PixquantError):
    """Palette is missing, empty, or holds an entry that is not an RGB triple."""


class PixelBufferError(PixquantError):
    """Pixel buffer length does not fit the RGBA layout or the given size."""
