"""
Module: core.units

Purpose:
    Physical unit conversion between millimetres, inches, PDF points and
    device pixels at a given resolution. Pure arithmetic: callers reject
    zero or negative sizes before reaching this module.

Key Functions:
    - mm_to_pixels() / pixels_to_mm(): Exact inverses at a given DPI
    - mm_to_inches() / inches_to_mm()
    - mm_to_points() / px_to_points()
    - pixels_per_mm(): Scale factor for a DPI
    - display_round(): 2-decimal rounding for display only

Used By:
    - core.models, layout.packer, output.renderer, output.surface
"""

from __future__ import annotations

import math

MM_PER_INCH = 25.4
POINTS_PER_INCH = 72.0
EXPORT_DPI = 300


def mm_to_pixels(mm: float, dpi: float = EXPORT_DPI) -> float:
    """
    Convert millimetres to pixels at `dpi`.

    Full precision is kept; round only for display or when
    allocating a raster.

    Example:
        >>> mm_to_pixels(25.4, 300)
        300.0
    """
    return mm * dpi / MM_PER_INCH


def pixels_to_mm(pixels: float, dpi: float = EXPORT_DPI) -> float:
    """Convert pixels at `dpi` back to millimetres (inverse of mm_to_pixels)."""
    return pixels * MM_PER_INCH / dpi


def mm_to_inches(mm: float) -> float:
    return mm / MM_PER_INCH


def inches_to_mm(inches: float) -> float:
    return inches * MM_PER_INCH


def mm_to_points(mm: float) -> float:
    """Convert millimetres to PDF points (1/72 inch)."""
    return mm * POINTS_PER_INCH / MM_PER_INCH


def px_to_points(px: float, dpi: float = EXPORT_DPI) -> float:
    """
    Convert pixels to PDF points.

    PDF points are 1/72 inch.
    """
    return px * POINTS_PER_INCH / dpi


def pixels_per_mm(dpi: float = EXPORT_DPI) -> float:
    """Device pixels per millimetre at `dpi` (11.811... at 300 DPI)."""
    return dpi / MM_PER_INCH


def display_round(value: float) -> float:
    """Round to 2 decimal places for display."""
    return math.floor(value * 100 + 0.5) / 100
