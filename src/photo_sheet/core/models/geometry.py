"""
Module: core.models.geometry

Purpose:
    Page geometry and rectangle math in millimetres.

Key Classes:
    - PageGeometry: Fixed page size plus export resolution
    - Rect: Axis-aligned rectangle (x, y, width, height)

Dependencies:
    - core.units: mm/pixel conversion

Used By:
    - layout.packer: Printable area
    - layout.arrange: Selection bounding boxes
    - output.renderer / output.exporter: Page surfaces
"""

from __future__ import annotations

from dataclasses import dataclass

from photo_sheet.core.errors import InvalidDimensionError
from photo_sheet.core.units import EXPORT_DPI, mm_to_pixels

A4_WIDTH_MM = 210.0
A4_HEIGHT_MM = 297.0


@dataclass(frozen=True, slots=True)
class PageGeometry:
    """
    Fixed page dimensions (immutable).

    Attributes:
        width_mm: Page width in millimetres (default A4 210)
        height_mm: Page height in millimetres (default A4 297)
        dpi: Export resolution in dots per inch (default 300)

    Example:
        >>> PageGeometry().width_px
        2480
    """

    width_mm: float = A4_WIDTH_MM
    height_mm: float = A4_HEIGHT_MM
    dpi: int = EXPORT_DPI

    def __post_init__(self) -> None:
        """Validate geometry on construction."""
        if self.width_mm <= 0 or self.height_mm <= 0:
            raise InvalidDimensionError(
                f"Page size must be positive: {self.width_mm}x{self.height_mm}mm"
            )
        if self.dpi <= 0:
            raise InvalidDimensionError(f"dpi must be positive: {self.dpi}")

    @property
    def width_px(self) -> int:
        """Page width in export pixels."""
        return int(round(mm_to_pixels(self.width_mm, self.dpi)))

    @property
    def height_px(self) -> int:
        """Page height in export pixels."""
        return int(round(mm_to_pixels(self.height_mm, self.dpi)))

    def preview_scale(self, page_width_px: float) -> float:
        """
        Pixels per millimetre for an on-screen page `page_width_px` wide.

        Independent of the export DPI.
        """
        return page_width_px / self.width_mm


@dataclass(frozen=True, slots=True)
class Rect:
    """
    Axis-aligned rectangle, origin top-left, y growing downwards.

    Units are whatever the caller uses (mm for layout, px for surfaces).
    """

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    def scaled(self, factor: float) -> Rect:
        """Return this rectangle with every coordinate multiplied by `factor`."""
        return Rect(self.x * factor, self.y * factor, self.width * factor, self.height * factor)

    def inset(self, amount: float) -> Rect:
        """Shrink by `amount` on every side."""
        return Rect(
            self.x + amount,
            self.y + amount,
            self.width - 2 * amount,
            self.height - 2 * amount,
        )

    def moved_to(self, x: float, y: float) -> Rect:
        return Rect(x, y, self.width, self.height)

    def contains(self, other: Rect) -> bool:
        """True if `other` lies entirely within this rectangle."""
        return (
            other.x >= self.x
            and other.y >= self.y
            and other.right <= self.right
            and other.bottom <= self.bottom
        )

    def overlaps(self, other: Rect) -> bool:
        """
        Check if this rectangle shares any area with another.

        Touching edges do NOT overlap.
        """
        return not (
            self.right <= other.x
            or other.right <= self.x
            or self.bottom <= other.y
            or other.bottom <= self.y
        )

    @staticmethod
    def union(rects: list[Rect]) -> Rect:
        """Smallest rectangle containing all of `rects` (must be non-empty)."""
        if not rects:
            raise ValueError("union() requires at least one rectangle")
        left = min(r.x for r in rects)
        top = min(r.y for r in rects)
        right = max(r.right for r in rects)
        bottom = max(r.bottom for r in rects)
        return Rect(left, top, right - left, bottom - top)
