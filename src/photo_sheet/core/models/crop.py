"""
Module: core.models.crop

Purpose:
    Provides the CropRegion dataclass - a sub-rectangle of a photo's
    source raster, in source pixel space. The region used when the
    processed raster is re-derived.

Key Functions:
    - CropRegion.full(width, height): Region covering a whole image
    - CropRegion.as_box(): Integer (left, top, right, bottom) for PIL
    - CropRegion.aspect_ratio: width / height
    - CropRegion.to_dict() / from_dict()

Used By:
    - core.models.photo.PhotoItem
    - transform.engine: crop_to_aspect / clamp_crop_region
"""

from __future__ import annotations

from dataclasses import dataclass

from photo_sheet.core.errors import InvalidDimensionError


@dataclass(frozen=True, slots=True)
class CropRegion:
    """
    Crop rectangle in source pixel coordinates.

    Coordinates are floats so an interactive crop can move by
    sub-pixel amounts; `as_box()` rounds to whole pixels.

    Attributes:
        x: Left edge (>= 0)
        y: Top edge (>= 0)
        width: Region width (> 0)
        height: Region height (> 0)

    Example:
        >>> region = CropRegion(10, 20, 400, 500)
        >>> region.as_box()
        (10, 20, 410, 520)
    """

    x: float
    y: float
    width: float
    height: float

    def __post_init__(self) -> None:
        """Validate region on construction."""
        if self.x < 0:
            raise ValueError(f"x must be >= 0: {self.x}")
        if self.y < 0:
            raise ValueError(f"y must be >= 0: {self.y}")
        if self.width <= 0 or self.height <= 0:
            raise InvalidDimensionError(
                f"Crop size must be positive: {self.width}x{self.height}"
            )

    @classmethod
    def full(cls, width: int, height: int) -> CropRegion:
        """Region covering an entire `width` x `height` image."""
        return cls(0, 0, width, height)

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def covers(self, width: int, height: int) -> bool:
        """True if this region is exactly the full `width` x `height` image."""
        return self.as_box() == (0, 0, width, height)

    def as_box(self) -> tuple[int, int, int, int]:
        """
        Get as (left, top, right, bottom) integer tuple for PIL.

        Always at least one pixel wide and tall.
        """
        left = int(round(self.x))
        top = int(round(self.y))
        right = max(left + 1, int(round(self.x + self.width)))
        bottom = max(top + 1, int(round(self.y + self.height)))
        return (left, top, right, bottom)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: dict) -> CropRegion:
        return cls(
            x=data["x"],
            y=data["y"],
            width=data["width"],
            height=data["height"],
        )
