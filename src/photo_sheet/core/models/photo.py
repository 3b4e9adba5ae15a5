"""
Module: core.models.photo

Purpose:
    The PhotoItem entity and its value types. A PhotoItem is one
    ingested photograph: immutable source content, a processed raster
    with every transform baked in, and the physical size it prints at.

Key Classes:
    - TargetSize: Physical print size in millimetres
    - Orientation: Cumulative rotate-then-flip orientation
    - Pending / Baked: Tagged transform state (TransformState)
    - PositionOverride: Manual position written by arrangement commands
    - PhotoItem: Immutable photo entity

Design:
    Rotation and flips live in exactly one of two places. `orientation`
    records what is already baked into `processed_image`; `transform`
    is either Baked() or Pending(...) holding requests not yet baked.
    Renderers only ever draw `processed_image`, so a pending transform
    can never be applied twice.

Used By:
    - session.PhotoSession: Owns the item list
    - transform.queue / session: Bakes pending transforms
    - layout.packer / output.renderer: Reads target size and raster
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Optional, Union

from photo_sheet.core.errors import InvalidDimensionError

from .crop import CropRegion

DEFAULT_BACKGROUND = "#ffffff"


def _normalize_degrees(degrees: float) -> float:
    """Map any angle into [0, 360), keeping ints as ints."""
    normalized = degrees % 360
    if isinstance(normalized, float) and normalized.is_integer():
        return int(normalized)
    return normalized


@dataclass(frozen=True, slots=True)
class TargetSize:
    """
    Physical print size (immutable).

    Attributes:
        width_mm: Printed width in millimetres (> 0)
        height_mm: Printed height in millimetres (> 0)
    """

    width_mm: float
    height_mm: float

    def __post_init__(self) -> None:
        if self.width_mm <= 0 or self.height_mm <= 0:
            raise InvalidDimensionError(
                f"Target size must be positive: {self.width_mm}x{self.height_mm}mm"
            )

    @property
    def aspect_ratio(self) -> float:
        return self.width_mm / self.height_mm

    def as_tuple(self) -> tuple[float, float]:
        return (self.width_mm, self.height_mm)


@dataclass(frozen=True, slots=True)
class Orientation:
    """
    Rotation (clockwise degrees) followed by optional mirror flips.

    Example:
        >>> Orientation(90).then(Orientation(90)).rotation
        180
    """

    rotation: float = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "rotation", _normalize_degrees(self.rotation))

    @property
    def is_identity(self) -> bool:
        return self.rotation == 0 and not self.flip_horizontal and not self.flip_vertical

    def then(self, delta: Orientation) -> Orientation:
        """
        Orientation equivalent to applying `self` and then `delta`.

        A single-axis mirror reverses the sense of any rotation that
        follows it, so the delta's angle is negated in that case.
        """
        mirrored = self.flip_horizontal != self.flip_vertical
        sign = -1 if mirrored else 1
        return Orientation(
            rotation=self.rotation + sign * delta.rotation,
            flip_horizontal=self.flip_horizontal != delta.flip_horizontal,
            flip_vertical=self.flip_vertical != delta.flip_vertical,
        )


@dataclass(frozen=True, slots=True)
class Pending:
    """Transform requested but not yet baked into the processed raster."""

    rotation: float = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False

    @property
    def orientation(self) -> Orientation:
        return Orientation(self.rotation, self.flip_horizontal, self.flip_vertical)

    @classmethod
    def from_orientation(cls, orientation: Orientation) -> Pending:
        return cls(orientation.rotation, orientation.flip_horizontal, orientation.flip_vertical)


@dataclass(frozen=True, slots=True)
class Baked:
    """Every requested transform is reflected in the processed raster."""


TransformState = Union[Pending, Baked]
BAKED = Baked()


@dataclass(frozen=True, slots=True)
class PositionOverride:
    """Manual top-left position on the item's page, in millimetres."""

    x_mm: float
    y_mm: float


@dataclass(frozen=True, slots=True)
class PhotoItem:
    """
    One photograph on the sheet (immutable).

    Every edit produces a new PhotoItem via `with_updates()`; rasters
    are encoded PNG bytes and are replaced, never written in place.

    Attributes:
        id: Opaque identifier, stable for the item's lifetime
        source_image: Original encoded image, never changed
        processed_image: Opaque PNG with orientation, crop and background baked in
        source_size: (width, height) of the source in pixels
        target_size: Physical print size
        background_color: Hex colour behind the photo content
        crop_region: Region of the source used for derivation
        orientation: Rotation/flips already baked into processed_image
        transform: Pending(...) or Baked()
        cutout_image: Optional transparent-background version of the source
        position: Optional manual position override
        duplicate_count: Lineage counter for duplicated items (>= 1)
    """

    id: str
    source_image: bytes
    processed_image: bytes
    source_size: tuple[int, int]
    target_size: TargetSize
    crop_region: CropRegion
    background_color: str = DEFAULT_BACKGROUND
    orientation: Orientation = Orientation()
    transform: TransformState = BAKED
    cutout_image: Optional[bytes] = None
    position: Optional[PositionOverride] = None
    duplicate_count: int = 1

    def __post_init__(self) -> None:
        """Validate item on construction."""
        if not self.id:
            raise ValueError("id must be non-empty")
        width, height = self.source_size
        if width <= 0 or height <= 0:
            raise InvalidDimensionError(f"Source size must be positive: {width}x{height}")
        if self.duplicate_count < 1:
            raise ValueError(f"duplicate_count must be >= 1: {self.duplicate_count}")

    # ─────────────────────────────────────────────────────────────────────────
    # Pending transform view
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def is_pending(self) -> bool:
        return isinstance(self.transform, Pending)

    @property
    def rotation_degrees(self) -> float:
        """Pending rotation; 0 once baked."""
        return self.transform.rotation if isinstance(self.transform, Pending) else 0

    @property
    def flip_horizontal(self) -> bool:
        return self.transform.flip_horizontal if isinstance(self.transform, Pending) else False

    @property
    def flip_vertical(self) -> bool:
        return self.transform.flip_vertical if isinstance(self.transform, Pending) else False

    # ─────────────────────────────────────────────────────────────────────────
    # Convenience
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def target_width_mm(self) -> float:
        return self.target_size.width_mm

    @property
    def target_height_mm(self) -> float:
        return self.target_size.height_mm

    @property
    def derivation_base(self) -> bytes:
        """Raster the processed image is derived from."""
        return self.cutout_image if self.cutout_image is not None else self.source_image

    def with_updates(self, **changes) -> PhotoItem:
        """Return a copy with `changes` applied (partial update)."""
        return dataclasses.replace(self, **changes)

    def __repr__(self) -> str:
        """Concise representation for debugging (omits raster bytes)."""
        return (
            f"PhotoItem(id={self.id!r}, target={self.target_size.width_mm}x"
            f"{self.target_size.height_mm}mm, transform={self.transform!r})"
        )
