"""
Module: core.models.sizes

Purpose:
    Print size presets and the aspect-locked resize calculation.
    Presets are a closed enumeration; each member carries its own
    display metadata so selectors never dispatch on icon strings.

Key Functions:
    - resize_target(): New TargetSize after editing width or height
    - size_for_preset(): TargetSize a preset gives a given source image

Key Classes:
    - Unit: Millimetres or inches
    - SizePreset: PASSPORT, STAMP, ORIGINAL
    - CustomSize: User-entered width/height in a unit

Used By:
    - session.PhotoSession: ingestion defaults, apply_size, resize
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from photo_sheet.core.errors import InvalidDimensionError
from photo_sheet.core.units import EXPORT_DPI, display_round, inches_to_mm, mm_to_inches, pixels_to_mm

from .photo import TargetSize

logger = logging.getLogger(__name__)


class Unit(str, Enum):
    """Unit a user enters sizes in."""

    MM = "mm"
    INCH = "inch"

    def __str__(self) -> str:
        return self.value

    def to_mm(self, value: float) -> float:
        return inches_to_mm(value) if self is Unit.INCH else value

    def from_mm(self, value_mm: float) -> float:
        return mm_to_inches(value_mm) if self is Unit.INCH else value_mm


@dataclass(frozen=True, slots=True)
class PresetInfo:
    """Display metadata carried by each SizePreset member."""

    label: str
    description: str
    icon: str
    width_mm: Optional[float] = None
    height_mm: Optional[float] = None


class SizePreset(Enum):
    """
    Supported size presets.

    ORIGINAL has no fixed size: it maps each image's pixel size to
    millimetres at the export resolution.
    """

    PASSPORT = PresetInfo("Passport", "Standard passport photo size", "user", 40.0, 50.0)
    STAMP = PresetInfo("Stamp", "Small stamp-sized photo", "square", 22.0, 27.0)
    ORIGINAL = PresetInfo("Original", "Original image dimensions", "image")

    @property
    def label(self) -> str:
        return self.value.label

    @property
    def description(self) -> str:
        return self.value.description

    @property
    def icon(self) -> str:
        return self.value.icon

    @property
    def is_fixed(self) -> bool:
        return self.value.width_mm is not None

    def __str__(self) -> str:
        return self.value.label


DEFAULT_PRESET = SizePreset.PASSPORT


@dataclass(frozen=True, slots=True)
class CustomSize:
    """
    User-entered size in `unit`.

    Example:
        >>> CustomSize(2, 2, Unit.INCH).to_target()
        TargetSize(width_mm=50.8, height_mm=50.8)
    """

    width: float
    height: float
    unit: Unit = Unit.MM

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise InvalidDimensionError(
                f"Custom size must be positive: {self.width}x{self.height}{self.unit}"
            )

    def to_target(self) -> TargetSize:
        return TargetSize(self.unit.to_mm(self.width), self.unit.to_mm(self.height))


def size_for_preset(preset: SizePreset, source_size: tuple[int, int]) -> TargetSize:
    """
    Target size `preset` gives an image of `source_size` pixels.

    Args:
        preset: Preset to apply.
        source_size: (width, height) of the source image in pixels.

    Returns:
        TargetSize in millimetres.
    """
    if preset.is_fixed:
        return TargetSize(preset.value.width_mm, preset.value.height_mm)
    width, height = source_size
    return TargetSize(
        display_round(pixels_to_mm(width, EXPORT_DPI)),
        display_round(pixels_to_mm(height, EXPORT_DPI)),
    )


def resize_target(
    current: TargetSize,
    *,
    width: Optional[float] = None,
    height: Optional[float] = None,
    unit: Unit = Unit.MM,
    lock_aspect: bool = True,
) -> TargetSize:
    """
    Compute the target size after the user edits one dimension.

    With `lock_aspect`, the other dimension follows the current
    aspect ratio; otherwise it is left as it was. Results are rounded
    to 2 decimal places in the unit they were entered in.

    Args:
        current: Size before the edit.
        width: New width in `unit`, or None to keep.
        height: New height in `unit`, or None to keep.
        unit: Unit `width`/`height` are expressed in.
        lock_aspect: Keep width/height ratio.

    Returns:
        New TargetSize in millimetres.

    Raises:
        InvalidDimensionError: If an edited value is not positive.

    Example:
        >>> resize_target(TargetSize(40, 50), width=80)
        TargetSize(width_mm=80, height_mm=100.0)
    """
    for value in (width, height):
        if value is not None and value <= 0:
            raise InvalidDimensionError(f"Size must be positive: {value}")

    ratio = current.aspect_ratio
    new_w_mm = current.width_mm
    new_h_mm = current.height_mm

    if width is not None:
        new_w_mm = unit.to_mm(width)
        if lock_aspect:
            new_h_mm = unit.to_mm(display_round(width / ratio))
    if height is not None:
        new_h_mm = unit.to_mm(height)
        if lock_aspect and width is None:
            new_w_mm = unit.to_mm(display_round(height * ratio))

    result = TargetSize(new_w_mm, new_h_mm)
    logger.debug(f"Resized {current.as_tuple()} -> {result.as_tuple()} (lock={lock_aspect})")
    return result
