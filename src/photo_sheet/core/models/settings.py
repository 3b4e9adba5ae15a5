"""
Module: core.models.settings

Purpose:
    LayoutSettings - the single explicit settings value threaded into
    the packer, the arrangement commands and the renderer. Replaced,
    never mutated, so an export can snapshot it by reference.

Key Classes:
    - Alignment: Manual align commands
    - Distribution: Manual distribute commands
    - LayoutSettings: Gap, outline and arrangement hints
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum

from photo_sheet.core.errors import InvalidDimensionError


class Alignment(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"
    TOP = "top"

    def __str__(self) -> str:
        return self.value


class Distribution(str, Enum):
    HORIZONTAL_TOP = "horizontal-top"
    HORIZONTAL_CENTER = "horizontal-center"
    HORIZONTAL_BOTTOM = "horizontal-bottom"
    VERTICAL_CENTER = "vertical-center"

    def __str__(self) -> str:
        return self.value

    @property
    def is_horizontal(self) -> bool:
        return self is not Distribution.VERTICAL_CENTER


@dataclass(frozen=True, slots=True)
class LayoutSettings:
    """
    Layout settings for one session (immutable).

    Attributes:
        gap_mm: Space between items and from page edges (>= 0)
        outline_color: Colour of the border drawn over each item
        outline_width_px: Border width in 300-DPI pixels (>= 0, 0 disables)
        alignment: Last chosen align command
        distribution: Last chosen distribute command

    Example:
        >>> settings = LayoutSettings().with_updates(gap_mm=2)
        >>> settings.gap_mm
        2
    """

    gap_mm: float = 1.0
    outline_color: str = "#000000"
    outline_width_px: float = 1.0
    alignment: Alignment = Alignment.LEFT
    distribution: Distribution = Distribution.HORIZONTAL_TOP

    def __post_init__(self) -> None:
        """Validate settings on construction."""
        if self.gap_mm < 0:
            raise InvalidDimensionError(f"gap_mm must be >= 0: {self.gap_mm}")
        if self.outline_width_px < 0:
            raise InvalidDimensionError(
                f"outline_width_px must be >= 0: {self.outline_width_px}"
            )
        if not self.outline_color:
            raise ValueError("outline_color must be non-empty")

    def with_updates(self, **changes) -> LayoutSettings:
        """Return new settings with `changes` applied."""
        return dataclasses.replace(self, **changes)
