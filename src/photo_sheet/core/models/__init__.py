"""
Core data model: photo items, page geometry, sizes and layout settings.
"""

from .crop import CropRegion
from .geometry import PageGeometry, Rect
from .photo import (
    BAKED,
    DEFAULT_BACKGROUND,
    Baked,
    Orientation,
    Pending,
    PhotoItem,
    PositionOverride,
    TargetSize,
    TransformState,
)
from .settings import Alignment, Distribution, LayoutSettings
from .sizes import CustomSize, DEFAULT_PRESET, SizePreset, Unit, resize_target, size_for_preset

__all__ = [
    "Alignment",
    "BAKED",
    "Baked",
    "CropRegion",
    "CustomSize",
    "DEFAULT_BACKGROUND",
    "DEFAULT_PRESET",
    "Distribution",
    "LayoutSettings",
    "Orientation",
    "PageGeometry",
    "Pending",
    "PhotoItem",
    "PositionOverride",
    "Rect",
    "SizePreset",
    "TargetSize",
    "TransformState",
    "Unit",
    "resize_target",
    "size_for_preset",
]
