"""
Raster transforms and the per-item transform queue.
"""

from .colors import is_valid_color, parse_color
from .engine import (
    apply_background,
    apply_orientation,
    clamp_crop_region,
    combine,
    crop_to_aspect,
    decode_raster,
    derive_processed,
    encode_raster,
    flip,
    is_opaque,
    rotate,
)
from .queue import TransformQueue

__all__ = [
    "TransformQueue",
    "apply_background",
    "apply_orientation",
    "clamp_crop_region",
    "combine",
    "crop_to_aspect",
    "decode_raster",
    "derive_processed",
    "encode_raster",
    "flip",
    "is_opaque",
    "is_valid_color",
    "parse_color",
    "rotate",
]
