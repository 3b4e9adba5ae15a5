"""
Sheet packing and manual arrangement.
"""

from .arrange import align, distribute, resolve_placements
from .models import PackedItem, PackResult, PagePlan, Placement
from .packer import estimated_page_count, pack_items, pack_sizes, photos_per_page

__all__ = [
    "PackResult",
    "PackedItem",
    "PagePlan",
    "Placement",
    "align",
    "distribute",
    "estimated_page_count",
    "pack_items",
    "pack_sizes",
    "photos_per_page",
    "resolve_placements",
]
