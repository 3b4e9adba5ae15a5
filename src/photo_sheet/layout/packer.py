"""
Module: layout.packer

Purpose:
    Place rectangular items onto fixed-size pages, row-major, with a
    uniform gap between items and from the page edges.

Key Functions:
    - pack_sizes(): Pack an ordered list of (width, height) sizes
    - pack_items(): Pack PhotoItems using their target sizes
    - photos_per_page(): Uniform-size capacity estimate (advisory)

Algorithm:
    Single-pass shelf packing:
    1. Cursor starts at (gap, gap) with an empty row
    2. If the item overruns the right edge, wrap to a new row
    3. If the item overruns the bottom edge, start a new page
    4. Place, advance x, grow the row height

    Items larger than the printable area are flagged, never placed,
    and do not move the cursor.

Dependencies:
    - layout.models: Placement, PackedItem, PackResult
    - core.models.PageGeometry

Used By:
    - session.PhotoSession: Preview pagination
    - output.exporter: Document pages
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence, Tuple

from photo_sheet.core.errors import InvalidDimensionError
from photo_sheet.core.models import LayoutSettings, PageGeometry, PhotoItem

from .models import PackedItem, PackResult, Placement

logger = logging.getLogger(__name__)


def pack_sizes(
    sizes: Sequence[Tuple[float, float]],
    gap_mm: float,
    geometry: Optional[PageGeometry] = None,
    *,
    item_ids: Optional[Sequence[str]] = None,
) -> PackResult:
    """
    Pack items of the given sizes onto pages.

    Output depends only on the arguments; calling twice with the same
    input gives identical placements.

    Args:
        sizes: Ordered (width_mm, height_mm) per item.
        gap_mm: Gap between items and from page edges (>= 0).
        geometry: Page geometry. Defaults to A4 at 300 DPI.
        item_ids: Optional ids carried through to the result.

    Returns:
        PackResult with one PackedItem per input size.

    Raises:
        InvalidDimensionError: If any size is not positive or gap < 0.

    Example:
        >>> result = pack_sizes([(40, 50)] * 25, 2)
        >>> result.page_count
        2
    """
    geometry = geometry or PageGeometry()
    if gap_mm < 0:
        raise InvalidDimensionError(f"gap_mm must be >= 0: {gap_mm}")
    if item_ids is not None and len(item_ids) != len(sizes):
        raise ValueError(f"Got {len(item_ids)} ids for {len(sizes)} sizes")

    page_w = geometry.width_mm
    page_h = geometry.height_mm
    max_w = page_w - 2 * gap_mm
    max_h = page_h - 2 * gap_mm

    packed: List[PackedItem] = []
    x = gap_mm
    y = gap_mm
    row_height = 0.0
    page_index = 0

    for index, (width, height) in enumerate(sizes):
        if width <= 0 or height <= 0:
            raise InvalidDimensionError(
                f"Item {index} has non-positive size: {width}x{height}mm"
            )
        item_id = item_ids[index] if item_ids is not None else None

        if width > max_w or height > max_h:
            logger.warning(
                f"Item {index} ({width}x{height}mm) exceeds printable area "
                f"{max_w}x{max_h}mm; not placed"
            )
            packed.append(PackedItem(index, item_id, width, height, None))
            continue

        if x + width > page_w - gap_mm:
            x = gap_mm
            y += row_height + gap_mm
            row_height = 0.0

        if y + height > page_h - gap_mm:
            page_index += 1
            x = gap_mm
            y = gap_mm
            row_height = 0.0

        packed.append(PackedItem(index, item_id, width, height, Placement(x, y, page_index)))
        x += width + gap_mm
        row_height = max(row_height, height)

    result = PackResult(items=tuple(packed), geometry=geometry, gap_mm=gap_mm)
    logger.debug(f"Packed {len(sizes)} items onto {result.page_count} pages (gap={gap_mm}mm)")
    return result


def pack_items(
    items: Sequence[PhotoItem],
    settings: LayoutSettings,
    geometry: Optional[PageGeometry] = None,
) -> PackResult:
    """Pack photo items by target size using the settings' gap."""
    return pack_sizes(
        [item.target_size.as_tuple() for item in items],
        settings.gap_mm,
        geometry,
        item_ids=[item.id for item in items],
    )


def photos_per_page(
    width_mm: float,
    height_mm: float,
    gap_mm: float,
    geometry: Optional[PageGeometry] = None,
) -> int:
    """
    Estimate how many items of one size fit on a page.

    Advisory only (for page-count displays); pack_sizes() decides the
    real layout.

    Example:
        >>> photos_per_page(40, 50, 2)
        20
    """
    geometry = geometry or PageGeometry()
    if width_mm <= 0 or height_mm <= 0:
        raise InvalidDimensionError(f"Size must be positive: {width_mm}x{height_mm}mm")
    if gap_mm < 0:
        raise InvalidDimensionError(f"gap_mm must be >= 0: {gap_mm}")
    per_row = math.floor((geometry.width_mm - gap_mm) / (width_mm + gap_mm))
    per_column = math.floor((geometry.height_mm - gap_mm) / (height_mm + gap_mm))
    return max(0, per_row) * max(0, per_column)


def estimated_page_count(item_count: int, per_page: int) -> int:
    """Pages needed for `item_count` uniform items (0 if none fit)."""
    if item_count <= 0 or per_page <= 0:
        return 0
    return math.ceil(item_count / per_page)
