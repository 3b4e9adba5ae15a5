"""
Module: layout.arrange

Purpose:
    Manual arrangement of selected items (align and distribute) and the
    single routine that merges manual position overrides into packed
    placements. Arrangement never touches the packer: it only writes
    PositionOverride values, and resolve_placements() applies them for
    both the preview and the exported document.

Key Functions:
    - resolve_placements(): Packed placements with overrides applied
    - align(): New overrides aligning selected items
    - distribute(): New overrides spacing selected items evenly

Used By:
    - session.PhotoSession: align_selected / distribute_selected
    - output.renderer / output.exporter: Final item positions
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from photo_sheet.core.models import (
    Alignment,
    Distribution,
    PhotoItem,
    PositionOverride,
    Rect,
)

from .models import PackResult, Placement

logger = logging.getLogger(__name__)

MIN_ALIGN_SELECTION = 2
MIN_DISTRIBUTE_SELECTION = 3


def resolve_placements(
    items: Sequence[PhotoItem],
    packed: PackResult,
) -> List[Optional[Placement]]:
    """
    Final placement for each item, in item order.

    An item with a position override keeps its packed page but moves to
    the override coordinates. Unplaceable items stay None.
    """
    if len(items) != len(packed.items):
        raise ValueError(f"{len(items)} items but {len(packed.items)} packed entries")

    resolved: List[Optional[Placement]] = []
    for item, entry in zip(items, packed.items):
        placement = entry.placement
        if placement is not None and item.position is not None:
            placement = Placement(item.position.x_mm, item.position.y_mm, placement.page_index)
        resolved.append(placement)
    return resolved


def align(
    items: Sequence[PhotoItem],
    placements: Sequence[Optional[Placement]],
    selected_ids: Sequence[str],
    alignment: Alignment,
) -> Dict[str, PositionOverride]:
    """
    Align the selected items to a shared edge or centre line.

    Args:
        items: All items in list order.
        placements: Resolved placements matching `items`.
        selected_ids: Ids of the items to align.
        alignment: LEFT, CENTER, RIGHT (x) or TOP (y).

    Returns:
        Overrides keyed by item id; empty if fewer than two selected
        items have a placement.
    """
    rects = _selected_rects(items, placements, selected_ids)
    if len(rects) < MIN_ALIGN_SELECTION:
        return {}

    bounds = Rect.union(list(rects.values()))
    overrides: Dict[str, PositionOverride] = {}
    for item_id, rect in rects.items():
        x, y = rect.x, rect.y
        if alignment is Alignment.LEFT:
            x = bounds.x
        elif alignment is Alignment.RIGHT:
            x = bounds.right - rect.width
        elif alignment is Alignment.CENTER:
            x = bounds.center_x - rect.width / 2
        elif alignment is Alignment.TOP:
            y = bounds.y
        else:
            raise ValueError(f"Unknown alignment: {alignment}")
        overrides[item_id] = PositionOverride(x, y)

    logger.debug(f"Aligned {len(overrides)} items {alignment}")
    return overrides


def distribute(
    items: Sequence[PhotoItem],
    placements: Sequence[Optional[Placement]],
    selected_ids: Sequence[str],
    distribution: Distribution,
) -> Dict[str, PositionOverride]:
    """
    Space the selected items evenly between the outermost two.

    Horizontal modes order items by x and step their left edges evenly
    from the leftmost to the rightmost, lining them up along the top,
    centre or bottom of the selection. VERTICAL_CENTER does the same
    along y and centres the items horizontally.

    Returns:
        Overrides keyed by item id; empty if fewer than three selected
        items have a placement.
    """
    rects = _selected_rects(items, placements, selected_ids)
    if len(rects) < MIN_DISTRIBUTE_SELECTION:
        return {}

    bounds = Rect.union(list(rects.values()))
    overrides: Dict[str, PositionOverride] = {}

    if distribution.is_horizontal:
        ordered = sorted(rects.items(), key=lambda pair: pair[1].x)
        first = ordered[0][1].x
        step = (ordered[-1][1].x - first) / (len(ordered) - 1)
        for i, (item_id, rect) in enumerate(ordered):
            if distribution is Distribution.HORIZONTAL_TOP:
                y = bounds.y
            elif distribution is Distribution.HORIZONTAL_CENTER:
                y = bounds.center_y - rect.height / 2
            else:
                y = bounds.bottom - rect.height
            overrides[item_id] = PositionOverride(first + step * i, y)
    else:
        ordered = sorted(rects.items(), key=lambda pair: pair[1].y)
        first = ordered[0][1].y
        step = (ordered[-1][1].y - first) / (len(ordered) - 1)
        for i, (item_id, rect) in enumerate(ordered):
            overrides[item_id] = PositionOverride(
                bounds.center_x - rect.width / 2, first + step * i
            )

    logger.debug(f"Distributed {len(overrides)} items {distribution}")
    return overrides


def _selected_rects(
    items: Sequence[PhotoItem],
    placements: Sequence[Optional[Placement]],
    selected_ids: Sequence[str],
) -> Dict[str, Rect]:
    """Rects of selected, placed items, in item order."""
    wanted = set(selected_ids)
    rects: Dict[str, Rect] = {}
    for item, placement in zip(items, placements):
        if item.id in wanted and placement is not None:
            rects[item.id] = placement.rect(item.target_width_mm, item.target_height_mm)
    return rects
