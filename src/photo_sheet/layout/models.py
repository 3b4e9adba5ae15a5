"""
Module: layout.models

Purpose:
    Data models for sheet packing. Immutable dataclasses describing
    where each item lands and how items group into pages.

Key Classes:
    - Placement: Top-left position (mm) and page index of one item
    - PackedItem: One input item with its placement (or None)
    - PagePlan: Items placed on a single page
    - PackResult: Final packing output

Used By:
    - layout.packer: Creates PackResults
    - layout.arrange: Resolves position overrides
    - output.renderer / output.exporter: Draws pages
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from photo_sheet.core.errors import UnplaceableItemError
from photo_sheet.core.models import PageGeometry, Rect


@dataclass(frozen=True, slots=True)
class Placement:
    """
    Item position on a page.

    Attributes:
        x_mm: Left edge from the page origin
        y_mm: Top edge from the page origin
        page_index: Page number (0-indexed)
    """

    x_mm: float
    y_mm: float
    page_index: int

    def rect(self, width_mm: float, height_mm: float) -> Rect:
        return Rect(self.x_mm, self.y_mm, width_mm, height_mm)


@dataclass(frozen=True, slots=True)
class PackedItem:
    """
    One packer input with its outcome.

    Attributes:
        index: Position in the input list
        item_id: Id of the photo item (None when packing bare sizes)
        width_mm: Packed width
        height_mm: Packed height
        placement: Where the item landed, or None if it can never fit
    """

    index: int
    item_id: Optional[str]
    width_mm: float
    height_mm: float
    placement: Optional[Placement]

    @property
    def is_placeable(self) -> bool:
        return self.placement is not None

    @property
    def rect(self) -> Optional[Rect]:
        if self.placement is None:
            return None
        return self.placement.rect(self.width_mm, self.height_mm)


@dataclass(frozen=True)
class PagePlan:
    """
    Items placed on a single page, in input order.

    Example:
        >>> page = PagePlan(index=0, items=(a, b))
        >>> page.placement_count
        2
    """

    index: int
    items: Tuple[PackedItem, ...]

    @property
    def placement_count(self) -> int:
        return len(self.items)

    @property
    def is_empty(self) -> bool:
        return len(self.items) == 0


@dataclass(frozen=True)
class PackResult:
    """
    Complete packing output.

    Attributes:
        items: One PackedItem per input, in input order
        geometry: Page geometry packed against
        gap_mm: Gap used between items and page edges
    """

    items: Tuple[PackedItem, ...]
    geometry: PageGeometry
    gap_mm: float

    @property
    def placements(self) -> List[Optional[Placement]]:
        return [item.placement for item in self.items]

    @property
    def page_count(self) -> int:
        """max(page_index) + 1, or 0 when nothing was placed."""
        indices = [item.placement.page_index for item in self.items if item.placement is not None]
        return max(indices) + 1 if indices else 0

    @property
    def pages(self) -> Tuple[PagePlan, ...]:
        grouped: List[List[PackedItem]] = [[] for _ in range(self.page_count)]
        for item in self.items:
            if item.placement is not None:
                grouped[item.placement.page_index].append(item)
        return tuple(PagePlan(index=i, items=tuple(group)) for i, group in enumerate(grouped))

    @property
    def unplaceable(self) -> Tuple[PackedItem, ...]:
        return tuple(item for item in self.items if item.placement is None)

    @property
    def has_unplaceable(self) -> bool:
        return any(item.placement is None for item in self.items)

    def items_on_page(self, page_index: int) -> Tuple[PackedItem, ...]:
        return tuple(
            item
            for item in self.items
            if item.placement is not None and item.placement.page_index == page_index
        )

    def raise_for_unplaceable(self) -> None:
        """
        Reject the whole batch if any item cannot be placed.

        Raises:
            UnplaceableItemError: Listing the offending input positions.
        """
        bad = tuple(item.index for item in self.unplaceable)
        if bad:
            raise UnplaceableItemError(bad)
