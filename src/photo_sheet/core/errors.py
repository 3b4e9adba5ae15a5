"""
Module: core.errors

Purpose:
    Error taxonomy shared by the transform, packing and export layers.
    Per-item errors are recorded and reported; only structural errors
    (no geometry, nothing to export) propagate as hard failures.

Key Classes:
    - PhotoSheetError: Base class for all domain errors
    - DecodeError: Raster failed to load/parse
    - InvalidDimensionError: Non-positive width/height at a boundary
    - UnplaceableItemError: Item larger than the printable page area
    - ExportItemError: One item failed to embed during export
    - ExportError: Document-level export failure
    - BackgroundRemovalError: External background removal failed
    - ItemNotFoundError: Unknown item id

Used By:
    - transform.engine, layout.packer, output.exporter, session
"""

from __future__ import annotations

from typing import Optional


class PhotoSheetError(Exception):
    """Base class for photo sheet errors."""
    pass


class DecodeError(PhotoSheetError):
    """Raster data could not be decoded into an image."""
    pass


class InvalidDimensionError(PhotoSheetError, ValueError):
    """A width or height was zero or negative."""
    pass


class ItemNotFoundError(PhotoSheetError, KeyError):
    """No photo item with the requested id."""
    pass


class UnplaceableItemError(PhotoSheetError):
    """
    Item can never fit on a page.

    The packer flags such items instead of raising; this error is only
    raised when a caller opts into rejecting the whole batch.
    """

    def __init__(self, item_indices: tuple[int, ...], message: Optional[str] = None):
        self.item_indices = item_indices
        super().__init__(
            message or f"Items at positions {list(item_indices)} exceed the printable page area"
        )


class ExportItemError(PhotoSheetError):
    """
    A single item failed to embed during export.

    Recorded per item in the export summary; never aborts the document.

    Attributes:
        item_id: Id of the failed item
        page_index: Page the item was placed on
        reason: Short description of the underlying failure
    """

    def __init__(self, item_id: str, page_index: int, reason: str):
        self.item_id = item_id
        self.page_index = page_index
        self.reason = reason
        super().__init__(f"Item {item_id} on page {page_index + 1}: {reason}")


class ExportError(PhotoSheetError):
    """Document-level export failure (nothing to export, unwritable output)."""
    pass


class BackgroundRemovalError(PhotoSheetError):
    """External background removal failed or no credential was available."""
    pass
