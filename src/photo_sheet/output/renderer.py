"""
Module: output.renderer

Purpose:
    The one routine that paints a page of placed photos onto a surface.
    The on-screen preview and the exported document both call
    render_page(); they differ only in surface and pixels-per-mm, so
    item positions agree exactly at every scale.

Key Functions:
    - render_page(): Paint one page onto any PageSurface
    - render_preview(): Convenience wrapper returning a Pillow image

Key Classes:
    - RenderedSlot: Where one item was drawn and whether it failed
    - PageRenderReport: Slots and per-item errors for one page

Dependencies:
    - output.surface: Drawing backends
    - transform.engine: Decoding processed rasters
    - reportlab: Embedding error types

Used By:
    - output.exporter: One call per document page
    - session.PhotoSession: Live preview
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from PIL import Image
from reportlab.pdfbase.pdfdoc import PDFError

from photo_sheet.core.errors import DecodeError, ExportItemError
from photo_sheet.core.models import LayoutSettings, PageGeometry, PhotoItem, Rect
from photo_sheet.core.units import EXPORT_DPI, mm_to_pixels, pixels_per_mm, pixels_to_mm
from photo_sheet.layout.models import Placement
from photo_sheet.transform.colors import is_valid_color
from photo_sheet.transform.engine import decode_raster

from .surface import PageSurface, RasterSurface

logger = logging.getLogger(__name__)

PAGE_COLOR = "#ffffff"
PLACEHOLDER_TEXT = "Image Error"
PLACEHOLDER_TEXT_COLOR = "#646464"
PLACEHOLDER_FONT_PT = 8
DEFAULT_PREVIEW_SCALE = 0.3

# 1pt = 25.4/72 mm
_MM_PER_POINT = 25.4 / 72.0

# Failures confined to one item: undecodable rasters, Pillow resampling and
# reportlab embedding errors.
_ITEM_FAILURES = (
    DecodeError,
    OSError,
    ValueError,
    MemoryError,
    Image.DecompressionBombError,
    PDFError,
)


@dataclass(frozen=True)
class RenderedSlot:
    """
    One item drawn on a page.

    Attributes:
        item_id: Id of the drawn item
        rect_px: Item rectangle in surface pixels
        failed: True if a placeholder was drawn instead of the photo
    """

    item_id: str
    rect_px: Rect
    failed: bool = False


@dataclass(frozen=True)
class PageRenderReport:
    page_index: int
    slots: Tuple[RenderedSlot, ...]
    errors: Tuple[ExportItemError, ...]

    @property
    def failed_item_ids(self) -> List[str]:
        return [error.item_id for error in self.errors]


def render_page(
    surface: PageSurface,
    items: Sequence[PhotoItem],
    placements: Sequence[Optional[Placement]],
    settings: LayoutSettings,
    px_per_mm: float,
    page_index: int = 0,
) -> PageRenderReport:
    """
    Paint the items placed on `page_index` onto `surface`.

    Items are drawn in list order. Each draws its processed raster at
    its placement scaled to its target size; an item whose raster
    cannot be decoded gets a background-coloured placeholder with an
    "Image Error" label instead, and rendering continues. The outline,
    if enabled, is stroked last, inset by half its width.

    Args:
        surface: Surface to paint on (already sized for the page).
        items: Items in list order.
        placements: Resolved placement per item (None = not placed).
        settings: Layout settings snapshot.
        px_per_mm: Surface pixels per millimetre.
        page_index: Page to render.

    Returns:
        PageRenderReport with one slot per drawn item.
    """
    if len(items) != len(placements):
        raise ValueError(f"{len(items)} items but {len(placements)} placements")

    surface.fill(PAGE_COLOR)
    outline_px = pixels_to_mm(settings.outline_width_px, EXPORT_DPI) * px_per_mm

    slots: List[RenderedSlot] = []
    errors: List[ExportItemError] = []

    for item, placement in zip(items, placements):
        if placement is None or placement.page_index != page_index:
            continue

        rect = placement.rect(item.target_width_mm, item.target_height_mm).scaled(px_per_mm)
        failed = False
        try:
            image = decode_raster(item.processed_image)
            surface.draw_image(image, rect)
        except _ITEM_FAILURES as e:
            logger.warning(f"Item {item.id} could not be drawn on page {page_index + 1}: {e}")
            errors.append(ExportItemError(item.id, page_index, str(e)))
            _draw_placeholder(surface, item, rect, px_per_mm)
            failed = True

        if outline_px > 0:
            surface.stroke_rect(rect.inset(outline_px / 2), settings.outline_color, outline_px)

        slots.append(RenderedSlot(item.id, rect, failed))

    logger.debug(f"Rendered page {page_index + 1}: {len(slots)} items, {len(errors)} failed")
    return PageRenderReport(page_index, tuple(slots), tuple(errors))


def render_preview(
    items: Sequence[PhotoItem],
    placements: Sequence[Optional[Placement]],
    settings: LayoutSettings,
    *,
    page_index: int = 0,
    scale: float = DEFAULT_PREVIEW_SCALE,
    geometry: Optional[PageGeometry] = None,
) -> Tuple[Image.Image, PageRenderReport]:
    """
    Render one page to a Pillow image at `scale` of export resolution.

    Args:
        scale: Fraction of 300-DPI page pixels (0.3 gives 744x1052 for A4).

    Returns:
        (image, report) tuple.
    """
    if scale <= 0:
        raise ValueError(f"scale must be positive: {scale}")
    geometry = geometry or PageGeometry()
    width_px = int(round(mm_to_pixels(geometry.width_mm, geometry.dpi) * scale))
    height_px = int(round(mm_to_pixels(geometry.height_mm, geometry.dpi) * scale))
    surface = RasterSurface(width_px, height_px)
    report = render_page(
        surface,
        items,
        placements,
        settings,
        geometry.preview_scale(width_px),
        page_index,
    )
    return surface.image, report


def _draw_placeholder(surface: PageSurface, item: PhotoItem, rect: Rect, scale: float) -> None:
    """Background-coloured tile with a centred error label."""
    color = item.background_color if is_valid_color(item.background_color) else PAGE_COLOR
    surface.fill_rect(rect, color)
    surface.draw_text_centered(
        PLACEHOLDER_TEXT,
        rect.center_x,
        rect.center_y,
        PLACEHOLDER_TEXT_COLOR,
        PLACEHOLDER_FONT_PT * _MM_PER_POINT * scale,
    )


def export_pixels_per_mm(geometry: PageGeometry) -> float:
    return pixels_per_mm(geometry.dpi)
