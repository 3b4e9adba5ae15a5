"""
Module: output.exporter

Purpose:
    Produce the print-ready multi-page PDF. The item list and settings
    are snapshotted when an export starts, packed once, and every page
    is painted through the shared page renderer onto a 300-DPI PDF
    surface. Items that fail to embed get a placeholder and are listed
    in the result; they never abort the document.

Key Functions:
    - export_document(): Write a timestamped PDF file
    - render_document_bytes(): Build the PDF in memory (print path)
    - build_output_path(): Timestamped, collision-free file name

Key Classes:
    - ExportConfig: Output directory, prefix and page geometry
    - ExportResult: Summary of one export

Dependencies:
    - reportlab: PDF generation
    - output.renderer: Shared page rendering
    - layout: Packing and position overrides

Used By:
    - session.PhotoSession: export() / print_document()
"""

from __future__ import annotations

import io
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, List, Optional, Sequence, Tuple, Union

from reportlab.pdfgen import canvas

from photo_sheet.core.errors import ExportError, ExportItemError
from photo_sheet.core.models import LayoutSettings, PageGeometry, PhotoItem
from photo_sheet.core.units import mm_to_pixels, mm_to_points
from photo_sheet.layout.arrange import resolve_placements
from photo_sheet.layout.packer import pack_items

from .renderer import export_pixels_per_mm, render_page
from .surface import PdfSurface

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "photo-sheet"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S"
DOCUMENT_TITLE = "Photo Sheet"


@dataclass(frozen=True)
class ExportConfig:
    """
    Configuration for writing an exported document (immutable).

    Attributes:
        output_dir: Directory the PDF is written to
        filename_prefix: File name prefix before the timestamp
        geometry: Page size and export resolution
    """

    output_dir: Path = field(default_factory=Path.cwd)
    filename_prefix: str = DEFAULT_PREFIX
    geometry: PageGeometry = field(default_factory=PageGeometry)

    def __post_init__(self) -> None:
        """Validate config on construction."""
        object.__setattr__(self, "output_dir", Path(self.output_dir))
        if not self.filename_prefix:
            raise ValueError("filename_prefix must be non-empty")
        if any(sep in self.filename_prefix for sep in ("/", "\\", ":")):
            raise ValueError(f"filename_prefix must be a plain name: {self.filename_prefix!r}")


@dataclass(frozen=True)
class ExportResult:
    """
    Summary of one export.

    Attributes:
        path: Written file, or None for in-memory renders
        page_count: Pages in the document
        item_count: Items drawn (photos and placeholders)
        errors: Per-item embed failures
        unplaceable_item_ids: Items too large for the page, left out
        duration_seconds: Wall time of the export
    """

    path: Optional[Path]
    page_count: int
    item_count: int
    errors: Tuple[ExportItemError, ...] = ()
    unplaceable_item_ids: Tuple[str, ...] = ()
    duration_seconds: float = 0.0

    @property
    def failed_item_ids(self) -> List[str]:
        return [error.item_id for error in self.errors]

    @property
    def has_errors(self) -> bool:
        return bool(self.errors) or bool(self.unplaceable_item_ids)

    def summary(self) -> str:
        """One-line human readable summary."""
        text = f"{self.page_count} page(s), {self.item_count} photo(s)"
        if self.errors:
            text += f", {len(self.errors)} failed: {', '.join(self.failed_item_ids)}"
        if self.unplaceable_item_ids:
            text += f", {len(self.unplaceable_item_ids)} too large for the page"
        return text


def export_document(
    items: Sequence[PhotoItem],
    settings: LayoutSettings,
    config: Optional[ExportConfig] = None,
    *,
    now: Optional[datetime] = None,
) -> ExportResult:
    """
    Export `items` to a timestamped PDF in `config.output_dir`.

    Args:
        items: Items in list order (snapshotted on entry).
        settings: Layout settings snapshot.
        config: Output configuration. Defaults to the working directory.
        now: Timestamp for the file name (defaults to the current time).

    Returns:
        ExportResult with the written path and per-item errors.

    Raises:
        ExportError: If there is nothing to export or the file cannot
            be written.

    Example:
        >>> result = export_document(session.items, session.settings)
        >>> result.path.name
        'photo-sheet-2025-01-16T10-30-45.pdf'
    """
    config = config or ExportConfig()
    path = build_output_path(config, now=now)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("wb") as handle:
            written = _write_document(handle, tuple(items), settings, config.geometry)
    except OSError as e:
        path.unlink(missing_ok=True)
        raise ExportError(f"Could not write {path}: {e}") from e
    except Exception:
        # no partial document is left behind
        path.unlink(missing_ok=True)
        raise

    result = ExportResult(
        path=path,
        page_count=written.page_count,
        item_count=written.item_count,
        errors=written.errors,
        unplaceable_item_ids=written.unplaceable_item_ids,
        duration_seconds=written.duration_seconds,
    )
    logger.info(f"Exported {path.name}: {result.summary()} in {result.duration_seconds:.2f}s")
    return result


def render_document_bytes(
    items: Sequence[PhotoItem],
    settings: LayoutSettings,
    geometry: Optional[PageGeometry] = None,
) -> Tuple[bytes, ExportResult]:
    """
    Build the document in memory.

    Returns:
        (pdf_bytes, result) tuple; result.path is None.

    Raises:
        ExportError: If there is nothing to export.
    """
    buffer = io.BytesIO()
    result = _write_document(buffer, tuple(items), settings, geometry or PageGeometry())
    return buffer.getvalue(), result


def build_output_path(config: ExportConfig, now: Optional[datetime] = None) -> Path:
    """
    File path `<prefix>-<timestamp>.pdf`, suffixed `(n)` if taken.

    Example:
        >>> build_output_path(ExportConfig(Path("out")), datetime(2025, 1, 16, 10, 30, 45))
        PosixPath('out/photo-sheet-2025-01-16T10-30-45.pdf')
    """
    timestamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    stem = f"{config.filename_prefix}-{timestamp}"
    path = config.output_dir / f"{stem}.pdf"
    if path.exists():
        counter = 1
        while (config.output_dir / f"{stem}({counter}).pdf").exists():
            counter += 1
        path = config.output_dir / f"{stem}({counter}).pdf"
    return path


def _write_document(
    target: Union[BinaryIO, io.BytesIO],
    items: Tuple[PhotoItem, ...],
    settings: LayoutSettings,
    geometry: PageGeometry,
) -> ExportResult:
    """Pack and render `items` into a PDF written to `target`."""
    start_time = time.perf_counter()
    if not items:
        raise ExportError("No photos to export")

    packed = pack_items(items, settings, geometry)
    if packed.page_count == 0:
        raise ExportError("No photo fits on the page; reduce photo sizes or the gap")
    placements = resolve_placements(items, packed)
    unplaceable = tuple(entry.item_id for entry in packed.unplaceable)

    page_w_px = mm_to_pixels(geometry.width_mm, geometry.dpi)
    page_h_px = mm_to_pixels(geometry.height_mm, geometry.dpi)
    page_size_pt = (mm_to_points(geometry.width_mm), mm_to_points(geometry.height_mm))
    pdf = canvas.Canvas(target, pagesize=page_size_pt)
    pdf.setTitle(DOCUMENT_TITLE)
    pdf.setCreator("photo-sheet-builder")

    px_per_mm = export_pixels_per_mm(geometry)
    errors: List[ExportItemError] = []
    drawn = 0
    for page_index in range(packed.page_count):
        surface = PdfSurface(pdf, page_w_px, page_h_px, geometry.dpi)
        report = render_page(surface, items, placements, settings, px_per_mm, page_index)
        errors.extend(report.errors)
        drawn += len(report.slots)
        pdf.showPage()
    pdf.save()

    duration = time.perf_counter() - start_time
    if errors:
        logger.warning(f"{len(errors)} item(s) replaced by placeholders: {[e.item_id for e in errors]}")
    return ExportResult(
        path=None,
        page_count=packed.page_count,
        item_count=drawn,
        errors=tuple(errors),
        unplaceable_item_ids=unplaceable,
        duration_seconds=duration,
    )
