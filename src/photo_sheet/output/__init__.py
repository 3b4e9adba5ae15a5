"""
Shared page renderer, drawing surfaces and PDF export.
"""

from .document import document_page_count, rasterize_page
from .exporter import (
    ExportConfig,
    ExportResult,
    build_output_path,
    export_document,
    render_document_bytes,
)
from .renderer import PageRenderReport, RenderedSlot, render_page, render_preview
from .surface import PageSurface, PdfSurface, RasterSurface

__all__ = [
    "ExportConfig",
    "ExportResult",
    "PageRenderReport",
    "PageSurface",
    "PdfSurface",
    "RasterSurface",
    "RenderedSlot",
    "build_output_path",
    "document_page_count",
    "export_document",
    "rasterize_page",
    "render_document_bytes",
    "render_page",
    "render_preview",
]
