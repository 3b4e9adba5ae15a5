"""
Module: output.document

Purpose:
    Read back a rendered PDF document: page count and page rasters for
    the print preview, so what the user previews before printing is the
    exact document that will be sent to the printer.

Key Functions:
    - document_page_count(): Pages in a PDF
    - rasterize_page(): Render one PDF page to a Pillow image

Dependencies:
    - fitz (PyMuPDF): PDF rendering
    - PIL.Image: Image handling

Used By:
    - session.PhotoSession: print_preview()
"""

from __future__ import annotations

import logging

import fitz
from PIL import Image

from photo_sheet.core.errors import ExportError

logger = logging.getLogger(__name__)

DEFAULT_PREVIEW_DPI = 72


def document_page_count(pdf_bytes: bytes) -> int:
    """Number of pages in `pdf_bytes`."""
    with _open(pdf_bytes) as doc:
        return doc.page_count


def rasterize_page(pdf_bytes: bytes, page_index: int = 0, dpi: int = DEFAULT_PREVIEW_DPI) -> Image.Image:
    """
    Render page `page_index` of a PDF to an RGB image.

    Args:
        pdf_bytes: Encoded PDF document.
        page_index: Page to render (0-indexed).
        dpi: Resolution for rendering. Defaults to 72.

    Returns:
        RGB image of the page.

    Raises:
        ExportError: If the document cannot be read.
        IndexError: If `page_index` is out of range.

    Example:
        >>> rasterize_page(pdf_bytes, 0, dpi=72).size
        (595, 842)
    """
    if dpi <= 0:
        raise ValueError(f"dpi must be positive: {dpi}")
    with _open(pdf_bytes) as doc:
        if not 0 <= page_index < doc.page_count:
            raise IndexError(f"Page {page_index} out of range (document has {doc.page_count})")
        matrix = fitz.Matrix(dpi / 72.0, dpi / 72.0)
        pix = doc[page_index].get_pixmap(matrix=matrix, alpha=False)
        image = Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
    logger.debug(f"Rasterized page {page_index + 1} at {dpi} DPI -> {image.size}")
    return image


def _open(pdf_bytes: bytes) -> fitz.Document:
    try:
        return fitz.open(stream=pdf_bytes, filetype="pdf")
    except (RuntimeError, ValueError) as e:
        raise ExportError(f"Could not read PDF document: {e}") from e
