"""
Module: output.surface

Purpose:
    Drawing surfaces the shared page renderer paints onto. Coordinates
    are always surface pixels with the origin at the top-left; each
    surface maps them onto its own backend.

Key Classes:
    - PageSurface: Abstract drawing surface
    - RasterSurface: Pillow image (on-screen preview, thumbnails)
    - PdfSurface: One page of a ReportLab canvas (exported document)

Dependencies:
    - PIL: Raster surface and image resampling
    - reportlab: PDF canvas

Used By:
    - output.renderer: render_page()
    - output.exporter: One PdfSurface per document page
"""

from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod
from typing import Tuple

from PIL import Image, ImageDraw, ImageFont
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from photo_sheet.core.models import Rect
from photo_sheet.core.units import EXPORT_DPI, px_to_points
from photo_sheet.transform.colors import parse_color

logger = logging.getLogger(__name__)

PDF_FONT = "Helvetica"


class PageSurface(ABC):
    """
    Abstract page surface.

    Strokes are centred on the rectangle's path, as in PDF and HTML
    canvas, so a stroke of width w around rect R covers R.inset(-w/2)
    to R.inset(w/2).
    """

    def __init__(self, width_px: float, height_px: float):
        self.width_px = width_px
        self.height_px = height_px

    @abstractmethod
    def fill(self, color: str) -> None:
        """Fill the whole surface with `color`."""
        pass

    @abstractmethod
    def fill_rect(self, rect: Rect, color: str) -> None:
        pass

    @abstractmethod
    def draw_image(self, image: Image.Image, rect: Rect) -> None:
        """Draw `image` scaled to exactly fill `rect`."""
        pass

    @abstractmethod
    def stroke_rect(self, rect: Rect, color: str, line_width: float) -> None:
        pass

    @abstractmethod
    def draw_text_centered(self, text: str, cx: float, cy: float, color: str, size_px: float) -> None:
        pass


class RasterSurface(PageSurface):
    """
    Pillow-backed surface.

    Example:
        >>> surface = RasterSurface(744, 1052)
        >>> surface.fill("#ffffff")
        >>> surface.image.size
        (744, 1052)
    """

    def __init__(self, width_px: int, height_px: int):
        super().__init__(width_px, height_px)
        self.image = Image.new("RGB", (max(1, width_px), max(1, height_px)), "white")
        self._draw = ImageDraw.Draw(self.image)

    def fill(self, color: str) -> None:
        self._draw.rectangle([0, 0, self.image.width, self.image.height], fill=parse_color(color))

    def fill_rect(self, rect: Rect, color: str) -> None:
        self._draw.rectangle(_pixel_box(rect), fill=parse_color(color))

    def draw_image(self, image: Image.Image, rect: Rect) -> None:
        left, top, right, bottom = _pixel_box(rect)
        size = (max(1, right - left + 1), max(1, bottom - top + 1))
        resized = image if image.size == size else image.resize(size, Image.Resampling.LANCZOS)
        self.image.paste(resized.convert("RGB"), (left, top))

    def stroke_rect(self, rect: Rect, color: str, line_width: float) -> None:
        # Pillow draws outlines inward from the box edge
        outer = rect.inset(-line_width / 2)
        self._draw.rectangle(
            _pixel_box(outer),
            outline=parse_color(color),
            width=max(1, int(round(line_width))),
        )

    def draw_text_centered(self, text: str, cx: float, cy: float, color: str, size_px: float) -> None:
        font = _load_font(max(1, int(round(size_px))))
        text_bbox = self._draw.textbbox((0, 0), text, font=font)
        text_width = text_bbox[2] - text_bbox[0]
        text_height = text_bbox[3] - text_bbox[1]
        self._draw.text(
            (cx - text_width / 2 - text_bbox[0], cy - text_height / 2 - text_bbox[1]),
            text,
            fill=parse_color(color),
            font=font,
        )


class PdfSurface(PageSurface):
    """
    Current page of a ReportLab canvas, addressed in pixels at `dpi`.

    Images are resampled to their exact target pixel size before they
    are embedded, so the document carries print-resolution rasters.
    """

    def __init__(self, pdf: canvas.Canvas, width_px: float, height_px: float, dpi: int = EXPORT_DPI):
        super().__init__(width_px, height_px)
        self.pdf = pdf
        self.dpi = dpi
        self.page_height_pt = px_to_points(height_px, dpi)

    def fill(self, color: str) -> None:
        self.fill_rect(Rect(0, 0, self.width_px, self.height_px), color)

    def fill_rect(self, rect: Rect, color: str) -> None:
        self.pdf.saveState()
        self.pdf.setFillColorRGB(*_unit_rgb(color))
        self.pdf.rect(*self._to_pdf_rect(rect), stroke=0, fill=1)
        self.pdf.restoreState()

    def draw_image(self, image: Image.Image, rect: Rect) -> None:
        size = (max(1, int(round(rect.width))), max(1, int(round(rect.height))))
        resized = image if image.size == size else image.resize(size, Image.Resampling.LANCZOS)
        x_pt, y_pt, width_pt, height_pt = self._to_pdf_rect(rect)
        self.pdf.drawImage(_pil_to_reader(resized), x_pt, y_pt, width=width_pt, height=height_pt)

    def stroke_rect(self, rect: Rect, color: str, line_width: float) -> None:
        self.pdf.saveState()
        self.pdf.setStrokeColorRGB(*_unit_rgb(color))
        self.pdf.setLineWidth(px_to_points(line_width, self.dpi))
        self.pdf.rect(*self._to_pdf_rect(rect), stroke=1, fill=0)
        self.pdf.restoreState()

    def draw_text_centered(self, text: str, cx: float, cy: float, color: str, size_px: float) -> None:
        size_pt = px_to_points(size_px, self.dpi)
        self.pdf.saveState()
        self.pdf.setFillColorRGB(*_unit_rgb(color))
        self.pdf.setFont(PDF_FONT, size_pt)
        baseline = self.page_height_pt - px_to_points(cy, self.dpi) - size_pt / 3
        self.pdf.drawCentredString(px_to_points(cx, self.dpi), baseline, text)
        self.pdf.restoreState()

    def _to_pdf_rect(self, rect: Rect) -> Tuple[float, float, float, float]:
        """Top-down pixel rect -> bottom-up PDF (x, y, width, height) in points."""
        width_pt = px_to_points(rect.width, self.dpi)
        height_pt = px_to_points(rect.height, self.dpi)
        x_pt = px_to_points(rect.x, self.dpi)
        y_pt = self.page_height_pt - px_to_points(rect.y, self.dpi) - height_pt
        return x_pt, y_pt, width_pt, height_pt


def _pixel_box(rect: Rect) -> Tuple[int, int, int, int]:
    """Inclusive integer (x0, y0, x1, y1) covering `rect` for ImageDraw."""
    left = int(round(rect.x))
    top = int(round(rect.y))
    right = max(left, int(round(rect.right)) - 1)
    bottom = max(top, int(round(rect.bottom)) - 1)
    return left, top, right, bottom


def _unit_rgb(color: str) -> Tuple[float, float, float]:
    r, g, b = parse_color(color)
    return r / 255.0, g / 255.0, b / 255.0


def _pil_to_reader(img: Image.Image) -> ImageReader:
    """Wrap a PIL image as a ReportLab ImageReader via PNG."""
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    buf.seek(0)
    return ImageReader(buf)


def _load_font(size: int) -> ImageFont.ImageFont:
    """
    Load a TrueType font for placeholder labels.

    Falls back to Pillow's default font if none is installed.
    """
    font_options = [
        "arial.ttf",
        "Arial.ttf",
        "DejaVuSans.ttf",
        "Helvetica.ttc",
    ]

    for font_name in font_options:
        try:
            return ImageFont.truetype(font_name, size)
        except (IOError, OSError):
            continue

    logger.debug("Could not load TrueType font, using default")
    return ImageFont.load_default()
