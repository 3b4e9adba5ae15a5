"""
Unit Tests for PDF export.

Documents are read back with PyMuPDF to check page count, embedded
images and placeholder labels.
"""

from datetime import datetime
from pathlib import Path

import fitz
import pytest
from PIL import Image

from photo_sheet.core.errors import ExportError
from photo_sheet.core.models import CropRegion, LayoutSettings, PhotoItem, TargetSize
from photo_sheet.output.exporter import (
    ExportConfig,
    build_output_path,
    export_document,
    render_document_bytes,
)


@pytest.fixture
def make_item(encode_png):
    def _make(item_id, color, width=40, height=50, processed=None):
        image = Image.new("RGB", (40, 50), color)
        data = encode_png(image)
        return PhotoItem(
            id=item_id,
            source_image=data,
            processed_image=processed if processed is not None else data,
            source_size=image.size,
            target_size=TargetSize(width, height),
            crop_region=CropRegion.full(*image.size),
        )

    return _make


class TestRenderDocumentBytes:

    def test_render_when_one_item_corrupt_then_placeholder_and_others_embedded(self, make_item):
        # Arrange
        items = [
            make_item("one", "#ff0000"),
            make_item("two", "#00ff00", processed=b"corrupt bytes"),
            make_item("three", "#0000ff"),
        ]

        # Act
        pdf_bytes, result = render_document_bytes(items, LayoutSettings(gap_mm=2))

        # Assert
        assert result.failed_item_ids == ["two"]
        assert result.page_count == 1
        assert result.item_count == 3
        with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
            assert doc.page_count == 1
            page = doc[0]
            assert len(page.get_images()) == 2
            assert "Image Error" in page.get_text()

    def test_render_when_page_is_a4_then_pdf_page_is_a4(self, make_item):
        pdf_bytes, _ = render_document_bytes([make_item("a", "red")], LayoutSettings())
        with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
            rect = doc[0].rect
            assert rect.width == pytest.approx(595.28, abs=0.1)
            assert rect.height == pytest.approx(841.89, abs=0.1)

    def test_render_when_25_passport_photos_then_two_pages(self, make_item):
        items = [make_item(f"p{n}", (n * 10, 0, 0)) for n in range(25)]
        pdf_bytes, result = render_document_bytes(items, LayoutSettings(gap_mm=2))
        assert result.page_count == 2
        with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
            assert doc.page_count == 2

    def test_render_when_empty_then_raises_export_error(self):
        with pytest.raises(ExportError, match="No photos"):
            render_document_bytes([], LayoutSettings())

    def test_render_when_nothing_fits_then_raises_export_error(self, make_item):
        with pytest.raises(ExportError):
            render_document_bytes([make_item("huge", "red", 400, 400)], LayoutSettings())

    def test_render_when_some_items_too_large_then_listed_as_unplaceable(self, make_item):
        items = [make_item("ok", "red"), make_item("huge", "blue", 400, 50)]
        _, result = render_document_bytes(items, LayoutSettings())
        assert result.unplaceable_item_ids == ("huge",)
        assert result.item_count == 1
        assert result.has_errors


class TestExportDocument:

    def test_export_when_called_then_timestamped_file_written(self, tmp_path, make_item):
        # Arrange
        config = ExportConfig(output_dir=tmp_path)
        now = datetime(2025, 1, 16, 10, 30, 45)

        # Act
        result = export_document([make_item("a", "red")], LayoutSettings(), config, now=now)

        # Assert
        assert result.path == tmp_path / "photo-sheet-2025-01-16T10-30-45.pdf"
        assert result.path.read_bytes().startswith(b"%PDF")
        assert not result.has_errors

    def test_export_when_empty_then_no_file_left_behind(self, tmp_path):
        config = ExportConfig(output_dir=tmp_path)
        with pytest.raises(ExportError):
            export_document([], LayoutSettings(), config)
        assert list(tmp_path.iterdir()) == []

    def test_export_when_items_mutated_afterwards_then_result_unchanged(self, tmp_path, make_item):
        items = [make_item("a", "red"), make_item("b", "blue")]
        result = export_document(items, LayoutSettings(), ExportConfig(output_dir=tmp_path))
        items.clear()
        assert result.item_count == 2

    def test_export_when_writer_raises_unexpected_error_then_no_file_left_behind(
        self, monkeypatch, tmp_path, make_item
    ):
        # Arrange
        def half_written(target, items, settings, geometry):
            target.write(b"%PDF-1.4 truncated")
            raise RuntimeError("writer crashed")

        monkeypatch.setattr("photo_sheet.output.exporter._write_document", half_written)

        # Act
        with pytest.raises(RuntimeError, match="writer crashed"):
            export_document([make_item("a", "red")], LayoutSettings(), ExportConfig(output_dir=tmp_path))

        # Assert
        assert list(tmp_path.iterdir()) == []


class TestBuildOutputPath:

    def test_build_when_file_exists_then_counter_appended(self, tmp_path):
        # Arrange
        config = ExportConfig(output_dir=tmp_path, filename_prefix="sheet")
        now = datetime(2025, 3, 1, 8, 0, 0)
        (tmp_path / "sheet-2025-03-01T08-00-00.pdf").write_bytes(b"")
        (tmp_path / "sheet-2025-03-01T08-00-00(1).pdf").write_bytes(b"")

        # Act
        path = build_output_path(config, now)

        # Assert
        assert path.name == "sheet-2025-03-01T08-00-00(2).pdf"

    def test_config_when_prefix_has_separator_then_raises(self):
        with pytest.raises(ValueError):
            ExportConfig(output_dir=Path("."), filename_prefix="a/b")

    def test_config_when_string_dir_then_converted_to_path(self):
        assert isinstance(ExportConfig(output_dir="out").output_dir, Path)
