"""Tests for turning document files into text."""

import io
from pathlib import Path
from unittest.mock import MagicMock

import numpy as np
import pytest
from PIL import Image

from idreader.ocr.document_reader import (
    DocumentNotFoundError,
    DocumentReader,
    FileTooLargeError,
    OCRFailedError,
    PDFReadError,
    UnsupportedFileTypeError,
)
from idreader.ocr.tesseract_engine import OCRResult, OCRWord
from idreader.utils.config import AppConfig, UploadConfig


def _png_bytes() -> bytes:
    buf = io.BytesIO()
    Image.fromarray(np.zeros((20, 40, 3), dtype=np.uint8)).save(buf, format="PNG")
    return buf.getvalue()


def _ocr_result(text: str, *confidences: float) -> OCRResult:
    return OCRResult(text=text, words=[OCRWord(f"w{i}", c, 1, 1) for i, c in enumerate(confidences)])


class TestDocumentReader:
    """Tests for the DocumentReader class."""

    def setup_method(self) -> None:
        self.config = AppConfig()
        self.engine = MagicMock()
        self.pdf_handler = MagicMock()
        self.reader = DocumentReader(self.config, self.engine, self.pdf_handler)

    def test_text_file(self, tmp_path: Path) -> None:
        path = tmp_path / "card.txt"
        path.write_text("Name\nJOHN DOE", encoding="utf-8")

        result = self.reader.read(path)

        assert result.text == "Name\nJOHN DOE"
        assert result.word_confidences is None
        assert result.source_kind == "text"
        self.engine.extract_text.assert_not_called()

    def test_text_bytes_with_bad_encoding(self) -> None:
        result = self.reader.read(b"Name \xff JOHN", filename="card.txt")
        assert result.text.startswith("Name ")
        assert "JOHN" in result.text

    def test_image_file_runs_ocr(self, tmp_path: Path) -> None:
        path = tmp_path / "card.png"
        path.write_bytes(_png_bytes())
        self.engine.extract_text.return_value = _ocr_result("JOHN DOE", 90.0, 80.0)

        result = self.reader.read(str(path))

        assert result.text == "JOHN DOE"
        assert result.word_confidences == [90.0, 80.0]
        assert result.source_kind == "ocr"
        image = self.engine.extract_text.call_args.args[0]
        assert image.shape == (20, 40, 3)
        assert self.engine.extract_text.call_args.kwargs["psm"] == self.config.ocr.psm

    def test_pdf_text_layer(self) -> None:
        self.pdf_handler.extract_text.return_value = ("Name\nJOHN DOE", 1)

        result = self.reader.read(b"%PDF-1.4 fake", filename="card.pdf")

        assert result.text == "Name\nJOHN DOE"
        assert result.word_confidences is None
        assert result.source_kind == "pdf_text"
        self.pdf_handler.pdf_to_images.assert_not_called()

    def test_scanned_pdf_falls_back_to_ocr(self) -> None:
        self.pdf_handler.extract_text.return_value = ("", 2)
        self.pdf_handler.pdf_to_images.return_value = [
            np.zeros((10, 10, 3), dtype=np.uint8),
            np.zeros((10, 10, 3), dtype=np.uint8),
        ]
        self.engine.extract_text.side_effect = [
            _ocr_result("Page 1", 90.0),
            _ocr_result("Page 2", 70.0),
        ]

        result = self.reader.read(b"%PDF-1.4 scanned")

        assert result.text == "Page 1\n\nPage 2"
        assert result.word_confidences == [90.0, 70.0]
        assert result.source_kind == "ocr"
        assert result.page_count == 2

    def test_unsupported_type(self) -> None:
        with pytest.raises(UnsupportedFileTypeError) as exc_info:
            self.reader.read(b"data", filename="card.docx")
        assert exc_info.value.status == "unsupported_type"
        assert ".docx" in exc_info.value.message

    def test_too_large(self) -> None:
        config = AppConfig(uploads=UploadConfig(max_file_size_mb=0.001))
        reader = DocumentReader(config, self.engine, self.pdf_handler)
        with pytest.raises(FileTooLargeError) as exc_info:
            reader.read(b"x" * 2048, filename="card.txt")
        assert exc_info.value.status == "too_large"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(DocumentNotFoundError) as exc_info:
            self.reader.read(tmp_path / "missing.png")
        assert exc_info.value.status == "not_found"

    def test_pdf_failure(self) -> None:
        self.pdf_handler.extract_text.side_effect = RuntimeError("broken xref")
        with pytest.raises(PDFReadError) as exc_info:
            self.reader.read(b"%PDF-1.4", filename="card.pdf")
        assert exc_info.value.status == "pdf_failed"

    def test_unreadable_image(self) -> None:
        with pytest.raises(OCRFailedError) as exc_info:
            self.reader.read(b"not an image", filename="card.jpg")
        assert exc_info.value.status == "ocr_failed"

    def test_ocr_failure(self) -> None:
        self.engine.extract_text.side_effect = RuntimeError("Tesseract OCR failed")
        with pytest.raises(OCRFailedError, match="Tesseract OCR failed"):
            self.reader.read(_png_bytes(), filename="card.png")

    def test_default_pdf_handler_uses_configured_dpi(self) -> None:
        reader = DocumentReader(self.config, self.engine)
        assert reader.pdf_handler.dpi == self.config.ocr.pdf_dpi
