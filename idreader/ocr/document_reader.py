"""Turn document files into text for the extraction engine.

Plain text is read as-is, PDFs through their text layer with an OCR
fallback for scanned pages, and images through OCR. The OCR engine is an
explicit handle owned by the caller; one reader can serve many documents.
"""

import io
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from idreader.utils.config import AppConfig
from idreader.utils.logger import get_logger

from .pdf_handler import PDFHandler
from .tesseract_engine import TesseractEngine

logger = get_logger(__name__)


class DocumentReadError(Exception):
    """Base class for failures that prevent a document from being read.

    Each subclass carries a ``status`` naming the failure class, suitable
    for reporting to whoever submitted the document.
    """

    status = "read_failed"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnsupportedFileTypeError(DocumentReadError):
    status = "unsupported_type"


class FileTooLargeError(DocumentReadError):
    status = "too_large"


class DocumentNotFoundError(DocumentReadError):
    status = "not_found"


class PDFReadError(DocumentReadError):
    status = "pdf_failed"


class OCRFailedError(DocumentReadError):
    status = "ocr_failed"


@dataclass
class RecognizedText:
    """Text recovered from a document, ready for extraction.

    ``word_confidences`` is ``None`` for text-native sources (plain text,
    PDF text layers) that have no per-word confidence.
    """

    text: str
    word_confidences: list[float] | None
    source_kind: str
    page_count: int = 1


class DocumentReader:
    """Reads images, PDFs and text files into ``RecognizedText``.

    Args:
        config: Application configuration (upload limits, PDF resolution).
        engine: OCR engine used for images and scanned PDF pages.
        pdf_handler: PDF helper; one is built from ``config`` if omitted.
    """

    def __init__(
        self,
        config: AppConfig,
        engine: TesseractEngine,
        pdf_handler: PDFHandler | None = None,
    ) -> None:
        self.config = config
        self.engine = engine
        self.pdf_handler = pdf_handler or PDFHandler(dpi=config.ocr.pdf_dpi)

    def read(self, source: Path | str | bytes, filename: str | None = None) -> RecognizedText:
        """Recover the text of a document.

        Args:
            source: Path to a document file, or raw file bytes.
            filename: Name used to determine the file type of raw bytes.

        Returns:
            The recognized text with its confidences and provenance.

        Raises:
            DocumentReadError: A subclass naming why the document could not
                be read.
        """
        if isinstance(source, bytes):
            name = filename or "document"
            size = len(source)
            suffix = Path(name).suffix.lower()
            if not suffix and source[:4] == b"%PDF":
                suffix = ".pdf"
        else:
            path = Path(source)
            if not path.is_file():
                raise DocumentNotFoundError(f"File not found: {path}")
            name = filename or path.name
            size = path.stat().st_size
            suffix = Path(name).suffix.lower()

        allowed = [ext.lower() for ext in self.config.uploads.allowed_extensions]
        if suffix not in allowed:
            raise UnsupportedFileTypeError(
                f"Invalid file type '{suffix or name}'. Allowed types: {', '.join(allowed)}"
            )
        if size > self.config.uploads.max_file_size_bytes:
            raise FileTooLargeError(
                f"File is {size} bytes; the limit is {self.config.uploads.max_file_size_mb:g} MB"
            )

        logger.info("Reading %s (%d bytes)", name, size)
        if suffix == ".txt":
            return self._read_text(source)
        if suffix == ".pdf":
            return self._read_pdf(source)
        return self._read_image(source)

    def _read_text(self, source: Path | str | bytes) -> RecognizedText:
        raw = source if isinstance(source, bytes) else Path(source).read_bytes()
        return RecognizedText(
            text=raw.decode("utf-8", errors="replace"),
            word_confidences=None,
            source_kind="text",
        )

    def _read_pdf(self, source: Path | str | bytes) -> RecognizedText:
        pdf_source = source if isinstance(source, bytes) else Path(source)
        try:
            text, page_count = self.pdf_handler.extract_text(pdf_source)
        except FileNotFoundError as exc:
            raise DocumentNotFoundError(str(exc)) from exc
        except RuntimeError as exc:
            raise PDFReadError(f"PDF extraction failed: {exc}") from exc

        if text:
            return RecognizedText(
                text=text,
                word_confidences=None,
                source_kind="pdf_text",
                page_count=page_count,
            )

        logger.info("PDF has no text layer, running OCR on rendered pages")
        try:
            images = self.pdf_handler.pdf_to_images(pdf_source)
        except RuntimeError as exc:
            raise PDFReadError(f"Unable to render image-based PDF: {exc}") from exc
        return self._ocr_pages(images)

    def _read_image(self, source: Path | str | bytes) -> RecognizedText:
        try:
            opened = Image.open(io.BytesIO(source) if isinstance(source, bytes) else source)
            image = np.array(opened.convert("RGB"))
        except (UnidentifiedImageError, OSError) as exc:
            raise OCRFailedError(f"Cannot open image: {exc}") from exc
        return self._ocr_pages([image])

    def _ocr_pages(self, images: list[np.ndarray]) -> RecognizedText:
        texts: list[str] = []
        confidences: list[float] = []
        for image in images:
            try:
                result = self.engine.extract_text(image, psm=self.config.ocr.psm)
            except RuntimeError as exc:
                raise OCRFailedError(f"OCR failed: {exc}") from exc
            texts.append(result.text)
            confidences.extend(result.word_confidences)

        return RecognizedText(
            text="\n\n".join(texts),
            word_confidences=confidences,
            source_kind="ocr",
            page_count=len(images),
        )
