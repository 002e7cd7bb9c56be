"""PDF text-layer extraction and page rasterization.

A PDF produced digitally carries its text, which is read directly; a
scanned PDF has an empty text layer and is rendered to images for OCR.
"""

import io
from pathlib import Path

import numpy as np
import pdfplumber
from pdf2image import convert_from_bytes, convert_from_path

from idreader.utils.logger import get_logger

logger = get_logger(__name__)


def _check_exists(pdf_source: Path | str | bytes) -> None:
    if isinstance(pdf_source, str | Path) and not Path(pdf_source).exists():
        raise FileNotFoundError(f"PDF file not found: {pdf_source}")


class PDFHandler:
    """Reads PDF text layers and converts pages to images for OCR.

    Args:
        dpi: Resolution for PDF rendering. Higher values produce
            better OCR results but use more memory.
    """

    def __init__(self, dpi: int = 300) -> None:
        self.dpi = dpi

    def extract_text(self, pdf_source: Path | bytes) -> tuple[str, int]:
        """Read the embedded text layer of a PDF.

        Args:
            pdf_source: Path to a PDF file or raw PDF bytes.

        Returns:
            Tuple of (text of all pages joined by newlines, page count).
            The text is empty for image-only PDFs.

        Raises:
            FileNotFoundError: If a path is given and the file does not exist.
            RuntimeError: If the PDF cannot be parsed.
        """
        _check_exists(pdf_source)
        opened = str(pdf_source) if isinstance(pdf_source, str | Path) else io.BytesIO(pdf_source)
        try:
            with pdfplumber.open(opened) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
        except Exception as exc:
            raise RuntimeError(f"PDF text extraction failed: {exc}") from exc

        text = "\n".join(pages).strip()
        logger.info("Read %d characters of text from %d PDF pages", len(text), len(pages))
        return text, len(pages)

    def pdf_to_images(self, pdf_source: Path | bytes) -> list[np.ndarray]:
        """Convert a PDF to a list of images.

        Args:
            pdf_source: Path to a PDF file or raw PDF bytes.

        Returns:
            List of images as numpy arrays (RGB format).

        Raises:
            FileNotFoundError: If a path is given and the file does not exist.
            RuntimeError: If PDF conversion fails.
        """
        _check_exists(pdf_source)
        try:
            if isinstance(pdf_source, str | Path):
                pil_images = convert_from_path(str(pdf_source), dpi=self.dpi)
            else:
                pil_images = convert_from_bytes(pdf_source, dpi=self.dpi)
        except Exception as exc:
            raise RuntimeError(f"PDF conversion failed: {exc}") from exc

        images = [np.array(img) for img in pil_images]
        logger.info("Converted PDF to %d images at %d DPI", len(images), self.dpi)
        return images
