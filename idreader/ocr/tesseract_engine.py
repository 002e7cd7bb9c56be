"""Tesseract OCR engine wrapper.

Returns the recognized text of a page together with per-word confidences,
which feed the confidence score of an extraction. One engine instance is
created by the caller and shared for as many pages as it likes.
"""

from dataclasses import dataclass, field

import numpy as np
import pytesseract
from PIL import Image

from idreader.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class OCRWord:
    """A single recognized word and its confidence (0-100)."""

    text: str
    confidence: float
    block_num: int
    line_num: int


@dataclass
class OCRResult:
    """OCR output for one page."""

    text: str
    words: list[OCRWord] = field(default_factory=list)
    language: str = "eng"

    @property
    def word_confidences(self) -> list[float]:
        return [w.confidence for w in self.words]

    @property
    def confidence(self) -> float:
        """Mean word confidence, 0 when nothing was recognized."""
        if not self.words:
            return 0.0
        return sum(self.word_confidences) / len(self.words)


class TesseractEngine:
    """Wrapper around Tesseract OCR for identity document pages.

    Args:
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
        default_lang: Default OCR language code.
        psm: Default page segmentation mode. Mode 6 treats the page as one
            uniform block of text, which suits ID cards.
    """

    def __init__(
        self,
        tesseract_cmd: str | None = None,
        default_lang: str = "eng",
        psm: int = 6,
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.default_lang = default_lang
        self.psm = psm

    def extract_text(
        self,
        image: np.ndarray | Image.Image,
        lang: str | None = None,
        psm: int | None = None,
    ) -> OCRResult:
        """Recognize the text of one page.

        Args:
            image: Page image as a numpy array or PIL image.
            lang: OCR language code. Defaults to the engine default.
            psm: Tesseract page segmentation mode. Defaults to the engine default.

        Returns:
            OCRResult with the full text and every word recognized with a
            positive confidence.

        Raises:
            RuntimeError: If Tesseract is missing or fails on the image.
        """
        lang = lang or self.default_lang
        config = f"--psm {psm if psm is not None else self.psm}"
        pil_image = image if isinstance(image, Image.Image) else Image.fromarray(image)

        try:
            text = pytesseract.image_to_string(pil_image, lang=lang, config=config)
            data = pytesseract.image_to_data(
                pil_image,
                lang=lang,
                config=config,
                output_type=pytesseract.Output.DICT,
            )
        except (pytesseract.TesseractNotFoundError, pytesseract.TesseractError) as exc:
            raise RuntimeError(f"Tesseract OCR failed: {exc}") from exc

        words: list[OCRWord] = []
        for i in range(len(data["text"])):
            conf = float(data["conf"][i])
            word_text = str(data["text"][i]).strip()
            if conf > 0 and word_text:
                words.append(
                    OCRWord(
                        text=word_text,
                        confidence=min(conf, 100.0),
                        block_num=data["block_num"][i],
                        line_num=data["line_num"][i],
                    )
                )

        result = OCRResult(text=text, words=words, language=lang)
        logger.info(
            "OCR recognized %d words with average confidence %.1f",
            len(words),
            result.confidence,
        )
        return result
