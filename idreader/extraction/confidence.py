"""Confidence scoring for an extraction."""

import math
from collections.abc import Sequence

from idreader.utils.config import ExtractionConfig

from .records import ConfidenceReport, ExtractionRecord


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (``42.5 -> 43``)."""
    return math.floor(value + 0.5)


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, value))


def ocr_confidence(word_confidences: Sequence[float] | None, baseline: float = 85.0) -> float:
    """Average the positive per-word confidences of an OCR pass.

    Args:
        word_confidences: Per-word confidences in 0-100, or ``None`` when the
            text came from a text-native source such as a PDF text layer.
        baseline: Value used when no confidences were supplied.

    Returns:
        Mean confidence; 0 when confidences were supplied but none is positive.
    """
    if word_confidences is None:
        return _clamp(baseline)
    positive = [_clamp(float(c)) for c in word_confidences if c is not None and c > 0]
    if not positive:
        return 0.0
    return sum(positive) / len(positive)


def extraction_accuracy(record: ExtractionRecord) -> int:
    """Percentage of the record's required fields that hold a value."""
    required = record.required_fields
    filled = sum(1 for name in required if record.value_of(name) is not None)
    return round_half_up(100 * filled / len(required)) if required else 0


def score(
    record: ExtractionRecord,
    word_confidences: Sequence[float] | None,
    mrz_used: bool,
    config: ExtractionConfig | None = None,
) -> ConfidenceReport:
    """Combine OCR quality, completeness and zone validity into one report.

    ``overall = min(100, round(ocr_weight * ocr + accuracy_weight * accuracy
    + mrz_bonus))``, the bonus applying only when a verified zone was used.
    """
    config = config or ExtractionConfig()
    ocr = ocr_confidence(word_confidences, config.text_confidence_baseline)
    accuracy = extraction_accuracy(record)
    bonus = config.mrz_bonus if mrz_used else 0
    overall = round_half_up(config.ocr_weight * ocr + config.accuracy_weight * accuracy + bonus)
    return ConfidenceReport(
        ocr_confidence=round_half_up(ocr),
        extraction_accuracy=accuracy,
        overall_confidence=max(0, min(100, overall)),
        mrz_used=mrz_used,
    )
