"""Field extraction pipeline for identity documents.

Runs the stages in order: normalize the text, read captioned fields, fill
the gaps positionally, decode the passport zone, let the zone override the
text, score the result and shape the output. The pipeline keeps no state
between calls and performs no I/O.
"""

from collections.abc import Sequence

from idreader.utils.config import ExtractionConfig
from idreader.utils.logger import get_logger

from .cleaner import clean_record
from .confidence import score
from .fallback_locator import FallbackPositionalLocator
from .label_locator import LabelFieldLocator
from .mrz import MRZ_FOUND_STATUS, MRZ_MISSING_STATUS, read_mrz
from .normalizer import DocumentText, normalize_text
from .reconciler import reconcile
from .records import (
    RECORD_TYPES,
    DebugInfo,
    DocumentType,
    ExtractionRecord,
    ExtractionResult,
    MRZRecord,
)
from .tables import LABEL_SPECS

logger = get_logger(__name__)

# Debug output is forced when every one of these is missing.
KEY_FIELDS: dict[DocumentType, tuple[str, ...]] = {
    DocumentType.NATIONAL_ID: ("name", "father_name"),
    DocumentType.PASSPORT: ("surname", "given_names", "passport_number"),
}

DEBUG_NOTE = "Raw text and lines included for debugging. Pass debug=True to always include."


class FieldExtractor:
    """Extracts structured fields from recognized document text.

    Args:
        config: Extraction heuristics. Defaults are used when omitted.
    """

    def __init__(self, config: ExtractionConfig | None = None) -> None:
        self.config = config or ExtractionConfig()

    def extract(
        self,
        document_type: DocumentType | str,
        raw_text: str | None,
        word_confidences: Sequence[float] | None = None,
        mrz: MRZRecord | None = None,
        debug: bool = False,
    ) -> ExtractionResult:
        """Run the full extraction pipeline on one document's text.

        Args:
            document_type: ``national_id`` (or ``cnic``) or ``passport``.
            raw_text: Text recovered by OCR or a PDF text layer.
            word_confidences: Per-word OCR confidences in 0-100; ``None``
                for text-native sources.
            mrz: A zone decoded by the caller. When given it replaces zone
                detection and is used only if its checksums passed.
            debug: Always include the debug sub-record.

        Returns:
            The extraction result. Missing fields are ``None``; this method
            does not raise for malformed or empty text.
        """
        document_type = DocumentType.parse(document_type)
        document = normalize_text(raw_text)
        record_type = RECORD_TYPES[document_type]
        field_names = record_type.field_names()

        values = LabelFieldLocator(LABEL_SPECS[document_type]).locate(document)
        fallback = FallbackPositionalLocator(document_type, self.config)
        values.update(fallback.locate(document, values, field_names))

        mrz_used = False
        if document_type is DocumentType.PASSPORT:
            zone = mrz if mrz is not None else read_mrz(document, self.config.mrz_scan_lines)
            values, mrz_used = reconcile(values, zone)

        record = record_type(**{name: item for name, item in values.items() if name in field_names})
        confidence = score(record, word_confidences, mrz_used, self.config)
        logger.info(
            "Extracted %s: accuracy %d%%, overall %d%%, MRZ %s",
            document_type.value,
            confidence.extraction_accuracy,
            confidence.overall_confidence,
            "used" if mrz_used else "not used",
        )

        return ExtractionResult(
            document_type=document_type,
            data=clean_record(record),
            confidence=confidence,
            record=record,
            debug=self._debug_info(document, record, mrz_used, debug),
        )

    def _debug_info(
        self, document: DocumentText, record: ExtractionRecord, mrz_used: bool, requested: bool
    ) -> DebugInfo | None:
        document_type = record.document_type
        keys_missing = all(record.value_of(name) is None for name in KEY_FIELDS[document_type])
        if not requested and not keys_missing:
            return None

        if document_type is DocumentType.PASSPORT:
            limit = self.config.debug_lines_passport
            mrz_status = MRZ_FOUND_STATUS if mrz_used else MRZ_MISSING_STATUS
        else:
            limit = self.config.debug_lines_national_id
            mrz_status = None

        lines = [f'{index}: "{line}"' for index, line in enumerate(document.raw_lines[:limit])]
        return DebugInfo(raw_text=document.raw_text, lines=lines, note=DEBUG_NOTE, mrz_status=mrz_status)


def extract(
    document_type: DocumentType | str,
    raw_text: str | None,
    word_confidences: Sequence[float] | None = None,
    mrz: MRZRecord | None = None,
    debug: bool = False,
    config: ExtractionConfig | None = None,
) -> ExtractionResult:
    """Extract fields from document text with a one-off extractor."""
    return FieldExtractor(config).extract(document_type, raw_text, word_confidences, mrz, debug)
