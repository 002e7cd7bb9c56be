"""Data model shared by every stage of the extraction pipeline.

Records are created once per extraction call and never mutated afterwards.
The per-document records form a tagged variant: ``NationalIDRecord`` and
``PassportRecord`` each declare their own fields and required-field set.
"""

from dataclasses import dataclass, fields
from enum import IntEnum, StrEnum
from typing import Any, ClassVar


class DocumentType(StrEnum):
    """Supported identity document types."""

    NATIONAL_ID = "national_id"
    PASSPORT = "passport"

    @classmethod
    def parse(cls, value: str) -> "DocumentType":
        """Resolve a user-supplied type name, accepting ``cnic`` as an alias."""
        key = value.strip().lower()
        if key in {"cnic", "id", "id_card", "national-id"}:
            return cls.NATIONAL_ID
        return cls(key)


class FieldSource(IntEnum):
    """Where a field value came from; higher values take precedence."""

    FALLBACK = 1
    LABEL = 2
    MRZ = 3


@dataclass(frozen=True)
class FieldValue:
    """A single extracted value tagged with its source."""

    value: str | None
    source: FieldSource

    @property
    def is_empty(self) -> bool:
        return self.value is None or not str(self.value).strip()


@dataclass(frozen=True)
class MRZRecord:
    """Decoded two-line (TD3) machine-readable zone.

    Dates are kept exactly as encoded (``YYMMDD``); rendering them for output
    is the reconciler's job.
    """

    document_code: str
    document_number: str
    last_name: str
    first_name: str
    nationality: str
    birth_date: str
    sex: str
    expiration_date: str
    issuing_country: str
    optional_data: str
    checksum_valid: bool
    raw_lines: tuple[str, str] = ("", "")


@dataclass(frozen=True)
class ConfidenceReport:
    """Bounded confidence figures for one extraction, all in 0-100."""

    ocr_confidence: int
    extraction_accuracy: int
    overall_confidence: int
    mrz_used: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "ocrConfidence": self.ocr_confidence,
            "extractionAccuracy": self.extraction_accuracy,
            "overallConfidence": self.overall_confidence,
            "mrzUsed": self.mrz_used,
        }


def to_camel(name: str) -> str:
    """Convert a snake_case attribute name to the camelCase output key."""
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


@dataclass(frozen=True)
class _DocumentRecord:
    """Behaviour shared by the per-document record variants."""

    document_type: ClassVar[DocumentType]
    required_fields: ClassVar[tuple[str, ...]]

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def get(self, name: str) -> FieldValue | None:
        return getattr(self, name)

    def value_of(self, name: str) -> str | None:
        item = self.get(name)
        return None if item is None or item.is_empty else item.value

    def items(self) -> list[tuple[str, FieldValue | None]]:
        return [(name, self.get(name)) for name in self.field_names()]


@dataclass(frozen=True)
class NationalIDRecord(_DocumentRecord):
    """Fields read from a national identity card (CNIC)."""

    document_type: ClassVar[DocumentType] = DocumentType.NATIONAL_ID
    required_fields: ClassVar[tuple[str, ...]] = (
        "name",
        "father_name",
        "country",
        "cnic_number",
    )

    name: FieldValue | None = None
    father_name: FieldValue | None = None
    country: FieldValue | None = None
    cnic_number: FieldValue | None = None
    date_of_birth: FieldValue | None = None
    date_of_issue: FieldValue | None = None
    date_of_expiry: FieldValue | None = None
    gender: FieldValue | None = None
    address: FieldValue | None = None


@dataclass(frozen=True)
class PassportRecord(_DocumentRecord):
    """Fields read from a passport data page and its MRZ."""

    document_type: ClassVar[DocumentType] = DocumentType.PASSPORT
    required_fields: ClassVar[tuple[str, ...]] = (
        "passport_number",
        "surname",
        "given_names",
        "nationality",
        "father_name",
        "date_of_issue",
        "issuing_authority",
        "tracking_number",
        "husband_name",
        "citizenship_number",
    )

    passport_number: FieldValue | None = None
    surname: FieldValue | None = None
    given_names: FieldValue | None = None
    nationality: FieldValue | None = None
    father_name: FieldValue | None = None
    date_of_issue: FieldValue | None = None
    issuing_authority: FieldValue | None = None
    tracking_number: FieldValue | None = None
    husband_name: FieldValue | None = None
    citizenship_number: FieldValue | None = None
    date_of_birth: FieldValue | None = None
    place_of_birth: FieldValue | None = None
    gender: FieldValue | None = None
    date_of_expiry: FieldValue | None = None


ExtractionRecord = NationalIDRecord | PassportRecord

RECORD_TYPES: dict[DocumentType, type[NationalIDRecord] | type[PassportRecord]] = {
    DocumentType.NATIONAL_ID: NationalIDRecord,
    DocumentType.PASSPORT: PassportRecord,
}


@dataclass(frozen=True)
class DebugInfo:
    """Raw text and numbered lines returned to help diagnose misses."""

    raw_text: str
    lines: list[str]
    note: str
    mrz_status: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "rawText": self.raw_text,
            "lines": list(self.lines),
            "note": self.note,
        }
        if self.mrz_status is not None:
            data["mrzLines"] = self.mrz_status
        return data


@dataclass(frozen=True)
class ExtractionResult:
    """Complete output of one extraction call."""

    document_type: DocumentType
    data: dict[str, str | None]
    confidence: ConfidenceReport
    record: ExtractionRecord
    debug: DebugInfo | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable view of the result."""
        result: dict[str, Any] = {
            "documentType": self.document_type.value,
            "data": dict(self.data),
            "confidence": self.confidence.to_dict(),
        }
        if self.debug is not None:
            result["debug"] = self.debug.to_dict()
        return result
