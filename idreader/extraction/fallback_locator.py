"""Whole-text and positional extraction for fields without a usable label.

Two strategies run per missing field: a pattern search over the collapsed
text (dates, gender, identifiers, countries, free-text captions) and, for
the national ID card's holder and father names, a structural scan that
relies on where names usually sit below the card header.
"""

import re
from collections.abc import Callable

from idreader.utils.config import ExtractionConfig
from idreader.utils.logger import get_logger

from .normalizer import DocumentText, collapse_whitespace, format_national_id
from .records import DocumentType, FieldSource, FieldValue
from .tables import (
    COUNTRY_ALIASES,
    COUNTRY_KEYWORD_RE,
    COUNTRY_KEYWORDS,
    COUNTRY_LABEL_PATTERNS,
    DATE_RE,
    EXCLUDED_TERMS,
    FALLBACK_PATTERNS,
    GENDER_RE,
    LABEL_PREFIX_RE,
    LABELED_DATE_PATTERNS,
    NATIONAL_ID_RE,
    canonical_country,
    canonical_gender,
)

logger = get_logger(__name__)

_WORD_RE = re.compile(r"[A-Z]+")
_LETTER_RE = re.compile(r"[A-Za-z]")
_LONG_DIGIT_RUN_RE = re.compile(r"\d{5}")
_REPEATED_CHAR_RE = re.compile(r"(.)\1{2,}")
_LEADING_SYMBOLS_RE = re.compile(r"^[—\-_|]+")
_LEADING_NON_LETTERS_RE = re.compile(r"^[^A-Za-z]{2,}")
_PROPER_WORD_RE = re.compile(r"[A-Za-z]{3,}")
_EDGE_NOISE_RE = re.compile(r"^[|\-—_\s]+|[|\-—_\s]+$")


def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    body = keyword.replace(" ", r"\s+")
    return re.compile(rf"\b{body}\b", re.IGNORECASE)


_COUNTRY_SEARCH_PATTERNS = tuple((keyword, _keyword_pattern(keyword)) for keyword in COUNTRY_KEYWORDS)


def find_country_keyword(text: str) -> str | None:
    """Return the first dictionary country mentioned in ``text``, canonicalized."""
    for keyword, pattern in _COUNTRY_SEARCH_PATTERNS:
        if pattern.search(text):
            return COUNTRY_ALIASES.get(keyword, keyword)
    return None


def _has_excluded_word(upper_line: str) -> bool:
    return any(word in EXCLUDED_TERMS for word in _WORD_RE.findall(upper_line))


def is_name_like(line: str) -> bool:
    """Check whether a line could be a person's name.

    A name line has one to four words, is 3-30 characters long, is mostly
    letters, carries no run of five digits, no boilerplate word and does
    not start with another field's caption.
    """
    words = line.split()
    if not 1 <= len(words) <= 4 or not 3 <= len(line) <= 30:
        return False
    if line[0].isdigit() or _LONG_DIGIT_RUN_RE.search(line):
        return False
    compact = "".join(words)
    if len(_LETTER_RE.findall(compact)) * 2 <= len(compact):
        return False
    upper = line.upper()
    return not _has_excluded_word(upper) and not LABEL_PREFIX_RE.match(upper)


def clean_secondary_name(line: str, primary: str | None) -> str | None:
    """Apply the stricter checks used for a father's or husband's name.

    Returns:
        The cleaned, upper-cased name, or ``None`` if the line is rejected.
    """
    words = line.split()
    if not 1 <= len(words) <= 4 or not 8 <= len(line) <= 35:
        return None
    if line[0].isdigit() or _LONG_DIGIT_RUN_RE.search(line):
        return None
    upper = line.upper()
    if _has_excluded_word(upper) or LABEL_PREFIX_RE.match(upper):
        return None
    if len(_LETTER_RE.findall(line)) < len(line) * 0.6:
        return None
    if _REPEATED_CHAR_RE.search(line):
        return None
    if _LEADING_SYMBOLS_RE.match(line) or _LEADING_NON_LETTERS_RE.match(line):
        return None
    if not any(len(_LETTER_RE.findall(word)) >= 3 for word in words):
        return None
    if primary and upper == primary.upper():
        return None

    cleaned = _EDGE_NOISE_RE.sub("", collapse_whitespace(line))
    if len(cleaned) < 8 or not _PROPER_WORD_RE.search(cleaned):
        return None
    return cleaned.upper()


class FallbackPositionalLocator:
    """Fills fields the label locator could not find.

    Args:
        document_type: Type of document being read; selects which fields
            are searched and whether the structural name scan applies.
        config: Extraction heuristics (date ordinals, scan windows).
    """

    def __init__(self, document_type: DocumentType, config: ExtractionConfig) -> None:
        self.document_type = document_type
        self.config = config

    def locate(
        self, document: DocumentText, found: dict[str, FieldValue], field_names: tuple[str, ...]
    ) -> dict[str, FieldValue]:
        """Search for every field in ``field_names`` missing from ``found``.

        Args:
            document: Normalized document text.
            found: Values already produced by the label locator.
            field_names: All fields of the record being built.

        Returns:
            Mapping of field name to fallback-sourced value, for newly found
            fields only.
        """
        missing = [name for name in field_names if name not in found]
        located: dict[str, FieldValue] = {}

        claimed = [item.value for name, item in found.items() if name in self.config.date_order]
        dates = self.locate_dates(document.normalized_text, missing, claimed)
        for name, value in dates.items():
            located[name] = FieldValue(value, FieldSource.FALLBACK)

        for name in missing:
            if name in located:
                continue
            value = self._locate_field(name, document)
            if value:
                located[name] = FieldValue(value, FieldSource.FALLBACK)

        if self.document_type is DocumentType.NATIONAL_ID and self.config.structural_names:
            located.update(self._locate_names(document.lines, {**found, **located}))

        logger.debug("Fallback locator found %d fields: %s", len(located), sorted(located))
        return located

    def locate_dates(
        self, normalized_text: str, missing: list[str], claimed: list[str] | None = None
    ) -> dict[str, str]:
        """Assign dates to the missing date fields.

        A label-qualified date always wins for its own field. The remaining
        fields of ``date_order`` then take the unclaimed dates of the text in
        reading order, so three unlabeled dates become birth, issue and
        expiry.

        Args:
            normalized_text: Whitespace-collapsed document text.
            missing: Field names still without a value.
            claimed: Dates already assigned to a field by their caption.
        """
        assigned: dict[str, str] = {}
        for name in self.config.date_order:
            if name not in missing:
                continue
            labeled = LABELED_DATE_PATTERNS[name].search(normalized_text)
            if labeled:
                assigned[name] = collapse_whitespace(labeled.group(1)).upper()

        taken = {*(claimed or ()), *assigned.values()}
        pool = [
            date
            for date in (collapse_whitespace(m.group(0)).upper() for m in DATE_RE.finditer(normalized_text))
            if date not in taken
        ]
        for name in self.config.date_order:
            if name in missing and name not in assigned and pool:
                assigned[name] = pool.pop(0)
        return assigned

    def _locate_field(self, name: str, document: DocumentText) -> str | None:
        text = document.normalized_text
        if name == "gender":
            match = GENDER_RE.search(text)
            return canonical_gender(match.group(1)) if match else None
        if name in {"cnic_number", "citizenship_number"}:
            match = NATIONAL_ID_RE.search(text)
            return format_national_id(match.group(1)) if match else None
        if name == "country":
            return self.locate_country(document.raw_text)
        if name == "nationality":
            return self._search(name, text, canonical_country) or find_country_keyword(text)
        if name in FALLBACK_PATTERNS:
            return self._search(name, text)
        return None

    @staticmethod
    def _search(
        name: str, text: str, formatter: Callable[[str], str | None] | None = None
    ) -> str | None:
        for pattern in FALLBACK_PATTERNS[name]:
            match = pattern.search(text)
            if not match:
                continue
            value = collapse_whitespace(match.group(1)).upper()
            if formatter is not None:
                value = formatter(value)
            if value:
                return value
        return None

    @staticmethod
    def locate_country(raw_text: str) -> str | None:
        """Find the issuing country of a national ID card.

        The country dictionary is tried first, then captions such as
        ``Country`` or ``Issued in``. A captioned value that names a known
        country is canonicalized; any other value of three or more
        characters is returned as read.
        """
        country = find_country_keyword(raw_text)
        if country:
            return country

        for pattern in COUNTRY_LABEL_PATTERNS:
            match = pattern.search(raw_text)
            if not match:
                continue
            value = collapse_whitespace(match.group(1)).upper()
            known = COUNTRY_KEYWORD_RE.search(value)
            if known:
                return canonical_country(known.group(1))
            if len(value) >= 3 and not value[0].isdigit():
                return value
        return None

    def _locate_names(
        self, lines: tuple[str, ...], found: dict[str, FieldValue]
    ) -> dict[str, FieldValue]:
        located: dict[str, FieldValue] = {}
        name_item = found.get("name")
        name = name_item.value if name_item is not None and not name_item.is_empty else None
        name_index = -1

        if name is None:
            name_index, name = self.find_primary_name(lines)
            if name is not None:
                located["name"] = FieldValue(name, FieldSource.FALLBACK)

        if "father_name" not in found and name is not None:
            if name_index < 0:
                name_index = self._line_index_of(lines, name)
            father = self.find_secondary_name(lines, name, name_index)
            if father is not None:
                located["father_name"] = FieldValue(father, FieldSource.FALLBACK)
        return located

    def find_primary_name(self, lines: tuple[str, ...]) -> tuple[int, str | None]:
        """Scan the lines below the card header for the holder's name.

        Returns:
            Tuple of (line index, upper-cased name), or ``(-1, None)``.
        """
        if len(lines) < 2:
            return -1, None

        header_end = -1
        for index, line in enumerate(lines[: self.config.header_scan_lines]):
            upper = line.upper()
            if "IDENTITY" in upper or "CARD" in upper or COUNTRY_KEYWORD_RE.search(upper):
                header_end = index

        start = header_end + 1 if header_end >= 0 else 1
        for index in range(start, min(len(lines), start + self.config.name_window)):
            if is_name_like(lines[index]):
                return index, collapse_whitespace(lines[index]).upper()
        return -1, None

    def find_secondary_name(
        self, lines: tuple[str, ...], primary: str, primary_index: int
    ) -> str | None:
        """Scan below the holder's name for the father's or husband's name."""
        if len(lines) <= 2:
            return None
        if primary_index >= 0:
            start = primary_index + 1 + self.config.secondary_name_skip
        else:
            start = 3
        for line in lines[start : start + self.config.secondary_name_window]:
            if len(line) < 6 or not _LETTER_RE.search(line):
                continue
            candidate = clean_secondary_name(line, primary)
            if candidate is not None:
                return candidate
        return None

    @staticmethod
    def _line_index_of(lines: tuple[str, ...], name: str) -> int:
        target = name.upper()
        for index, line in enumerate(lines):
            upper = line.upper()
            if target in upper or (len(upper) >= 3 and upper in target):
                return index
            if len(target) > 5 and target[:5] in upper[: len(target)]:
                return index
        return -1
