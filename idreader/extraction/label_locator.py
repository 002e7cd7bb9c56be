"""Label-anchored field extraction.

Finds printed captions such as ``Name`` or ``Date of Birth`` and reads the
value either from the rest of the caption line or from the next line.
"""

import re

from idreader.utils.logger import get_logger

from .normalizer import DocumentText, collapse_whitespace
from .records import FieldSource, FieldValue
from .tables import EXCLUDED_TERMS, LABEL_PREFIX_RE, LabelSpec

logger = get_logger(__name__)


def contains_keyword(upper_line: str, keyword: str) -> bool:
    """Check whether a caption keyword occurs in an upper-cased line.

    Short keywords (``DOB``, ``S/O``, ``NO``) only count as whole words so
    they do not fire inside names.
    """
    if len(keyword) <= 3:
        pattern = rf"(?<![A-Z0-9]){re.escape(keyword)}(?![A-Z0-9])"
        return re.search(pattern, upper_line) is not None
    return keyword in upper_line


def is_excluded_term(value: str) -> bool:
    """Return True if a value is, or starts or ends with, document boilerplate."""
    for term in EXCLUDED_TERMS:
        if value == term or value.startswith(f"{term} ") or value.endswith(f" {term}"):
            return True
    return False


def is_label_line(spec: LabelSpec, line: str) -> bool:
    """Return True if a line carries the caption described by ``spec``."""
    upper = line.upper()
    if any(term in upper for term in spec.exclusions):
        return False
    return any(
        all(contains_keyword(upper, keyword) for keyword in group)
        for group in spec.label_groups
    )


class LabelFieldLocator:
    """Extracts fields by scanning lines for their captions.

    Args:
        specs: Label specifications, in the order fields are resolved.
            Order matters when one field must differ from another
            (father's name is checked against the holder's name).
    """

    def __init__(self, specs: tuple[LabelSpec, ...]) -> None:
        self.specs = specs

    def locate(self, document: DocumentText) -> dict[str, FieldValue]:
        """Extract every field whose caption can be found.

        Args:
            document: Normalized document text.

        Returns:
            Mapping of field name to label-sourced value, for found fields only.
        """
        found: dict[str, FieldValue] = {}
        for spec in self.specs:
            value = self.locate_field(spec, document.lines, found)
            if value is not None:
                found[spec.field] = FieldValue(value, FieldSource.LABEL)

        logger.debug("Label locator found %d fields: %s", len(found), sorted(found))
        return found

    def locate_field(
        self,
        spec: LabelSpec,
        lines: tuple[str, ...],
        found: dict[str, FieldValue] | None = None,
    ) -> str | None:
        """Find the value of a single field.

        Label lines are visited top to bottom. For each one the same-line
        value is tried first and then the next non-empty line; the first
        accepted candidate wins. A label line whose candidates are all
        rejected does not end the search.
        """
        found = found or {}
        for index, line in enumerate(lines):
            if not is_label_line(spec, line):
                continue
            for candidate in self._candidates(spec, lines, index):
                value = self.accept(spec, candidate, found)
                if value is not None:
                    logger.debug("Field %s read from line %d: %s", spec.field, index, value)
                    return value
        return None

    def _candidates(self, spec: LabelSpec, lines: tuple[str, ...], index: int) -> list[str]:
        candidates = []
        match = spec.same_line.search(lines[index])
        if match:
            candidates.append(match.group(1))
        if index + 1 < len(lines):
            next_line = lines[index + 1]
            column = self.caption_column(spec, lines[index])
            if column == 0:
                candidates.append(next_line)
            elif spec.value_pattern is not None:
                values = [m.group(1) for m in spec.value_pattern.finditer(next_line)]
                if column < len(values):
                    candidates.append(values[column])
        return candidates

    def caption_column(self, spec: LabelSpec, line: str) -> int:
        """Return the position of a field's caption among side-by-side captions.

        Only captions of fields sharing the field's value pattern are counted,
        so ``Date of Issue Date of Expiry`` puts expiry in column 1 while
        ``Gender Country of Stay`` leaves gender in column 0.
        """
        if spec.caption is None or spec.value_pattern is None:
            return 0
        own = spec.caption.search(line)
        if own is None:
            return 0
        column = 0
        for other in self.specs:
            if other is spec or other.caption is None or other.value_pattern is not spec.value_pattern:
                continue
            if not is_label_line(other, line):
                continue
            match = other.caption.search(line)
            if match is not None and match.start() < own.start():
                column += 1
        return column

    @staticmethod
    def accept(
        spec: LabelSpec, candidate: str, found: dict[str, FieldValue] | None = None
    ) -> str | None:
        """Validate a candidate value and return it in output form.

        Returns:
            The upper-cased, whitespace-collapsed (and formatted) value, or
            ``None`` when the candidate is rejected.
        """
        value = collapse_whitespace(candidate).upper()
        if not value:
            return None
        if spec.reject_labels and LABEL_PREFIX_RE.match(value):
            return None

        if spec.value_pattern is not None:
            match = spec.value_pattern.search(value)
            if match is None:
                return None
            value = collapse_whitespace(match.group(1))

        if len(value) < spec.min_length:
            return None
        if spec.name_like and (value[0].isdigit() or is_excluded_term(value)):
            return None

        if spec.formatter is not None:
            value = spec.formatter(value)
            if not value:
                return None

        if spec.distinct_from and found:
            other = found.get(spec.distinct_from)
            if other is not None and other.value == value:
                return None
        return value
