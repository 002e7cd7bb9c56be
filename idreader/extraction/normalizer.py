"""Text normalization for OCR and PDF output.

Produces the immutable ``DocumentText`` view every locator works from, plus
small value-level helpers used when rendering extracted fields.
"""

import re
from dataclasses import dataclass

_LINE_SPLIT_RE = re.compile(r"\r\n|\r|\n")
_WHITESPACE_RE = re.compile(r"\s+")
_NATIONAL_ID_SEPARATORS_RE = re.compile(r"[\s\-]")


@dataclass(frozen=True)
class DocumentText:
    """Raw text alongside its line and whitespace-collapsed views."""

    raw_text: str
    lines: tuple[str, ...]
    normalized_text: str
    raw_lines: tuple[str, ...] = ()


def collapse_whitespace(value: str) -> str:
    """Collapse whitespace runs to single spaces and trim the ends."""
    return _WHITESPACE_RE.sub(" ", value).strip()


def normalize_text(raw_text: str | None) -> DocumentText:
    """Build the normalized views of a recognized text.

    Args:
        raw_text: Text returned by an OCR engine or PDF text extractor.
            ``None`` is treated as empty text.

    Returns:
        Document text with trimmed non-empty ``lines`` in original order,
        every trimmed line (blank ones included) in ``raw_lines``, and the
        whole text collapsed to single spaces in ``normalized_text``.
    """
    raw = raw_text or ""
    raw_lines = tuple(line.strip() for line in _LINE_SPLIT_RE.split(raw)) if raw else ()
    lines = tuple(line for line in raw_lines if line)
    return DocumentText(
        raw_text=raw,
        lines=lines,
        normalized_text=collapse_whitespace(raw),
        raw_lines=raw_lines,
    )


def format_national_id(value: str | None) -> str | None:
    """Render a 13-digit national identifier as ``XXXXX-XXXXXXX-X``.

    Values that do not reduce to exactly 13 digits are returned stripped but
    otherwise as read. Formatting an already formatted value is a no-op.
    """
    if value is None:
        return None
    stripped = value.strip()
    if not stripped:
        return None
    digits = _NATIONAL_ID_SEPARATORS_RE.sub("", stripped)
    if len(digits) == 13 and digits.isdigit():
        return f"{digits[:5]}-{digits[5:12]}-{digits[12:]}"
    return stripped
