"""Machine-readable zone detection, correction and decoding.

Works on the two-line, 44-character passport layout (TD3). OCR output is
cleaned of recurring misreads, the two lines are paired bottom-up, and
every check digit is verified before a record is returned. A zone that
fails any step is treated as absent.
"""

import datetime as dt
import re
from collections.abc import Callable

from idreader.utils.logger import get_logger

from .normalizer import DocumentText, format_national_id
from .records import MRZRecord

logger = get_logger(__name__)

MRZ_LINE_LENGTH = 44
FILLER = "<"
_MONTHS = ("JAN", "FEB", "MAR", "APR", "MAY", "JUN", "JUL", "AUG", "SEP", "OCT", "NOV", "DEC")
_CHECK_WEIGHTS = (7, 3, 1)

_NOISE_PREFIX_RE = re.compile(r"^(?:vo|peor)\s*")
_FILLER_LOOKALIKES = str.maketrans({"«": FILLER, "‹": FILLER})
_INVALID_CHARS_RE = re.compile(r"[^A-Z0-9<]")

# Shapes a zone line still has after heavy OCR damage.
_SIGNATURE_RE = re.compile(r"^[PIA][S5K<][A-Z]{3}|<<|[A-Z]{2}\d{7}|[A-Z]{3}\d{6}[MF<]|CLL|LLL")


def _filler_run(match: re.Match[str]) -> str:
    return FILLER * len(match.group(0))


# Ordered; each rule is bounded by filler context so real names survive.
_CORRECTIONS: tuple[tuple[re.Pattern[str], str | Callable[[re.Match[str]], str]], ...] = (
    (re.compile(r"^([PIA])[S5K](?=[A-Z]{3})"), r"\1<"),
    (re.compile(r"(?<=<)C?L{2,}(?=<|$)"), _filler_run),
    (re.compile(r"C?L{3,}$"), _filler_run),
    (re.compile(r"(?<=<)K{2,}(?=<|$)"), _filler_run),
)

_LINE1_STRICT_RE = re.compile(r"^[PIA](?:<|[A-Z]{3})")
_LETTER_RUN_RE = re.compile(r"[A-Z]{4,}")
_LINE2_START_RE = re.compile(r"^[A-Z0-9]{6,}")
_LINE2_DATES_RE = re.compile(r"\d{6}[MF<]\d{6}")
_LINE2_ISSUER_RE = re.compile(r"\d[A-Z]{3}\d{6}")
_NATIONAL_ID_RE = re.compile(r"(\d{5}-?\d{7}-?\d)")

MRZ_FOUND_STATUS = "MRZ data was successfully extracted and parsed"
MRZ_MISSING_STATUS = "No MRZ data found"


class MRZDecodeError(ValueError):
    """Raised when candidate zone lines do not decode to a valid record."""


def compute_check_digit(value: str) -> str:
    """Compute an ICAO 9303 check digit.

    Digits count as themselves, letters as ``A=10`` .. ``Z=35`` and the
    filler as zero; the weighted sum uses the repeating weights 7, 3, 1.
    """
    total = 0
    for index, char in enumerate(value):
        if char.isdigit():
            number = int(char)
        elif char == FILLER:
            number = 0
        else:
            number = ord(char) - 55
        total += number * _CHECK_WEIGHTS[index % 3]
    return str(total % 10)


def clean_mrz_line(line: str) -> str:
    """Strip OCR noise from a raw line, keeping only zone characters."""
    cleaned = _NOISE_PREFIX_RE.sub("", line.strip())
    cleaned = cleaned.replace("|", "").translate(_FILLER_LOOKALIKES)
    cleaned = re.sub(r"\s", "", cleaned)
    return _INVALID_CHARS_RE.sub("", cleaned)


def correct_mrz_line(line: str) -> str:
    """Apply the substitution table for recurring zone misreads."""
    for pattern, replacement in _CORRECTIONS:
        line = pattern.sub(replacement, line)
    return line


def is_line1(line: str) -> bool:
    if _LINE1_STRICT_RE.match(line):
        return True
    return "<<" in line and _LETTER_RUN_RE.search(line) is not None


def is_line2(line: str) -> bool:
    if _LINE2_START_RE.match(line) and (
        FILLER in line or _LINE2_DATES_RE.search(line) or _LINE2_ISSUER_RE.search(line)
    ):
        return True
    return len(line) >= 25 and not _LINE1_STRICT_RE.match(line) and line[0].isalnum()


def find_mrz_candidates(raw_lines: tuple[str, ...], scan_lines: int = 15) -> list[str]:
    """Return corrected zone candidates from the end of the text, top to bottom."""
    candidates: list[str] = []
    for line in reversed(raw_lines[-scan_lines:] if scan_lines > 0 else ()):
        cleaned = clean_mrz_line(line)
        if len(cleaned) >= 20 or (cleaned and _SIGNATURE_RE.search(cleaned)):
            candidates.append(correct_mrz_line(cleaned))
    candidates.reverse()
    return candidates


def split_combined_line(line: str) -> tuple[str, str] | None:
    """Split a line holding both zone lines run together."""
    if len(line) < 2 * MRZ_LINE_LENGTH:
        return None
    tail = line[-2 * MRZ_LINE_LENGTH :]
    if FILLER not in tail:
        return None
    return tail[:MRZ_LINE_LENGTH], tail[MRZ_LINE_LENGTH:]


def find_mrz_lines(raw_lines: tuple[str, ...], scan_lines: int = 15) -> tuple[str, str] | None:
    """Locate the two zone lines near the bottom of a document.

    Candidates are paired bottom-up: the lowest candidate that looks like a
    first line and sits directly above one that looks like a second line
    wins. A single over-long candidate is split in two as a last resort.

    Returns:
        The two lines normalized to 44 characters, or ``None``.
    """
    candidates = find_mrz_candidates(raw_lines, scan_lines)
    for index in range(len(candidates) - 2, -1, -1):
        first, second = candidates[index], candidates[index + 1]
        if is_line1(first) and is_line2(second):
            logger.debug("MRZ line pair found at candidates %d-%d", index, index + 1)
            return normalize_line1(first), normalize_line(second)

    for candidate in reversed(candidates):
        halves = split_combined_line(candidate)
        if halves:
            logger.debug("MRZ recovered from a combined line")
            return normalize_line1(halves[0]), normalize_line(halves[1])
    return None


def normalize_line(line: str) -> str:
    """Pad with filler or truncate to the standard line length."""
    return line.ljust(MRZ_LINE_LENGTH, FILLER)[:MRZ_LINE_LENGTH]


def normalize_line1(line: str) -> str:
    """Re-anchor the filler after the category letter, then normalize."""
    if re.match(r"^[PIA][A-Z]{3}", line):
        line = f"{line[0]}{FILLER}{line[1:]}"
    return normalize_line(line)


def _check(name: str, value: str, digit: str) -> None:
    if compute_check_digit(value) != digit:
        raise MRZDecodeError(f"Invalid {name} check digit")


def _names(field: str) -> tuple[str, str]:
    surname, _, given = field.partition("<<")
    return (
        " ".join(surname.replace(FILLER, " ").split()),
        " ".join(given.replace(FILLER, " ").split()),
    )


def decode_mrz(line1: str, line2: str) -> MRZRecord:
    """Decode and verify a TD3 zone.

    Args:
        line1: First zone line, 44 characters.
        line2: Second zone line, 44 characters.

    Returns:
        Decoded record with ``checksum_valid`` set.

    Raises:
        MRZDecodeError: If the lines are malformed or any check digit fails.
    """
    for line in (line1, line2):
        if len(line) != MRZ_LINE_LENGTH or _INVALID_CHARS_RE.search(line):
            raise MRZDecodeError("Zone lines must be 44 characters of A-Z, 0-9 and '<'")
    if not line1[0].isalpha():
        raise MRZDecodeError(f"Unknown document code {line1[:2]!r}")

    birth_date, expiration_date, sex = line2[13:19], line2[21:27], line2[20]
    if not (birth_date.isdigit() and expiration_date.isdigit()):
        raise MRZDecodeError("Zone dates are not numeric")
    if sex not in "MF<":
        raise MRZDecodeError(f"Unknown sex marker {sex!r}")

    _check("document number", line2[0:9], line2[9])
    _check("birth date", birth_date, line2[19])
    _check("expiration date", expiration_date, line2[27])
    optional = line2[28:42]
    if not (line2[42] == FILLER and not optional.strip(FILLER)):
        _check("optional data", optional, line2[42])
    _check("composite", line2[0:10] + line2[13:20] + line2[21:43], line2[43])

    last_name, first_name = _names(line1[5:])
    return MRZRecord(
        document_code=line1[0:2].replace(FILLER, ""),
        document_number=line2[0:9].replace(FILLER, ""),
        last_name=last_name,
        first_name=first_name,
        nationality=line2[10:13].replace(FILLER, ""),
        birth_date=birth_date,
        sex=sex,
        expiration_date=expiration_date,
        issuing_country=line1[2:5].replace(FILLER, ""),
        optional_data=optional.replace(FILLER, ""),
        checksum_valid=True,
        raw_lines=(line1, line2),
    )


def read_mrz(document: DocumentText, scan_lines: int = 15) -> MRZRecord | None:
    """Find and decode the zone of a passport text.

    Returns:
        The verified record, or ``None`` when no zone is found or it does
        not verify; heuristics then carry the extraction alone.
    """
    lines = find_mrz_lines(document.raw_lines or document.lines, scan_lines)
    if lines is None:
        logger.info("No MRZ lines detected")
        return None
    try:
        record = decode_mrz(*lines)
    except MRZDecodeError as exc:
        logger.info("MRZ rejected, using text heuristics only: %s", exc)
        return None
    logger.info("MRZ decoded for document %s", record.document_number)
    return record


def format_mrz_date(value: str | None, kind: str = "birth", today: dt.date | None = None) -> str | None:
    """Render a ``YYMMDD`` zone date as ``DD MMM YYYY``.

    Birth dates take the latest century that does not put them in the
    future; expiry dates are placed in the 2000s.

    Args:
        value: Six-digit zone date.
        kind: ``"birth"`` or ``"expiry"``.
        today: Reference date for birth dates, defaults to today.

    Returns:
        Formatted date, or ``None`` for a missing or impossible date.
    """
    if not value or not re.fullmatch(r"\d{6}", value):
        return None
    year, month, day = int(value[0:2]), int(value[2:4]), int(value[4:6])
    today = today or dt.date.today()
    centuries = (2000,) if kind == "expiry" else (2000, 1900)
    for century in centuries:
        try:
            date = dt.date(century + year, month, day)
        except ValueError:
            continue
        if kind == "birth" and date > today:
            continue
        return f"{date.day:02d} {_MONTHS[date.month - 1]} {date.year}"
    return None


def extract_citizenship_number(optional_data: str | None) -> str | None:
    """Find a 13-digit national identifier in the zone's optional data."""
    if not optional_data:
        return None
    compact = re.sub(r"[\s<]", "", optional_data)
    match = _NATIONAL_ID_RE.search(compact)
    if not match:
        return None
    formatted = format_national_id(match.group(1))
    return formatted if formatted and len(formatted) == 15 else None
