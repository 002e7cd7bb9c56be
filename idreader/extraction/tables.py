"""Keyword dictionaries, label specifications and value patterns.

Everything the label and fallback locators know about document wording
lives here as named tables, keyed per document type, so a new layout means
editing data rather than locator code.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

from .normalizer import collapse_whitespace, format_national_id
from .records import DocumentType

# Document boilerplate that can never be a person's name.
EXCLUDED_TERMS: tuple[str, ...] = (
    "PAKISTAN",
    "PAK",
    "NATIONAL",
    "IDENTITY",
    "CARD",
    "ISLAMIC",
    "REPUBLIC",
    "CNIC",
    "MALE",
    "FEMALE",
    "GENDER",
    "COUNTRY",
    "DATE",
    "BIRTH",
    "ISSUE",
    "EXPIRY",
    "ADDRESS",
    "HOLDER",
    "SIGNATURE",
    "STAY",
    "OF",
    "NUMBER",
    "PASSPORT",
)

# Captions of other fields; a value starting with one of these is a label.
LABEL_PREFIX_RE = re.compile(
    r"^(?:FATHER|HUSBAND|GENDER|SEX|COUNTRY|IDENTITY|CNIC|DATE|BIRTH|ISSUE|ISSUING"
    r"|EXPIRY|MALE|FEMALE|NAME|SURNAME|GIVEN|NATIONALITY|PASSPORT|PLACE|AUTHORITY"
    r"|TRACKING|CITIZENSHIP|ADDRESS|HOLDER|SIGNATURE)\b"
)

# Searched in this order; the first keyword present in the text wins.
COUNTRY_KEYWORDS: tuple[str, ...] = (
    "PAKISTAN",
    "PAK",
    "USA",
    "UNITED STATES",
    "UNITED STATES OF AMERICA",
    "UK",
    "UNITED KINGDOM",
    "CANADA",
    "AUSTRALIA",
    "INDIA",
    "CHINA",
    "GERMANY",
    "FRANCE",
    "ITALY",
    "SPAIN",
    "SAUDI ARABIA",
    "UAE",
    "UNITED ARAB EMIRATES",
    "BANGLADESH",
    "SRI LANKA",
    "AFGHANISTAN",
    "IRAN",
    "TURKEY",
    "EGYPT",
    "JAPAN",
    "SOUTH KOREA",
    "THAILAND",
    "MALAYSIA",
    "INDONESIA",
    "SINGAPORE",
    "PHILIPPINES",
    "VIETNAM",
)

COUNTRY_ALIASES: dict[str, str] = {
    "PAK": "PAKISTAN",
    "USA": "UNITED STATES",
    "US": "UNITED STATES",
    "UK": "UNITED KINGDOM",
    "UAE": "UNITED ARAB EMIRATES",
}

# Longest first so "UNITED STATES OF AMERICA" is not cut short at "UNITED STATES".
COUNTRY_KEYWORD_RE = re.compile(
    r"\b("
    + "|".join(re.escape(k) for k in sorted(COUNTRY_KEYWORDS, key=len, reverse=True))
    + r")\b"
)

MONTHS = "JAN|FEB|MAR|APR|MAY|JUN|JUL|AUG|SEP|OCT|NOV|DEC"
DATE_PATTERN = (
    r"(?<!\d)(?:\d{1,2}[./-]\d{1,2}[./-]\d{4}"
    rf"|\d{{1,2}}[\s-]?(?:{MONTHS})[A-Z]*[\s-]?\d{{4}})(?!\d)"
)
DATE_RE = re.compile(DATE_PATTERN, re.IGNORECASE)

# Label-qualified dates, searched on the whitespace-collapsed text.
LABELED_DATE_PATTERNS: dict[str, re.Pattern[str]] = {
    "date_of_birth": re.compile(
        rf"(?:DOB|Date\s+of\s+Birth|Birth)[:\s]*({DATE_PATTERN})", re.IGNORECASE
    ),
    "date_of_issue": re.compile(
        rf"(?:DOI|Date\s+of\s+Issue|Issue)[:\s]*({DATE_PATTERN})", re.IGNORECASE
    ),
    "date_of_expiry": re.compile(
        rf"(?:DOE|Date\s+of\s+Expiry|Expiry|Valid\s+Until)[:\s]*({DATE_PATTERN})",
        re.IGNORECASE,
    ),
}

# A lone M/F followed by a digit is a sector or grid reference, not a gender.
GENDER_RE = re.compile(r"\b(MALE|FEMALE|M|F)\b(?![-/.]?\d)", re.IGNORECASE)
NATIONAL_ID_RE = re.compile(r"(?<!\d)(\d{5}-?\s?\d{7}-?\s?\d)(?!\d)")
PASSPORT_NUMBER_RE = re.compile(r"\b((?=[A-Z0-9]*\d)[A-Z0-9]{6,9})\b")
BARE_PASSPORT_NUMBER_RE = re.compile(r"\b([A-Z]{1,2}\d{7,8})\b")
TRACKING_NUMBER_RE = re.compile(r"\b((?=[A-Z0-9]*\d)[A-Z0-9]{6,15})\b")
ALPHA_VALUE_RE = re.compile(r"^([A-Z][A-Z .'-]*[A-Z])$")

# Where a free-text value stops on the collapsed text: a digit or the next caption.
_STOP = (
    r"(?=\s+(?:\d|(?:Date|DOB|Sex|Gender|Nationality|Authority|Issuing|Passport|Tracking"
    r"|Father|Husband|Given|Surname|Place|Citizenship|Country)\b)|$)"
)

FALLBACK_PATTERNS: dict[str, tuple[re.Pattern[str], ...]] = {
    "address": (
        re.compile(r"(?:Address|Residence)[:\s]+(.+?)(?:\s+\d{5}|$)", re.IGNORECASE),
    ),
    "place_of_birth": (
        re.compile(rf"(?:Place\s+of\s+Birth|Born\s+in)[:\s]+([A-Z\s,]+?){_STOP}", re.IGNORECASE),
    ),
    "issuing_authority": (
        re.compile(rf"(?:Issuing\s+Authority|Authority)[:\s]+([A-Z\s]+?){_STOP}", re.IGNORECASE),
    ),
    "surname": (
        re.compile(rf"(?:Surname|Last\s+Name)[:\s]+([A-Z\s]+?){_STOP}", re.IGNORECASE),
    ),
    "given_names": (
        re.compile(rf"(?:Given\s+Names?|First\s+Name)[:\s]+([A-Z\s]+?){_STOP}", re.IGNORECASE),
    ),
    "nationality": (
        re.compile(rf"(?:Nationality|Country)[:\s]+([A-Z\s]{{2,}}?){_STOP}", re.IGNORECASE),
    ),
    "passport_number": (
        re.compile(
            r"(?:Passport\s*No\.?|Passport\s*Number|Passport|P\s*No)[:\s]*"
            r"((?=[A-Z0-9]*\d)[A-Z0-9]{6,9})\b",
            re.IGNORECASE,
        ),
        BARE_PASSPORT_NUMBER_RE,
    ),
    "tracking_number": (
        re.compile(r"Tracking\s*(?:No\.?|Number)?[:\s]*(\d{6,15})", re.IGNORECASE),
    ),
}

COUNTRY_LABEL_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"(?:Country\s+of\s+Birth|Country\s+Name|Nationality\s+Code|Country|Nationality)"
        r"[:\s]+([A-Z\s]{2,}?)(?:\s+\d|$)",
        re.IGNORECASE | re.MULTILINE,
    ),
    re.compile(
        r"(?:Issued\s+in|Issued\s+by|Place\s+of\s+Issue)[:\s]+([A-Z\s]{2,}?)(?:\s+\d|$)",
        re.IGNORECASE | re.MULTILINE,
    ),
)


def canonical_country(value: str | None) -> str | None:
    """Upper-case a country name and expand known abbreviations."""
    if not value:
        return None
    cleaned = collapse_whitespace(value).upper()
    return COUNTRY_ALIASES.get(cleaned, cleaned) or None


def canonical_gender(value: str | None) -> str | None:
    """Render a gender token as MALE or FEMALE."""
    if not value:
        return None
    token = value.strip().upper()
    if token in {"M", "MALE"}:
        return "MALE"
    if token in {"F", "FEMALE"}:
        return "FEMALE"
    return None


@dataclass(frozen=True)
class LabelSpec:
    """How to find one field by its printed caption.

    A line is a label line for the field when it contains every keyword of
    at least one group in ``label_groups`` and none of ``exclusions``.
    Keywords of three characters or fewer must match as whole words.
    ``caption`` locates the caption within its line, so that captions
    printed side by side can be matched to values printed side by side.
    """

    field: str
    label_groups: tuple[tuple[str, ...], ...]
    same_line: re.Pattern[str]
    exclusions: tuple[str, ...] = ()
    min_length: int = 2
    name_like: bool = False
    reject_labels: bool = True
    value_pattern: re.Pattern[str] | None = None
    formatter: Callable[[str], str | None] | None = None
    distinct_from: str | None = None
    caption: re.Pattern[str] | None = None


def _same_line(label: str) -> re.Pattern[str]:
    return re.compile(rf"(?:{label})[:\s]+(.+)$", re.IGNORECASE)


def _caption(label: str) -> re.Pattern[str]:
    return re.compile(rf"\b(?:{label})\b", re.IGNORECASE)


_DATE_VALUE_RE = re.compile(rf"({DATE_PATTERN})", re.IGNORECASE)

_DATE_SPECS: tuple[LabelSpec, ...] = (
    LabelSpec(
        field="date_of_birth",
        label_groups=(("DATE", "BIRTH"), ("DOB",)),
        exclusions=("PLACE",),
        same_line=_same_line(r"Date\s+of\s+Birth|DOB|Birth"),
        value_pattern=_DATE_VALUE_RE,
        caption=_caption(r"Date\s+of\s+Birth|DOB|Birth"),
    ),
    LabelSpec(
        field="date_of_issue",
        label_groups=(("DATE", "ISSUE"), ("ISSUE",), ("DOI",)),
        exclusions=("PLACE", "AUTHORITY"),
        same_line=_same_line(r"Date\s+of\s+Issue|DOI|Issue"),
        value_pattern=_DATE_VALUE_RE,
        caption=_caption(r"Date\s+of\s+Issue|DOI|Issue"),
    ),
    LabelSpec(
        field="date_of_expiry",
        label_groups=(("EXPIRY",), ("EXPIRATION",), ("VALID", "UNTIL")),
        same_line=_same_line(r"Date\s+of\s+Expiry|Date\s+of\s+Expiration|Expiry|Valid\s+Until"),
        value_pattern=_DATE_VALUE_RE,
        caption=_caption(r"Date\s+of\s+Expiry|Date\s+of\s+Expiration|Expiry|Valid\s+Until"),
    ),
)

_GENDER_SPEC = LabelSpec(
    field="gender",
    label_groups=(("GENDER",), ("SEX",)),
    same_line=_same_line(r"Gender|Sex"),
    min_length=1,
    reject_labels=False,
    value_pattern=GENDER_RE,
    formatter=canonical_gender,
)

NATIONAL_ID_LABELS: tuple[LabelSpec, ...] = (
    LabelSpec(
        field="name",
        label_groups=(("NAME",),),
        exclusions=("FATHER", "HUSBAND", "SURNAME", "GIVEN"),
        same_line=_same_line(r"Name"),
        name_like=True,
    ),
    LabelSpec(
        field="father_name",
        label_groups=(("FATHER", "NAME"), ("HUSBAND", "NAME"), ("S/O",), ("D/O",), ("W/O",)),
        same_line=_same_line(r"Father\s+Name|Father|Husband\s+Name|Husband|S/O|D/O|W/O"),
        name_like=True,
        distinct_from="name",
    ),
    LabelSpec(
        field="cnic_number",
        label_groups=(("IDENTITY", "NUMBER"), ("CNIC",)),
        same_line=_same_line(r"Identity\s+Number|CNIC\s*(?:No\.?|Number)?"),
        value_pattern=NATIONAL_ID_RE,
        formatter=format_national_id,
    ),
    LabelSpec(
        field="country",
        label_groups=(("COUNTRY",),),
        same_line=_same_line(r"Country(?:\s+of\s+Stay)?"),
        value_pattern=COUNTRY_KEYWORD_RE,
        formatter=canonical_country,
    ),
    _GENDER_SPEC,
    *_DATE_SPECS,
    LabelSpec(
        field="address",
        label_groups=(("ADDRESS",), ("RESIDENCE",)),
        same_line=_same_line(r"Address|Residence"),
        min_length=3,
    ),
)

PASSPORT_LABELS: tuple[LabelSpec, ...] = (
    LabelSpec(
        field="passport_number",
        label_groups=(("PASSPORT", "NO"), ("PASSPORT", "NUMBER")),
        same_line=_same_line(r"Passport\s*(?:No\.?|Number)"),
        value_pattern=PASSPORT_NUMBER_RE,
    ),
    LabelSpec(
        field="surname",
        label_groups=(("SURNAME",), ("LAST", "NAME")),
        same_line=_same_line(r"Surname|Last\s+Name"),
        name_like=True,
    ),
    LabelSpec(
        field="given_names",
        label_groups=(("GIVEN", "NAME"), ("FIRST", "NAME")),
        same_line=_same_line(r"Given\s+Names?|First\s+Name"),
        name_like=True,
    ),
    LabelSpec(
        field="nationality",
        label_groups=(("NATIONALITY",),),
        same_line=_same_line(r"Nationality"),
        value_pattern=ALPHA_VALUE_RE,
        formatter=canonical_country,
    ),
    LabelSpec(
        field="father_name",
        label_groups=(("FATHER",), ("S/O",), ("D/O",)),
        same_line=_same_line(r"Father\s+Name|Father|S/O|D/O"),
        name_like=True,
    ),
    LabelSpec(
        field="husband_name",
        label_groups=(("HUSBAND",), ("W/O",)),
        same_line=_same_line(r"Husband\s+Name|Husband|W/O"),
        name_like=True,
    ),
    *_DATE_SPECS,
    LabelSpec(
        field="place_of_birth",
        label_groups=(("PLACE", "BIRTH"), ("BORN", "IN")),
        same_line=_same_line(r"Place\s+of\s+Birth|Born\s+in"),
        min_length=3,
        name_like=True,
    ),
    LabelSpec(
        field="issuing_authority",
        label_groups=(("AUTHORITY",),),
        same_line=_same_line(r"Issuing\s+Authority|Authority"),
        min_length=3,
    ),
    LabelSpec(
        field="tracking_number",
        label_groups=(("TRACKING",),),
        same_line=_same_line(r"Tracking\s*(?:No\.?|Number)?"),
        value_pattern=TRACKING_NUMBER_RE,
    ),
    LabelSpec(
        field="citizenship_number",
        label_groups=(("CITIZENSHIP",), ("CNIC",), ("NATIONAL", "ID")),
        same_line=_same_line(r"Citizenship\s*(?:No\.?|Number)?|CNIC\s*(?:No\.?|Number)?|National\s+ID"),
        value_pattern=NATIONAL_ID_RE,
        formatter=format_national_id,
    ),
    _GENDER_SPEC,
)

LABEL_SPECS: dict[DocumentType, tuple[LabelSpec, ...]] = {
    DocumentType.NATIONAL_ID: NATIONAL_ID_LABELS,
    DocumentType.PASSPORT: PASSPORT_LABELS,
}
