"""Merge zone-derived values over text-derived ones."""

from idreader.utils.logger import get_logger

from .mrz import extract_citizenship_number, format_mrz_date
from .records import FieldSource, FieldValue, MRZRecord
from .tables import canonical_country

logger = get_logger(__name__)

_SEX_NAMES = {"M": "MALE", "F": "FEMALE"}


def mrz_field_values(mrz: MRZRecord) -> dict[str, str | None]:
    """Map a decoded zone onto passport record fields.

    Only fields the zone actually carries appear here; place of birth,
    issue date, issuing authority, relatives' names and the tracking
    number always come from the printed text.
    """
    return {
        "passport_number": mrz.document_number or None,
        "surname": mrz.last_name or None,
        "given_names": mrz.first_name or None,
        "nationality": canonical_country(mrz.nationality) if mrz.nationality else None,
        "date_of_birth": format_mrz_date(mrz.birth_date, "birth"),
        "gender": _SEX_NAMES.get(mrz.sex),
        "date_of_expiry": format_mrz_date(mrz.expiration_date, "expiry"),
        "citizenship_number": extract_citizenship_number(mrz.optional_data),
    }


def reconcile(
    heuristic: dict[str, FieldValue], mrz: MRZRecord | None
) -> tuple[dict[str, FieldValue], bool]:
    """Overlay a verified zone on heuristic values.

    Args:
        heuristic: Values from the label and fallback locators.
        mrz: Decoded zone, if any. Ignored unless ``checksum_valid``.

    Returns:
        Tuple of (merged values, whether the zone was used). A zone value
        that decodes empty never erases a heuristic value.
    """
    if mrz is None or not mrz.checksum_valid:
        return dict(heuristic), False

    merged = dict(heuristic)
    for name, value in mrz_field_values(mrz).items():
        if value:
            previous = merged.get(name)
            if previous is not None and previous.value != value:
                logger.debug("MRZ overrides %s: %s -> %s", name, previous.value, value)
            merged[name] = FieldValue(value, FieldSource.MRZ)
    return merged, True
