"""Shape a record into its output mapping."""

from .records import ExtractionRecord, to_camel


def clean_record(record: ExtractionRecord) -> dict[str, str | None]:
    """Build the output field mapping for a record.

    Required fields are always present, ``None`` when nothing was
    extracted. Optional fields appear only when they hold a value.

    Args:
        record: Reconciled extraction record.

    Returns:
        Mapping of camelCase field name to value, required fields first.
    """
    data: dict[str, str | None] = {}
    for name in record.required_fields:
        data[to_camel(name)] = record.value_of(name)
    for name in record.field_names():
        if name in record.required_fields:
            continue
        value = record.value_of(name)
        if value is not None:
            data[to_camel(name)] = value
    return data
