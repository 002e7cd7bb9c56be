"""Tests for machine-readable zone detection and decoding."""

import datetime as dt

import pytest

from idreader.extraction.mrz import (
    MRZDecodeError,
    clean_mrz_line,
    compute_check_digit,
    correct_mrz_line,
    decode_mrz,
    extract_citizenship_number,
    find_mrz_lines,
    format_mrz_date,
    is_line1,
    is_line2,
    normalize_line,
    normalize_line1,
    read_mrz,
    split_combined_line,
)
from idreader.extraction.normalizer import normalize_text

ICAO_LINE1 = "P<UTOERIKSSON<<ANNA<MARIA<<<<<<<<<<<<<<<<<<<"
ICAO_LINE2 = "L898902C36UTO7408122F1204159ZE184226B<<<<<10"

PAK_LINE1 = "P<PAKKHAN<<AHMED<ALI".ljust(44, "<")
PAK_LINE2 = "AB12345671PAK9001011M30010193520112345671<66"


class TestCheckDigit:
    """Tests for the ICAO 9303 check digit."""

    def test_document_number(self) -> None:
        assert compute_check_digit("L898902C3") == "6"

    def test_dates(self) -> None:
        assert compute_check_digit("740812") == "2"
        assert compute_check_digit("120415") == "9"

    def test_filler_counts_as_zero(self) -> None:
        assert compute_check_digit("<<<<<<") == "0"


class TestDecodeMRZ:
    """Tests for decoding and verifying a TD3 zone."""

    def test_icao_specimen(self) -> None:
        record = decode_mrz(ICAO_LINE1, ICAO_LINE2)
        assert record.document_code == "P"
        assert record.issuing_country == "UTO"
        assert record.last_name == "ERIKSSON"
        assert record.first_name == "ANNA MARIA"
        assert record.document_number == "L898902C3"
        assert record.nationality == "UTO"
        assert record.birth_date == "740812"
        assert record.sex == "F"
        assert record.expiration_date == "120415"
        assert record.optional_data == "ZE184226B"
        assert record.checksum_valid is True
        assert record.raw_lines == (ICAO_LINE1, ICAO_LINE2)

    def test_empty_optional_data_with_filler_check(self) -> None:
        line2 = "L898902C36UTO7408122F1204159".ljust(43, "<")
        composite = compute_check_digit(line2[0:10] + line2[13:20] + line2[21:43])
        record = decode_mrz(ICAO_LINE1, line2[:43] + composite)
        assert record.optional_data == ""

    def test_altered_document_check_digit_rejected(self) -> None:
        with pytest.raises(MRZDecodeError, match="document number"):
            decode_mrz(ICAO_LINE1, ICAO_LINE2[:9] + "7" + ICAO_LINE2[10:])

    def test_altered_birth_date_rejected(self) -> None:
        with pytest.raises(MRZDecodeError, match="birth date"):
            decode_mrz(ICAO_LINE1, ICAO_LINE2[:13] + "740813" + ICAO_LINE2[19:])

    def test_altered_composite_rejected(self) -> None:
        with pytest.raises(MRZDecodeError, match="composite"):
            decode_mrz(ICAO_LINE1, ICAO_LINE2[:43] + "1")

    def test_wrong_length_rejected(self) -> None:
        with pytest.raises(MRZDecodeError):
            decode_mrz(ICAO_LINE1[:40], ICAO_LINE2)

    def test_invalid_characters_rejected(self) -> None:
        with pytest.raises(MRZDecodeError):
            decode_mrz(ICAO_LINE1.replace("<", " ", 1), ICAO_LINE2)

    def test_national_identifier_in_optional_data(self) -> None:
        record = decode_mrz(PAK_LINE1, PAK_LINE2)
        assert record.last_name == "KHAN"
        assert record.first_name == "AHMED ALI"
        assert record.document_number == "AB1234567"
        assert record.optional_data == "3520112345671"


class TestLineCleaning:
    """Tests for OCR cleanup and the correction table."""

    def test_clean_strips_noise(self) -> None:
        assert clean_mrz_line(" vo P<UTO ERIKSSON«ANNA | ") == "P<UTOERIKSSON<ANNA"

    def test_clean_drops_lowercase_and_punctuation(self) -> None:
        assert clean_mrz_line("abc-123.XY") == "123XY"

    def test_document_code_misread(self) -> None:
        assert correct_mrz_line("PKPAKKHAN<<AHMED").startswith("P<PAK")
        assert correct_mrz_line("P5UTOERIKSSON").startswith("P<UTO")

    def test_filler_misread_as_letters(self) -> None:
        assert correct_mrz_line("P<UTOERIKSSON<<ANNA<CLLL") == "P<UTOERIKSSON<<ANNA<<<<<"
        assert correct_mrz_line("P<UTOERIKSSON<<ANNA<KKK<") == "P<UTOERIKSSON<<ANNA<<<<<"

    def test_real_names_survive(self) -> None:
        line = "P<GBRKELLY<<WILLIAM<<<<<"
        assert correct_mrz_line(line) == line

    def test_single_letter_name_part_survives(self) -> None:
        line = "P<UTOSMITH<<JOHN<K<<<<<<"
        assert correct_mrz_line(line) == line
        assert correct_mrz_line("P<UTOSMITH<<JOHN<K") == "P<UTOSMITH<<JOHN<K"


class TestLineDetection:
    """Tests for finding the two zone lines in a text."""

    def test_line_shapes(self) -> None:
        assert is_line1(ICAO_LINE1)
        assert is_line2(ICAO_LINE2)
        assert not is_line1("12345")

    def test_pair_found_below_other_text(self) -> None:
        lines = ("PASSPORT", "Surname", "ERIKSSON", ICAO_LINE1, ICAO_LINE2)
        assert find_mrz_lines(lines) == (ICAO_LINE1, ICAO_LINE2)

    def test_short_lines_are_padded(self) -> None:
        lines = ("P<UTOERIKSSON<<ANNA<MARIA", ICAO_LINE2)
        first, second = find_mrz_lines(lines)
        assert first == ICAO_LINE1
        assert second == ICAO_LINE2

    def test_combined_line_is_split(self) -> None:
        assert split_combined_line(ICAO_LINE1 + ICAO_LINE2) == (ICAO_LINE1, ICAO_LINE2)
        assert find_mrz_lines(("PASSPORT", ICAO_LINE1 + ICAO_LINE2)) == (ICAO_LINE1, ICAO_LINE2)

    def test_no_zone(self) -> None:
        assert find_mrz_lines(("Name", "JOHN DOE", "01.01.1990")) is None

    def test_normalize_line(self) -> None:
        assert len(normalize_line("ABC")) == 44
        assert normalize_line("A" * 50) == "A" * 44
        assert normalize_line1("PUTOERIKSSON").startswith("P<UTOERIKSSON")


class TestReadMRZ:
    """Tests for the detect-then-decode entry point."""

    def test_reads_valid_zone(self) -> None:
        document = normalize_text(f"PASSPORT\n{ICAO_LINE1}\n{ICAO_LINE2}")
        record = read_mrz(document)
        assert record is not None
        assert record.document_number == "L898902C3"

    def test_corrupted_zone_is_absent(self) -> None:
        broken = ICAO_LINE2[:9] + "0" + ICAO_LINE2[10:]
        document = normalize_text(f"PASSPORT\n{ICAO_LINE1}\n{broken}")
        assert read_mrz(document) is None

    def test_empty_text(self) -> None:
        assert read_mrz(normalize_text("")) is None

    def test_one_letter_given_name_kept(self) -> None:
        line1 = "P<UTOSMITH<<JOHN<K".ljust(44, "<")
        record = read_mrz(normalize_text(f"PASSPORT\n{line1}\n{ICAO_LINE2}"))
        assert record is not None
        assert record.last_name == "SMITH"
        assert record.first_name == "JOHN K"


class TestFormatMRZDate:
    """Tests for rendering zone dates."""

    def test_birth_date_in_last_century(self) -> None:
        assert format_mrz_date("740812", "birth", today=dt.date(2024, 1, 1)) == "12 AUG 1974"

    def test_birth_date_never_in_future(self) -> None:
        assert format_mrz_date("300101", "birth", today=dt.date(2024, 1, 1)) == "01 JAN 1930"
        assert format_mrz_date("100101", "birth", today=dt.date(2024, 1, 1)) == "01 JAN 2010"

    def test_expiry_in_this_century(self) -> None:
        assert format_mrz_date("300101", "expiry") == "01 JAN 2030"

    def test_invalid_dates(self) -> None:
        assert format_mrz_date(None) is None
        assert format_mrz_date("12AB56") is None
        assert format_mrz_date("741332") is None


class TestCitizenshipNumber:
    """Tests for reading the national identifier from optional data."""

    def test_extracts_and_formats(self) -> None:
        assert extract_citizenship_number("3520112345671") == "35201-1234567-1"

    def test_ignores_filler(self) -> None:
        assert extract_citizenship_number("35201<1234567<1") == "35201-1234567-1"

    def test_missing(self) -> None:
        assert extract_citizenship_number("ZE184226B") is None
        assert extract_citizenship_number("") is None
