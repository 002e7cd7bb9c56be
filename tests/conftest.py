"""Shared test fixtures for the identity document reader test suite."""

from pathlib import Path

import pytest

PAK_LINE1 = "P<PAKKHAN<<AHMED<ALI".ljust(44, "<")
PAK_LINE2 = "AB12345671PAK9001011M30010193520112345671<66"


@pytest.fixture
def cnic_text() -> str:
    """OCR text of a national identity card with printed captions."""
    return "\n".join(
        [
            "PAKISTAN",
            "National Identity Card",
            "Name",
            "JOHN DOE",
            "Father Name",
            "RICHARD DOE",
            "Gender Country of Stay",
            "M Pakistan",
            "Identity Number",
            "35201-1234567-1",
            "Date of Birth",
            "01.01.1990",
            "Date of Issue",
            "01.01.2015",
            "Date of Expiry",
            "01.01.2025",
        ]
    )


@pytest.fixture
def passport_text() -> str:
    """OCR text of a passport data page ending in a valid zone."""
    return "\n".join(
        [
            "ISLAMIC REPUBLIC OF PAKISTAN",
            "PASSPORT",
            "Surname",
            "KHAN",
            "Given Names",
            "AHMED ALI",
            "Nationality",
            "PAKISTANI",
            "Father Name",
            "MUHAMMAD KHAN",
            "Place of Birth",
            "LAHORE",
            "Date of Issue",
            "05.03.2020",
            "Issuing Authority",
            "PAKISTAN",
            "Tracking Number",
            "123456789012",
            "",
            PAK_LINE1,
            PAK_LINE2,
        ]
    )


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the configs directory path."""
    return project_root / "configs"
