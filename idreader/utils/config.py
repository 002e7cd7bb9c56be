"""Configuration management for the identity document reader.

Loads and validates YAML configuration with defaults for the OCR
collaborators, the extraction heuristics, upload limits and logging.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

DATE_FIELDS: tuple[str, ...] = ("date_of_birth", "date_of_issue", "date_of_expiry")


class OCRConfig(BaseModel):
    """Configuration for the Tesseract OCR collaborator."""

    tesseract_cmd: str | None = None
    default_lang: str = "eng"
    # 6 = assume a single uniform block of text, which suits ID cards.
    psm: int = 6
    pdf_dpi: int = 300


class ExtractionConfig(BaseModel):
    """Tunable heuristics of the field extraction engine.

    The positional assumptions (date ordinals, header skipping, name windows)
    were tuned on one national card layout and are exposed here so other
    layouts can override them.
    """

    text_confidence_baseline: float = 85.0
    ocr_weight: float = 0.5
    accuracy_weight: float = 0.3
    mrz_bonus: int = 20
    mrz_scan_lines: int = 15
    header_scan_lines: int = 5
    name_window: int = 5
    secondary_name_window: int = 6
    secondary_name_skip: int = 1
    date_order: list[str] = Field(default_factory=lambda: list(DATE_FIELDS))
    structural_names: bool = True
    debug_lines_national_id: int = 20
    debug_lines_passport: int = 30

    @field_validator("date_order")
    @classmethod
    def _known_date_fields(cls, value: list[str]) -> list[str]:
        unknown = [name for name in value if name not in DATE_FIELDS]
        if unknown:
            raise ValueError(f"Unknown date fields in date_order: {unknown}")
        return value


class UploadConfig(BaseModel):
    """Limits applied by the document reader before any OCR runs."""

    max_file_size_mb: float = 10.0
    allowed_extensions: list[str] = Field(
        default_factory=lambda: [".png", ".jpg", ".jpeg", ".tif", ".tiff", ".pdf", ".txt"]
    )

    @property
    def max_file_size_bytes(self) -> int:
        return int(self.max_file_size_mb * 1024 * 1024)


class AppConfig(BaseModel):
    """Top-level application configuration."""

    ocr: OCRConfig = Field(default_factory=OCRConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    uploads: UploadConfig = Field(default_factory=UploadConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
