"""Command-line interface for identity document extraction.

Provides an ``extract`` subcommand for one document (JSON output) and a
``batch`` subcommand for a folder of documents (CSV output).
"""

import argparse
import csv
import json
import sys
import time
from pathlib import Path

from idreader.extraction.engine import FieldExtractor
from idreader.extraction.records import DocumentType
from idreader.ocr.document_reader import DocumentReader, DocumentReadError
from idreader.ocr.tesseract_engine import TesseractEngine
from idreader.utils.config import AppConfig, load_config
from idreader.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_TYPE_CHOICES = ["cnic", "national_id", "passport"]
_DISPLAY_NAMES = {DocumentType.NATIONAL_ID: "CNIC", DocumentType.PASSPORT: "Passport"}
_META_COLUMNS = [
    "filename",
    "status",
    "page_count",
    "source_kind",
    "processing_time_s",
    "ocr_confidence",
    "extraction_accuracy",
    "overall_confidence",
    "mrz_used",
    "error",
]


def build_reader(config: AppConfig) -> DocumentReader:
    """Create a document reader with its own OCR engine handle."""
    engine = TesseractEngine(
        tesseract_cmd=config.ocr.tesseract_cmd,
        default_lang=config.ocr.default_lang,
        psm=config.ocr.psm,
    )
    return DocumentReader(config, engine)


def _find_documents(input_dir: Path, extensions: list[str]) -> list[Path]:
    """Find all supported document files in a directory.

    Args:
        input_dir: Directory to scan for documents.
        extensions: Accepted file suffixes, e.g. ``.png``.

    Returns:
        Sorted list of document file paths.
    """
    suffixes = {ext.lower() for ext in extensions}
    return sorted(p for p in input_dir.iterdir() if p.is_file() and p.suffix.lower() in suffixes)


def extract_single(
    file_path: Path,
    document_type: str = "national_id",
    debug: bool = False,
    config: AppConfig | None = None,
    reader: DocumentReader | None = None,
) -> dict[str, object]:
    """Read one document and extract its fields.

    Args:
        file_path: Path to the document file.
        document_type: ``cnic``/``national_id`` or ``passport``.
        debug: Always include raw text and numbered lines.
        config: Application configuration; loaded from disk if omitted.
        reader: Document reader to reuse; built from ``config`` if omitted.

    Returns:
        JSON-serializable result. ``success`` is False when the document
        could not be read, with ``status`` naming the failure.
    """
    config = config or load_config()
    reader = reader or build_reader(config)
    doc_type = DocumentType.parse(document_type)

    try:
        recognized = reader.read(file_path)
    except DocumentReadError as exc:
        logger.error("Failed to read %s: %s", file_path.name, exc.message)
        return {"success": False, "message": exc.message, "status": exc.status}

    result = FieldExtractor(config.extraction).extract(
        doc_type,
        recognized.text,
        word_confidences=recognized.word_confidences,
        debug=debug,
    )
    return {
        "success": True,
        "message": f"{_DISPLAY_NAMES[doc_type]} data extracted successfully",
        **result.to_dict(),
    }


def process_folder(
    input_dir: Path,
    output_csv: Path,
    document_type: str = "national_id",
    verbose: bool = False,
    config: AppConfig | None = None,
) -> dict[str, int]:
    """Process all documents in a folder and export results to CSV.

    Args:
        input_dir: Directory containing document files.
        output_csv: Path for the output CSV file.
        document_type: Document type shared by every file in the folder.
        verbose: Whether to print per-file progress.
        config: Application configuration; loaded from disk if omitted.

    Returns:
        Summary dict with total, successful, and failed counts.
    """
    config = config or load_config()
    reader = build_reader(config)
    extractor = FieldExtractor(config.extraction)
    doc_type = DocumentType.parse(document_type)

    files = _find_documents(input_dir, config.uploads.allowed_extensions)
    if not files:
        logger.warning("No documents found in %s", input_dir)
        return {"total": 0, "successful": 0, "failed": 0}

    logger.info("Found %d documents to process", len(files))

    results: list[dict[str, object]] = []
    successful = 0
    failed = 0

    for i, file_path in enumerate(files, 1):
        if verbose:
            print(f"Processing [{i}/{len(files)}]: {file_path.name}")

        start_time = time.time()
        try:
            result = _process_single_file(file_path, reader, extractor, doc_type)
            result["processing_time_s"] = round(time.time() - start_time, 2)
            results.append(result)
            successful += 1
        except DocumentReadError as exc:
            logger.error("Failed to read %s: %s", file_path.name, exc.message)
            results.append({"filename": file_path.name, "status": exc.status, "error": exc.message})
            failed += 1
        except Exception as exc:
            logger.error("Failed to process %s: %s", file_path.name, exc)
            results.append({"filename": file_path.name, "status": "failed", "error": str(exc)})
            failed += 1

    _write_csv(results, output_csv)
    logger.info("Results written to %s", output_csv)

    summary = {"total": len(files), "successful": successful, "failed": failed}
    _print_summary(summary, output_csv)
    return summary


def _process_single_file(
    file_path: Path,
    reader: DocumentReader,
    extractor: FieldExtractor,
    document_type: DocumentType,
) -> dict[str, object]:
    """Read and extract one document into a flat CSV row."""
    recognized = reader.read(file_path)
    result = extractor.extract(
        document_type, recognized.text, word_confidences=recognized.word_confidences
    )
    row: dict[str, object] = {
        "filename": file_path.name,
        "status": "success",
        "page_count": recognized.page_count,
        "source_kind": recognized.source_kind,
        "ocr_confidence": result.confidence.ocr_confidence,
        "extraction_accuracy": result.confidence.extraction_accuracy,
        "overall_confidence": result.confidence.overall_confidence,
        "mrz_used": result.confidence.mrz_used,
        "error": None,
    }
    row.update(result.data)
    return row


def _write_csv(results: list[dict[str, object]], output_path: Path) -> None:
    """Write extraction results to a CSV file.

    Args:
        results: List of result dictionaries.
        output_path: Path for the output CSV file.
    """
    if not results:
        return

    all_keys: set[str] = set()
    for r in results:
        all_keys.update(r.keys())

    field_columns = sorted(all_keys - set(_META_COLUMNS))
    columns = [c for c in _META_COLUMNS if c in all_keys] + field_columns

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=columns, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(results)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    """Print batch processing summary to stdout."""
    print(f"\n{'=' * 50}")
    print("Batch Processing Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Successful: {summary['successful']}")
    print(f"Failed:     {summary['failed']}")
    print(f"Output:     {output_csv}")


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Identity document field extractor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-c", "--config", type=Path, default=None, help="YAML configuration file"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    batch_parser = subparsers.add_parser("batch", help="Process a folder of documents")
    batch_parser.add_argument("input_dir", type=Path, help="Input directory with documents")
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("results.csv"),
        help="Output CSV file (default: results.csv)",
    )
    batch_parser.add_argument(
        "-t",
        "--type",
        choices=_TYPE_CHOICES,
        default="national_id",
        dest="doc_type",
        help="Document type (default: national_id)",
    )
    batch_parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    single_parser = subparsers.add_parser("extract", help="Process a single document")
    single_parser.add_argument("file", type=Path, help="Document file to process")
    single_parser.add_argument(
        "-t",
        "--type",
        choices=_TYPE_CHOICES,
        default="national_id",
        dest="doc_type",
        help="Document type (default: national_id)",
    )
    single_parser.add_argument(
        "--debug", action="store_true", help="Always include raw text and numbered lines"
    )
    single_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    args = parser.parse_args(argv)

    config = load_config(args.config)
    setup_logging(config.log_level)

    if args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        process_folder(args.input_dir, args.output, args.doc_type, args.verbose, config)
    elif args.command == "extract":
        result = extract_single(args.file, args.doc_type, args.debug, config)
        output_str = json.dumps(result, indent=2)
        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(output_str)
            print(f"Output written to {args.output}")
        else:
            print(output_str)
        if not result["success"]:
            sys.exit(1)
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
