"""Tests for the extraction CLI and CSV export."""

import csv
import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from idreader.cli import (
    _find_documents,
    _print_summary,
    _write_csv,
    build_reader,
    extract_single,
    main,
    process_folder,
)
from idreader.ocr.document_reader import OCRFailedError
from idreader.utils.config import AppConfig

CNIC_TEXT = "\n".join(
    [
        "PAKISTAN",
        "National Identity Card",
        "Name",
        "JOHN DOE",
        "Father Name",
        "RICHARD DOE",
        "Identity Number",
        "35201-1234567-1",
    ]
)


class TestFindDocuments:
    """Tests for document discovery."""

    def test_filters_by_extension(self, tmp_path: Path) -> None:
        (tmp_path / "card1.png").touch()
        (tmp_path / "card2.pdf").touch()
        (tmp_path / "notes.docx").touch()
        files = _find_documents(tmp_path, [".png", ".pdf"])
        assert [f.name for f in files] == ["card1.png", "card2.pdf"]

    def test_uppercase_extensions(self, tmp_path: Path) -> None:
        (tmp_path / "CARD.PNG").touch()
        assert len(_find_documents(tmp_path, [".png"])) == 1

    def test_no_documents(self, tmp_path: Path) -> None:
        (tmp_path / "readme.md").touch()
        assert _find_documents(tmp_path, [".png"]) == []


class TestWriteCsv:
    """Tests for CSV writing."""

    def test_meta_columns_first(self, tmp_path: Path) -> None:
        results = [
            {"filename": "a.txt", "status": "success", "error": None, "name": "JOHN DOE", "cnicNumber": "1"},
            {"filename": "b.png", "status": "ocr_failed", "error": "OCR failed"},
        ]
        output = tmp_path / "out" / "results.csv"
        _write_csv(results, output)

        with open(output) as f:
            rows = list(csv.reader(f))
        assert rows[0] == ["filename", "status", "error", "cnicNumber", "name"]
        assert rows[2][:3] == ["b.png", "ocr_failed", "OCR failed"]

    def test_empty_results(self, tmp_path: Path) -> None:
        output = tmp_path / "results.csv"
        _write_csv([], output)
        assert not output.exists()


class TestPrintSummary:
    """Tests for summary printing."""

    def test_print_summary(self, capsys: pytest.CaptureFixture[str]) -> None:
        _print_summary({"total": 5, "successful": 4, "failed": 1}, Path("results.csv"))
        captured = capsys.readouterr()
        assert "Total:      5" in captured.out
        assert "Successful: 4" in captured.out
        assert "Failed:     1" in captured.out
        assert "results.csv" in captured.out


class TestExtractSingle:
    """Tests for single document extraction."""

    def test_text_document(self, tmp_path: Path) -> None:
        path = tmp_path / "card.txt"
        path.write_text(CNIC_TEXT)

        result = extract_single(path, "cnic", config=AppConfig())

        assert result["success"] is True
        assert result["message"] == "CNIC data extracted successfully"
        assert result["documentType"] == "national_id"
        assert result["data"]["name"] == "JOHN DOE"
        assert result["data"]["cnicNumber"] == "35201-1234567-1"
        assert result["confidence"]["ocrConfidence"] == 85
        json.dumps(result)

    def test_passport_message_and_debug(self, tmp_path: Path) -> None:
        path = tmp_path / "passport.txt"
        path.write_text("Surname\nKHAN")

        result = extract_single(path, "passport", debug=True, config=AppConfig())

        assert result["message"] == "Passport data extracted successfully"
        assert result["debug"]["mrzLines"] == "No MRZ data found"

    def test_read_failure(self, tmp_path: Path) -> None:
        result = extract_single(tmp_path / "missing.png", config=AppConfig())
        assert result["success"] is False
        assert result["status"] == "not_found"

    def test_reuses_given_reader(self, tmp_path: Path) -> None:
        reader = MagicMock()
        reader.read.side_effect = OCRFailedError("OCR failed: engine down")

        result = extract_single(tmp_path / "card.png", config=AppConfig(), reader=reader)

        reader.read.assert_called_once_with(tmp_path / "card.png")
        assert result == {"success": False, "message": "OCR failed: engine down", "status": "ocr_failed"}


class TestProcessFolder:
    """Tests for batch folder processing."""

    def test_mixed_results(self, tmp_path: Path) -> None:
        input_dir = tmp_path / "in"
        input_dir.mkdir()
        (input_dir / "a_card.txt").write_text(CNIC_TEXT)
        (input_dir / "b_scan.png").write_bytes(b"not an image")
        output_csv = tmp_path / "results.csv"

        summary = process_folder(input_dir, output_csv, "cnic", config=AppConfig())

        assert summary == {"total": 2, "successful": 1, "failed": 1}
        with open(output_csv) as f:
            rows = list(csv.DictReader(f))
        assert rows[0]["filename"] == "a_card.txt"
        assert rows[0]["status"] == "success"
        assert rows[0]["name"] == "JOHN DOE"
        assert rows[0]["source_kind"] == "text"
        assert rows[1]["status"] == "ocr_failed"

    @patch("idreader.cli.build_reader")
    def test_unexpected_error_is_counted(self, mock_build: MagicMock, tmp_path: Path) -> None:
        mock_build.return_value.read.side_effect = ValueError("boom")
        (tmp_path / "card.txt").write_text("x")

        summary = process_folder(tmp_path, tmp_path / "out.csv", config=AppConfig())

        assert summary["failed"] == 1

    def test_empty_folder(self, tmp_path: Path) -> None:
        summary = process_folder(tmp_path, tmp_path / "out.csv", config=AppConfig())
        assert summary == {"total": 0, "successful": 0, "failed": 0}
        assert not (tmp_path / "out.csv").exists()

    def test_verbose(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        (tmp_path / "card.txt").write_text(CNIC_TEXT)
        process_folder(tmp_path, tmp_path / "out" / "results.csv", verbose=True, config=AppConfig())
        assert "Processing [1/1]: card.txt" in capsys.readouterr().out


class TestBuildReader:
    """Tests for reader construction."""

    @patch("idreader.cli.TesseractEngine")
    def test_engine_configured(self, mock_engine_cls: MagicMock) -> None:
        config = AppConfig()
        reader = build_reader(config)
        mock_engine_cls.assert_called_once_with(tesseract_cmd=None, default_lang="eng", psm=6)
        assert reader.engine is mock_engine_cls.return_value


class TestCLIMain:
    """Tests for the CLI argument parser and main entry point."""

    def test_no_command_shows_help(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0

    def test_batch_nonexistent_directory(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["batch", "/nonexistent/path"])
        assert exc_info.value.code == 1
        assert "not a directory" in capsys.readouterr().err

    def test_extract_missing_file(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["extract", "/nonexistent/file.png"])
        assert exc_info.value.code == 1
        output = json.loads(capsys.readouterr().out)
        assert output["status"] == "not_found"

    def test_extract_to_file(self, tmp_path: Path) -> None:
        document = tmp_path / "card.txt"
        document.write_text(CNIC_TEXT)
        output = tmp_path / "out" / "result.json"

        main(["extract", str(document), "-t", "cnic", "-o", str(output)])

        result = json.loads(output.read_text())
        assert result["data"]["fatherName"] == "RICHARD DOE"

    @patch("idreader.cli.process_folder")
    def test_batch_with_options(self, mock_pf: MagicMock, tmp_path: Path) -> None:
        mock_pf.return_value = {"total": 1, "successful": 1, "failed": 0}
        output = tmp_path / "out.csv"

        main(["batch", str(tmp_path), "-o", str(output), "-t", "passport", "-v"])

        args = mock_pf.call_args.args
        assert args[:4] == (tmp_path, output, "passport", True)

    def test_config_file(self, tmp_path: Path) -> None:
        config_path = tmp_path / "config.yaml"
        config_path.write_text("extraction:\n  text_confidence_baseline: 60\n")
        document = tmp_path / "card.txt"
        document.write_text(CNIC_TEXT)
        output = tmp_path / "result.json"

        main(["-c", str(config_path), "extract", str(document), "-o", str(output)])

        result = json.loads(output.read_text())
        assert result["confidence"]["ocrConfidence"] == 60
