import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

from click.testing import CliRunner

from docsanitizer.cli import main
from docsanitizer.detectors.base import NerResult, NerSpan

TEXT = "Jean Dupont (jean.dupont@corp.com) works on Falcon."


def _write(tmp_path: Path, name: str = "test.txt", text: str = TEXT) -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_cli_dry_run(tmp_path: Path):
    txt = _write(tmp_path)
    output_dir = tmp_path / "out"

    runner = CliRunner()
    result = runner.invoke(main, [str(txt), "-o", str(output_dir), "--dry-run", "--no-ner"])

    assert result.exit_code == 0
    assert "Dry run" in result.output
    assert "Done." in result.output
    assert not output_dir.exists()


def test_cli_normal_run(tmp_path: Path):
    txt = _write(tmp_path)
    output_dir = tmp_path / "out"

    runner = CliRunner()
    result = runner.invoke(main, [str(txt), "-o", str(output_dir), "--no-ner"])

    assert result.exit_code == 0
    assert "1 detection(s) across 1 file(s), 1 approved" in result.output
    assert (output_dir / "test.txt").read_text(encoding="utf-8") == "Jean Dupont (<EMAIL_1>) works on Falcon."
    assert (output_dir / "test.mapping.json").exists()


def test_cli_no_mapping(tmp_path: Path):
    txt = _write(tmp_path)
    output_dir = tmp_path / "out"

    result = CliRunner().invoke(main, [str(txt), "-o", str(output_dir), "--no-ner", "--no-mapping"])

    assert result.exit_code == 0
    assert not (output_dir / "test.mapping.json").exists()


def test_cli_directory_input(tmp_path: Path):
    src = tmp_path / "docs"
    src.mkdir()
    _write(src, "a.txt")
    _write(src, "b.md", "Server 10.0.0.1")
    output_dir = tmp_path / "out"

    result = CliRunner().invoke(main, [str(src), "-o", str(output_dir), "--no-ner"])

    assert result.exit_code == 0
    assert "Found 2 file(s)" in result.output
    assert (output_dir / "a.txt").exists()
    assert (output_dir / "b.md").read_text(encoding="utf-8") == "Server <IP_ADDRESS_1>"


def test_cli_no_supported_files(tmp_path: Path):
    (tmp_path / "data.xyz").write_text("??", encoding="utf-8")

    result = CliRunner().invoke(main, [str(tmp_path), "--no-ner"])

    assert result.exit_code == 1
    assert "No supported files found." in result.output


def test_cli_disable_category(tmp_path: Path):
    txt = _write(tmp_path)
    output_dir = tmp_path / "out"

    result = CliRunner().invoke(
        main, [str(txt), "-o", str(output_dir), "--no-ner", "--disable-category", "personal"]
    )

    assert result.exit_code == 0
    assert "0 detection(s)" in result.output
    assert not output_dir.exists()


def test_cli_config_file(tmp_path: Path):
    txt = _write(tmp_path)
    config_path = tmp_path / "config.json"
    config_path.write_text(
        json.dumps({"custom_entities": {"projects": [{"name": "Falcon", "aliases": ["FLC"]}]}}),
        encoding="utf-8",
    )
    output_dir = tmp_path / "out"

    result = CliRunner().invoke(main, [str(txt), "-o", str(output_dir), "-c", str(config_path), "--no-ner"])

    assert result.exit_code == 0
    masked = (output_dir / "test.txt").read_text(encoding="utf-8")
    assert masked == "Jean Dupont (<EMAIL_1>) works on <PROJECT_1>."


def test_cli_approve_all_and_format(tmp_path: Path):
    txt = _write(tmp_path, text="Call +1 555-123-4567 today")
    output_dir = tmp_path / "out"

    result = CliRunner().invoke(main, [str(txt), "-o", str(output_dir), "--no-ner", "--approve-all", "--format", "md"])

    assert result.exit_code == 0
    assert (output_dir / "test.md").read_text(encoding="utf-8") == "Call <PHONE_1> today"


def test_cli_min_confidence(tmp_path: Path):
    txt = _write(tmp_path, text="Call +1 555-123-4567 today")

    result = CliRunner().invoke(main, [str(txt), "--no-ner", "--dry-run", "--min-confidence", "90"])

    assert result.exit_code == 0
    assert "0 detection(s)" in result.output


@patch("docsanitizer.cli.OnnxEntityRecognizer")
def test_cli_uses_entity_recognizer(mock_recognizer_cls, tmp_path: Path):
    mock_recognizer_cls.return_value.extract_entities = AsyncMock(
        return_value=NerResult(success=True, persons=[NerSpan("Jean Dupont", 0, 11)])
    )
    txt = _write(tmp_path)
    output_dir = tmp_path / "out"

    result = CliRunner().invoke(main, [str(txt), "-o", str(output_dir), "--approve-all"])

    assert result.exit_code == 0
    mock_recognizer_cls.assert_called_once()
    masked = (output_dir / "test.txt").read_text(encoding="utf-8")
    assert masked == "<PERSON_1> (<EMAIL_1>) works on Falcon."


@patch("docsanitizer.cli.OnnxEntityRecognizer")
def test_cli_no_ner_skips_recognizer(mock_recognizer_cls, tmp_path: Path):
    txt = _write(tmp_path)

    result = CliRunner().invoke(main, [str(txt), "--no-ner", "--dry-run"])

    assert result.exit_code == 0
    mock_recognizer_cls.assert_not_called()


@patch("docsanitizer.cli.process_file", side_effect=RuntimeError("boom"))
def test_cli_reports_file_errors(mock_process, tmp_path: Path):
    txt = _write(tmp_path)

    result = CliRunner().invoke(main, [str(txt), "--no-ner", "--dry-run"])

    assert result.exit_code == 0
    assert "Error processing test.txt" in result.output


def test_cli_dump_config(tmp_path: Path):
    txt = _write(tmp_path)

    result = CliRunner().invoke(
        main, [str(txt), "--dump-config", "--min-confidence", "85", "--disable-category", "custom", "--no-ner"]
    )

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["detection_settings"]["min_confidence"] == 85
    assert "custom" not in data["detection_settings"]["categories_enabled"]
    assert data["ner"]["enabled"] is False
