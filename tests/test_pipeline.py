"""Integration tests for the full pipeline (pattern rules only, no model download)."""

import asyncio
import io
import json
from pathlib import Path

from docx import Document
from rich.console import Console

from docsanitizer.config import Config
from docsanitizer.detectors.base import Category, NerResult, NerSpan
from docsanitizer.pipeline import output_path_for, process_file, scan_document
from docsanitizer.pseudonymizer.mapping import MappingStore

TEXT = "Contact jane@corp.com from 192.168.1.100, phone +1 555-123-4567."


def _quiet_console() -> Console:
    return Console(file=io.StringIO(), width=200)


def _process(path: Path, output_dir: Path, config: Config | None = None, **kwargs):
    return asyncio.run(process_file(path, config or Config(), output_dir, console=_quiet_console(), **kwargs))


# --- TXT ---


def test_pipeline_txt(tmp_path: Path):
    src = tmp_path / "memo.txt"
    src.write_text(TEXT, encoding="utf-8")
    out = tmp_path / "out"

    result = _process(src, out)

    assert result is not None
    assert result.original_file_name == "memo.txt"
    masked = (out / "memo.txt").read_text(encoding="utf-8")
    assert "<EMAIL_1>" in masked
    assert "<IP_ADDRESS_1>" in masked
    assert "jane@corp.com" not in masked
    # Phone numbers are medium confidence and stay until approved
    assert "+1 555-123-4567" in masked

    mapping = json.loads((out / "memo.mapping.json").read_text(encoding="utf-8"))
    assert mapping == {"<EMAIL_1>": ["jane@corp.com"], "<IP_ADDRESS_1>": ["192.168.1.100"]}


def test_pipeline_restore_from_mapping(tmp_path: Path):
    src = tmp_path / "memo.txt"
    src.write_text(TEXT, encoding="utf-8")
    out = tmp_path / "out"

    _process(src, out, approve_everything=True)

    masked = (out / "memo.txt").read_text(encoding="utf-8")
    assert "<PHONE_1>" in masked
    store = MappingStore.load(out / "memo.mapping.json")
    assert store.restore(masked) == TEXT


def test_pipeline_dry_run_writes_nothing(tmp_path: Path):
    src = tmp_path / "memo.txt"
    src.write_text(TEXT, encoding="utf-8")
    out = tmp_path / "out"

    result = _process(src, out, dry_run=True)

    assert result is not None
    assert len(result.detections) == 3
    assert not out.exists()


def test_pipeline_without_mapping_file(tmp_path: Path):
    src = tmp_path / "memo.txt"
    src.write_text(TEXT, encoding="utf-8")
    out = tmp_path / "out"
    config = Config()
    config.export_preferences.include_mapping_file = False

    _process(src, out, config)

    assert (out / "memo.txt").exists()
    assert not (out / "memo.mapping.json").exists()


def test_pipeline_export_format(tmp_path: Path):
    src = tmp_path / "memo.txt"
    src.write_text(TEXT, encoding="utf-8")
    out = tmp_path / "out"
    config = Config()
    config.export_preferences.default_format = "md"

    _process(src, out, config)

    assert (out / "memo.md").exists()


def test_pipeline_nothing_detected(tmp_path: Path):
    src = tmp_path / "plain.txt"
    src.write_text("Nothing sensitive in here.", encoding="utf-8")
    out = tmp_path / "out"

    result = _process(src, out)

    assert result is not None
    assert result.detections == []
    assert not out.exists()


def test_pipeline_unreadable_inputs(tmp_path: Path):
    legacy = tmp_path / "old.doc"
    legacy.write_text("legacy", encoding="utf-8")
    empty = tmp_path / "empty.txt"
    empty.write_text("   \n", encoding="utf-8")

    assert _process(legacy, tmp_path / "out") is None
    assert _process(empty, tmp_path / "out") is None


# --- HTML ---


def test_pipeline_html_entity_encoded_email(tmp_path: Path):
    src = tmp_path / "page.html"
    src.write_text("<p>Mail john&#64;acme.com &amp; Jos&eacute;</p>", encoding="utf-8")

    result = _process(src, tmp_path / "out")

    assert result is not None
    assert [d.text for d in result.detections] == ["john@acme.com"]


# --- DOCX ---


def test_pipeline_docx_written_as_text(tmp_path: Path):
    doc = Document()
    doc.add_paragraph("Send the invoice to jane@corp.com")
    src = tmp_path / "invoice.docx"
    doc.save(str(src))
    out = tmp_path / "out"

    _process(src, out)

    masked = (out / "invoice.txt").read_text(encoding="utf-8")
    assert "Send the invoice to <EMAIL_1>" in masked
    assert "jane@corp.com" not in masked


# --- Recognizer ---


class FakeRecognizer:
    async def extract_entities(self, text, custom_name_hints):
        start = text.index("Jean Dupont")
        return NerResult(success=True, persons=[NerSpan("Jean Dupont", start, start + 11)])


def test_scan_document_with_recognizer():
    result = asyncio.run(scan_document("Jean Dupont wrote to jane@corp.com", "note.txt", Config(), FakeRecognizer()))

    assert len(result.document_id) == 16
    assert [d.subcategory for d in result.detections] == ["person_name", "email"]
    assert result.stats.total_detections == 2
    assert result.stats.by_category[Category.PERSONAL] == 2
    assert result.stats.by_confidence == {"high": 1, "medium": 1, "low": 0}
    assert result.stats.processing_time_ms >= 0


def test_scan_document_id_is_stable():
    first = asyncio.run(scan_document("a@b.com here", "x.txt", Config()))
    second = asyncio.run(scan_document("a@b.com here", "x.txt", Config()))
    other = asyncio.run(scan_document("a@b.com here", "y.txt", Config()))
    assert first.document_id == second.document_id != other.document_id


# --- Output paths ---


def test_output_path_for():
    out = Path("out")
    assert output_path_for(Path("a/notes.md"), out, "same") == out / "notes.md"
    assert output_path_for(Path("a/notes.md"), out, "txt") == out / "notes.txt"
    assert output_path_for(Path("a/report.pdf"), out, "same") == out / "report.txt"
    assert output_path_for(Path("a/report.pdf"), out, "md") == out / "report.md"
