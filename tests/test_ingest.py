"""Tests for extraction, chunking and file processing."""

import os
import tempfile
from pathlib import Path

import pytest

from docsync.config import DEFAULT_CONFIG
from docsync.errors import ExtractionFailure
from docsync.ingest.chunker import split_text
from docsync.ingest.parsers import PARSERS, DocxParser, PdfParser, TextParser, get_parser, register_parser
from docsync.ingest.processor import build_chunks, extract_text, process_file, stat_file
from docsync.models import FileRecord


def test_split_short_text():
    assert split_text("alpha", chunk_size=1500) == ["alpha"]


def test_split_empty_text():
    assert split_text("", chunk_size=10) == []
    assert split_text("\n\n  \n", chunk_size=10) == []


def test_split_packs_units_up_to_bound():
    text = "\n".join(["aaaa", "bbbb", "cccc", "dddd"])
    chunks = split_text(text, separator="\n", chunk_size=9)
    assert chunks == ["aaaa\nbbbb", "cccc\ndddd"]


def test_split_only_single_units_exceed_bound():
    units = [f"line {i} " + "x" * (i % 17) for i in range(200)]
    text = "\n".join(units)
    for size in (10, 25, 64, 300):
        for chunk in split_text(text, chunk_size=size):
            assert len(chunk) <= size or chunk in units


def test_split_oversized_unit_between_fitting_units():
    chunks = split_text("ab\ncd\n" + "z" * 12 + "\nef\ngh", chunk_size=5)
    assert chunks == ["ab\ncd", "z" * 12, "ef\ngh"]


def test_split_oversized_unit_kept_whole():
    long_unit = "y" * 50
    chunks = split_text(f"short\n{long_unit}\ntail", chunk_size=10)
    assert chunks == ["short", long_unit, "tail"]


def test_split_is_deterministic():
    text = "one two three four five six seven"
    assert split_text(text, separator=" ", chunk_size=9) == split_text(text, separator=" ", chunk_size=9)


def test_split_custom_and_empty_separator():
    assert split_text("a,b,c", separator=",", chunk_size=3) == ["a,b", "c"]
    assert split_text("abcde", separator="", chunk_size=2) == ["ab", "cd", "e"]


def test_split_rejects_non_positive_size():
    with pytest.raises(ValueError):
        split_text("abc", chunk_size=0)


def test_dispatch_is_case_insensitive():
    assert isinstance(get_parser(Path("report.PDF")), PdfParser)
    assert isinstance(get_parser(Path("letter.Docx")), DocxParser)
    assert isinstance(get_parser(Path("notes.md")), TextParser)
    assert isinstance(get_parser(Path("README")), TextParser)


def test_register_parser_adds_variant():
    class UpperParser:
        def extract(self, file_path):
            return file_path.read_text().upper()

    try:
        register_parser("SHOUT", UpperParser)
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "x.shout"
            path.write_text("quiet")
            assert extract_text(path) == "QUIET"
    finally:
        PARSERS.pop(".shout", None)


def test_text_read_verbatim():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "notes.log"
        path.write_text("  keep\n\nspacing  \n", encoding="utf-8")
        assert extract_text(path) == "  keep\n\nspacing  \n"


def test_invalid_utf8_is_extraction_failure():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "binary.txt"
        path.write_bytes(b"\xff\xfe\x00bad")
        with pytest.raises(ExtractionFailure) as exc:
            extract_text(path)
        assert exc.value.path == str(path)


def test_docx_paragraphs_from_runs():
    from docx import Document

    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "letter.docx"
        doc = Document()
        p = doc.add_paragraph("Hello ")
        p.add_run("world")
        doc.add_paragraph("Second paragraph")
        doc.save(str(path))

        assert extract_text(path) == "Hello world\nSecond paragraph"


def test_docx_not_a_package():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "broken.docx"
        path.write_text("this is not a zip file")
        with pytest.raises(ExtractionFailure) as exc:
            extract_text(path)
        assert "broken.docx" in str(exc.value)


def test_docx_missing_document_part():
    import zipfile

    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "empty.docx"
        with zipfile.ZipFile(path, "w") as zf:
            zf.writestr("other.txt", "no word/document.xml in here")
        with pytest.raises(ExtractionFailure):
            extract_text(path)


def test_pdf_blank_page():
    from pypdf import PdfWriter

    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "blank.pdf"
        writer = PdfWriter()
        writer.add_blank_page(width=72, height=72)
        with open(path, "wb") as f:
            writer.write(f)
        assert extract_text(path) == ""


def test_build_chunks_tags_source_and_mtime():
    record = FileRecord(path="docs/a.txt", last_modified=123.5)
    config = {"chunking": {"separator": "\n", "chunk_size": 5}}
    chunks = build_chunks("abc\ndef\nghi", record, config)
    assert [c.content for c in chunks] == ["abc", "def", "ghi"]
    assert all(c.source == "docs/a.txt" and c.last_changed == 123.5 for c in chunks)
    assert [c.index for c in chunks] == [0, 1, 2]


def test_process_file_uses_mtime():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "a.txt")
        Path(path).write_text("alpha")
        os.utime(path, (1000.0, 1000.0))

        chunks = process_file(path, DEFAULT_CONFIG)
        assert len(chunks) == 1
        assert chunks[0].content == "alpha"
        assert chunks[0].last_changed == 1000.0
        assert stat_file(path).last_modified == 1000.0


def test_process_missing_file():
    with pytest.raises(ExtractionFailure):
        process_file("/nonexistent/file.txt", DEFAULT_CONFIG)
