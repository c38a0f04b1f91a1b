"""Document parsers, selected by file extension."""

from pathlib import Path

from .text import TextParser
from .pdf import PdfParser
from .docx import DocxParser

PARSERS: dict[str, type] = {
    ".pdf": PdfParser,
    ".docx": DocxParser,
}


def register_parser(extension: str, parser_cls: type) -> None:
    """Route files with ``extension`` to ``parser_cls``."""
    ext = extension.lower()
    if not ext.startswith("."):
        ext = f".{ext}"
    PARSERS[ext] = parser_cls


def get_parser(file_path: Path):
    """Return an extractor for the file; unknown extensions read as text.

    Extractors expose ``extract(file_path) -> str``.
    """
    parser_cls = PARSERS.get(file_path.suffix.lower(), TextParser)
    return parser_cls()


__all__ = ["PARSERS", "get_parser", "register_parser", "TextParser", "PdfParser", "DocxParser"]
