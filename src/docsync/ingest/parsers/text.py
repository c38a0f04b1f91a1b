"""Plain text extraction."""

from pathlib import Path


class TextParser:
    """Read a file as UTF-8 text, verbatim."""

    def extract(self, file_path: Path) -> str:
        return file_path.read_text(encoding="utf-8")
