"""DOCX text extraction."""

from pathlib import Path

from ...errors import ExtractionFailure


class DocxParser:
    """Extract DOCX body text using python-docx.

    Paragraph text is rebuilt from its runs in document order and non-empty
    paragraphs are joined with newlines.
    """

    def extract(self, file_path: Path) -> str:
        from docx import Document

        try:
            doc = Document(str(file_path))
        except Exception as e:
            raise ExtractionFailure(
                file_path, f"not a readable DOCX package or word/document.xml is missing ({e})"
            ) from e

        try:
            paragraphs = ["".join(run.text for run in p.runs) for p in doc.paragraphs]
        except Exception as e:
            raise ExtractionFailure(file_path, f"malformed word/document.xml ({e})") from e

        return "\n".join(p for p in paragraphs if p.strip())
