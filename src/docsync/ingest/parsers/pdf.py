"""PDF text extraction."""

from pathlib import Path


class PdfParser:
    """Extract the text layer of a PDF with pypdf.

    Pages without extractable text (scans, blank pages) contribute nothing.
    """

    page_separator = "\n\n"

    def extract(self, file_path: Path) -> str:
        from pypdf import PdfReader

        reader = PdfReader(str(file_path))
        texts = (page.extract_text() or "" for page in reader.pages)
        return self.page_separator.join(t.strip() for t in texts if t.strip())
