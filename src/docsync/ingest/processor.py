"""Turns candidate files into tagged chunks ready for the index."""

import os
from pathlib import Path
from typing import Any

from ..errors import ExtractionFailure
from ..models import Chunk, FileRecord
from .chunker import split_text
from .parsers import get_parser


def stat_file(path: str) -> FileRecord:
    """Read the file's current modification time."""
    return FileRecord(path=path, last_modified=os.stat(path).st_mtime)


def extract_text(path: str | Path) -> str:
    """Extract plain text from a file, dispatching on its extension.

    Raises:
        ExtractionFailure: if the file cannot be read or decoded.
    """
    file_path = Path(path)
    parser = get_parser(file_path)
    try:
        return parser.extract(file_path)
    except ExtractionFailure:
        raise
    except Exception as e:
        raise ExtractionFailure(file_path, str(e) or type(e).__name__) from e


def build_chunks(text: str, record: FileRecord, config: dict[str, Any]) -> list[Chunk]:
    """Split extracted text and tag every piece with its source and mtime."""
    chunk_cfg = config.get("chunking", {})
    pieces = split_text(
        text,
        separator=chunk_cfg.get("separator", "\n"),
        chunk_size=chunk_cfg.get("chunk_size", 1500),
    )
    return [
        Chunk(content=p, source=record.path, last_changed=record.last_modified, index=i)
        for i, p in enumerate(pieces)
    ]


def process_file(path: str, config: dict[str, Any]) -> list[Chunk]:
    """Stat, extract and split a single file.

    Raises:
        ExtractionFailure: if the file vanished or its text cannot be extracted.
    """
    try:
        record = stat_file(path)
    except OSError as e:
        raise ExtractionFailure(path, f"cannot stat file ({e})") from e
    return build_chunks(extract_text(path), record, config)
