"""Data models used throughout docsync."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Chunk:
    """A chunk of extracted text, tagged with the file it came from."""
    content: str
    source: str
    last_changed: float
    index: int = 0

    @property
    def metadata(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "last_changed": self.last_changed,
            "chunk_index": self.index,
        }

    @classmethod
    def from_metadata(cls, content: str, metadata: dict[str, Any]) -> "Chunk":
        return cls(
            content=content,
            source=metadata.get("source", ""),
            last_changed=float(metadata.get("last_changed", 0.0)),
            index=int(metadata.get("chunk_index", 0)),
        )


@dataclass(frozen=True)
class FileRecord:
    """A candidate file and its modification time, read fresh on every pass."""
    path: str
    last_modified: float
