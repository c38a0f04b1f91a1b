"""Abstract index store adapter and factory function."""

from abc import ABC, abstractmethod
from typing import Any

from ..models import Chunk


class IndexStoreBase(ABC):
    """Common interface for persisted vector index backends.

    ``store`` arguments are the backend's own handle, as returned by
    ``load()`` or ``build_from_texts()``; callers treat it as opaque.
    """

    @abstractmethod
    def exists(self) -> bool:
        """True iff a saved index is present on disk."""

    @abstractmethod
    def load(self) -> Any:
        """Open the saved index. Raises IndexNotFound when there is none."""

    @abstractmethod
    def save(self, store: Any) -> None:
        """Persist the index. Raises NotInitialized for a missing store, PersistFailure on I/O errors."""

    @abstractmethod
    def build_from_texts(self, texts: list[str], metadatas: list[dict[str, Any]]) -> Any | None:
        """Embed and index every text into a fresh index.

        Backend failures are logged and leave nothing behind; returns None in that case.
        """

    @abstractmethod
    def add_documents(self, store: Any, chunks: list[Chunk]) -> None:
        """Embed and append chunks to an existing index, in place."""

    @abstractmethod
    def remove_sources(self, store: Any, sources: list[str]) -> None:
        """Delete every indexed chunk whose source is in ``sources``."""

    @abstractmethod
    def list_documents(self, store: Any) -> list[Chunk]:
        """Enumerate all indexed chunks."""

    @abstractmethod
    def query(self, store: Any, text: str, n_results: int = 4) -> list[dict[str, Any]]:
        """Nearest chunks to ``text``. Each result has document, metadata and distance."""

    @abstractmethod
    def count(self, store: Any) -> int:
        """Number of indexed chunks."""


def get_index_store(config: dict[str, Any]) -> IndexStoreBase:
    """Factory: return the right index store based on config."""
    backend = config.get("storage_backend", "chromadb")

    if backend == "chromadb":
        from ..embeddings import Embedder
        from .chromadb import ChromaIndexStore
        return ChromaIndexStore(
            config["index_path"],
            Embedder(config),
            collection_name=config.get("collection", "documents"),
        )
    raise ValueError(f"Unknown storage_backend: {backend}")
