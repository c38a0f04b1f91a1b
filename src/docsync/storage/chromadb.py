"""ChromaDB index store backend.

Chroma writes every change straight into its sqlite file, so ``save()``
records a manifest (``index.json``) next to it. The manifest is the
well-known file that marks a complete, saved index: an index whose first
build never reached ``save()`` does not count as existing.
"""

import hashlib
import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any

import chromadb

from ..errors import BackendFailure, IndexNotFound, NotInitialized, PersistFailure
from ..models import Chunk
from .base import IndexStoreBase

logger = logging.getLogger(__name__)

INDEX_MANIFEST = "index.json"
ADD_BATCH_SIZE = 256


def chunk_id(metadata: dict[str, Any]) -> str:
    """Stable id from source, mtime and position, so re-adding a chunk upserts it."""
    key = f"{metadata['source']}:{metadata['last_changed']}:{metadata.get('chunk_index', 0)}"
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:32]


class ChromaIndexStore(IndexStoreBase):
    """ChromaDB-backed persistent index of document chunks."""

    def __init__(self, index_path: str | Path, embedder, collection_name: str = "documents"):
        self.index_path = Path(index_path)
        self.embedder = embedder
        self.collection_name = collection_name
        self._client = None

    @property
    def manifest_path(self) -> Path:
        return self.index_path / INDEX_MANIFEST

    @property
    def client(self):
        if self._client is None:
            self.index_path.mkdir(parents=True, exist_ok=True)
            self._client = chromadb.PersistentClient(path=str(self.index_path))
        return self._client

    def exists(self) -> bool:
        return self.manifest_path.is_file()

    def load(self) -> chromadb.Collection:
        if not self.exists():
            raise IndexNotFound(
                f"No index in {self.index_path} yet, build it first with build_from_texts()"
            )
        try:
            return self.client.get_collection(name=self.collection_name)
        except Exception as e:
            raise IndexNotFound(
                f"Index manifest present but collection '{self.collection_name}' "
                f"cannot be opened in {self.index_path}: {e}"
            ) from e

    def save(self, store: chromadb.Collection | None) -> None:
        if store is None:
            raise NotInitialized(
                "Index not existing yet, load it or build it from scratch before saving"
            )
        tmp_path = self.manifest_path.with_suffix(".tmp")
        try:
            manifest = {
                "collection": self.collection_name,
                "chunk_count": store.count(),
                "embedding_model": getattr(self.embedder, "model_name", None),
                "saved_at": datetime.now().isoformat(),
            }
            self.index_path.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(manifest, indent=2), encoding="utf-8")
            os.replace(tmp_path, self.manifest_path)
        except Exception as e:
            raise PersistFailure(f"Could not save index to {self.index_path}: {e}") from e

    def build_from_texts(
        self, texts: list[str], metadatas: list[dict[str, Any]]
    ) -> chromadb.Collection | None:
        # A fresh build invalidates whatever was saved before
        self.manifest_path.unlink(missing_ok=True)
        try:
            embeddings = self.embedder.embed_passages(texts, show_progress=True)
            self._drop_collection()
            collection = self._create_collection()
            self._upsert(collection, texts, metadatas, embeddings)
        except Exception:
            logger.exception("Error while building up the index in %s", self.index_path)
            self._discard_partial_build()
            return None
        logger.info("Indexed %d chunk(s) into %s", len(texts), self.index_path)
        return collection

    def add_documents(self, store: chromadb.Collection, chunks: list[Chunk]) -> None:
        if not chunks:
            return
        texts = [c.content for c in chunks]
        try:
            embeddings = self.embedder.embed_passages(texts)
            self._upsert(store, texts, [c.metadata for c in chunks], embeddings)
        except Exception as e:
            raise BackendFailure(f"Could not add {len(chunks)} chunk(s) to {self.index_path}: {e}") from e

    def remove_sources(self, store: chromadb.Collection, sources: list[str]) -> None:
        for source in sources:
            store.delete(where={"source": source})

    def list_documents(self, store: chromadb.Collection) -> list[Chunk]:
        data = store.get(include=["documents", "metadatas"])
        documents = data.get("documents") or []
        metadatas = data.get("metadatas") or []
        return [
            Chunk.from_metadata(doc or "", meta or {})
            for doc, meta in zip(documents, metadatas)
        ]

    def query(self, store: chromadb.Collection, text: str, n_results: int = 4) -> list[dict[str, Any]]:
        available = store.count()
        if available == 0:
            return []
        results = store.query(
            query_embeddings=[self.embedder.embed_query(text)],
            n_results=min(n_results, available),
            include=["documents", "metadatas", "distances"],
        )

        output = []
        if results and results["ids"] and results["ids"][0]:
            for i, doc_id in enumerate(results["ids"][0]):
                output.append({
                    "id": doc_id,
                    "document": results["documents"][0][i] if results["documents"] else "",
                    "metadata": results["metadatas"][0][i] if results["metadatas"] else {},
                    "distance": results["distances"][0][i] if results["distances"] else 0,
                })
        return output

    def count(self, store: chromadb.Collection) -> int:
        return store.count()

    def _create_collection(self) -> chromadb.Collection:
        return self.client.get_or_create_collection(
            name=self.collection_name,
            metadata={"hnsw:space": "cosine"},
        )

    def _discard_partial_build(self) -> None:
        try:
            self._drop_collection()
        except Exception as e:
            logger.warning("Could not drop partially built collection in %s: %s", self.index_path, e)

    def _drop_collection(self) -> None:
        # list_collections() yields names on newer chromadb, Collection objects on older
        names = [c if isinstance(c, str) else c.name for c in self.client.list_collections()]
        if self.collection_name in names:
            self.client.delete_collection(name=self.collection_name)

    @staticmethod
    def _upsert(
        collection: chromadb.Collection,
        texts: list[str],
        metadatas: list[dict[str, Any]],
        embeddings: list[list[float]],
    ) -> None:
        for i in range(0, len(texts), ADD_BATCH_SIZE):
            batch_meta = metadatas[i:i + ADD_BATCH_SIZE]
            collection.upsert(
                ids=[chunk_id(m) for m in batch_meta],
                embeddings=embeddings[i:i + ADD_BATCH_SIZE],
                documents=texts[i:i + ADD_BATCH_SIZE],
                metadatas=batch_meta,
            )
