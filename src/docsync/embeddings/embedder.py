"""Text embedding using sentence-transformers."""

from typing import Any

from rich.progress import Progress


class Embedder:
    """Embeds passages and queries with a lazily loaded sentence-transformers model."""

    def __init__(self, config: dict[str, Any], batch_size: int = 32):
        self.model_name = config.get("embedding_model", "intfloat/e5-large-v2")
        self.batch_size = batch_size
        self._model = None

    @property
    def model(self):
        """Lazy-load the embedding model."""
        if self._model is None:
            from sentence_transformers import SentenceTransformer
            self._model = SentenceTransformer(self.model_name)
        return self._model

    def embed_passages(self, texts: list[str], show_progress: bool = False) -> list[list[float]]:
        """Embed document chunks, in batches."""
        # e5 models need "passage: " prefix for documents
        prefixed = [f"passage: {t}" for t in texts]
        embeddings: list[list[float]] = []

        if not show_progress:
            for i in range(0, len(prefixed), self.batch_size):
                embeddings.extend(self.model.encode(prefixed[i:i + self.batch_size]).tolist())
            return embeddings

        with Progress() as progress:
            task = progress.add_task("Embedding...", total=len(prefixed))
            for i in range(0, len(prefixed), self.batch_size):
                batch = prefixed[i:i + self.batch_size]
                embeddings.extend(self.model.encode(batch).tolist())
                progress.advance(task, len(batch))
        return embeddings

    def embed_query(self, text: str) -> list[float]:
        # e5 models need "query: " prefix for queries
        return self.model.encode(f"query: {text}").tolist()
