"""Incremental synchronization of the document corpus into the index.

The engine owns the index handle. It builds the index from scratch when
nothing is saved yet, otherwise it loads it and runs update passes. An update
pass compares each file's modification time with the ``last_changed`` tag of
its indexed chunks and only re-extracts files that are new or newer.
Only the append + persist step runs inside the gate; enumeration and
extraction do not.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..errors import ExtractionFailure, NotInitialized
from ..gate import ExclusiveGate
from ..ingest.discovery import enumerate_files
from ..ingest.processor import build_chunks, extract_text, process_file, stat_file
from ..models import Chunk, FileRecord
from ..storage.base import IndexStoreBase

logger = logging.getLogger(__name__)


class SyncState(Enum):
    """Lifecycle of the engine's index handle."""

    UNINITIALIZED = "uninitialized"
    BUILDING = "building"
    LOADING = "loading"
    READY = "ready"
    UPDATING = "updating"


@dataclass
class UpdateResult:
    """Outcome of one update pass."""

    files_scanned: int = 0
    files_stale: int = 0
    files_failed: int = 0
    chunks_added: int = 0
    sources_removed: int = 0
    mutated: bool = False


def indexed_versions(chunks: list[Chunk]) -> dict[str, float]:
    """Map each source to the ``last_changed`` of its first indexed chunk."""
    versions: dict[str, float] = {}
    for chunk in chunks:
        versions.setdefault(chunk.source, chunk.last_changed)
    return versions


def is_stale(record: FileRecord, versions: dict[str, float]) -> bool:
    """A file is stale when it is not indexed or changed after it was indexed."""
    indexed = versions.get(record.path)
    return indexed is None or indexed < record.last_modified


class SyncEngine:
    """Builds, loads and incrementally updates the document index."""

    def __init__(
        self,
        config: dict[str, Any],
        index_store: IndexStoreBase,
        gate: ExclusiveGate | None = None,
    ):
        self.config = config
        self.index_store = index_store
        self.gate = gate if gate is not None else ExclusiveGate()
        self.store: Any = None
        self.state = SyncState.UNINITIALIZED
        self._active_passes = 0

    @property
    def replace_superseded(self) -> bool:
        return self.config.get("sync", {}).get("replace_superseded", True)

    async def load_or_build_up(self) -> None:
        """Load the saved index and catch up with the corpus, or build it from scratch."""
        if await asyncio.to_thread(self.index_store.exists):
            await self.load()
            await self.update()
        else:
            await self.build_up_from_scratch()
            await self.gate.run_exclusive(self.save)

    async def load(self) -> None:
        """Open the saved index.

        Raises:
            IndexNotFound: if nothing has been saved yet.
        """
        self.state = SyncState.LOADING
        try:
            self.store = await asyncio.to_thread(self.index_store.load)
        except Exception:
            self.state = SyncState.UNINITIALIZED
            raise
        self.state = SyncState.READY
        logger.info("Loaded index with %d chunk(s)", await asyncio.to_thread(self.index_store.count, self.store))

    async def save(self) -> None:
        """Persist the index.

        Raises:
            NotInitialized: if no index has been built or loaded.
            PersistFailure: if writing fails. The in-memory index is kept as is.
        """
        if self.store is None:
            raise NotInitialized(
                "Index not existing yet, load it (load()) or build it first (build_up_from_scratch())"
            )
        await asyncio.to_thread(self.index_store.save, self.store)

    async def build_up_from_scratch(self) -> None:
        """Index the whole corpus into a fresh index.

        Files that cannot be read are logged and skipped. A backend failure
        leaves the engine without an index (``store`` is None).
        """
        logger.info(
            "Indexing your documents (this can take some minutes - please don't close the app during indexing)"
        )
        self.state = SyncState.BUILDING
        try:
            paths = await asyncio.to_thread(enumerate_files, self.config)
            logger.info("Found %d file(s)", len(paths))

            chunks: list[Chunk] = []
            for path in paths:
                logger.debug("Reading file %s", path)
                try:
                    chunks.extend(await asyncio.to_thread(process_file, path, self.config))
                except ExtractionFailure as e:
                    logger.warning("File could not be loaded, skipping: %s", e)

            self.store = await asyncio.to_thread(
                self.index_store.build_from_texts,
                [c.content for c in chunks],
                [c.metadata for c in chunks],
            )
        finally:
            self.state = SyncState.READY if self.store is not None else SyncState.UNINITIALIZED

        if self.store is None:
            logger.error("Index build up failed, no index available")
        else:
            logger.info("Index build up done: %d chunk(s) from %d file(s)", len(chunks), len(paths))

    async def update(self) -> UpdateResult:
        """Run one update pass.

        Raises:
            NotInitialized: if called before the index was built or loaded.
            EnumerationError: if the document sources cannot be listed.
            PersistFailure: if the updated index cannot be saved.
        """
        if self.store is None:
            raise NotInitialized("Please build up or load the index before updating it")

        self._active_passes += 1
        self.state = SyncState.UPDATING
        try:
            return await self._update_pass()
        finally:
            self._active_passes -= 1
            if self._active_passes == 0:
                self.state = SyncState.READY

    async def _update_pass(self) -> UpdateResult:
        logger.info("Updating your documents")
        paths = await asyncio.to_thread(enumerate_files, self.config)
        existing = await asyncio.to_thread(self.index_store.list_documents, self.store)
        versions = indexed_versions(existing)

        result = UpdateResult(files_scanned=len(paths))
        pending: list[Chunk] = []
        stale_sources: list[str] = []

        for path in paths:
            try:
                record = await asyncio.to_thread(stat_file, path)
            except OSError as e:
                logger.warning("Could not read modification time of %s: %s", path, e)
                result.files_failed += 1
                continue

            if not is_stale(record, versions):
                continue
            result.files_stale += 1

            try:
                text = await asyncio.to_thread(extract_text, path)
            except ExtractionFailure as e:
                logger.warning("File could not be loaded, will retry next pass: %s", e)
                result.files_failed += 1
                continue

            pending.extend(build_chunks(text, record, self.config))
            stale_sources.append(path)

        # Stale files that were indexed before lose their old chunks, even when now empty
        superseded = [s for s in stale_sources if s in versions] if self.replace_superseded else []
        if not pending and not superseded:
            logger.debug("No new or changed documents")
            return result

        await self.gate.run_exclusive(self._apply, superseded, pending)
        result.chunks_added = len(pending)
        result.sources_removed = len(superseded)
        result.mutated = True
        logger.info(
            "Updating done: %d chunk(s) from %d file(s), %d superseded file(s) cleared",
            len(pending),
            len(stale_sources),
            len(superseded),
        )
        return result

    async def _apply(self, superseded: list[str], chunks: list[Chunk]) -> None:
        """Drop superseded sources, append a batch and persist. Must run inside the gate."""
        if superseded:
            await asyncio.to_thread(self.index_store.remove_sources, self.store, superseded)
        if chunks:
            await asyncio.to_thread(self.index_store.add_documents, self.store, chunks)
        await self.save()
