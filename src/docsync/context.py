"""Application context, built once at startup and passed to every component."""

from dataclasses import dataclass
from typing import Any

from .gate import ExclusiveGate
from .storage import IndexStoreBase, get_index_store
from .sync.engine import SyncEngine


@dataclass(frozen=True)
class AppContext:
    """Everything a running process shares: config, gate, index store and engine."""
    config: dict[str, Any]
    gate: ExclusiveGate
    index_store: IndexStoreBase
    engine: SyncEngine


def build_context(config: dict[str, Any], index_store: IndexStoreBase | None = None) -> AppContext:
    """Wire the components for ``config``. One gate guards the one index."""
    gate = ExclusiveGate()
    index_store = index_store if index_store is not None else get_index_store(config)
    engine = SyncEngine(config, index_store, gate=gate)
    return AppContext(config=config, gate=gate, index_store=index_store, engine=engine)
