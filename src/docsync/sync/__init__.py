"""Index synchronization: engine and cyclic trigger."""

from .engine import SyncEngine, SyncState, UpdateResult
from .scheduler import CyclicUpdater

__all__ = ["SyncEngine", "SyncState", "UpdateResult", "CyclicUpdater"]
