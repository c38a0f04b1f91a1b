"""Error taxonomy for docsync."""


class DocSyncError(Exception):
    """Base class for all docsync errors."""


class ConfigError(DocSyncError, ValueError):
    """Configuration is missing required settings or holds invalid values."""


class IndexNotFound(DocSyncError):
    """The index does not exist on disk yet."""


class NotInitialized(DocSyncError):
    """The index has not been built or loaded yet."""


class EnumerationError(DocSyncError):
    """Candidate files could not be listed."""


class ExtractionFailure(DocSyncError):
    """Text could not be extracted from a single file."""

    def __init__(self, path, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Could not extract text from {self.path}: {reason}")


class BackendFailure(DocSyncError):
    """The embedding or vector backend failed."""


class PersistFailure(DocSyncError):
    """The index could not be written to disk."""
