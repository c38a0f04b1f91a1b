"""docsync - incremental vector index over local documents."""

__version__ = "0.1.0"
