"""Storage abstraction for index backends."""

from .base import IndexStoreBase, get_index_store

__all__ = ["IndexStoreBase", "get_index_store"]
