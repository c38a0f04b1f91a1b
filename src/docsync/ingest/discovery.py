"""Resolves the configured document sources to concrete file paths."""

import glob
import logging
import os
import re
from typing import Any

from ..errors import EnumerationError

logger = logging.getLogger(__name__)

_WILDCARD = re.compile(r"[*?[]")


def normalize_path(path: str) -> str:
    """Canonical source identity for a file path."""
    return os.path.normpath(path)


def enumerate_files(config: dict[str, Any]) -> list[str]:
    """List candidate files, re-scanning the filesystem on every call.

    ``file_patterns`` (glob patterns) take precedence over the
    ``documents.file_path`` + ``documents.extensions`` shape.

    Raises:
        EnumerationError: if a configured directory is missing or cannot be listed.
    """
    patterns = config.get("file_patterns") or []
    if patterns:
        return files_from_patterns(patterns)

    docs_cfg = config.get("documents") or {}
    directory = docs_cfg.get("file_path")
    if not directory:
        raise EnumerationError("No file_patterns or documents.file_path configured")
    return files_with_extensions(directory, docs_cfg.get("extensions") or [])


def pattern_root(pattern: str) -> str:
    """The leading directory of ``pattern`` that contains no wildcards."""
    root = os.path.dirname(pattern)
    while _WILDCARD.search(root):
        root = os.path.dirname(root)
    return root or os.curdir


def files_from_patterns(patterns: list[str]) -> list[str]:
    found: set[str] = set()
    for pattern in patterns:
        pattern = os.path.expanduser(pattern)
        root = pattern_root(pattern)
        if not os.path.isdir(root):
            logger.warning("Directory %s of pattern %s does not exist", root, pattern)
        matches = glob.glob(pattern, recursive=True)
        logger.debug("Pattern %s matched %d path(s)", pattern, len(matches))
        found.update(normalize_path(m) for m in matches if os.path.isfile(m))
    return sorted(found)


def files_with_extensions(directory: str, extensions: list[str]) -> list[str]:
    """List files directly inside ``directory`` whose extension matches (case-insensitive)."""
    wanted = {e.lower() if e.startswith(".") else f".{e.lower()}" for e in extensions}
    directory = os.path.expanduser(directory)
    logger.debug("Searching %s for %s files", directory, ", ".join(sorted(wanted)))

    try:
        entries = list(os.scandir(directory))
    except OSError as e:
        raise EnumerationError(f"Cannot list document directory {directory}: {e}") from e

    files = []
    for entry in entries:
        try:
            is_file = entry.is_file()
        except OSError:
            # Entry vanished between listing and inspection
            continue
        if is_file and os.path.splitext(entry.name)[1].lower() in wanted:
            files.append(normalize_path(os.path.join(directory, entry.name)))
    return sorted(files)
