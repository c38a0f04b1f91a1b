"""Configuration management for docsync."""

import copy
import os
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError


DEFAULT_CONFIG = {
    "file_patterns": [],
    "documents": {"file_path": None, "extensions": [".txt", ".pdf", ".docx"]},
    "index_path": "DocumentDb",
    "storage_backend": "chromadb",
    "collection": "documents",
    "embedding_model": "intfloat/e5-large-v2",
    "claude_model": "claude-sonnet-4-20250514",
    "chunking": {"separator": "\n", "chunk_size": 1500},
    "sync": {"interval_seconds": 60, "allow_overlap": False, "replace_superseded": True},
    "server": {"url": "https://goldenretriever.herokuapp.com", "n_chunks": 4},
    "logging": {"level": "INFO"},
}

# Keys used by config.json files of the earlier JSON layout
_CAMEL_CASE_KEYS = {
    "filePatterns": "file_patterns",
    "openAiKey": "claude_api_key",
    "indexPath": "index_path",
    "filePath": "file_path",
}


def _find_config_file() -> Path | None:
    """Look for config.yaml in standard locations."""
    candidates = [
        Path.cwd() / "config" / "config.yaml",
        Path.cwd() / "config.yaml",
        Path.home() / ".docsync" / "config.yaml",
    ]
    for p in candidates:
        if p.exists():
            return p
    return None


def load_config(config_path: str | Path | None = None, validate: bool = True) -> dict[str, Any]:
    """Load configuration, merging defaults with file and env vars.

    Raises:
        ConfigError: if the file cannot be parsed or the result is invalid.
    """
    cfg = copy.deepcopy(DEFAULT_CONFIG)

    path = Path(config_path) if config_path else _find_config_file()
    if config_path and not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    if path and path.exists():
        try:
            with open(path) as f:
                file_cfg = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(file_cfg, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        _deep_merge(cfg, _normalize_keys(file_cfg))

    # Env overrides
    if api_key := os.environ.get("ANTHROPIC_API_KEY"):
        cfg["claude_api_key"] = api_key
    if index_path := os.environ.get("DOCSYNC_INDEX_PATH"):
        cfg["index_path"] = index_path

    cfg["index_path"] = str(Path(cfg["index_path"]).expanduser())
    if isinstance(cfg["file_patterns"], str):
        cfg["file_patterns"] = [cfg["file_patterns"]]

    if validate:
        validate_config(cfg)
    return cfg


def validate_config(cfg: dict[str, Any]) -> None:
    """Check the settings the engine cannot run without."""
    docs = cfg.get("documents") or {}
    if not cfg.get("file_patterns") and not docs.get("file_path"):
        raise ConfigError(
            "No documents configured: set file_patterns or documents.file_path + documents.extensions"
        )
    if not cfg.get("file_patterns") and not docs.get("extensions"):
        raise ConfigError("documents.extensions must list at least one extension")

    chunk_size = cfg.get("chunking", {}).get("chunk_size")
    if not isinstance(chunk_size, int) or chunk_size <= 0:
        raise ConfigError(f"chunking.chunk_size must be a positive integer, got {chunk_size!r}")

    interval = cfg.get("sync", {}).get("interval_seconds")
    if not isinstance(interval, (int, float)) or interval <= 0:
        raise ConfigError(f"sync.interval_seconds must be positive, got {interval!r}")


def _normalize_keys(data: dict) -> dict:
    """Rename camelCase keys to their snake_case equivalents, recursively."""
    out = {}
    for k, v in data.items():
        if isinstance(v, dict):
            v = _normalize_keys(v)
        out[_CAMEL_CASE_KEYS.get(k, k)] = v
    return out


def _deep_merge(base: dict, override: dict) -> None:
    """Merge override into base in-place."""
    for k, v in override.items():
        if k in base and isinstance(base[k], dict) and isinstance(v, dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
