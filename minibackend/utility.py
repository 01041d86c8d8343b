"""Configuration loading and file name sanitising."""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any


class ConfigError(Exception):
    """The configuration file could not be read or parsed."""


_config: dict[str, Any] | None = None
_config_lock = threading.Lock()


def load_config(file_path: str | Path) -> dict[str, Any]:
    """Load the TOML configuration once and return it.

    The first successful load is kept for the life of the process; later
    calls return that same configuration whatever path they are given.
    """
    global _config
    with _config_lock:
        if _config is None:
            try:
                text = Path(file_path).read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                raise ConfigError(f"failed to read {file_path}") from exc
            try:
                _config = tomllib.loads(text)
            except tomllib.TOMLDecodeError as exc:
                raise ConfigError(f"failed to parse {file_path}") from exc
        return _config


def _clear_config_cache() -> None:
    global _config
    with _config_lock:
        _config = None


def sanitize_file_name(name: str) -> str:
    """Keep only ASCII letters, digits, ``.``, ``-`` and ``_`` from ``name``."""
    return "".join(
        c for c in name if (c.isascii() and c.isalnum()) or c in ".-_"
    )