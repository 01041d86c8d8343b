"""Start-up plugins: project directories and the core plugin."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar


class PluginError(Exception):
    """A plugin failed to initialise."""


class Plugin(ABC):
    """A component set up once from the configuration at start-up."""

    name: ClassVar[str]

    @classmethod
    @abstractmethod
    def initialize(cls, config: dict[str, Any]) -> Any:
        """Set the plugin up from ``config``; raises PluginError on failure."""

    def shutdown(self) -> None:
        """Release what the plugin holds; nothing by default."""


def _section(config: dict[str, Any], name: str) -> dict[str, Any]:
    section = config.get(name)
    if not isinstance(section, dict):
        raise PluginError(f"Missing [{name}] section in config")
    return section


def _require_str(section: dict[str, Any], key: str) -> str:
    value = section.get(key)
    if not isinstance(value, str):
        raise PluginError(f"Missing {key} in config")
    return value


@dataclass
class ProjectDirPlugin(Plugin):
    """Makes sure the public and upload directories exist."""

    name: ClassVar[str] = "ProjectDirPlugin"

    public_path: str
    upload_path: str

    def create_dir(self, path: str | Path) -> None:
        """Create ``path`` and its parents unless it already exists."""
        target = Path(path)
        if target.exists():
            return
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PluginError(f"Failed to create {target}: {exc}") from exc

    @classmethod
    def initialize(cls, config: dict[str, Any]) -> ProjectDirPlugin:
        """Create the configured directories.

        Reads ``config.dir_public_path`` and ``config.dir_public_upload_path``,
        then creates every entry of ``extra.dir_public_upload_extra_paths``
        under the upload directory when that value is an array.
        """
        base = _section(config, "config")
        public_path = _require_str(base, "dir_public_path")
        upload_path = _require_str(base, "dir_public_upload_path")

        plugin = cls(public_path=public_path, upload_path=upload_path)
        plugin.create_dir(public_path)
        plugin.create_dir(upload_path)

        extra = _section(config, "extra")
        if "dir_public_upload_extra_paths" not in extra:
            raise PluginError("Missing dir_public_upload_extra_paths in config")
        extra_paths = extra["dir_public_upload_extra_paths"]
        if isinstance(extra_paths, list):
            for entry in extra_paths:
                if not isinstance(entry, str):
                    raise PluginError("Invalid path in extra_paths")
                plugin.create_dir(Path(upload_path) / entry)

        return plugin


class CorePlugin(Plugin):
    """The process-wide plugin that sets up everything else once."""

    name: ClassVar[str] = "CorePlugin"

    _instance: ClassVar[CorePlugin | None] = None
    _lock: ClassVar[threading.Lock] = threading.Lock()

    @classmethod
    def initialize(cls, config: dict[str, Any]) -> CorePlugin:
        """Initialise dependent plugins and register the single instance.

        Raises PluginError when a dependent plugin fails or when the core
        plugin has already been initialised.
        """
        ProjectDirPlugin.initialize(config)
        with cls._lock:
            if cls._instance is not None:
                raise PluginError("CorePlugin already initialized")
            cls._instance = cls()
            return cls._instance

    @classmethod
    def instance(cls) -> CorePlugin:
        """The registered instance; raises PluginError before initialisation."""
        with cls._lock:
            if cls._instance is None:
                raise PluginError("CorePlugin not initialized")
            return cls._instance

    @classmethod
    def _reset(cls) -> None:
        with cls._lock:
            cls._instance = None