"""
Connectivity and offline-mode configuration.

The router never reads ambient global state. It is handed a
ConnectivityProvider at construction and polls it on every call.
OfflineGlobals is the provider shipped with the package; its values come
from code, environment variables or a YAML settings file.

Configuration in ~/.offline_store/settings.yaml:

```yaml
offline:
  enabled: true
  online: true
  sync_down_when_online: true
```

Environment Variables:
    OFFLINE_STORE_ENABLED: Enable offline mode support (default: true)
    OFFLINE_STORE_ONLINE: Initial online status (default: true)
    OFFLINE_STORE_SYNC_DOWN: Copy online fetches into the offline store (default: true)
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

OnlineStatusListener = Callable[[bool], None]


class ConnectivityProvider(ABC):
    """Read-only snapshot of connectivity state."""

    @property
    @abstractmethod
    def is_offline_enabled(self) -> bool:
        """Whether offline mode support is enabled at all."""
        ...

    @property
    @abstractmethod
    def is_online(self) -> bool:
        """Whether the process is currently online."""
        ...


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class OfflineGlobals(ConnectivityProvider):
    """Process-wide offline mode flags.

    Attributes:
        is_offline_enabled: Offline mode support is on
        is_online: Current online status
        is_sync_down_when_online_enabled: Records fetched online are copied
            into the offline store
    """

    def __init__(
        self,
        offline_enabled: bool = True,
        online: bool = True,
        sync_down_when_online: bool = True,
    ) -> None:
        self._offline_enabled = offline_enabled
        self._online = online
        self._sync_down_when_online = sync_down_when_online
        self._listeners: list[OnlineStatusListener] = []

    @property
    def is_offline_enabled(self) -> bool:
        return self._offline_enabled

    @property
    def is_online(self) -> bool:
        return self._online

    @property
    def is_sync_down_when_online_enabled(self) -> bool:
        return self._sync_down_when_online

    def set_offline_enabled(self, enabled: bool) -> None:
        self._offline_enabled = enabled

    def set_online_status(self, online: bool) -> None:
        """Update online status, notifying listeners when it changes."""
        if online == self._online:
            return

        self._online = online
        logger.info(f"Online status changed: {'online' if online else 'offline'}")
        for listener in list(self._listeners):
            listener(online)

    def add_listener(self, listener: OnlineStatusListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: OnlineStatusListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def __repr__(self) -> str:
        return (
            f"OfflineGlobals(offline_enabled={self._offline_enabled}, "
            f"online={self._online}, sync_down={self._sync_down_when_online})"
        )

    @classmethod
    def from_environment(cls) -> OfflineGlobals:
        """Create flags from OFFLINE_STORE_* environment variables."""
        return cls(
            offline_enabled=_env_flag("OFFLINE_STORE_ENABLED", True),
            online=_env_flag("OFFLINE_STORE_ONLINE", True),
            sync_down_when_online=_env_flag("OFFLINE_STORE_SYNC_DOWN", True),
        )

    @classmethod
    def from_settings(cls, config_path: Path | None = None) -> OfflineGlobals:
        """Create flags from the ``offline`` section of a YAML settings file.

        Args:
            config_path: Path to settings.yaml. Defaults to ~/.offline_store/settings.yaml

        Missing files and missing keys fall back to the defaults.
        """
        path = config_path or Path.home() / ".offline_store" / "settings.yaml"
        section = _load_settings(path).get("offline") or {}
        return cls(
            offline_enabled=bool(section.get("enabled", True)),
            online=bool(section.get("online", True)),
            sync_down_when_online=bool(section.get("sync_down_when_online", True)),
        )


def _load_settings(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (yaml.YAMLError, OSError) as e:
        logger.warning(f"Could not read settings from {path}: {e}")
        return {}

    return data if isinstance(data, dict) else {}
