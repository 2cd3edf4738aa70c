"""Persisted bridge configuration for the Hue backup tool."""
from __future__ import annotations

from dataclasses import dataclass, field
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from .log import get_logger

ENV_CONFIG_HOME = "HUE_BACKUP_HOME"
_DEFAULT_CONFIG_DIR = Path.home() / ".hue-backup"
CONFIG_FILE_NAME = "config.json"
BACKUPS_DIR_NAME = "backups"
_FIX_BY_HAND = "Please check the file with a JSON validator and fix it by hand."

_LOGGER = get_logger("config")


class ConfigError(RuntimeError):
    """Raised when the configuration cannot be loaded or saved."""


@dataclass(frozen=True)
class BridgeIdentity:
    """A bridge as reported by one discovery strategy."""

    address: str
    display_name: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class StoredConfiguration:
    """Bridge identity and credential persisted between runs."""

    ip_address: Optional[str] = None
    name: Optional[str] = None
    additional_info: Dict[str, Any] = field(default_factory=dict)
    user_name: Optional[str] = None

    @property
    def has_address(self) -> bool:
        return bool(self.ip_address)

    @property
    def has_credential(self) -> bool:
        return bool(self.user_name)

    def merge_identity(self, identity: BridgeIdentity) -> None:
        self.ip_address = identity.address
        self.name = identity.display_name
        self.additional_info = dict(identity.metadata)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ipAddress": self.ip_address,
            "name": self.name,
            "additionalInfo": self.additional_info,
            "userName": self.user_name,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "StoredConfiguration":
        """Build a configuration from its JSON form.

        Raises :class:`ConfigError` when a field is present with the wrong
        type, so a hand-edited value is never dropped and later overwritten.
        """

        additional_info = payload.get("additionalInfo")
        if additional_info is None:
            additional_info = {}
        elif not isinstance(additional_info, dict):
            raise ConfigError("'additionalInfo' must be a JSON object")
        return cls(
            ip_address=_optional_str(payload, "ipAddress"),
            name=_optional_str(payload, "name"),
            additional_info=additional_info,
            user_name=_optional_str(payload, "userName"),
        )


def config_dir() -> Path:
    """Return the per-user directory holding the configuration and backups."""

    env_path = os.environ.get(ENV_CONFIG_HOME)
    if env_path:
        return Path(env_path)
    return _DEFAULT_CONFIG_DIR


def config_file() -> Path:
    return config_dir() / CONFIG_FILE_NAME


def backups_dir() -> Path:
    return config_dir() / BACKUPS_DIR_NAME


def load_config(path: str | Path | None = None) -> Optional[StoredConfiguration]:
    """Load the stored configuration from disk.

    Returns ``None`` when no configuration file exists yet. A file that exists
    but cannot be parsed raises :class:`ConfigError`; it is never replaced, so
    stored credentials are not lost.
    """

    resolved_path = _resolve_config_path(path)
    if not resolved_path.exists():
        _LOGGER.debug("No configuration found at %s", resolved_path)
        return None

    data = _load_json(resolved_path)
    try:
        config = StoredConfiguration.from_dict(data)
    except ConfigError as exc:
        raise ConfigError(
            f"Invalid value in configuration file '{resolved_path}': {exc}. {_FIX_BY_HAND}"
        ) from exc
    _LOGGER.debug("Loaded configuration from %s", resolved_path)
    return config


def save_config(config: StoredConfiguration, path: str | Path | None = None) -> Path:
    """Persist the configuration to disk and return the file path."""

    resolved_path = _resolve_config_path(path)
    resolved_path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path = resolved_path.with_suffix(resolved_path.suffix + ".tmp")
    try:
        tmp_path.write_text(
            json.dumps(config.to_dict(), indent=2, ensure_ascii=False) + "\n",
            encoding="utf-8",
        )
        tmp_path.replace(resolved_path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise
    _LOGGER.debug("Saved configuration to %s", resolved_path)
    return resolved_path


def _load_json(path: Path) -> Dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        # JSONDecodeError and UnicodeDecodeError
        raise ConfigError(f"Invalid JSON in configuration file '{path}': {exc}. {_FIX_BY_HAND}") from exc

    if not isinstance(data, dict):
        raise ConfigError(
            f"Configuration file '{path}' must contain a JSON object. {_FIX_BY_HAND}"
        )
    return data


def _resolve_config_path(path: str | Path | None) -> Path:
    if path is not None:
        return Path(path)
    return config_file()


def _optional_str(payload: Dict[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"'{key}' must be a string or null")
    return value or None


__all__ = [
    "BridgeIdentity",
    "StoredConfiguration",
    "ConfigError",
    "ENV_CONFIG_HOME",
    "config_dir",
    "config_file",
    "backups_dir",
    "load_config",
    "save_config",
]
