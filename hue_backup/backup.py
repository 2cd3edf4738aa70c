"""Write a snapshot of the bridge configuration to disk."""
from __future__ import annotations

from datetime import datetime, timezone
import json
from pathlib import Path
from typing import Optional

from .config import StoredConfiguration, backups_dir
from .hue_client import HueBridgeClient
from .log import get_logger

BACKUP_FILE_NAME = "config.json"

_LOGGER = get_logger("backup")


def backup_folder_name(instant: datetime) -> str:
    """Return the sortable UTC folder name ``YYYY-MM-DD_HH-MM-SS.mmm``."""

    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    utc = instant.astimezone(timezone.utc)
    return f"{utc:%Y-%m-%d_%H-%M-%S}.{utc.microsecond // 1000:03d}"


def create_backup(
    config: StoredConfiguration,
    *,
    client: Optional[HueBridgeClient] = None,
    root: str | Path | None = None,
    now: Optional[datetime] = None,
) -> Path:
    """Fetch the full bridge configuration and store it in a new folder.

    Returns the path of the written file.
    """

    instant = now or datetime.now(timezone.utc)
    folder = Path(root) if root is not None else backups_dir()
    folder = folder / backup_folder_name(instant)
    folder.mkdir(parents=True, exist_ok=True)

    _LOGGER.debug("Fetching configuration from bridge at %s", config.ip_address)
    if client is None:
        with HueBridgeClient(config.ip_address, config.user_name) as owned_client:
            payload = owned_client.get_full_configuration()
    else:
        payload = client.get_full_configuration()

    target = folder / BACKUP_FILE_NAME
    target.write_text(
        json.dumps(payload, indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )
    _LOGGER.info("Backup written to %s", target)
    return target


__all__ = ["BACKUP_FILE_NAME", "backup_folder_name", "create_backup"]
