"""Back up the configuration of a Philips Hue bridge."""

from .backup import backup_folder_name, create_backup
from .bootstrap import BootstrapFlow, BootstrapResult, BootstrapState
from .config import (
    BridgeIdentity,
    ConfigError,
    StoredConfiguration,
    load_config,
    save_config,
)
from .discovery import DiscoveryOutcome, DiscoveryStatus, discover_bridge
from .hue_client import HueBridgeClient, HueBridgeError

__all__ = [
    "BootstrapFlow",
    "BootstrapResult",
    "BootstrapState",
    "BridgeIdentity",
    "ConfigError",
    "DiscoveryOutcome",
    "DiscoveryStatus",
    "StoredConfiguration",
    "load_config",
    "save_config",
    "discover_bridge",
    "backup_folder_name",
    "create_backup",
    "HueBridgeClient",
    "HueBridgeError",
]
