"""Bring the stored configuration to a state from which a backup can run."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
import socket
from typing import Callable, Optional

from .config import StoredConfiguration, load_config, save_config
from .discovery import DiscoveryOutcome, discover_bridge
from .hue_client import HueBridgeClient
from .log import get_logger

APP_NAME = "hue-backup"

_LOGGER = get_logger("bootstrap")


class BootstrapState(Enum):
    NO_CONFIG = "no_config"
    HAVE_ADDRESS = "have_address"
    HAVE_CREDENTIAL = "have_credential"
    ABANDONED = "abandoned"


@dataclass
class BootstrapResult:
    state: BootstrapState
    config: StoredConfiguration

    @property
    def ready(self) -> bool:
        return self.state is BootstrapState.HAVE_CREDENTIAL


class BootstrapFlow:
    """Discover and pair with the bridge as far as the stored state requires.

    Every collaborator can be replaced, which keeps the flow testable without
    network access or a terminal.
    """

    def __init__(
        self,
        *,
        config_path: str | Path | None = None,
        discover: Optional[Callable[[], DiscoveryOutcome]] = None,
        client_factory: Optional[Callable[..., HueBridgeClient]] = None,
        prompt: Optional[Callable[[str], str]] = None,
        device_name: Optional[str] = None,
    ) -> None:
        self._config_path = config_path
        self._discover = discover or discover_bridge
        self._client_factory = client_factory or HueBridgeClient
        self._prompt = prompt or input
        self._device_name = device_name or socket.gethostname()

    def run(self) -> BootstrapResult:
        config = load_config(self._config_path) or StoredConfiguration()
        state = BootstrapState.HAVE_ADDRESS if config.has_address else BootstrapState.NO_CONFIG
        _LOGGER.debug("Starting in state %s", state.value)

        if state is BootstrapState.NO_CONFIG:
            outcome = self._discover()
            if not outcome.found:
                return BootstrapResult(BootstrapState.ABANDONED, config)
            config.merge_identity(outcome.bridge)
            save_config(config, self._config_path)

        if not config.has_credential:
            _LOGGER.info(
                "This tool needs to be registered with your bridge at %s. "
                "Press the link button on the bridge, then confirm here.",
                config.ip_address,
            )
            self._prompt("Press Enter after pressing the link button... ")
            if not self.register(config):
                return BootstrapResult(BootstrapState.ABANDONED, config)

        return BootstrapResult(BootstrapState.HAVE_CREDENTIAL, config)

    def register(self, config: StoredConfiguration) -> bool:
        """Request a user name from the bridge and persist it.

        Returns ``False`` if the link button was not pressed; any other
        bridge failure is raised.
        """

        with self._client_factory(config.ip_address) as client:
            user_name = client.create_user(APP_NAME, self._device_name)
        if user_name is None:
            _LOGGER.error(
                "The link button on the bridge was not pressed. "
                "Press it and run the backup again within 30 seconds."
            )
            return False

        config.user_name = user_name
        save_config(config, self._config_path)
        _LOGGER.info("Registered with the bridge at %s", config.ip_address)
        return True


__all__ = ["APP_NAME", "BootstrapFlow", "BootstrapResult", "BootstrapState"]
