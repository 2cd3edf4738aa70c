"""Locate the Hue bridge on the local network."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import time
from typing import Any, Dict, List, Optional, Sequence

import requests
from zeroconf import ServiceBrowser, ServiceListener, Zeroconf

from .config import BridgeIdentity
from .hue_client import REQUEST_TIMEOUT, HueBridgeClient, HueBridgeError
from .log import get_logger

_JSON = Dict[str, Any]

NUPNP_DISCOVERY_URL = "https://discovery.meethue.com/"
HUE_SERVICE_TYPE = "_hue._tcp.local."
MDNS_LISTEN_SECONDS = 5.0

_LOGGER = get_logger("discovery")


class DiscoveryError(RuntimeError):
    """Raised by a strategy that found a bridge it cannot use."""


class DiscoveryStatus(Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"


@dataclass
class DiscoveryOutcome:
    status: DiscoveryStatus
    bridge: Optional[BridgeIdentity] = None
    errors: List[Exception] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.status is DiscoveryStatus.FOUND


class DiscoveryStrategy:
    """One way of finding bridges.

    ``search`` returns the raw candidate payloads, ``to_identity`` turns the
    payload of the selected candidate into a :class:`BridgeIdentity`.
    """

    name = "strategy"

    def search(self) -> List[_JSON]:
        raise NotImplementedError

    def to_identity(self, payload: _JSON) -> BridgeIdentity:
        raise NotImplementedError


class NupnpStrategy(DiscoveryStrategy):
    """Ask the Philips discovery portal which bridges share our network."""

    name = "N-UPnP"

    def __init__(self, url: str = NUPNP_DISCOVERY_URL) -> None:
        self._url = url

    def search(self) -> List[_JSON]:
        response = requests.get(self._url, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
        entries = response.json()
        if not isinstance(entries, list):
            raise DiscoveryError(f"Unexpected response from {self._url}: {entries!r}")

        candidates = [dict(entry) for entry in entries if isinstance(entry, dict)]
        # Several candidates are ambiguous; only a lone one is looked up.
        if len(candidates) == 1:
            self._lookup_config(candidates[0])
        return candidates

    def _lookup_config(self, candidate: _JSON) -> None:
        address = candidate.get("internalipaddress")
        if not address:
            return
        try:
            with HueBridgeClient(address) as client:
                candidate["config"] = client.get_public_config()
        except HueBridgeError as exc:
            candidate["error"] = {"description": str(exc)}

    def to_identity(self, payload: _JSON) -> BridgeIdentity:
        address = payload.get("internalipaddress")
        if not address:
            raise DiscoveryError(f"{self.name} result has no IP address: {payload!r}")

        error = payload.get("error")
        if error:
            description = error.get("description") if isinstance(error, dict) else error
            raise DiscoveryError(f"Bridge at {address} is not reachable: {description}")

        config = payload.get("config")
        config = dict(config) if isinstance(config, dict) else {}
        name = config.pop("name", None)
        config.pop("ipaddress", None)
        metadata = {k: v for k, v in payload.items() if k not in {"internalipaddress", "config"}}
        metadata.update(config)
        return BridgeIdentity(address=address, display_name=name, metadata=metadata)


class _HueServiceListener(ServiceListener):
    def __init__(self) -> None:
        self.names: List[str] = []

    def add_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        if name not in self.names:
            self.names.append(name)

    def update_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        self.add_service(zc, type_, name)

    def remove_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        if name in self.names:
            self.names.remove(name)


class MdnsStrategy(DiscoveryStrategy):
    """Browse for bridges announcing ``_hue._tcp`` over multicast DNS."""

    name = "mDNS"

    def __init__(self, listen_seconds: float = MDNS_LISTEN_SECONDS) -> None:
        self._listen_seconds = listen_seconds

    def search(self) -> List[_JSON]:
        zc = Zeroconf()
        try:
            listener = _HueServiceListener()
            browser = ServiceBrowser(zc, HUE_SERVICE_TYPE, listener)
            time.sleep(self._listen_seconds)
            browser.cancel()

            candidates = []
            for service_name in listener.names:
                info = zc.get_service_info(HUE_SERVICE_TYPE, service_name)
                if info is None:
                    continue
                addresses = info.parsed_addresses()
                candidates.append(
                    {
                        "ipaddress": addresses[0] if addresses else None,
                        "name": _service_label(service_name),
                        "server": info.server,
                        "port": info.port,
                        "properties": _decode_properties(info.properties),
                    }
                )
            return candidates
        finally:
            zc.close()

    def to_identity(self, payload: _JSON) -> BridgeIdentity:
        address = payload.get("ipaddress")
        if not address:
            raise DiscoveryError(f"{self.name} result has no IP address: {payload!r}")
        metadata = {k: v for k, v in payload.items() if k not in {"ipaddress", "name"}}
        return BridgeIdentity(address=address, display_name=payload.get("name"), metadata=metadata)


def default_strategies() -> List[DiscoveryStrategy]:
    return [NupnpStrategy(), MdnsStrategy()]


def discover_bridge(strategies: Optional[Sequence[DiscoveryStrategy]] = None) -> DiscoveryOutcome:
    """Run the strategies in order and return the first single bridge found.

    Errors raised by a strategy are collected and the next strategy is tried.
    When nothing usable was found, a summary and every collected error are
    logged and a non-found outcome is returned.
    """

    if strategies is None:
        strategies = default_strategies()

    errors: List[Exception] = []
    status = DiscoveryStatus.NOT_FOUND

    for strategy in strategies:
        _LOGGER.debug("Searching for bridges via %s", strategy.name)
        try:
            candidates = strategy.search()
            if len(candidates) == 1:
                bridge = strategy.to_identity(candidates[0])
                _LOGGER.info(
                    "Found bridge %s at %s via %s",
                    bridge.display_name or "(unnamed)",
                    bridge.address,
                    strategy.name,
                )
                return DiscoveryOutcome(DiscoveryStatus.FOUND, bridge=bridge, errors=errors)
        except Exception as exc:
            _LOGGER.debug("%s discovery failed: %s", strategy.name, exc, exc_info=True)
            errors.append(exc)
            continue

        if candidates:
            status = DiscoveryStatus.AMBIGUOUS
            _LOGGER.warning(
                "%s found %d bridges. Multiple bridges are not supported; "
                "please enter the IP address of your bridge in the configuration file by hand.",
                strategy.name,
                len(candidates),
            )
        else:
            _LOGGER.debug("%s found no bridges", strategy.name)

    _LOGGER.error("Could not find any bridge.")
    for exc in errors:
        _LOGGER.error("  %s: %s", type(exc).__name__, exc)
    return DiscoveryOutcome(status, errors=errors)


def _service_label(service_name: str) -> str:
    suffix = "." + HUE_SERVICE_TYPE
    if service_name.endswith(suffix):
        return service_name[: -len(suffix)]
    return service_name


def _decode_properties(properties: Dict[Any, Any]) -> Dict[str, Any]:
    decoded: Dict[str, Any] = {}
    for key, value in (properties or {}).items():
        if isinstance(key, bytes):
            key = key.decode("utf-8", "replace")
        if isinstance(value, bytes):
            value = value.decode("utf-8", "replace")
        decoded[key] = value
    return decoded


__all__ = [
    "DiscoveryError",
    "DiscoveryOutcome",
    "DiscoveryStatus",
    "DiscoveryStrategy",
    "MdnsStrategy",
    "NupnpStrategy",
    "default_strategies",
    "discover_bridge",
]
