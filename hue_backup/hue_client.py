"""Client for the Philips Hue bridge v1 management API."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import requests
from requests import Response
from requests import exceptions as requests_exc

_JSON = Dict[str, Any]

# Error type reported by the bridge when the link button was not pressed.
LINK_BUTTON_NOT_PRESSED = 101

# devicetype is "<application>#<device>", limited to 20 and 19 characters.
_MAX_APP_NAME = 20
_MAX_DEVICE_NAME = 19

REQUEST_TIMEOUT = 10


class HueBridgeError(RuntimeError):
    """Raised when the Hue Bridge returns an error."""

    def __init__(self, message: str, *, errors: Optional[Iterable[_JSON]] = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])

    @property
    def error_types(self) -> List[int]:
        return [error["type"] for error in self.errors if isinstance(error.get("type"), int)]

    @classmethod
    def from_response(cls, response: Response) -> "HueBridgeError":
        try:
            payload = response.json()
        except ValueError:
            payload = None

        errors = _extract_errors(payload)
        if errors:
            return cls.from_errors(errors)

        message = f"Hue bridge request failed with status {response.status_code}"
        return cls(message)

    @classmethod
    def from_errors(cls, errors: Iterable[_JSON]) -> "HueBridgeError":
        errors_list = list(errors)
        message = "; ".join(error.get("description", "Unknown error") for error in errors_list)
        return cls(message or "Hue bridge request returned errors", errors=errors_list)


class HueBridgeClient:
    """Wrapper around the Hue REST API v1 of a single bridge."""

    def __init__(self, bridge_ip: str, user_name: Optional[str] = None) -> None:
        self._bridge_ip = bridge_ip
        self._user_name = user_name
        self._session = requests.Session()

    def __enter__(self) -> "HueBridgeClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._session.close()

    @property
    def base_url(self) -> str:
        return f"http://{self._bridge_ip}/api"

    def create_user(self, app_name: str, device_name: str) -> Optional[str]:
        """Register a new application user and return its user name.

        Returns ``None`` when the bridge rejects the request because its link
        button has not been pressed. Every other bridge error raises
        :class:`HueBridgeError`.
        """

        devicetype = f"{app_name[:_MAX_APP_NAME]}#{device_name[:_MAX_DEVICE_NAME]}"
        try:
            payload = self._request_json("POST", "", json={"devicetype": devicetype})
        except HueBridgeError as exc:
            if LINK_BUTTON_NOT_PRESSED in exc.error_types:
                return None
            raise

        for entry in payload if isinstance(payload, list) else []:
            success = entry.get("success") if isinstance(entry, dict) else None
            if isinstance(success, dict) and success.get("username"):
                return success["username"]
        raise HueBridgeError(f"Unexpected response from bridge: {payload!r}")

    def get_full_configuration(self) -> _JSON:
        """Return the complete datastore of the bridge."""

        if not self._user_name:
            raise HueBridgeError("A registered user name is required to read the bridge configuration.")
        return self._get(self._user_name)

    def get_public_config(self) -> _JSON:
        """Return the unauthenticated subset of the bridge configuration."""

        return self._get("config")

    # -- low level helpers -----------------------------------------------------------
    def _get(self, path: str) -> _JSON:
        data = self._request_json("GET", path)
        if not isinstance(data, dict):
            raise HueBridgeError(f"Unexpected response from bridge: {data!r}")
        return data

    def _request_json(self, method: str, path: str, *, json: Optional[_JSON] = None) -> Any:
        response = self._request(method, path, json=json)
        return self._handle_response(response)

    def _request(self, method: str, path: str, *, json: Optional[_JSON] = None) -> Response:
        url = f"{self.base_url}/{path}" if path else self.base_url
        try:
            return self._session.request(method, url, json=json, timeout=REQUEST_TIMEOUT)
        except requests_exc.RequestException as exc:
            raise HueBridgeError(f"Connection to Hue bridge at {self._bridge_ip} failed: {exc}") from exc

    def _handle_response(self, response: Response) -> Any:
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise HueBridgeError.from_response(response) from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise HueBridgeError("Hue bridge returned an invalid JSON response") from exc

        errors = _extract_errors(data)
        if errors:
            raise HueBridgeError.from_errors(errors)
        return data


def _extract_errors(payload: Any) -> List[_JSON]:
    """Collect ``{"error": {...}}`` entries from a v1 API response."""

    if not isinstance(payload, list):
        return []
    errors: List[_JSON] = []
    for entry in payload:
        if isinstance(entry, dict) and isinstance(entry.get("error"), dict):
            errors.append(entry["error"])
    return errors


__all__ = ["HueBridgeClient", "HueBridgeError", "LINK_BUTTON_NOT_PRESSED"]
