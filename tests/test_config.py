from pathlib import Path
import json
import logging

import pytest

from hue_backup.config import (
    BridgeIdentity,
    ConfigError,
    StoredConfiguration,
    backups_dir,
    config_file,
    load_config,
    save_config,
)


def _write(path: Path, payload) -> None:
    path.write_text(json.dumps(payload))


def test_load_config_success(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    _write(
        config_path,
        {
            "ipAddress": "192.168.1.2",
            "name": "Wohnzimmer",
            "additionalInfo": {"bridgeid": "001788FFFE000000"},
            "userName": "abc",
        },
    )

    config = load_config(config_path)

    assert isinstance(config, StoredConfiguration)
    assert config.ip_address == "192.168.1.2"
    assert config.name == "Wohnzimmer"
    assert config.additional_info == {"bridgeid": "001788FFFE000000"}
    assert config.user_name == "abc"
    assert config.has_address
    assert config.has_credential


def test_load_config_missing_file(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="hue_backup")

    assert load_config(tmp_path / "missing.json") is None
    assert "No configuration found" in caplog.text


def test_load_config_invalid_json(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text("{ not json")

    with pytest.raises(ConfigError, match="JSON validator"):
        load_config(config_path)

    assert config_path.read_text() == "{ not json"


def test_load_config_rejects_non_object(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    _write(config_path, ["10.0.0.1"])

    with pytest.raises(ConfigError):
        load_config(config_path)


def test_load_config_partial_document(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    _write(config_path, {"ipAddress": "10.0.0.5", "name": None})

    config = load_config(config_path)

    assert config.ip_address == "10.0.0.5"
    assert config.name is None
    assert config.additional_info == {}
    assert config.user_name is None
    assert not config.has_credential


def test_load_config_invalid_utf8(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_bytes(b'{"name": "\xff"}')

    with pytest.raises(ConfigError, match="JSON validator"):
        load_config(config_path)

    assert config_path.read_bytes() == b'{"name": "\xff"}'


@pytest.mark.parametrize(
    "payload",
    [
        {"ipAddress": ["10.0.0.5"], "name": "Mine", "userName": "secret"},
        {"ipAddress": "10.0.0.5", "name": 42},
        {"ipAddress": "10.0.0.5", "additionalInfo": "x"},
        {"ipAddress": "10.0.0.5", "userName": {"key": "secret"}},
    ],
)
def test_load_config_rejects_wrong_field_types(tmp_path: Path, payload: dict) -> None:
    config_path = tmp_path / "config.json"
    _write(config_path, payload)
    before = config_path.read_text()

    with pytest.raises(ConfigError, match="JSON validator"):
        load_config(config_path)

    assert config_path.read_text() == before


def test_env_override(config_home: Path) -> None:
    assert config_file() == config_home / "config.json"
    assert backups_dir() == config_home / "backups"

    save_config(StoredConfiguration(ip_address="10.0.0.2"))

    loaded = load_config()
    assert loaded.ip_address == "10.0.0.2"


def test_save_config_roundtrip(tmp_path: Path) -> None:
    config_path = tmp_path / "nested" / "dir" / "config.json"
    stored = StoredConfiguration(
        ip_address="1.1.1.1",
        name="Test",
        additional_info={"modelid": "BSB002", "port": 443},
        user_name="k",
    )

    save_config(stored, config_path)

    assert load_config(config_path) == stored
    assert not config_path.with_suffix(".json.tmp").exists()


def test_save_config_writes_expected_shape(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"

    save_config(StoredConfiguration(ip_address="10.0.0.5", name="Kitchen"), config_path)

    text = config_path.read_text()
    assert text.startswith("{\n  ")
    assert json.loads(text) == {
        "ipAddress": "10.0.0.5",
        "name": "Kitchen",
        "additionalInfo": {},
        "userName": None,
    }


def test_merge_identity_replaces_bridge_fields() -> None:
    config = StoredConfiguration(
        ip_address="10.0.0.1",
        name="Old",
        additional_info={"old": True},
        user_name="kept",
    )

    config.merge_identity(BridgeIdentity("10.0.0.9", "New", {"bridgeid": "x"}))

    assert config.ip_address == "10.0.0.9"
    assert config.name == "New"
    assert config.additional_info == {"bridgeid": "x"}
    assert config.user_name == "kept"


def test_save_config_removes_temp_file_on_failure(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    config_path = tmp_path / "config.json"

    def broken_replace(self, target):
        raise OSError("disk full")

    monkeypatch.setattr(Path, "replace", broken_replace)

    with pytest.raises(OSError, match="disk full"):
        save_config(StoredConfiguration(ip_address="10.0.0.5"), config_path)

    assert list(tmp_path.iterdir()) == []
