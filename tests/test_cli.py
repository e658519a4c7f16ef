from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from beaconrelay import cli
from beaconrelay.config import RelayConfig
from beaconrelay.models import RelayResult


class _FakeRelay:
    instances: list[_FakeRelay] = []
    error: str | None = None

    def __init__(self, config: RelayConfig) -> None:
        self.config = config
        self.passes = 0
        _FakeRelay.instances.append(self)

    async def __aenter__(self) -> _FakeRelay:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None

    async def run_once(self) -> RelayResult:
        self.passes += 1
        return RelayResult(error=self.error)


@pytest.fixture(autouse=True)
def fake_relay(monkeypatch: pytest.MonkeyPatch) -> type[_FakeRelay]:
    _FakeRelay.instances = []
    _FakeRelay.error = None
    monkeypatch.setattr(cli, "BeaconRelay", _FakeRelay)
    return _FakeRelay


def _isolate_env(monkeypatch: pytest.MonkeyPatch, *names: str) -> None:
    # Register the variables so monkeypatch restores them after load_dotenv writes os.environ.
    for name in names:
        monkeypatch.setenv(name, "placeholder")
        monkeypatch.delenv(name)


def test_once_runs_a_single_pass(fake_relay: type[_FakeRelay]) -> None:
    assert cli.main(["--once"]) == 0

    (relay,) = fake_relay.instances
    assert relay.passes == 1


def test_once_reports_failed_pass(fake_relay: type[_FakeRelay]) -> None:
    fake_relay.error = "upstream down"

    assert cli.main(["--once"]) == 1


def test_env_file_is_loaded(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, fake_relay: type[_FakeRelay]) -> None:
    _isolate_env(monkeypatch, "BEACONRELAY_MQTT_CLIENT_ID", "BEACONRELAY_MQTT_URL")
    env_file = tmp_path / "relay.env"
    env_file.write_text("BEACONRELAY_MQTT_CLIENT_ID=from-dotenv\nBEACONRELAY_MQTT_URL=mqtt://dotenv-broker\n")

    assert cli.main(["--once", "--env-file", str(env_file), "--no-live"]) == 0

    config = fake_relay.instances[0].config
    assert config.mqtt_client_id == "from-dotenv"
    assert config.mqtt_url == "mqtt://dotenv-broker"
    assert config.live_enabled is False


def test_invalid_configuration_exits_with_2(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setenv("BEACONRELAY_MQTT_QOS", "7")

    assert cli.main(["--once"]) == 2
    assert "mqtt_qos" in capsys.readouterr().err
