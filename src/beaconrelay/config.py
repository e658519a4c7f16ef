"""Relay configuration for beaconrelay."""

from __future__ import annotations

import dataclasses
import os
from enum import StrEnum
from typing import Any

from beaconrelay._constants import (
    DEFAULT_LIVE_PATH,
    DEFAULT_MQTT_URL,
    DEFAULT_PERSISTENCE_BASE_URL,
    DEFAULT_POSITION_PATH,
    DEFAULT_SOURCE_BASE_URL,
    DEFAULT_TEMPERATURE_PATH,
    DEFAULT_TOPIC_PREFIX,
)
from beaconrelay.exceptions import RelayConfigError


class FailurePolicy(StrEnum):
    """What to do with the remaining work after one step failed."""

    CONTINUE = "continue"
    ABORT = "abort"


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(name: str, value: str, kind: type[int] | type[float]) -> int | float:
    try:
        return kind(value)
    except ValueError as exc:
        raise RelayConfigError(f"{name} must be a number, got {value!r}") from exc


def _coerce_policy(name: str, value: Any) -> FailurePolicy:
    try:
        return FailurePolicy(str(value).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(p.value for p in FailurePolicy)
        raise RelayConfigError(f"{name} must be one of {allowed}, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class RelayConfig:
    """Relay configuration.

    Parameters
    ----------
    mqtt_url : str
        Broker URL, e.g. ``"mqtt://broker:1883"`` or ``"mqtts://broker"``.
    mqtt_client_id : str
        MQTT client identifier.
    mqtt_username : str or None
        Broker username.
    mqtt_password : str or None
        Broker password.
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    mqtt_qos : int
        QoS used for every beacon publish (0, 1 or 2).
    mqtt_topic_prefix : str
        Topic prefix; messages go to ``<prefix>/<gateway>``.
    source_base_url : str
        Base URL of the positioning API.
    position_path : str
        Path of the beacon snapshot endpoint.
    persistence_base_url : str
        Base URL of the persistence API.
    temperature_path : str
        Path of the "add temperature event" endpoint.
    http_timeout : float or None
        Total timeout for each HTTP call in seconds.  ``None`` keeps
        aiohttp's default.
    poll_interval : float
        Seconds between two passes in :meth:`BeaconRelay.run_forever`.
    fanout_policy : FailurePolicy
        ``continue`` runs every sink even if an earlier one failed;
        ``abort`` skips the remaining sinks after the first failure.
    persistence_policy : FailurePolicy
        Same choice for the per-record persistence loop.
    live_enabled : bool
        Serve the WebSocket subscriber channel from the CLI.
    live_host : str
        Bind address of the subscriber channel.
    live_port : int
        Port of the subscriber channel.
    live_path : str
        URL path subscribers connect to.
    """

    mqtt_url: str = DEFAULT_MQTT_URL
    mqtt_client_id: str = "beaconrelay"
    mqtt_username: str | None = None
    mqtt_password: str | None = None
    mqtt_keepalive: int = 60
    mqtt_qos: int = 0
    mqtt_topic_prefix: str = DEFAULT_TOPIC_PREFIX
    source_base_url: str = DEFAULT_SOURCE_BASE_URL
    position_path: str = DEFAULT_POSITION_PATH
    persistence_base_url: str = DEFAULT_PERSISTENCE_BASE_URL
    temperature_path: str = DEFAULT_TEMPERATURE_PATH
    http_timeout: float | None = None
    poll_interval: float = 10.0
    fanout_policy: FailurePolicy = FailurePolicy.CONTINUE
    persistence_policy: FailurePolicy = FailurePolicy.CONTINUE
    live_enabled: bool = True
    live_host: str = "0.0.0.0"
    live_port: int = 3001
    live_path: str = DEFAULT_LIVE_PATH

    def __post_init__(self) -> None:
        if self.mqtt_qos not in (0, 1, 2):
            raise RelayConfigError(f"mqtt_qos must be 0, 1 or 2, got {self.mqtt_qos}")
        if self.poll_interval < 0:
            raise RelayConfigError(f"poll_interval must not be negative, got {self.poll_interval}")
        if not self.mqtt_topic_prefix.strip("/"):
            raise RelayConfigError("mqtt_topic_prefix must not be empty")
        # Frozen dataclass: policies given as plain strings are normalised in place.
        object.__setattr__(self, "fanout_policy", _coerce_policy("fanout_policy", self.fanout_policy))
        object.__setattr__(self, "persistence_policy", _coerce_policy("persistence_policy", self.persistence_policy))

    @property
    def position_url(self) -> str:
        return f"{self.source_base_url.rstrip('/')}{self.position_path}"

    @property
    def temperature_url(self) -> str:
        return f"{self.persistence_base_url.rstrip('/')}{self.temperature_path}"

    @classmethod
    def from_env(cls, **overrides: Any) -> RelayConfig:
        """Create configuration from environment variables.

        Reads ``BEACONRELAY_*`` variables.  Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        RelayConfig
            Populated configuration.

        Raises
        ------
        RelayConfigError
            A numeric or policy variable could not be parsed.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "BEACONRELAY_MQTT_URL": "mqtt_url",
            "BEACONRELAY_MQTT_CLIENT_ID": "mqtt_client_id",
            "BEACONRELAY_MQTT_USERNAME": "mqtt_username",
            "BEACONRELAY_MQTT_PASSWORD": "mqtt_password",
            "BEACONRELAY_MQTT_TOPIC_PREFIX": "mqtt_topic_prefix",
            "BEACONRELAY_SOURCE_BASE_URL": "source_base_url",
            "BEACONRELAY_POSITION_PATH": "position_path",
            "BEACONRELAY_PERSISTENCE_BASE_URL": "persistence_base_url",
            "BEACONRELAY_TEMPERATURE_PATH": "temperature_path",
            "BEACONRELAY_FANOUT_POLICY": "fanout_policy",
            "BEACONRELAY_PERSISTENCE_POLICY": "persistence_policy",
            "BEACONRELAY_LIVE_HOST": "live_host",
            "BEACONRELAY_LIVE_PATH": "live_path",
        }
        _ENV_INT_MAP = {
            "BEACONRELAY_MQTT_KEEPALIVE": "mqtt_keepalive",
            "BEACONRELAY_MQTT_QOS": "mqtt_qos",
            "BEACONRELAY_LIVE_PORT": "live_port",
        }
        _ENV_FLOAT_MAP = {
            "BEACONRELAY_HTTP_TIMEOUT": "http_timeout",
            "BEACONRELAY_POLL_INTERVAL": "poll_interval",
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        for env_key, field_name in _ENV_INT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, int)

        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, float)

        if "live_enabled" not in overrides:
            config_kwargs["live_enabled"] = _env_bool(env.get("BEACONRELAY_LIVE_ENABLED"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
