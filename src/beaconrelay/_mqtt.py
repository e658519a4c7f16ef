"""Internal MQTT broker parsing and one-shot publish runtime."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

import paho.mqtt.client as mqtt

from beaconrelay._constants import MQTT_SCHEMES
from beaconrelay.config import RelayConfig
from beaconrelay.exceptions import RelayConfigError, SinkError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MqttBroker:
    """Connection target derived from the configured broker URL."""

    host: str
    port: int
    tls: bool = False
    transport: str = "tcp"
    path: str = "/mqtt"


@dataclass(frozen=True)
class MqttOutbound:
    """One message queued for publishing."""

    topic: str
    payload: str


ClientFactory = Callable[[RelayConfig, MqttBroker], Any]


def parse_broker_url(raw_url: str) -> MqttBroker:
    """Parse ``scheme://host[:port][/path]`` into an :class:`MqttBroker`.

    A bare ``host[:port]`` is treated as plain ``mqtt://``.
    """
    value = raw_url.strip()
    if not value:
        raise RelayConfigError("MQTT broker URL is empty")
    if "://" not in value:
        value = f"mqtt://{value}"

    parts = urlsplit(value)
    scheme = parts.scheme.lower()
    if scheme not in MQTT_SCHEMES:
        raise RelayConfigError(f"Unsupported MQTT URL scheme {scheme!r} in {raw_url!r}")
    default_port, tls, transport = MQTT_SCHEMES[scheme]

    try:
        port = parts.port or default_port
    except ValueError as exc:
        raise RelayConfigError(f"Invalid port in MQTT URL {raw_url!r}") from exc
    if not parts.hostname:
        raise RelayConfigError(f"MQTT URL {raw_url!r} has no host")

    return MqttBroker(
        host=parts.hostname,
        port=port,
        tls=tls,
        transport=transport,
        path=parts.path or "/mqtt",
    )


def build_client(config: RelayConfig, broker: MqttBroker) -> mqtt.Client:
    """Create a configured (not yet connected) paho client."""
    client = mqtt.Client(
        callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
        client_id=config.mqtt_client_id,
        transport=broker.transport,
    )
    client.enable_logger(_logger)
    if config.mqtt_username is not None:
        client.username_pw_set(config.mqtt_username, config.mqtt_password)
    if broker.tls:
        client.tls_set()
    if broker.transport == "websockets":
        client.ws_set_options(path=broker.path)
    return client


async def publish_batch(
    config: RelayConfig,
    messages: Sequence[MqttOutbound],
    *,
    client_factory: ClientFactory = build_client,
) -> int:
    """Connect, publish every message once connected, then disconnect.

    Resolves with the number of messages handed to the client when the
    connection closes.  Publishes are fire-and-forget; no delivery
    acknowledgment is awaited.

    Raises
    ------
    SinkError
        The broker could not be reached, refused the connection, or
        dropped it before the batch was handed over.
    """
    broker = parse_broker_url(config.mqtt_url)
    loop = asyncio.get_running_loop()
    closed: asyncio.Future[int] = loop.create_future()
    client = client_factory(config, broker)
    state = {"published": 0, "disconnect_requested": False}

    def finish(exc: BaseException | None) -> None:
        if closed.done():
            return
        if exc is not None:
            closed.set_exception(exc)
        else:
            closed.set_result(state["published"])

    def on_connect(c: Any, _userdata: Any, _flags: Any, reason_code: Any, _properties: Any) -> None:
        if reason_code.is_failure:
            _logger.warning("MQTT connect refused: %s", reason_code)
            loop.call_soon_threadsafe(finish, SinkError(f"MQTT connect refused: {reason_code}", sink="mqtt"))
            state["disconnect_requested"] = True
            c.disconnect()
            return
        _logger.debug("MQTT connected to %s:%s, publishing %d messages", broker.host, broker.port, len(messages))
        for message in messages:
            c.publish(message.topic, message.payload, qos=config.mqtt_qos)
            state["published"] += 1
        state["disconnect_requested"] = True
        c.disconnect()

    def on_disconnect(_c: Any, _userdata: Any, _flags: Any, reason_code: Any, _properties: Any) -> None:
        if state["disconnect_requested"]:
            _logger.debug("MQTT connection closed: %s", reason_code)
            loop.call_soon_threadsafe(finish, None)
            return
        loop.call_soon_threadsafe(
            finish,
            SinkError(f"MQTT connection closed unexpectedly: {reason_code}", sink="mqtt"),
        )

    client.on_connect = on_connect
    client.on_disconnect = on_disconnect

    try:
        await loop.run_in_executor(None, client.connect, broker.host, broker.port, config.mqtt_keepalive)
    except OSError as exc:
        raise SinkError(f"MQTT connect to {broker.host}:{broker.port} failed: {exc}", sink="mqtt") from exc

    client.loop_start()
    try:
        return await closed
    finally:
        await loop.run_in_executor(None, client.loop_stop)
        _logger.debug("MQTT network loop stopped")
