"""beaconrelay - Async relay from a beacon positioning API to MQTT, persistence and live subscribers."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("beaconrelay")
except PackageNotFoundError:
    __version__ = "0+local"
from beaconrelay.config import FailurePolicy, RelayConfig
from beaconrelay.exceptions import (
    BeaconPayloadError,
    BeaconRelayError,
    RelayConfigError,
    RelayTransportError,
    SinkError,
)
from beaconrelay.ingestion.collector import BeaconCollector, parse_beacon_snapshot
from beaconrelay.ingestion.normalize import format_uptime
from beaconrelay.models import (
    MqttBeaconMessage,
    NormalizedRecord,
    PersistedEvent,
    RelayResult,
    SinkName,
    SinkResult,
    SinkStatus,
)
from beaconrelay.relay import BeaconRelay
from beaconrelay.sinks.live import LiveHub

__all__ = [
    "__version__",
    "BeaconCollector",
    "BeaconPayloadError",
    "BeaconRelay",
    "BeaconRelayError",
    "FailurePolicy",
    "LiveHub",
    "MqttBeaconMessage",
    "NormalizedRecord",
    "PersistedEvent",
    "RelayConfig",
    "RelayConfigError",
    "RelayResult",
    "RelayTransportError",
    "SinkError",
    "SinkName",
    "SinkResult",
    "SinkStatus",
    "format_uptime",
    "parse_beacon_snapshot",
]
