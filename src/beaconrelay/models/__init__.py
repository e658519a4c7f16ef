"""Data models for beacon snapshots, outbound messages and pass results."""

from beaconrelay.models._base import RelayBaseModel
from beaconrelay.models.beacon import BeaconLocation, BeaconReading, DynamicAmbient, NearestGateway, NormalizedRecord
from beaconrelay.models.messages import MqttBeaconMessage, PersistedEvent, TemperatureEvent
from beaconrelay.models.results import RelayResult, SinkName, SinkResult, SinkStatus

__all__ = [
    "BeaconLocation",
    "BeaconReading",
    "DynamicAmbient",
    "MqttBeaconMessage",
    "NearestGateway",
    "NormalizedRecord",
    "PersistedEvent",
    "RelayBaseModel",
    "RelayResult",
    "SinkName",
    "SinkResult",
    "SinkStatus",
    "TemperatureEvent",
]
