"""Outbound message models for the MQTT and persistence sinks."""

from __future__ import annotations

from pydantic import Field

from beaconrelay.models._base import RelayBaseModel, UpstreamValue
from beaconrelay.models.beacon import NormalizedRecord


class MqttBeaconMessage(RelayBaseModel):
    """Body published to ``beacon/<gateway>``.

    ``temperature`` is always present and falls back to ``0`` when the
    beacon did not report live telemetry.
    """

    beacon: str
    gateway: str | None = None
    latitude: UpstreamValue = None
    longitude: UpstreamValue = None
    storage_location: UpstreamValue = Field(default=None, alias="storageLocation")
    temp_condition_low: UpstreamValue = Field(default=None, alias="tempCondition_Low")
    temp_condition_high: UpstreamValue = Field(default=None, alias="tempCondition_High")
    current_date_time: str = Field(alias="currentDateTime")
    temperature: UpstreamValue = 0

    @classmethod
    def from_record(cls, record: NormalizedRecord, timestamp: str) -> MqttBeaconMessage:
        return cls(
            beacon=record.beacon,
            gateway=record.gateway,
            latitude=record.latitude,
            longitude=record.longitude,
            storage_location=record.sap_location,
            temp_condition_low=record.temp_condition_low,
            temp_condition_high=record.temp_condition_high,
            current_date_time=timestamp,
            temperature=record.temperature_or_zero,
        )


class TemperatureEvent(RelayBaseModel):
    """A single point of a beacon's temperature time series."""

    timestamp: str
    temperature: UpstreamValue = 0


class PersistedEvent(RelayBaseModel):
    """Body of one "add temperature event" call.

    Parameters
    ----------
    beacon : str
        Uppercase beacon identifier.
    gateway : str or None
        Nearest gateway device.
    latitude, longitude : any
        Beacon position, as received.
    temp_condition_low, temp_condition_high : any
        Storage temperature thresholds (``tempConditionLow`` /
        ``tempConditionHigh`` on the wire).
    sap_location : any
        Storage location label.
    events : list of TemperatureEvent
        Always exactly one element per append.
    """

    beacon: str
    gateway: str | None = None
    latitude: UpstreamValue = None
    longitude: UpstreamValue = None
    temp_condition_low: UpstreamValue = Field(default=None, alias="tempConditionLow")
    temp_condition_high: UpstreamValue = Field(default=None, alias="tempConditionHigh")
    sap_location: UpstreamValue = Field(default=None, alias="sapLocation")
    events: list[TemperatureEvent] = Field(default_factory=list)

    @classmethod
    def from_record(cls, record: NormalizedRecord, timestamp: str) -> PersistedEvent:
        return cls(
            beacon=record.beacon,
            gateway=record.gateway,
            latitude=record.latitude,
            longitude=record.longitude,
            temp_condition_low=record.temp_condition_low,
            temp_condition_high=record.temp_condition_high,
            sap_location=record.sap_location,
            events=[TemperatureEvent(timestamp=timestamp, temperature=record.temperature_or_zero)],
        )
