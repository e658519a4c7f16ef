"""Beacon snapshot models.

:class:`BeaconReading` mirrors one upstream beacon entry
(``{<beaconId>: {nearestGatewayData, location, dynamb?}}``) and
:class:`NormalizedRecord` is the flattened shape every sink consumes.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import Field, field_validator, model_validator

from beaconrelay.exceptions import BeaconPayloadError
from beaconrelay.ingestion.normalize import safe_int, safe_str, uptime_or_none
from beaconrelay.models._base import RelayBaseModel, UpstreamValue


class NearestGateway(RelayBaseModel):
    """Gateway that received the beacon with the strongest signal."""

    device: str | None = None

    @field_validator("device", mode="before")
    @classmethod
    def _coerce_device(cls, value: Any) -> str | None:
        return safe_str(value)


class BeaconLocation(RelayBaseModel):
    """Position and storage metadata of a beacon.

    Values are kept exactly as the positioning API sent them, so a
    threshold like ``"2-8C"`` or a latitude sent as a string reaches the
    sinks unchanged.

    Parameters
    ----------
    latitude, longitude : any
        Beacon position.
    sap_location : any
        Storage location label (``sapLocation``).
    temp_condition_low, temp_condition_high : any
        Bounds of the storage temperature condition.
    """

    latitude: UpstreamValue = None
    longitude: UpstreamValue = None
    sap_location: UpstreamValue = Field(default=None, alias="sapLocation")
    temp_condition_low: UpstreamValue = Field(default=None, alias="tempCondition_Low")
    temp_condition_high: UpstreamValue = Field(default=None, alias="tempCondition_High")


class DynamicAmbient(RelayBaseModel):
    """Live telemetry (``dynamb``) attached to a reading."""

    temperature: UpstreamValue = None
    uptime: int | None = None

    @field_validator("uptime", mode="before")
    @classmethod
    def _coerce_uptime(cls, value: Any) -> int | None:
        return safe_int(value)


class BeaconReading(RelayBaseModel):
    """One upstream beacon entry, unwrapped from its single-key mapping."""

    beacon_id: str
    nearest_gateway: NearestGateway = Field(default_factory=NearestGateway, alias="nearestGatewayData")
    location: BeaconLocation = Field(default_factory=BeaconLocation)
    dynamb: DynamicAmbient | None = None
    raw: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _drop_null_sections(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        cleaned = {k: v for k, v in values.items() if v is not None}
        cleaned.setdefault("raw", dict(values))
        return cleaned

    @classmethod
    def from_entry(cls, entry: Any) -> BeaconReading:
        """Unwrap ``{<beaconId>: {...}}`` into a reading.

        Raises
        ------
        BeaconPayloadError
            The entry is not a single-key mapping to an object.
        """
        if not isinstance(entry, Mapping) or len(entry) != 1:
            raise BeaconPayloadError(f"Beacon entry must be a single-key object, got {entry!r:.120}")
        ((beacon_id, body),) = entry.items()
        if not isinstance(body, Mapping):
            raise BeaconPayloadError(f"Beacon {beacon_id!r} body is not an object")
        return cls.model_validate({**body, "beacon_id": str(beacon_id), "raw": dict(body)})

    def to_record(self) -> NormalizedRecord:
        """Flatten into the canonical record shape."""
        location = self.location
        data: dict[str, Any] = {
            "beacon": self.beacon_id,
            "gateway": self.nearest_gateway.device,
            "latitude": location.latitude,
            "longitude": location.longitude,
            "sap_location": location.sap_location,
            "temp_condition_low": location.temp_condition_low,
            "temp_condition_high": location.temp_condition_high,
        }
        if self.dynamb is not None:
            data["temperature"] = self.dynamb.temperature
            data["uptime"] = uptime_or_none(self.dynamb.uptime)
        return NormalizedRecord(**data)


class NormalizedRecord(RelayBaseModel):
    """Flattened beacon record shared by all sinks.

    ``beacon`` is always present and uppercase.  ``temperature`` and
    ``uptime`` are only set when the beacon reported live telemetry;
    sinks treat a missing temperature as zero.
    """

    beacon: str
    gateway: str | None = None
    latitude: UpstreamValue = None
    longitude: UpstreamValue = None
    sap_location: UpstreamValue = Field(default=None, alias="sapLocation")
    temp_condition_low: UpstreamValue = Field(default=None, alias="tempCondition_Low")
    temp_condition_high: UpstreamValue = Field(default=None, alias="tempCondition_High")
    temperature: UpstreamValue = None
    uptime: str | None = None

    @field_validator("beacon")
    @classmethod
    def _normalize_beacon(cls, value: str) -> str:
        beacon = value.strip().upper()
        if not beacon:
            raise ValueError("beacon must be non-empty")
        return beacon

    @property
    def temperature_or_zero(self) -> Any:
        return self.temperature if self.temperature is not None else 0
