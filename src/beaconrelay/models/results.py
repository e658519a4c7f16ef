"""Per-pass outcome models."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from beaconrelay.models.beacon import NormalizedRecord


class SinkName(StrEnum):
    MQTT = "mqtt"
    PERSISTENCE = "persistence"
    LIVE = "live"


class SinkStatus(StrEnum):
    OK = "ok"
    FAILED = "failed"
    SKIPPED = "skipped"


class SinkResult(BaseModel):
    """What one sink did with the batch of a pass.

    A sink reports ``failed`` as soon as any record was not delivered,
    even when the rest of the batch went through.
    """

    model_config = ConfigDict(frozen=True)

    sink: SinkName
    status: SinkStatus
    delivered: int = Field(default=0, description="Messages, appends or subscribers reached")
    failed: int = Field(default=0, description="Records the sink could not deliver")
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == SinkStatus.OK


class RelayResult(BaseModel):
    """Outcome of one collect + fan-out pass."""

    model_config = ConfigDict(frozen=True)

    started_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    records: tuple[NormalizedRecord, ...] = ()
    sinks: tuple[SinkResult, ...] = ()
    error: str | None = Field(default=None, description="Why the pass was abandoned, if it was")

    @property
    def ok(self) -> bool:
        return self.error is None and all(result.status != SinkStatus.FAILED for result in self.sinks)

    def sink(self, name: SinkName) -> SinkResult | None:
        for result in self.sinks:
            if result.sink == name:
                return result
        return None
