"""Fan-out sinks.

Every sink takes the normalized records of one pass and reports a
:class:`~beaconrelay.models.results.SinkResult` instead of raising, so
the relay can apply its fan-out policy uniformly.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from beaconrelay.models.beacon import NormalizedRecord
from beaconrelay.models.results import SinkName, SinkResult


class Sink(Protocol):
    name: SinkName

    async def deliver(self, records: Sequence[NormalizedRecord]) -> SinkResult:
        ...


__all__ = ["Sink"]
