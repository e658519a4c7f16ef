"""Persistence fan-out sink: one time-series append per record."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime

from beaconrelay._transport import Transport
from beaconrelay.config import FailurePolicy, RelayConfig
from beaconrelay.exceptions import RelayTransportError
from beaconrelay.ingestion.normalize import local_timestamp
from beaconrelay.models.beacon import NormalizedRecord
from beaconrelay.models.messages import PersistedEvent
from beaconrelay.models.results import SinkName, SinkResult, SinkStatus

_logger = logging.getLogger(__name__)


class PersistenceSink:
    """Appends temperature events to the persistence API, one awaited POST at a time.

    With ``persistence_policy=continue`` a failed append is logged and
    the loop moves on to the next record; with ``abort`` the loop stops
    at the first failure.  Either way the sink reports ``failed`` when
    any append failed.
    """

    name = SinkName.PERSISTENCE

    def __init__(
        self,
        config: RelayConfig,
        transport: Transport,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._clock = clock

    def build_event(self, record: NormalizedRecord) -> PersistedEvent:
        return PersistedEvent.from_record(record, local_timestamp(self._clock))

    async def append(self, record: NormalizedRecord) -> None:
        """Send a single append for *record*."""
        await self._transport.post_json(self._config.temperature_url, self.build_event(record).to_wire())

    async def deliver(self, records: Sequence[NormalizedRecord]) -> SinkResult:
        appended = 0
        failed = 0
        errors: list[str] = []
        for index, record in enumerate(records):
            try:
                await self.append(record)
            except RelayTransportError as exc:
                failed += 1
                errors.append(f"{record.beacon}: {exc}")
                _logger.warning("Persisting beacon %s failed: %s", record.beacon, exc)
                if self._config.persistence_policy == FailurePolicy.ABORT:
                    remaining = len(records) - index - 1
                    if remaining:
                        _logger.warning("Aborting persistence loop, %d records not sent", remaining)
                    failed += remaining
                    break
                continue
            appended += 1

        if errors:
            return SinkResult(
                sink=self.name,
                status=SinkStatus.FAILED,
                delivered=appended,
                failed=failed,
                error="; ".join(errors),
            )
        return SinkResult(sink=self.name, status=SinkStatus.OK, delivered=appended)
