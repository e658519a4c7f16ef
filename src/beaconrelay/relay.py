"""High-level async relay: collect beacon snapshots and fan them out."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any

import aiohttp

from beaconrelay._mqtt import ClientFactory, build_client
from beaconrelay._transport import JsonTransport, Transport
from beaconrelay.config import FailurePolicy, RelayConfig
from beaconrelay.exceptions import BeaconRelayError
from beaconrelay.ingestion.collector import BeaconCollector
from beaconrelay.models.beacon import NormalizedRecord
from beaconrelay.models.results import RelayResult, SinkResult, SinkStatus
from beaconrelay.sinks import Sink
from beaconrelay.sinks.live import LiveHub
from beaconrelay.sinks.mqtt import MqttSink
from beaconrelay.sinks.persistence import PersistenceSink

_logger = logging.getLogger(__name__)


class BeaconRelay:
    """Async relay from the positioning API to MQTT, persistence and live subscribers.

    Usage::

        async with BeaconRelay(config) as relay:
            result = await relay.run_once()

    Passes are serialized: a second :meth:`run_once` waits for the one
    in flight.  Sinks run in order (MQTT, persistence, live) and
    ``config.fanout_policy`` decides whether a failed sink stops the
    ones after it.
    """

    def __init__(
        self,
        config: RelayConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        mqtt_client_factory: ClientFactory = build_client,
        hub: LiveHub | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport = transport
        self._mqtt_client_factory = mqtt_client_factory
        self._hub = hub if hub is not None else LiveHub(config)
        self._clock = clock
        self._collector: BeaconCollector | None = None
        self._sinks: list[Sink] = []
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> BeaconRelay:
        transport = self._transport
        if transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            transport = JsonTransport(self._http_session, timeout=self._config.http_timeout)
        self._collector = BeaconCollector(self._config, transport)
        self._sinks = [
            MqttSink(self._config, client_factory=self._mqtt_client_factory, clock=self._clock),
            PersistenceSink(self._config, transport, clock=self._clock),
            self._hub,
        ]
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self._hub.stop()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._collector = None
        self._sinks = []

    @property
    def config(self) -> RelayConfig:
        return self._config

    @property
    def hub(self) -> LiveHub:
        return self._hub

    def _require_collector(self) -> BeaconCollector:
        if self._collector is None:
            raise BeaconRelayError("Relay not initialized. Use 'async with BeaconRelay(...) as relay:'")
        return self._collector

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    async def run_once(self) -> RelayResult:
        """Run one collect + fan-out pass.

        Never raises for upstream or sink failures; they are logged and
        reported in the returned :class:`RelayResult`.
        """
        collector = self._require_collector()
        async with self._lock:
            return await self._run_pass(collector)

    async def _run_pass(self, collector: BeaconCollector) -> RelayResult:
        started_at = datetime.now().astimezone()
        try:
            records = await collector.collect()
        except Exception as exc:
            _logger.exception("Error during fetching beacon data")
            return RelayResult(started_at=started_at, error=str(exc) or type(exc).__name__)

        if not records:
            _logger.info("No beacon records collected, skipping fan-out")
            return RelayResult(started_at=started_at)

        sink_results = await self._fan_out(records)
        result = RelayResult(started_at=started_at, records=tuple(records), sinks=tuple(sink_results))
        _logger.info(
            "Relayed %d beacons: %s",
            len(records),
            ", ".join(f"{r.sink}={r.status}({r.delivered})" for r in sink_results),
        )
        return result

    async def _fan_out(self, records: Sequence[NormalizedRecord]) -> list[SinkResult]:
        results: list[SinkResult] = []
        aborted = False
        for sink in self._sinks:
            if aborted:
                results.append(SinkResult(sink=sink.name, status=SinkStatus.SKIPPED, failed=len(records)))
                continue
            try:
                result = await sink.deliver(records)
            except Exception as exc:
                _logger.exception("Sink %s raised while delivering", sink.name)
                result = SinkResult(sink=sink.name, status=SinkStatus.FAILED, failed=len(records), error=str(exc))
            results.append(result)
            if result.status == SinkStatus.FAILED and self._config.fanout_policy == FailurePolicy.ABORT:
                _logger.warning("Sink %s failed, skipping the remaining sinks for this pass", sink.name)
                aborted = True
        return results

    async def run_forever(
        self,
        interval: float | None = None,
        *,
        stop_event: asyncio.Event | None = None,
        on_result: Callable[[RelayResult], None] | None = None,
    ) -> None:
        """Run passes until *stop_event* is set, sleeping *interval* seconds between them."""
        delay = self._config.poll_interval if interval is None else interval
        stop = stop_event if stop_event is not None else asyncio.Event()
        while not stop.is_set():
            result = await self.run_once()
            if on_result is not None:
                on_result(result)
            try:
                await asyncio.wait_for(stop.wait(), timeout=delay)
            except TimeoutError:
                continue
