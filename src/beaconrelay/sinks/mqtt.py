"""MQTT fan-out sink: one device-scoped message per record."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime

from beaconrelay._mqtt import ClientFactory, MqttOutbound, build_client, publish_batch
from beaconrelay.config import RelayConfig
from beaconrelay.exceptions import RelayConfigError, SinkError
from beaconrelay.ingestion.normalize import local_timestamp
from beaconrelay.models.beacon import NormalizedRecord
from beaconrelay.models.messages import MqttBeaconMessage
from beaconrelay.models.results import SinkName, SinkResult, SinkStatus

_logger = logging.getLogger(__name__)


class MqttSink:
    """Publishes each record to ``<prefix>/<gateway>`` over a short-lived connection.

    Records without a gateway cannot be routed.  They are counted as
    failed without blocking the rest of the batch, and like any other
    undelivered record they make the sink report ``failed``.
    """

    name = SinkName.MQTT

    def __init__(
        self,
        config: RelayConfig,
        *,
        client_factory: ClientFactory = build_client,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config
        self._client_factory = client_factory
        self._clock = clock

    def topic_for(self, gateway: str) -> str:
        return f"{self._config.mqtt_topic_prefix.strip('/')}/{gateway}"

    def build_messages(self, records: Sequence[NormalizedRecord]) -> tuple[list[MqttOutbound], int]:
        """Return the routable messages and the number of records skipped for lack of a gateway."""
        timestamp = local_timestamp(self._clock)
        messages: list[MqttOutbound] = []
        skipped = 0
        for record in records:
            if not record.gateway:
                _logger.warning("Beacon %s has no gateway, not publishing to MQTT", record.beacon)
                skipped += 1
                continue
            body = MqttBeaconMessage.from_record(record, timestamp)
            messages.append(MqttOutbound(topic=self.topic_for(record.gateway), payload=body.to_wire_json()))
        return messages, skipped

    async def deliver(self, records: Sequence[NormalizedRecord]) -> SinkResult:
        messages, skipped = self.build_messages(records)
        unroutable = f"{skipped} record(s) without a gateway" if skipped else None
        if not messages:
            status = SinkStatus.FAILED if skipped else SinkStatus.OK
            return SinkResult(sink=self.name, status=status, failed=skipped, error=unroutable)

        try:
            published = await publish_batch(self._config, messages, client_factory=self._client_factory)
        except (SinkError, RelayConfigError) as exc:
            _logger.warning("MQTT publish failed: %s", exc)
            return SinkResult(sink=self.name, status=SinkStatus.FAILED, failed=len(records), error=str(exc))

        _logger.debug("Published %d beacon messages to MQTT", published)
        return SinkResult(
            sink=self.name,
            status=SinkStatus.FAILED if skipped else SinkStatus.OK,
            delivered=published,
            failed=skipped,
            error=unroutable,
        )
