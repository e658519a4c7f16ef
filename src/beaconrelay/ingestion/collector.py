"""Beacon snapshot collection.

This module owns the "fetch + validate + flatten" step of a pass.  The
HTTP plumbing lives in :mod:`beaconrelay._transport`; the fan-out sinks
only ever see :class:`NormalizedRecord` values produced here.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from beaconrelay._transport import Transport
from beaconrelay.config import RelayConfig
from beaconrelay.exceptions import BeaconPayloadError
from beaconrelay.models.beacon import BeaconReading, NormalizedRecord

_logger = logging.getLogger(__name__)


def extract_beacon_entries(body: Any) -> list[Any]:
    """Return the ``data.beacons`` list of a snapshot body.

    Raises
    ------
    BeaconPayloadError
        ``data`` is missing or ``beacons`` is not a list.
    """
    data = body.get("data") if isinstance(body, dict) else None
    beacons = data.get("beacons") if isinstance(data, dict) else None
    if not isinstance(beacons, list):
        raise BeaconPayloadError("No beacons found in the response")
    return beacons


def normalize_entries(entries: list[Any]) -> list[NormalizedRecord]:
    """Flatten every raw entry; the first invalid entry fails the whole batch."""
    records: list[NormalizedRecord] = []
    for index, entry in enumerate(entries):
        try:
            records.append(BeaconReading.from_entry(entry).to_record())
        except (ValidationError, BeaconPayloadError) as exc:
            raise BeaconPayloadError(f"Beacon entry {index} is invalid: {exc}") from exc
    return records


def parse_beacon_snapshot(body: Any) -> list[NormalizedRecord]:
    """Validate a snapshot body and return one record per beacon entry."""
    return normalize_entries(extract_beacon_entries(body))


class BeaconCollector:
    """Fetches the current beacon snapshot from the positioning source."""

    def __init__(self, config: RelayConfig, transport: Transport) -> None:
        self._config = config
        self._transport = transport

    async def collect(self) -> list[NormalizedRecord]:
        """Fetch the snapshot and normalize it.

        A body without a ``data.beacons`` list is logged and yields no
        records.  Transport failures and invalid individual entries
        propagate so the caller abandons the pass.
        """
        url = self._config.position_url
        body = await self._transport.get_json(url)
        try:
            entries = extract_beacon_entries(body)
        except BeaconPayloadError as exc:
            _logger.error("%s (%s)", exc, url)
            return []

        records = normalize_entries(entries)
        _logger.debug("Collected %d beacon records from %s", len(records), url)
        return records
