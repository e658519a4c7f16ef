from __future__ import annotations

import dataclasses
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

import pytest

from beaconrelay.config import FailurePolicy, RelayConfig
from beaconrelay.exceptions import RelayTransportError
from beaconrelay.models import NormalizedRecord, SinkName, SinkStatus
from beaconrelay.sinks.persistence import PersistenceSink


class FakeStore:
    """Persistence API double that rejects appends for selected beacons."""

    def __init__(self, *, reject: set[str] | None = None) -> None:
        self.reject = reject or set()
        self.posts: list[tuple[str, dict[str, Any]]] = []

    async def get_json(self, url: str) -> Any:
        raise AssertionError("the persistence sink never reads")

    async def post_json(self, url: str, payload: Mapping[str, Any]) -> None:
        self.posts.append((url, dict(payload)))
        if payload.get("beacon") in self.reject:
            raise RelayTransportError("HTTP 500 from persistence", status_code=500, endpoint=url)


def _records() -> list[NormalizedRecord]:
    return [
        NormalizedRecord(beacon="b1", gateway="GW-1", temperature=3.5, temp_condition_low=2, temp_condition_high=8),
        NormalizedRecord(beacon="b2", gateway="GW-1"),
        NormalizedRecord(beacon="b3", gateway="GW-2", temperature=6.0),
    ]


@pytest.mark.asyncio
async def test_one_append_per_record_in_order(config: RelayConfig, clock: Callable[[], datetime]) -> None:
    store = FakeStore()
    sink = PersistenceSink(config, store, clock=clock)

    result = await sink.deliver(_records())

    assert result.sink == SinkName.PERSISTENCE
    assert result.status == SinkStatus.OK
    assert result.delivered == 3
    assert [url for url, _ in store.posts] == ["http://store.test/api/temperature/addTemp"] * 3
    assert [body["beacon"] for _, body in store.posts] == ["B1", "B2", "B3"]


@pytest.mark.asyncio
async def test_append_body_shape(config: RelayConfig, clock: Callable[[], datetime]) -> None:
    store = FakeStore()
    sink = PersistenceSink(config, store, clock=clock)

    await sink.deliver(_records()[:2])

    first, second = (body for _, body in store.posts)
    assert first == {
        "beacon": "B1",
        "gateway": "GW-1",
        "tempConditionLow": 2,
        "tempConditionHigh": 8,
        "events": [{"timestamp": "2026-10-19 08:30:05", "temperature": 3.5}],
    }
    assert second["events"] == [{"timestamp": "2026-10-19 08:30:05", "temperature": 0}]


@pytest.mark.asyncio
async def test_append_body_keeps_upstream_threshold_text(config: RelayConfig, clock: Callable[[], datetime]) -> None:
    store = FakeStore()
    record = NormalizedRecord(beacon="b1", temp_condition_low="2-8C", latitude="47.1")

    await PersistenceSink(config, store, clock=clock).deliver([record])

    ((_, body),) = store.posts
    assert body["tempConditionLow"] == "2-8C"
    assert body["latitude"] == "47.1"


@pytest.mark.asyncio
async def test_continue_policy_sends_remaining_records(config: RelayConfig, clock: Callable[[], datetime]) -> None:
    store = FakeStore(reject={"B1"})
    sink = PersistenceSink(config, store, clock=clock)

    result = await sink.deliver(_records())

    assert result.status == SinkStatus.FAILED
    assert result.delivered == 2
    assert result.failed == 1
    assert result.error is not None and "B1" in result.error
    assert [body["beacon"] for _, body in store.posts] == ["B1", "B2", "B3"]


@pytest.mark.asyncio
async def test_abort_policy_stops_at_first_failure(config: RelayConfig, clock: Callable[[], datetime]) -> None:
    store = FakeStore(reject={"B2"})
    abort_config = dataclasses.replace(config, persistence_policy=FailurePolicy.ABORT)
    sink = PersistenceSink(abort_config, store, clock=clock)

    result = await sink.deliver(_records())

    assert result.status == SinkStatus.FAILED
    assert result.delivered == 1
    assert result.failed == 2
    assert [body["beacon"] for _, body in store.posts] == ["B1", "B2"]


@pytest.mark.asyncio
async def test_empty_batch_makes_no_calls(config: RelayConfig) -> None:
    store = FakeStore()

    result = await PersistenceSink(config, store).deliver([])

    assert result.status == SinkStatus.OK
    assert store.posts == []
