from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

import pytest

from beaconrelay.config import RelayConfig


@pytest.fixture
def config() -> RelayConfig:
    return RelayConfig(
        mqtt_url="mqtt://broker.test:1883",
        mqtt_client_id="relay-test",
        mqtt_username="relay",
        mqtt_password="secret",
        source_base_url="http://positions.test",
        persistence_base_url="http://store.test/",
    )


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """Wall clock pinned to 2026-10-19 08:30:05 local time."""
    return lambda: datetime(2026, 10, 19, 8, 30, 5)
