"""Live-subscriber fan-out sink served over WebSocket.

Subscribers connect to ``config.live_path`` and receive one text frame
per pass::

    {"event": "beaconData", "data": [<record>, ...]}

There is no acknowledgment and no replay: a subscriber only sees the
batches broadcast while it is connected.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any

from aiohttp import WSMsgType, web

from beaconrelay._constants import LIVE_EVENT_NAME
from beaconrelay.config import RelayConfig
from beaconrelay.models.beacon import NormalizedRecord
from beaconrelay.models.results import SinkName, SinkResult, SinkStatus

_logger = logging.getLogger(__name__)


class LiveHub:
    """Tracks connected WebSocket subscribers and broadcasts beacon batches to them."""

    name = SinkName.LIVE

    def __init__(self, config: RelayConfig) -> None:
        self._config = config
        self._subscribers: set[web.WebSocketResponse] = set()
        self._runner: web.AppRunner | None = None

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def handle_subscriber(self, request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse(heartbeat=30.0)
        await ws.prepare(request)
        self._subscribers.add(ws)
        _logger.info("Live subscriber connected from %s (%d connected)", request.remote, len(self._subscribers))
        try:
            async for msg in ws:
                # Subscribers are receive-only; inbound frames are ignored.
                if msg.type == WSMsgType.ERROR:
                    _logger.debug("Live subscriber error: %s", ws.exception())
        finally:
            self._subscribers.discard(ws)
            _logger.info("Live subscriber disconnected (%d connected)", len(self._subscribers))
        return ws

    async def _close_subscribers(self, _app: web.Application) -> None:
        for ws in list(self._subscribers):
            await ws.close(code=1001, message=b"server shutdown")
        self._subscribers.clear()

    def make_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get(self._config.live_path, self.handle_subscriber)
        app.on_shutdown.append(self._close_subscribers)
        return app

    async def start(self) -> None:
        """Serve the subscriber endpoint on ``live_host:live_port``."""
        if self._runner is not None:
            return
        runner = web.AppRunner(self.make_app())
        await runner.setup()
        site = web.TCPSite(runner, self._config.live_host, self._config.live_port)
        await site.start()
        self._runner = runner
        _logger.info(
            "Live channel listening on ws://%s:%s%s",
            self._config.live_host,
            self._config.live_port,
            self._config.live_path,
        )

    async def stop(self) -> None:
        runner = self._runner
        self._runner = None
        if runner is not None:
            await runner.cleanup()

    async def broadcast(self, event: str, data: Any) -> int:
        """Send one event to every connected subscriber; return how many were reached."""
        message = json.dumps({"event": event, "data": data}, separators=(",", ":"))
        delivered = 0
        for ws in list(self._subscribers):
            if ws.closed:
                self._subscribers.discard(ws)
                continue
            try:
                await ws.send_str(message)
            except ConnectionResetError:
                _logger.debug("Dropping live subscriber with closed transport")
                self._subscribers.discard(ws)
                continue
            delivered += 1
        return delivered

    async def deliver(self, records: Sequence[NormalizedRecord]) -> SinkResult:
        delivered = await self.broadcast(LIVE_EVENT_NAME, [record.to_wire() for record in records])
        _logger.debug("Broadcast %d records to %d live subscribers", len(records), delivered)
        return SinkResult(sink=self.name, status=SinkStatus.OK, delivered=delivered)
