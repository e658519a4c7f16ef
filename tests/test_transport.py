from __future__ import annotations

from datetime import datetime
from typing import Any

import aiohttp
import pytest
from aiohttp import test_utils, web

from beaconrelay._transport import JsonTransport
from beaconrelay.config import RelayConfig
from beaconrelay.exceptions import RelayTransportError
from beaconrelay.models import NormalizedRecord, SinkStatus
from beaconrelay.sinks.persistence import PersistenceSink


def _app(received: list[dict[str, Any]]) -> web.Application:
    async def position(_request: web.Request) -> web.Response:
        return web.json_response({"data": {"beacons": []}})

    async def add_temp(request: web.Request) -> web.Response:
        received.append(await request.json())
        return web.json_response({"stored": True}, status=201)

    async def add_temp_text(request: web.Request) -> web.Response:
        received.append(await request.json())
        return web.Response(text="Temperature added")

    async def add_temp_binary(request: web.Request) -> web.Response:
        received.append(await request.json())
        return web.Response(body=b"\xff\xfe ok", content_type="text/plain")

    async def empty(_request: web.Request) -> web.Response:
        return web.Response(status=204)

    async def broken(_request: web.Request) -> web.Response:
        return web.Response(text="<html>not json</html>")

    async def binary(_request: web.Request) -> web.Response:
        return web.Response(body=b'{"beacons": "\xff"}', content_type="application/json")

    async def failing(_request: web.Request) -> web.Response:
        return web.Response(status=503, text="maintenance")

    async def failing_binary(_request: web.Request) -> web.Response:
        return web.Response(status=500, body=b"\xff\xfe down")

    app = web.Application()
    app.router.add_get("/api/position/getPosition", position)
    app.router.add_post("/api/temperature/addTemp", add_temp)
    app.router.add_post("/text/api/temperature/addTemp", add_temp_text)
    app.router.add_post("/binary/api/temperature/addTemp", add_temp_binary)
    app.router.add_post("/empty", empty)
    app.router.add_get("/broken", broken)
    app.router.add_get("/binary", binary)
    app.router.add_get("/failing", failing)
    app.router.add_post("/failing-binary", failing_binary)
    return app


@pytest.mark.asyncio
async def test_get_json_decodes_and_post_json_sends_body() -> None:
    received: list[dict[str, Any]] = []

    async with test_utils.TestServer(_app(received)) as server:
        async with aiohttp.ClientSession() as session:
            transport = JsonTransport(session, timeout=5)
            body = await transport.get_json(str(server.make_url("/api/position/getPosition")))
            reply = await transport.post_json(
                str(server.make_url("/api/temperature/addTemp")),
                {"beacon": "B1", "events": [{"timestamp": "2026-10-19 08:30:05", "temperature": 0}]},
            )
            nothing = await transport.post_json(str(server.make_url("/empty")), {})

    assert body == {"data": {"beacons": []}}
    assert reply is None
    assert nothing is None
    assert received == [{"beacon": "B1", "events": [{"timestamp": "2026-10-19 08:30:05", "temperature": 0}]}]


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/text/api/temperature/addTemp", "/binary/api/temperature/addTemp"])
async def test_post_json_accepts_any_2xx_reply_body(path: str) -> None:
    received: list[dict[str, Any]] = []

    async with test_utils.TestServer(_app(received)) as server:
        async with aiohttp.ClientSession() as session:
            await JsonTransport(session).post_json(str(server.make_url(path)), {"beacon": "B1"})

    assert received == [{"beacon": "B1"}]


@pytest.mark.asyncio
@pytest.mark.parametrize("prefix", ["/text", "/binary"])
async def test_persistence_sink_counts_non_json_replies_as_appended(prefix: str) -> None:
    received: list[dict[str, Any]] = []
    records = [NormalizedRecord(beacon="b1", gateway="GW-1"), NormalizedRecord(beacon="b2", gateway="GW-1")]

    async with test_utils.TestServer(_app(received)) as server:
        config = RelayConfig(persistence_base_url=str(server.make_url(prefix)))
        async with aiohttp.ClientSession() as session:
            sink = PersistenceSink(config, JsonTransport(session), clock=lambda: datetime(2026, 10, 19, 8, 30, 5))
            result = await sink.deliver(records)

    assert result.status == SinkStatus.OK
    assert result.delivered == 2
    assert [body["beacon"] for body in received] == ["B1", "B2"]


@pytest.mark.asyncio
async def test_non_2xx_raises_with_status() -> None:
    async with test_utils.TestServer(_app([])) as server:
        async with aiohttp.ClientSession() as session:
            url = str(server.make_url("/failing"))
            with pytest.raises(RelayTransportError, match="HTTP 503") as excinfo:
                await JsonTransport(session).get_json(url)

    assert excinfo.value.status_code == 503
    assert excinfo.value.endpoint == url


@pytest.mark.asyncio
async def test_non_2xx_with_undecodable_body_still_raises_transport_error() -> None:
    async with test_utils.TestServer(_app([])) as server:
        async with aiohttp.ClientSession() as session:
            with pytest.raises(RelayTransportError, match="HTTP 500") as excinfo:
                await JsonTransport(session).post_json(str(server.make_url("/failing-binary")), {})

    assert excinfo.value.status_code == 500


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/broken", "/binary"])
async def test_invalid_json_raises(path: str) -> None:
    async with test_utils.TestServer(_app([])) as server:
        async with aiohttp.ClientSession() as session:
            with pytest.raises(RelayTransportError, match="Invalid JSON"):
                await JsonTransport(session).get_json(str(server.make_url(path)))


@pytest.mark.asyncio
async def test_unreachable_host_raises_transport_error() -> None:
    async with aiohttp.ClientSession() as session:
        with pytest.raises(RelayTransportError, match="failed") as excinfo:
            await JsonTransport(session, timeout=2).get_json("http://127.0.0.1:1/api/position/getPosition")

    assert excinfo.value.status_code is None
