"""JSON-over-HTTP transport used by the collector and the persistence sink."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from beaconrelay._constants import USER_AGENT
from beaconrelay._redact import redact_for_log
from beaconrelay.exceptions import RelayTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the collector and sinks.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`JsonTransport`) concrete.
    """

    async def get_json(self, url: str) -> Any:
        ...

    async def post_json(self, url: str, payload: Mapping[str, Any]) -> None:
        ...


class JsonTransport:
    """HTTP transport exchanging JSON bodies over a shared aiohttp session."""

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        *,
        timeout: float | None = None,
    ) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout) if timeout is not None else None

    async def _request(self, method: str, url: str, body: str | None = None) -> bytes:
        """Send one request and return the raw reply body of a 2xx response."""
        headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }
        if body is not None:
            headers["content-type"] = "application/json; charset=UTF-8"

        kwargs: dict[str, Any] = {"data": body, "headers": headers}
        if self._timeout is not None:
            kwargs["timeout"] = self._timeout

        _logger.debug("%s %s", method, url)

        try:
            async with self._http.request(method, url, **kwargs) as resp:
                raw = await resp.read()
                if not 200 <= resp.status < 300:
                    raise RelayTransportError(
                        f"HTTP {resp.status} from {url}: {_preview(raw)}",
                        status_code=resp.status,
                        endpoint=url,
                    )
        except RelayTransportError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise RelayTransportError(
                f"Request to {url} failed: {exc!r}",
                endpoint=url,
            ) from exc
        return raw

    async def get_json(self, url: str) -> Any:
        """GET *url* and return the decoded JSON body (``None`` if empty)."""
        raw = await self._request("GET", url)
        if not raw.strip():
            return None
        try:
            return json.loads(raw)
        except ValueError as exc:
            # Covers both malformed JSON and bytes that are not valid UTF-8.
            raise RelayTransportError(
                f"Invalid JSON from {url}: {_preview(raw)}",
                endpoint=url,
            ) from exc

    async def post_json(self, url: str, payload: Mapping[str, Any]) -> None:
        """POST *payload* as JSON to *url*.

        Any 2xx status counts as accepted; the reply body is not parsed.
        """
        _logger.debug("POST body %s", redact_for_log(payload))
        await self._request("POST", url, json.dumps(payload, separators=(",", ":")))


def _preview(raw: bytes, limit: int = 200) -> str:
    return raw[:limit].decode("utf-8", errors="replace")
