"""Command line entry point: serve the live channel and poll on a fixed interval."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import dataclasses
import logging
import signal
import sys
from collections.abc import Sequence
from typing import Any

from dotenv import load_dotenv

from beaconrelay._redact import redact_for_log
from beaconrelay.config import RelayConfig
from beaconrelay.exceptions import BeaconRelayError
from beaconrelay.relay import BeaconRelay

_LOG = logging.getLogger("beaconrelay.cli")


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="beaconrelay",
        description="Relay beacon positions to MQTT, the persistence API and live subscribers.",
    )
    parser.add_argument(
        "--env-file",
        help="Load BEACONRELAY_* variables from this dotenv file first.",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single pass and exit (non-zero exit if it failed).",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between passes (default: BEACONRELAY_POLL_INTERVAL or 10).",
    )
    parser.add_argument(
        "--no-live",
        action="store_true",
        help="Do not serve the WebSocket subscriber channel.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args(argv)


async def _run(config: RelayConfig, args: argparse.Namespace) -> int:
    async with BeaconRelay(config) as relay:
        if args.once:
            result = await relay.run_once()
            return 0 if result.ok else 1

        if config.live_enabled:
            await relay.hub.start()

        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            # add_signal_handler is unavailable on Windows event loops.
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, stop.set)

        await relay.run_forever(args.interval, stop_event=stop)
        _LOG.info("Stopping")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.env_file:
        load_dotenv(args.env_file)

    overrides: dict[str, Any] = {}
    if args.no_live:
        overrides["live_enabled"] = False
    try:
        config = RelayConfig.from_env(**overrides)
    except BeaconRelayError as exc:
        print(f"beaconrelay: {exc}", file=sys.stderr)
        return 2

    _LOG.debug("Configuration: %s", redact_for_log(dataclasses.asdict(config)))
    try:
        return asyncio.run(_run(config, args))
    except KeyboardInterrupt:  # pragma: no cover - interactive
        return 130
