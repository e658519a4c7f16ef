"""Custom exception hierarchy for beaconrelay."""

from __future__ import annotations


class BeaconRelayError(Exception):
    """Base exception for all beaconrelay errors."""


class RelayConfigError(BeaconRelayError):
    """Invalid or missing configuration."""


class RelayTransportError(BeaconRelayError):
    """HTTP-level failure (network, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class BeaconPayloadError(BeaconRelayError):
    """Positioning source returned a body that does not match the beacon snapshot shape."""


class SinkError(BeaconRelayError):
    """A fan-out sink could not deliver the batch.

    ``sink`` names the failing sink (``"mqtt"``, ``"persistence"`` or
    ``"live"``) so callers can attribute the failure without parsing
    the message.
    """

    def __init__(self, message: str, *, sink: str) -> None:
        self.sink = sink
        super().__init__(message)
