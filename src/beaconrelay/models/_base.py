"""Base model for beaconrelay payloads.

Every model inherits from :class:`RelayBaseModel` which provides:

* ``frozen=True`` so records can be shared between sinks safely.
* ``populate_by_name=True`` so models can be built either from the
  upstream wire keys (aliases) or from snake_case field names.
* :meth:`RelayBaseModel.to_wire` which dumps with the wire keys and
  drops absent optional fields, like the JSON the downstream services
  already consume.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

UpstreamValue = Any
"""A location, threshold or temperature value relayed exactly as the positioning API sent it."""


class RelayBaseModel(BaseModel):
    """Base for every model that crosses a wire boundary."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """Dump using wire (alias) keys, omitting ``None`` values."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_wire_json(self) -> str:
        """JSON text of :meth:`to_wire`."""
        return self.model_dump_json(by_alias=True, exclude_none=True)
