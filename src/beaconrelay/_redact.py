"""Helpers for safe debug logging.

The only secret the relay handles is the broker password in its
configuration; it is masked before configuration dumps reach DEBUG logs.
Beacon batches in POST bodies are summarised rather than logged in full.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_SENSITIVE_VALUE_KEYS: frozenset[str] = frozenset({"password", "mqtt_password"})
_MAX_ITEMS = 20


def redact_for_log(value: Any, *, max_string: int = 512) -> Any:
    """Return a copy of *value* with broker credentials masked and long values shortened."""
    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, Mapping):
        return {
            str(k): "<redacted>" if str(k).lower() in _SENSITIVE_VALUE_KEYS else redact_for_log(v, max_string=max_string)
            for k, v in value.items()
        }

    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        items = [redact_for_log(v, max_string=max_string) for v in value[:_MAX_ITEMS]]
        if len(value) > _MAX_ITEMS:
            items.append(f"<{len(value) - _MAX_ITEMS} more>")
        return items

    return value
