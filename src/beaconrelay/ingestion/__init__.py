"""Ingestion layer.

This package fetches beacon snapshots from the positioning source and
turns them into normalized records for the fan-out sinks.
"""

__all__: list[str] = []
