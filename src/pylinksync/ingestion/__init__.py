"""Ingestion layer.

Turns raw configuration payloads (whole or segmented) into stored
snapshots and the side effects the change calls for.
"""

from pylinksync.ingestion.snapshot import ingest_segment, ingest_settings

__all__ = ["ingest_segment", "ingest_settings"]
