"""Segmented upload assembly.

Large configuration payloads can arrive in numbered segments. Segments
are collected in the context's :class:`UploadSession` until every one is
present, then the assembled bytes go through regular ingestion.
"""

from __future__ import annotations

import logging

from pylinksync.exceptions import UploadSegmentError
from pylinksync.models.upload import UploadSession
from pylinksync.state.events import SettingsSegmentReceived

_logger = logging.getLogger(__name__)


def add_segment(session: UploadSession, event: SettingsSegmentReceived, *, max_segments: int) -> UploadSession:
    """Add the segment carried by *event*; returns the (possibly new) session.

    A different file id starts a fresh session. Duplicate segments are
    ignored. Raises :class:`UploadSegmentError` for a segment count out of
    bounds, an index outside the declared count, or a count that changes
    mid-transfer.
    """
    if not 0 < event.total_segments <= max_segments:
        raise UploadSegmentError(
            f"Upload declares {event.total_segments} segments (max {max_segments})",
            file_id=event.file_id,
        )
    if not 0 <= event.segment_index < event.total_segments:
        raise UploadSegmentError(
            f"Segment index {event.segment_index} outside 0..{event.total_segments - 1}",
            file_id=event.file_id,
            segment_index=event.segment_index,
        )

    if session.file_id != event.file_id or session.vehicle_id != event.vehicle_id:
        if session.is_active:
            _logger.info(
                "Upload %s (%s/%s segments) superseded by file %s",
                session.file_id,
                session.received_count,
                session.total_segments,
                event.file_id,
            )
        session = UploadSession(
            file_id=event.file_id,
            total_segments=event.total_segments,
            filename=event.filename,
            vehicle_id=event.vehicle_id,
        )
    elif session.total_segments != event.total_segments:
        raise UploadSegmentError(
            f"Segment count changed from {session.total_segments} to {event.total_segments} mid-upload",
            file_id=event.file_id,
            segment_index=event.segment_index,
        )

    if event.segment_index in session.segments:
        _logger.debug("Duplicate segment %s of file %s ignored", event.segment_index, event.file_id)
        return session

    session.segments[event.segment_index] = bytes(event.data)
    return session


def assemble(session: UploadSession) -> bytes:
    if not session.is_complete:
        raise UploadSegmentError(
            f"Upload {session.file_id} incomplete: {session.received_count}/{session.total_segments} segments",
            file_id=session.file_id,
        )
    return b"".join(session.segments[index] for index in range(session.total_segments))
