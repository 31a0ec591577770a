"""Segmented upload session model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class UploadSession(BaseModel):
    """In-flight transfer of a configuration payload split into segments.

    ``segments`` maps a segment index to its payload; presence in the map
    is the "segment uploaded" marker and ``len()`` of the value its size.
    """

    model_config = ConfigDict(extra="forbid")

    file_id: int = 0
    total_segments: int = 0
    filename: str = ""
    vehicle_id: int = 0
    segments: dict[int, bytes] = Field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        return self.file_id != 0

    @property
    def received_count(self) -> int:
        return len(self.segments)

    @property
    def is_complete(self) -> bool:
        return self.is_active and self.total_segments > 0 and len(self.segments) == self.total_segments

    def segment_sizes(self) -> list[int]:
        return [len(self.segments[i]) if i in self.segments else 0 for i in range(self.total_segments)]
