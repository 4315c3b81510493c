"""Scan workflow state shown to the UI."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from stampcollector.models.stamp import StampRecord


class AnalysisStatus(str, Enum):
    IDLE = "idle"
    ANALYZING_IMAGE = "analyzing_image"
    SEARCHING_CATALOGS = "searching_catalogs"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def in_progress(self) -> bool:
        return self in (AnalysisStatus.ANALYZING_IMAGE, AnalysisStatus.SEARCHING_CATALOGS)


@dataclass(frozen=True)
class AnalysisState:
    """Snapshot of the active scan. data is set only when status is COMPLETE."""
    status: AnalysisStatus = AnalysisStatus.IDLE
    data: Optional[StampRecord] = None
    error: Optional[str] = None
    preview_id: Optional[str] = None
