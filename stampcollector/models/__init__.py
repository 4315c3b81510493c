"""Data models for stamps, the collection, and the scan workflow."""
from stampcollector.models.analysis import AnalysisState, AnalysisStatus
from stampcollector.models.stamp import CollectedStamp, Rarity, StampRecord

__all__ = [
    "AnalysisState",
    "AnalysisStatus",
    "CollectedStamp",
    "Rarity",
    "StampRecord",
]
