"""Shared application state (injected into routes)."""
import threading
from pathlib import Path
from typing import List, Optional

from stampcollector.config import COLLECTION_PATH
from stampcollector.core.analysis import AnalysisMachine
from stampcollector.core.collection_store import (
    add_stamp,
    get_stamp_by_id,
    load_collection,
    remove_stamp,
)
from stampcollector.core.gemini_client import GeminiProvider, StampProvider
from stampcollector.models.stamp import CollectedStamp, StampRecord


class AppState:
    def __init__(
        self,
        collection_path: Path = COLLECTION_PATH,
        provider: Optional[StampProvider] = None,
    ) -> None:
        self.analysis = AnalysisMachine()
        self._collection_path = collection_path
        # Sync routes run in the threadpool; mutations and saves go through this lock
        self._collection_lock = threading.Lock()
        self._collection: List[CollectedStamp] = []
        self._provider = provider

    def get_collection(self) -> List[CollectedStamp]:
        with self._collection_lock:
            return list(self._collection)

    def load_collection(self) -> None:
        stamps = load_collection(self._collection_path)
        with self._collection_lock:
            self._collection = stamps

    def get_stamp(self, stamp_id: str) -> CollectedStamp | None:
        with self._collection_lock:
            return get_stamp_by_id(self._collection, stamp_id)

    def add_stamp(self, record: StampRecord, image_bytes: bytes, mime_type: str) -> CollectedStamp:
        with self._collection_lock:
            return add_stamp(self._collection, record, image_bytes, mime_type, path=self._collection_path)

    def remove_stamp(self, stamp_id: str) -> bool:
        with self._collection_lock:
            return remove_stamp(self._collection, stamp_id, path=self._collection_path)

    @property
    def provider(self) -> StampProvider:
        if self._provider is None:
            self._provider = GeminiProvider()
        return self._provider


_state = AppState()


def get_state() -> AppState:
    return _state
