"""Scan workflow: idle -> analyzing_image -> searching_catalogs -> complete | error -> idle."""
import logging
import threading
from typing import Optional

from stampcollector.core.gemini_client import StampProvider
from stampcollector.core.image_ingest import ImagePayload, PreviewRegistry
from stampcollector.core.recognition import RecognitionError, recognize_stamp
from stampcollector.models.analysis import AnalysisState, AnalysisStatus

logger = logging.getLogger(__name__)

SCAN_FAILED_MESSAGE = (
    "Pul tanımlanamadı veya bir hata oluştu. Lütfen daha net bir fotoğraf deneyin."
)

# Loading-UI copy per in-progress status: (title, hint)
PHASE_LABELS = {
    AnalysisStatus.ANALYZING_IMAGE: (
        "Görsel Detaylar İnceleniyor...",
        "Yapay zeka, perfore, damga ve tasarım detaylarını analiz ediyor.",
    ),
    AnalysisStatus.SEARCHING_CATALOGS: (
        "Kataloglar Taranıyor...",
        "Scott, Michel ve Stanley Gibbons veritabanları kontrol ediliyor.",
    ),
}


class ScanInProgressError(Exception):
    """A scan is already running; only one may be active."""


class AnalysisMachine:
    """Holds the single active AnalysisState and the image captured for it."""

    def __init__(self, previews: Optional[PreviewRegistry] = None) -> None:
        self._lock = threading.Lock()
        self._state = AnalysisState()
        self._payload: Optional[ImagePayload] = None
        self._generation = 0
        self.previews = previews if previews is not None else PreviewRegistry()

    @property
    def state(self) -> AnalysisState:
        with self._lock:
            return self._state

    @property
    def payload(self) -> Optional[ImagePayload]:
        """Image captured for the current scan (None when idle)."""
        with self._lock:
            return self._payload

    def start(self, payload: ImagePayload) -> int:
        """idle/complete/error -> analyzing_image. Returns the run generation."""
        with self._lock:
            if self._state.status.in_progress:
                raise ScanInProgressError("A scan is already in progress")
            self.previews.revoke(self._state.preview_id)
            self._generation += 1
            self._payload = payload
            self._state = AnalysisState(
                status=AnalysisStatus.ANALYZING_IMAGE,
                preview_id=self.previews.create(payload),
            )
            logger.info("Scan %d started", self._generation)
            return self._generation

    def _transition(self, generation: int, **changes) -> Optional[AnalysisState]:
        """Apply changes if *generation* is still the active in-progress run; returns the new state or None."""
        with self._lock:
            if generation != self._generation or not self._state.status.in_progress:
                logger.info("Discarding stale result for scan %d", generation)
                return None
            self._state = AnalysisState(
                status=changes.get("status", self._state.status),
                data=changes.get("data"),
                error=changes.get("error"),
                preview_id=self._state.preview_id,
            )
            return self._state

    def set_phase(self, generation: int, phase: str) -> None:
        self._transition(generation, status=AnalysisStatus(phase))

    def reset(self) -> AnalysisState:
        """Any state -> idle. Drops the result, the preview and the captured image."""
        with self._lock:
            self.previews.revoke(self._state.preview_id)
            # Invalidate any in-flight run so its result is not applied
            self._generation += 1
            self._payload = None
            self._state = AnalysisState()
            return self._state

    async def run(self, provider: StampProvider, payload: ImagePayload) -> AnalysisState:
        """Start a scan, run the recognition pipeline, and settle in complete or error."""
        generation = self.start(payload)
        try:
            record = await recognize_stamp(
                provider,
                payload,
                on_stage=lambda phase: self.set_phase(generation, phase),
            )
        except RecognitionError as e:
            logger.error("Scan %d failed: %s", generation, e, exc_info=e)
            settled = self._transition(generation, status=AnalysisStatus.ERROR, error=SCAN_FAILED_MESSAGE)
        except Exception:
            logger.exception("Scan %d failed unexpectedly", generation)
            settled = self._transition(generation, status=AnalysisStatus.ERROR, error=SCAN_FAILED_MESSAGE)
        else:
            logger.info("Scan %d complete: %s", generation, record.title)
            settled = self._transition(generation, status=AnalysisStatus.COMPLETE, data=record)
        # A reset (and possibly a newer scan) superseded this run
        return settled if settled is not None else AnalysisState()
