"""Scan workflow endpoints: upload, current state, preview, reset, add to collection."""
import logging

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile

from stampcollector.api.routes.collection import record_to_dict
from stampcollector.api.state import AppState, get_state
from stampcollector.config import API_KEY_MISSING_WARNING, api_key_missing
from stampcollector.core.analysis import PHASE_LABELS, ScanInProgressError
from stampcollector.core.image_ingest import ImageTooLargeError, IngestionError, ingest_image
from stampcollector.models.analysis import AnalysisState, AnalysisStatus

logger = logging.getLogger(__name__)

router = APIRouter()

UNREADABLE_IMAGE_MESSAGE = "Görsel okunamadı. Lütfen geçerli bir resim dosyası seçin."
IMAGE_TOO_LARGE_MESSAGE = "Görsel çok büyük. Lütfen daha küçük bir fotoğraf yükleyin."


def _state_to_dict(s: AnalysisState) -> dict:
    title, hint = PHASE_LABELS.get(s.status, (None, None))
    return {
        "status": s.status.value,
        "data": record_to_dict(s.data) if s.data is not None else None,
        "error": s.error,
        "preview_url": f"/api/scan/preview/{s.preview_id}" if s.preview_id else None,
        "phase_title": title,
        "phase_hint": hint,
    }


@router.get("")
def get_scan(state: AppState = Depends(get_state)):
    """Return the current scan state."""
    return _state_to_dict(state.analysis.state)


@router.post("")
async def start_scan(
    file: UploadFile = File(...),
    state: AppState = Depends(get_state),
):
    """Upload a stamp photo and run recognition. Returns the settled state (complete or error)."""
    if api_key_missing():
        raise HTTPException(status_code=503, detail=API_KEY_MISSING_WARNING)
    if state.analysis.state.status.in_progress:
        raise HTTPException(status_code=409, detail="A scan is already in progress")
    try:
        data = await file.read()
    except OSError as e:
        logger.warning("Could not read upload %s: %s", file.filename, e)
        raise HTTPException(status_code=400, detail=UNREADABLE_IMAGE_MESSAGE)
    try:
        payload = ingest_image(data, file.content_type, file.filename)
    except ImageTooLargeError as e:
        logger.warning("Rejected upload: %s", e)
        raise HTTPException(status_code=413, detail=IMAGE_TOO_LARGE_MESSAGE)
    except IngestionError as e:
        logger.warning("Rejected upload: %s", e)
        raise HTTPException(status_code=400, detail=UNREADABLE_IMAGE_MESSAGE)
    try:
        result = await state.analysis.run(state.provider, payload)
    except ScanInProgressError:
        raise HTTPException(status_code=409, detail="A scan is already in progress")
    return _state_to_dict(result)


@router.get("/preview/{preview_id}")
def get_preview(preview_id: str, state: AppState = Depends(get_state)):
    """Return the preview image for the current scan; 404 once revoked."""
    payload = state.analysis.previews.get(preview_id)
    if payload is None:
        raise HTTPException(status_code=404, detail="Preview not found")
    return Response(content=payload.data, media_type=payload.mime_type)


@router.post("/reset")
def reset_scan(state: AppState = Depends(get_state)):
    """Scan another stamp / try again: return to idle."""
    return _state_to_dict(state.analysis.reset())


@router.post("/collect")
def add_to_collection(state: AppState = Depends(get_state)):
    """Save the completed result with the image captured for this scan."""
    current = state.analysis.state
    payload = state.analysis.payload
    if current.status != AnalysisStatus.COMPLETE or current.data is None or payload is None:
        raise HTTPException(status_code=409, detail="No completed scan to save")
    stamp = state.add_stamp(current.data, payload.data, payload.mime_type)
    return {"id": stamp.id, "date_added": stamp.date_added, "count": len(state.get_collection())}
