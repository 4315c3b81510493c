"""Saved stamp collection: list, fetch, image, remove (stored in JSON)."""
import base64
import binascii

from fastapi import APIRouter, Depends, HTTPException, Response

from stampcollector.api.state import AppState, get_state
from stampcollector.models.stamp import CollectedStamp, StampRecord

router = APIRouter()


def record_to_dict(r: StampRecord) -> dict:
    return {
        "title": r.title,
        "country": r.country,
        "year": r.year,
        "rarity": r.rarity.value,
        "value_usd": r.value_usd,
        "description": r.description,
        "catalog_ref": r.catalog_ref,
        "condition_note": r.condition_note,
        "rarity_reason": r.rarity_reason,
        "grounding_urls": list(r.grounding_urls),
    }


def _stamp_to_dict(s: CollectedStamp, include_image: bool = False) -> dict:
    out = {
        "id": s.id,
        "date_added": s.date_added,
        **record_to_dict(s.record),
        "mime_type": s.mime_type,
        "image_url": f"/api/collection/{s.id}/image",
    }
    if include_image:
        out["image_base64"] = s.image_base64
    return out


@router.get("/")
def list_collection(state: AppState = Depends(get_state)):
    """List saved stamps, newest first (images are fetched separately)."""
    stamps = state.get_collection()
    return {"count": len(stamps), "items": [_stamp_to_dict(s) for s in stamps]}


@router.get("/{stamp_id}")
def get_stamp(stamp_id: str, state: AppState = Depends(get_state)):
    """Return one saved stamp including its embedded image."""
    stamp = state.get_stamp(stamp_id)
    if stamp is None:
        raise HTTPException(status_code=404, detail="Stamp not found")
    return _stamp_to_dict(stamp, include_image=True)


@router.get("/{stamp_id}/image")
def get_stamp_image(stamp_id: str, state: AppState = Depends(get_state)):
    """Return the image captured when the stamp was saved."""
    stamp = state.get_stamp(stamp_id)
    if stamp is None:
        raise HTTPException(status_code=404, detail="Stamp not found")
    try:
        data = base64.b64decode(stamp.image_base64, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=500, detail="Stored image is corrupt")
    return Response(content=data, media_type=stamp.mime_type)


@router.delete("/{stamp_id}", status_code=204)
def remove_stamp(stamp_id: str, state: AppState = Depends(get_state)):
    """Remove a saved stamp. Unknown ids are ignored."""
    state.remove_stamp(stamp_id)
