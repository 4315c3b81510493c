"""Startup checks surfaced to the UI (missing API key banner, collection size)."""
from fastapi import APIRouter, Depends

from stampcollector.api.state import AppState, get_state
from stampcollector.config import API_KEY_MISSING_WARNING, api_key_missing

router = APIRouter()


@router.get("")
def get_status(state: AppState = Depends(get_state)):
    missing = api_key_missing()
    return {
        "api_key_missing": missing,
        "warning": API_KEY_MISSING_WARNING if missing else None,
        "collection_count": len(state.get_collection()),
    }
