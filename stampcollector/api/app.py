"""FastAPI app, CORS, and route registration."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Configure logging in the worker process (so pipeline INFO logs are visible with uvicorn --reload)
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(name)s: %(message)s",
)

from stampcollector.api.state import AppState, get_state
from stampcollector.config import api_key_missing, ensure_data_dir

# Import routes after state to avoid circular imports
from stampcollector.api.routes import collection, scan, status

__all__ = ["app", "AppState", "get_state"]

logger = logging.getLogger(__name__)

_state = get_state()


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_data_dir()
    _state.load_collection()
    logger.info("Loaded %d collected stamps", len(_state.get_collection()))
    if api_key_missing():
        logger.warning("GEMINI_API_KEY is not set; scanning is disabled until it is configured")

    yield

    _state.analysis.reset()


app = FastAPI(
    title="StampCollector API",
    description="Local REST API for photographing, identifying and collecting postage stamps",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(scan.router, prefix="/api/scan", tags=["scan"])
app.include_router(collection.router, prefix="/api/collection", tags=["collection"])
app.include_router(status.router, prefix="/api/status", tags=["status"])
