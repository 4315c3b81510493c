"""Configuration: env, data paths, Gemini credentials, image limits."""
import os
from pathlib import Path

from dotenv import load_dotenv

# Base paths (project root = parent of stampcollector package)
BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env from project root so GEMINI_API_KEY etc. are set
load_dotenv(BASE_DIR / ".env")

DATA_DIR = Path(os.getenv("STAMPCOLLECTOR_DATA_DIR", str(BASE_DIR / "data")))
COLLECTION_PATH = DATA_DIR / "collection.json"

# API
API_HOST = os.getenv("STAMPCOLLECTOR_API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("STAMPCOLLECTOR_API_PORT", "8000"))

# Gemini (API_KEY kept as an alias for older .env files)
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "") or os.getenv("API_KEY", "")
VISION_MODEL = os.getenv("STAMPCOLLECTOR_VISION_MODEL", "gemini-3-pro-preview")
SEARCH_MODEL = os.getenv("STAMPCOLLECTOR_SEARCH_MODEL", "gemini-3-pro-preview")

# Uploads larger than this are rejected before any provider call
MAX_IMAGE_BYTES = int(os.getenv("STAMPCOLLECTOR_MAX_IMAGE_BYTES", str(10 * 1024 * 1024)))

# Stage B answers in Turkish; fallbacks and user messages are Turkish too
TARGET_LANGUAGE = "Turkish (Türkçe)"
MAX_DESCRIPTION_CHARS = 1000

API_KEY_MISSING_WARNING = (
    'UYARI: API Anahtarı Eksik. Lütfen "GEMINI_API_KEY" ortam değişkenini ayarlayın.'
)


def api_key_missing() -> bool:
    return not GEMINI_API_KEY


def ensure_data_dir() -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
