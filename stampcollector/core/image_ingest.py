"""Turn an uploaded image into a provider payload and a revocable preview."""
import logging
import mimetypes
import threading
import uuid
from dataclasses import dataclass
from typing import Dict, Optional

from stampcollector.config import MAX_IMAGE_BYTES

logger = logging.getLogger(__name__)


class IngestionError(Exception):
    """Upload is unreadable or not an image; the pipeline never starts."""


class ImageTooLargeError(IngestionError):
    pass


@dataclass(frozen=True)
class ImagePayload:
    """Raw image bytes; the Gemini SDK base64-encodes them for the request."""
    data: bytes
    mime_type: str


def _resolve_mime(content_type: Optional[str], filename: Optional[str]) -> Optional[str]:
    """Return an image/* MIME type from the upload headers or filename, else None."""
    if content_type:
        mime = content_type.split(";", 1)[0].strip().lower()
        if mime.startswith("image/"):
            return mime
        if mime not in ("", "application/octet-stream"):
            return None
    if filename:
        guessed, _ = mimetypes.guess_type(filename)
        if guessed and guessed.startswith("image/"):
            return guessed
    return None


def ingest_image(
    data: bytes,
    content_type: Optional[str],
    filename: Optional[str] = None,
    max_bytes: Optional[int] = None,
) -> ImagePayload:
    """Validate an upload and return its payload. Raises IngestionError."""
    if max_bytes is None:
        max_bytes = MAX_IMAGE_BYTES
    mime = _resolve_mime(content_type, filename)
    if mime is None:
        raise IngestionError(f"Not an image upload: {content_type or filename or 'unknown'}")
    if not data:
        raise IngestionError("Image file is empty or could not be read")
    if len(data) > max_bytes:
        raise ImageTooLargeError(f"Image is {len(data)} bytes; limit is {max_bytes}")
    return ImagePayload(data=data, mime_type=mime)


class PreviewRegistry:
    """In-memory previews addressable by id until revoked."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._previews: Dict[str, ImagePayload] = {}

    def create(self, payload: ImagePayload) -> str:
        preview_id = uuid.uuid4().hex
        with self._lock:
            self._previews[preview_id] = payload
        return preview_id

    def get(self, preview_id: str) -> Optional[ImagePayload]:
        with self._lock:
            return self._previews.get(preview_id)

    def revoke(self, preview_id: Optional[str]) -> None:
        if preview_id is None:
            return
        with self._lock:
            if self._previews.pop(preview_id, None) is not None:
                logger.debug("Revoked preview %s", preview_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._previews)
