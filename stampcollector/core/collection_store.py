"""Persist and load the stamp collection (JSON)."""
import base64
import json
import logging
import os
import tempfile
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from stampcollector.config import COLLECTION_PATH
from stampcollector.models.stamp import CollectedStamp, Rarity, StampRecord

logger = logging.getLogger(__name__)


def _path(path: Optional[Path]) -> Path:
    return Path(path) if path is not None else COLLECTION_PATH


def _stamp_to_dict(s: CollectedStamp) -> dict:
    r = s.record
    return {
        "id": s.id,
        "date_added": s.date_added,
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
        "image_base64": s.image_base64,
        "mime_type": s.mime_type,
    }


def _stamp_from_dict(item: dict) -> CollectedStamp:
    record = StampRecord(
        title=item["title"],
        country=item["country"],
        year=item["year"],
        rarity=Rarity(item["rarity"]),
        value_usd=item["value_usd"],
        description=item["description"],
        catalog_ref=item["catalog_ref"],
        condition_note=item.get("condition_note"),
        rarity_reason=item.get("rarity_reason"),
        grounding_urls=list(item.get("grounding_urls") or []),
    )
    return CollectedStamp(
        id=item["id"],
        date_added=item["date_added"],
        record=record,
        image_base64=item["image_base64"],
        mime_type=item.get("mime_type") or "image/jpeg",
    )


def load_collection(path: Optional[Path] = None) -> List[CollectedStamp]:
    """Load the collection from disk; missing or corrupt data gives an empty list."""
    p = _path(path)
    if not p.exists():
        return []
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
        items = data["stamps"]
    except (json.JSONDecodeError, OSError, UnicodeDecodeError, KeyError, TypeError) as e:
        logger.error("Failed to load collection from %s, starting empty: %s", p, e)
        return []
    if not isinstance(items, list):
        logger.error("Failed to load collection from %s, starting empty: stamps is %s", p, type(items).__name__)
        return []
    out = []
    for item in items:
        if not isinstance(item, dict):
            logger.warning("Skipping malformed collection entry: %r", item)
            continue
        try:
            out.append(_stamp_from_dict(item))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed collection entry: %s", e)
            continue
    return out


def save_collection(stamps: List[CollectedStamp], path: Optional[Path] = None) -> bool:
    """Write the whole collection atomically. Returns False (and logs) on failure."""
    p = _path(path)
    data = {"stamps": [_stamp_to_dict(s) for s in stamps]}
    tmp_name = None
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".collection-", suffix=".tmp", dir=p.parent)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp_name, p)
        tmp_name = None
        return True
    except OSError as e:
        logger.error("Failed to save collection to %s: %s", p, e)
        return False
    finally:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass


def get_stamp_by_id(stamps: List[CollectedStamp], stamp_id: str) -> Optional[CollectedStamp]:
    """Return the collected stamp with this id or None."""
    for s in stamps:
        if s.id == stamp_id:
            return s
    return None


def add_stamp(
    stamps: List[CollectedStamp],
    record: StampRecord,
    image_bytes: bytes,
    mime_type: str = "image/jpeg",
    path: Optional[Path] = None,
) -> CollectedStamp:
    """Prepend a new collected stamp and save."""
    stamp = CollectedStamp(
        id=str(uuid.uuid4()),
        date_added=datetime.now(timezone.utc).isoformat(),
        record=record,
        image_base64=base64.b64encode(image_bytes).decode("ascii"),
        mime_type=mime_type,
    )
    stamps.insert(0, stamp)
    save_collection(stamps, path)
    return stamp


def remove_stamp(stamps: List[CollectedStamp], stamp_id: str, path: Optional[Path] = None) -> bool:
    """Remove by id and save. Returns True if found; unknown ids are a no-op."""
    for i, s in enumerate(stamps):
        if s.id == stamp_id:
            stamps.pop(i)
            save_collection(stamps, path)
            return True
    return False
