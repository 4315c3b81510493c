"""Two-stage stamp recognition: visual description, then search-grounded identification."""
import logging
from typing import Any, Callable, Iterable, List, Optional

from stampcollector.config import MAX_DESCRIPTION_CHARS
from stampcollector.core.gemini_client import GroundingCitation, ProviderError, StampProvider
from stampcollector.core.image_ingest import ImagePayload
from stampcollector.core.json_recovery import ParseFailed, parse_json_object
from stampcollector.models.stamp import Rarity, StampRecord

logger = logging.getLogger(__name__)

FALLBACK_TITLE = "Bilinmeyen Pul"
FALLBACK_COUNTRY = "Bilinmiyor"
FALLBACK_YEAR = "????"
FALLBACK_VALUE = "N/A"
FALLBACK_DESCRIPTION = "Açıklama bulunamadı."
FALLBACK_CATALOG_REF = "Katalog bilgisi yok"


class RecognitionError(Exception):
    """Any failure that aborts the recognition pipeline."""


class VisualAnalysisError(RecognitionError):
    pass


class IdentificationError(RecognitionError):
    pass


class ResponseNotParseableError(IdentificationError):
    pass


async def analyze_image_visuals(provider: StampProvider, payload: ImagePayload) -> str:
    """Stage A: return the provider's descriptive paragraph for the image."""
    try:
        text = await provider.describe_image(payload.data, payload.mime_type)
    except ProviderError as e:
        raise VisualAnalysisError(f"Visual analysis failed: {e}") from e
    if not text or not text.strip():
        raise VisualAnalysisError(
            "Visual analysis returned empty response. The image might be unclear or blocked."
        )
    return text.strip()


def dedupe_urls(citations: Iterable[GroundingCitation]) -> List[str]:
    """Web URIs from citations, each once, in order of first occurrence."""
    seen = set()
    out = []
    for citation in citations:
        uri = citation.uri
        if not uri or uri in seen:
            continue
        seen.add(uri)
        out.append(uri)
    return out


def _text(value: Any) -> Optional[str]:
    """Non-empty stripped string for scalar JSON values, else None."""
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    if not text or text.lower() == "null":
        return None
    return text


def _clamp(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1].rstrip() + "…"


def build_stamp_record(parsed: dict, grounding_urls: Optional[List[str]] = None) -> StampRecord:
    """StampRecord from a parsed provider object; every missing display field gets its fallback."""
    def pick(*keys: str, default: Optional[str] = None) -> Optional[str]:
        for key in keys:
            value = _text(parsed.get(key))
            if value is not None:
                return value
        return default

    description = pick("description", default=FALLBACK_DESCRIPTION)
    return StampRecord(
        title=pick("title", default=FALLBACK_TITLE),
        country=pick("country", default=FALLBACK_COUNTRY),
        year=pick("year", default=FALLBACK_YEAR),
        rarity=Rarity.parse(_text(parsed.get("rarity"))),
        value_usd=pick("valueUsd", "value_usd", default=FALLBACK_VALUE),
        description=_clamp(description, MAX_DESCRIPTION_CHARS),
        catalog_ref=pick("catalogRef", "catalog_ref", default=FALLBACK_CATALOG_REF),
        condition_note=pick("conditionNote", "condition_note"),
        rarity_reason=pick("rarityReason", "rarity_reason"),
        grounding_urls=list(grounding_urls or []),
    )


async def identify_and_value_stamp(provider: StampProvider, description: str) -> StampRecord:
    """Stage B: ask for a JSON record grounded on catalog search and coerce it into a StampRecord."""
    try:
        response = await provider.identify_and_value(description)
    except ProviderError as e:
        raise IdentificationError(f"Identification failed: {e}") from e
    if not response.text or not response.text.strip():
        raise IdentificationError("Identification returned empty response.")

    result = parse_json_object(response.text)
    if isinstance(result, ParseFailed):
        logger.error("Unparseable identification response (%s). Raw text: %r", result.reason, response.text)
        raise ResponseNotParseableError(f"Failed to parse AI response as JSON: {result.reason}")

    return build_stamp_record(result.value, dedupe_urls(response.citations))


async def recognize_stamp(
    provider: StampProvider,
    payload: ImagePayload,
    on_stage: Optional[Callable[[str], None]] = None,
) -> StampRecord:
    """Run Stage A then Stage B. on_stage is called with "analyzing_image" / "searching_catalogs"."""
    if on_stage:
        on_stage("analyzing_image")
    description = await analyze_image_visuals(provider, payload)
    logger.info("Visual description received (%d chars)", len(description))
    if on_stage:
        on_stage("searching_catalogs")
    return await identify_and_value_stamp(provider, description)
