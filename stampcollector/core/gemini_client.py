"""Gemini API client via google-genai: visual description and search-grounded identification."""
import abc
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from google import genai
from google.genai import types

from stampcollector.config import GEMINI_API_KEY, SEARCH_MODEL, TARGET_LANGUAGE, VISION_MODEL

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Transport or API failure talking to the AI provider."""


@dataclass(frozen=True)
class GroundingCitation:
    """One grounding chunk from a search-augmented response."""
    uri: Optional[str] = None
    title: Optional[str] = None


@dataclass(frozen=True)
class IdentificationResponse:
    """Raw Stage B output: text that should contain JSON, plus citations."""
    text: Optional[str]
    citations: List[GroundingCitation] = field(default_factory=list)


class StampProvider(abc.ABC):
    """Contract for the two provider operations the pipeline needs."""

    name: str = "base"

    @abc.abstractmethod
    async def describe_image(self, data: bytes, mime_type: str) -> Optional[str]:
        """Return a single descriptive paragraph for the stamp image (None/"" if blocked)."""

    @abc.abstractmethod
    async def identify_and_value(self, description: str) -> IdentificationResponse:
        """Identify and value the stamp described by *description* using web search."""


VISUAL_ANALYSIS_PROMPT = """Act as a professional expert philatelist. Examine this stamp image in extreme detail.
Describe the following visual elements precisely:
1. Country of origin (look for text on the stamp).
2. Denomination/Value.
3. Central subject (person, event, symbol).
4. Color(s).
5. Perforation condition (imperforate vs perforated).
6. Cancellation marks (used vs mint).
7. Any overprints or surcharges.

Return a single detailed paragraph description."""


def build_identification_prompt(description: str) -> str:
    return f"""I have a stamp with this visual description:
"{description}"

Act as the "GlobalStamp Collector AI". Identify this stamp, value it, and provide historical context.

**CRITICAL INSTRUCTIONS:**
1. You MUST search Google for this stamp using catalogs like Scott, Michel, or Colnect.
2. Output MUST be valid JSON.
3. Language: {TARGET_LANGUAGE}.

**JSON Structure:**
{{
  "title": "Stamp Name",
  "country": "Country Name (Turkish)",
  "year": "Year",
  "rarity": "Nadir" | "Az Bulunur" | "Yaygın",
  "valueUsd": "$Price Range",
  "description": "Historical description (max 4 sentences)",
  "catalogRef": "Scott #123 or similar",
  "conditionNote": "Condition impact note",
  "rarityReason": "Reason if special (e.g. 'Hatalı Basım'), else null"
}}
"""


# Historical stamps (war themes etc.) must not be filtered out
_SAFETY_SETTINGS = [
    types.SafetySetting(category=category, threshold=types.HarmBlockThreshold.BLOCK_NONE)
    for category in (
        types.HarmCategory.HARM_CATEGORY_HARASSMENT,
        types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
        types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
        types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
    )
]


def extract_citations(response) -> List[GroundingCitation]:
    """Collect grounding chunks from the first candidate; chunks without web info are kept with uri None."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []
    out = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        out.append(
            GroundingCitation(
                uri=getattr(web, "uri", None),
                title=getattr(web, "title", None),
            )
        )
    return out


class GeminiProvider(StampProvider):
    """StampProvider backed by the Gemini API (async client)."""

    name = "gemini"

    def __init__(
        self,
        api_key: str = GEMINI_API_KEY,
        vision_model: str = VISION_MODEL,
        search_model: str = SEARCH_MODEL,
    ) -> None:
        self._client = genai.Client(api_key=api_key)
        self._vision_model = vision_model
        self._search_model = search_model

    async def describe_image(self, data: bytes, mime_type: str) -> Optional[str]:
        logger.info("Starting visual analysis (%s, %d bytes)", mime_type, len(data))
        try:
            response = await self._client.aio.models.generate_content(
                model=self._vision_model,
                contents=[
                    types.Part.from_bytes(data=data, mime_type=mime_type),
                    VISUAL_ANALYSIS_PROMPT,
                ],
                config=types.GenerateContentConfig(safety_settings=_SAFETY_SETTINGS),
            )
        except Exception as e:
            raise ProviderError(f"{self._vision_model}: {e}") from e
        return response.text

    async def identify_and_value(self, description: str) -> IdentificationResponse:
        logger.info("Starting identification with search grounding")
        try:
            response = await self._client.aio.models.generate_content(
                model=self._search_model,
                contents=build_identification_prompt(description),
                config=types.GenerateContentConfig(
                    tools=[types.Tool(google_search=types.GoogleSearch())],
                    safety_settings=_SAFETY_SETTINGS,
                ),
            )
        except Exception as e:
            raise ProviderError(f"{self._search_model}: {e}") from e
        return IdentificationResponse(text=response.text, citations=extract_citations(response))
