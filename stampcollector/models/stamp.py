"""Stamp identification result and saved collection entry."""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

# Turkish dotted/dotless i fold to plain "i" so "NADİR", "NADIR" and "Nadir" compare equal
_TURKISH_I = str.maketrans({"İ": "i", "I": "i", "ı": "i"})


def _fold(text: str) -> str:
    return text.strip().translate(_TURKISH_I).casefold()


class Rarity(str, Enum):
    """Rarity tier as labelled by the provider (Turkish labels)."""
    RARE = "Nadir"
    SCARCE = "Az Bulunur"
    COMMON = "Yaygın"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Rarity":
        """Map a provider label (Turkish or English) to a tier; anything else is COMMON."""
        if not value or not isinstance(value, str):
            return cls.COMMON
        key = _fold(value)
        for member in cls:
            if key in (_fold(member.value), _fold(member.name)):
                return member
        return cls.COMMON


@dataclass(frozen=True)
class StampRecord:
    """Structured identification and valuation of one stamp."""
    title: str
    country: str
    year: str
    rarity: Rarity
    value_usd: str
    description: str
    catalog_ref: str
    condition_note: Optional[str] = None
    rarity_reason: Optional[str] = None
    grounding_urls: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CollectedStamp:
    """A StampRecord saved into the collection with its image."""
    id: str
    date_added: str
    record: StampRecord
    image_base64: str
    mime_type: str = "image/jpeg"
