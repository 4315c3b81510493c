"""Shared fixtures: fake provider, payloads, isolated app state."""
from typing import Callable, List, Optional

import pytest

from stampcollector.core.gemini_client import (
    GroundingCitation,
    IdentificationResponse,
    ProviderError,
    StampProvider,
)
from stampcollector.core.image_ingest import ImagePayload

JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00fake-stamp-image\xff\xd9"

CAPE_JSON = (
    '{"title":"Cape of Good Hope 1c","country":"Güney Afrika","year":"1861",'
    '"rarity":"Nadir","valueUsd":"$500 - $2000","description":"...",'
    '"catalogRef":"Scott #1","conditionNote":null,"rarityReason":"Hatalı Basım"}'
)


class FakeProvider(StampProvider):
    """Canned provider; records the order of calls."""

    name = "fake"

    def __init__(
        self,
        description: Optional[str] = "Triangular blue stamp, Cape of Good Hope, Hope seated.",
        response_text: Optional[str] = CAPE_JSON,
        citations: Optional[List[GroundingCitation]] = None,
        describe_error: Optional[Exception] = None,
        identify_error: Optional[Exception] = None,
        on_describe: Optional[Callable[[], None]] = None,
    ) -> None:
        self.description = description
        self.response_text = response_text
        self.citations = citations or []
        self.describe_error = describe_error
        self.identify_error = identify_error
        self.on_describe = on_describe
        self.calls: List[str] = []
        self.last_description: Optional[str] = None

    async def describe_image(self, data: bytes, mime_type: str) -> Optional[str]:
        self.calls.append("describe_image")
        if self.on_describe:
            self.on_describe()
        if self.describe_error:
            raise self.describe_error
        return self.description

    async def identify_and_value(self, description: str) -> IdentificationResponse:
        self.calls.append("identify_and_value")
        self.last_description = description
        if self.identify_error:
            raise self.identify_error
        return IdentificationResponse(text=self.response_text, citations=list(self.citations))


@pytest.fixture
def payload() -> ImagePayload:
    return ImagePayload(data=JPEG_BYTES, mime_type="image/jpeg")


@pytest.fixture
def provider_error() -> ProviderError:
    return ProviderError("503 UNAVAILABLE")


@pytest.fixture
def collection_path(tmp_path):
    return tmp_path / "data" / "collection.json"
