"""Tests for the Gemini provider boundary (no network)."""
import asyncio
from types import SimpleNamespace

import pytest

from stampcollector.core.gemini_client import (
    GeminiProvider,
    GroundingCitation,
    ProviderError,
    build_identification_prompt,
    extract_citations,
)


def _response(text, chunks=None):
    metadata = SimpleNamespace(grounding_chunks=chunks)
    return SimpleNamespace(text=text, candidates=[SimpleNamespace(grounding_metadata=metadata)])


class _FakeModels:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    async def generate_content(self, **kwargs):
        self.requests.append(kwargs)
        if self.error:
            raise self.error
        return self.response


def _provider(models):
    provider = GeminiProvider(api_key="test-key", vision_model="vision-m", search_model="search-m")
    provider._client = SimpleNamespace(aio=SimpleNamespace(models=models))
    return provider


def test_extract_citations_keeps_web_uris():
    chunks = [
        SimpleNamespace(web=SimpleNamespace(uri="https://colnect.com/a", title="Colnect")),
        SimpleNamespace(web=None),
        SimpleNamespace(web=SimpleNamespace(uri="https://colnect.com/a", title="Colnect")),
    ]
    assert extract_citations(_response("{}", chunks)) == [
        GroundingCitation(uri="https://colnect.com/a", title="Colnect"),
        GroundingCitation(uri=None, title=None),
        GroundingCitation(uri="https://colnect.com/a", title="Colnect"),
    ]


def test_extract_citations_without_metadata():
    assert extract_citations(SimpleNamespace(text="x", candidates=None)) == []
    assert extract_citations(_response("x", None)) == []


def test_identification_prompt_embeds_description_and_language():
    prompt = build_identification_prompt("Blue triangular stamp")
    assert '"Blue triangular stamp"' in prompt
    assert "Türkçe" in prompt
    assert '"catalogRef"' in prompt


def test_describe_image_sends_image_part():
    models = _FakeModels(response=_response("A red stamp."))
    text = asyncio.run(_provider(models).describe_image(b"img", "image/png"))
    assert text == "A red stamp."
    assert models.requests[0]["model"] == "vision-m"


def test_identify_uses_search_tool_and_returns_citations():
    chunk = SimpleNamespace(web=SimpleNamespace(uri="https://stampworld.com/x", title=None))
    models = _FakeModels(response=_response('{"title": "X"}', [chunk]))
    result = asyncio.run(_provider(models).identify_and_value("desc"))
    assert result.text == '{"title": "X"}'
    assert [c.uri for c in result.citations] == ["https://stampworld.com/x"]
    request = models.requests[0]
    assert request["model"] == "search-m"
    assert request["config"].tools


def test_transport_errors_are_wrapped():
    models = _FakeModels(error=ConnectionError("reset by peer"))
    with pytest.raises(ProviderError):
        asyncio.run(_provider(models).identify_and_value("desc"))
