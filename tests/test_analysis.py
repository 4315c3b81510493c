"""Tests for the scan state machine."""
import asyncio

import pytest

from stampcollector.core.analysis import SCAN_FAILED_MESSAGE, AnalysisMachine, ScanInProgressError
from stampcollector.core.gemini_client import GroundingCitation
from stampcollector.models.analysis import AnalysisStatus
from stampcollector.models.stamp import Rarity

from conftest import FakeProvider


def test_starts_idle():
    machine = AnalysisMachine()
    state = machine.state
    assert state.status is AnalysisStatus.IDLE
    assert state.data is None and state.error is None and state.preview_id is None


def test_successful_run_completes_with_record(payload):
    machine = AnalysisMachine()
    provider = FakeProvider(
        citations=[GroundingCitation(uri="https://a.example"), GroundingCitation(uri="https://a.example")]
    )
    state = asyncio.run(machine.run(provider, payload))

    assert state.status is AnalysisStatus.COMPLETE
    assert state.data.rarity is Rarity.RARE
    assert state.data.grounding_urls == ["https://a.example"]
    assert state.error is None
    assert machine.previews.get(state.preview_id) is payload
    assert machine.payload is payload


def test_sub_state_visible_during_stage_a(payload):
    machine = AnalysisMachine()
    seen = []
    provider = FakeProvider(on_describe=lambda: seen.append(machine.state.status))
    asyncio.run(machine.run(provider, payload))
    assert seen == [AnalysisStatus.ANALYZING_IMAGE]


def test_empty_stage_a_ends_in_error_with_fixed_message(payload):
    machine = AnalysisMachine()
    state = asyncio.run(machine.run(FakeProvider(description=""), payload))
    assert state.status is AnalysisStatus.ERROR
    assert state.error == SCAN_FAILED_MESSAGE
    assert state.data is None


def test_provider_detail_never_reaches_state(payload, provider_error):
    machine = AnalysisMachine()
    state = asyncio.run(machine.run(FakeProvider(identify_error=provider_error), payload))
    assert state.status is AnalysisStatus.ERROR
    assert "503" not in state.error


def test_unexpected_exception_is_contained(payload):
    machine = AnalysisMachine()
    state = asyncio.run(machine.run(FakeProvider(describe_error=RuntimeError("boom")), payload))
    assert state.status is AnalysisStatus.ERROR
    assert state.error == SCAN_FAILED_MESSAGE


def test_second_start_while_in_progress_is_rejected(payload):
    machine = AnalysisMachine()
    machine.start(payload)
    with pytest.raises(ScanInProgressError):
        machine.start(payload)


def test_reset_from_complete_and_error_revokes_preview(payload):
    machine = AnalysisMachine()
    done = asyncio.run(machine.run(FakeProvider(), payload))
    state = machine.reset()
    assert state.status is AnalysisStatus.IDLE
    assert state.data is None
    assert machine.previews.get(done.preview_id) is None
    assert machine.payload is None

    asyncio.run(machine.run(FakeProvider(description=None), payload))
    assert machine.reset().status is AnalysisStatus.IDLE
    assert len(machine.previews) == 0


def test_new_scan_after_complete_replaces_preview(payload):
    machine = AnalysisMachine()
    first = asyncio.run(machine.run(FakeProvider(), payload))
    second = asyncio.run(machine.run(FakeProvider(), payload))
    assert first.preview_id != second.preview_id
    assert len(machine.previews) == 1


def test_result_after_reset_is_discarded(payload):
    machine = AnalysisMachine()
    provider = FakeProvider(on_describe=machine.reset)
    state = asyncio.run(machine.run(provider, payload))
    assert provider.calls == ["describe_image", "identify_and_value"]
    assert state.status is AnalysisStatus.IDLE
    assert state.data is None


def test_superseded_run_reports_idle_not_newer_scan(payload):
    machine = AnalysisMachine()
    newer = {}

    def reset_and_rescan():
        machine.reset()
        newer["generation"] = machine.start(payload)

    state = asyncio.run(machine.run(FakeProvider(on_describe=reset_and_rescan), payload))

    assert state.status is AnalysisStatus.IDLE
    assert state.data is None
    assert state.preview_id is None
    current = machine.state
    assert current.status is AnalysisStatus.ANALYZING_IMAGE
    assert current.preview_id is not None
