from __future__ import annotations

import pytest

from modules.client_workflow.models.enums import SwitchResult
from modules.client_workflow.sync.guard import NavigationGuard


@pytest.mark.asyncio
async def test_clean_session_switches_immediately(loaded_session, guard, recorded_signals):
    assert guard.current_section == "personalInfo"

    result = guard.request_section_switch("dates")

    assert result == SwitchResult.SWITCHED
    assert guard.current_section == "dates"
    assert not guard.has_pending
    assert recorded_signals["section"] == ["dates"]
    assert recorded_signals["blocked"] == []


@pytest.mark.asyncio
async def test_dirty_session_blocks_then_cancel_stays(loaded_session, guard, fake_client, recorded_signals):
    loaded_session.apply_section_patch("personalInfo", {"name": "Unsaved"})

    result = guard.request_section_switch("dates")

    assert result == SwitchResult.BLOCKED
    assert guard.current_section == "personalInfo"
    assert guard.pending_target == "dates"
    assert recorded_signals["blocked"] == ["dates"]

    assert guard.cancel_switch() == SwitchResult.CANCELLED
    assert guard.current_section == "personalInfo"
    assert not guard.has_pending
    assert loaded_session.get_buffer_value("personalInfo")["name"] == "Unsaved"
    assert loaded_session.get_dirty_sections() == frozenset({"personalInfo"})
    assert fake_client.updates == []


@pytest.mark.asyncio
async def test_discard_and_continue_keeps_edits_in_buffer(loaded_session, guard, fake_client):
    loaded_session.apply_section_patch("pricing", {"amount": 500})
    assert guard.request_section_switch("dates") == SwitchResult.BLOCKED

    assert guard.confirm_switch() == SwitchResult.SWITCHED

    assert guard.current_section == "dates"
    assert loaded_session.get_dirty_sections() == frozenset({"pricing"})
    assert loaded_session.get_buffer_value("pricing")["amount"] == 500
    assert fake_client.updates == []

    assert guard.request_section_switch("pricing") == SwitchResult.BLOCKED
    guard.confirm_switch()
    assert loaded_session.get_buffer_value("pricing")["amount"] == 500


@pytest.mark.asyncio
async def test_switch_to_current_section_is_allowed_while_dirty(loaded_session, guard):
    loaded_session.apply_section_patch("personalInfo", {"name": "Unsaved"})
    assert guard.request_section_switch("personalInfo") == SwitchResult.SWITCHED
    assert not guard.has_pending


@pytest.mark.asyncio
async def test_confirm_without_pending_does_nothing(loaded_session, guard):
    assert guard.confirm_switch() == SwitchResult.CANCELLED
    assert guard.current_section == "personalInfo"


@pytest.mark.asyncio
async def test_unknown_target_rejected(loaded_session, guard):
    with pytest.raises(KeyError):
        guard.request_section_switch("notes")


def test_initial_section_must_be_declared(session):
    with pytest.raises(KeyError):
        NavigationGuard(session, initial_section="notes")
    assert NavigationGuard(session, initial_section="paymentMode").current_section == "paymentMode"


@pytest.mark.asyncio
async def test_exit_vetoed_while_dirty(loaded_session, guard, recorded_signals):
    assert guard.request_exit()

    loaded_session.apply_section_patch("dates", {"firstContactDate": "2024-04-04"})
    assert not guard.request_exit()
    assert recorded_signals["blocked"] == [""]

    loaded_session.discard_section_changes("dates")
    assert guard.request_exit()


@pytest.mark.asyncio
async def test_dirty_summary_counts_sections(loaded_session, guard):
    assert guard.dirty_summary() == ""
    loaded_session.apply_section_patch("dates", {"firstContactDate": "2024-04-04"})
    assert guard.dirty_summary() == "You have unsaved changes in 1 section"
    loaded_session.apply_section_patch("paymentMode", "Loan")
    assert guard.dirty_summary() == "You have unsaved changes in 2 sections"


@pytest.mark.asyncio
async def test_save_then_switch_composition(loaded_session, saver, guard):
    loaded_session.apply_section_patch("personalInfo", {"name": "Saved first"})
    assert guard.request_section_switch("dates") == SwitchResult.BLOCKED

    outcome = await saver.save_all()

    assert outcome.ok
    assert guard.request_section_switch("dates") == SwitchResult.SWITCHED
    assert guard.current_section == "dates"
