from datetime import datetime
from types import SimpleNamespace

import pytest

from app.constants.constants import AdminStatus, MeetingStatus
from app.core.errors import ErrorCode, InvalidTransition, ValidationFailed
from app.services.SchedulingNegotiation import (
    NegotiationProfile,
    SchedulingNegotiation,
    normalize_slot,
    select_slot,
)
from app.utils.lifecycle.transitions import GATEKEEPER_TRANSITIONS, MEETING_TRANSITIONS

SLOTS = [
    {"date": "2026-11-10", "time": "10:00"},
    {"date": "2026-11-11", "time": "14:30"},
    {"date": "2026-11-12", "time": "09:15"},
]


def consultation(admin_status=AdminStatus.pending):
    return SimpleNamespace(admin_status=admin_status, preferred_slots=list(SLOTS), meeting_link=None, admin_notes=None)


@pytest.fixture
def negotiation():
    return SchedulingNegotiation(
        NegotiationProfile("consultation request", GATEKEEPER_TRANSITIONS, state_field="admin_status")
    )


def test_normalize_slot_trims_seconds():
    assert normalize_slot({"date": "2026-11-10", "time": "10:00:00"}) == {"date": "2026-11-10", "time": "10:00"}


@pytest.mark.parametrize("index", [-1, 3, True])
def test_select_slot_rejects_out_of_range(index):
    with pytest.raises(ValidationFailed) as excinfo:
        select_slot(SLOTS, index)
    assert "between 0 and 2" in excinfo.value.error


def test_validate_slots_enforces_count(negotiation):
    with pytest.raises(ValidationFailed):
        negotiation.validate_slots(SLOTS + [SLOTS[0]])
    with pytest.raises(ValidationFailed):
        negotiation.validate_slots([])

    exact = SchedulingNegotiation(NegotiationProfile("strategy call", MEETING_TRANSITIONS, 3, 3))
    with pytest.raises(ValidationFailed):
        exact.validate_slots(SLOTS[:2])


def test_confirm_sets_slot_and_audit(negotiation):
    entity = consultation()
    negotiation.confirm(entity, 1, "admin-1", meeting_link="https://meet/x")
    assert entity.admin_status is AdminStatus.confirmed
    assert entity.confirmed_slot == SLOTS[1]
    assert entity.confirmed_time == datetime(2026, 11, 11, 14, 30)
    assert entity.confirmed_by == "admin-1"
    assert entity.meeting_link == "https://meet/x"


def test_failed_guard_changes_nothing(negotiation):
    entity = consultation()
    with pytest.raises(ValidationFailed):
        negotiation.confirm(entity, 7, "admin-1")
    assert entity.admin_status is AdminStatus.pending
    assert not hasattr(entity, "confirmed_slot")


def test_reschedule_requires_reason(negotiation):
    entity = consultation()
    with pytest.raises(ValidationFailed) as excinfo:
        negotiation.request_new_times(entity, "  ", "admin-1")
    assert excinfo.value.code == ErrorCode.MISSING_REQUIRED_FIELDS
    assert entity.admin_status is AdminStatus.pending


def test_reschedule_then_new_times(negotiation):
    entity = consultation()
    negotiation.request_new_times(entity, "Advisor travelling", "admin-1")
    assert entity.admin_status is AdminStatus.rescheduled
    assert entity.confirmed_slot is None

    negotiation.submit_new_times(entity, [{"date": "2026-12-01", "time": "08:00"}])
    assert entity.admin_status is AdminStatus.pending
    assert entity.preferred_slots == [{"date": "2026-12-01", "time": "08:00"}]


def test_complete_from_pending_is_invalid():
    meeting = SchedulingNegotiation(NegotiationProfile("strategy call", MEETING_TRANSITIONS, 3, 3))
    entity = SimpleNamespace(status=MeetingStatus.pending_confirmation)
    with pytest.raises(InvalidTransition):
        meeting.complete(entity)


def test_new_times_need_a_reschedule_first(negotiation):
    entity = consultation()
    with pytest.raises(InvalidTransition) as excinfo:
        negotiation.submit_new_times(entity, [{"date": "2026-12-01", "time": "08:00"}])
    assert excinfo.value.details[0]["current_status"] == "pending"
    assert entity.preferred_slots == SLOTS


def test_waitlisted_request_accepts_new_times(negotiation):
    entity = consultation(AdminStatus.waitlisted)
    negotiation.submit_new_times(entity, SLOTS[:2])
    assert entity.admin_status is AdminStatus.pending
    assert not hasattr(entity, "status")
