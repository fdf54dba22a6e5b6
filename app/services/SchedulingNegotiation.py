"""
Slot-based scheduling negotiation.

Consultation requests, strategy calls and interviews share the same shape:
a client proposes up to three `{date, time}` slots, an admin confirms one of
them, asks for new times or (for consultations) waitlists the request. The
entity-specific part is the transition table, the column it drives and the
slot count rules.
"""
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Dict, List, Mapping, Optional, Sequence

from app.constants.constants import MAX_PREFERRED_SLOTS
from app.core.errors import ErrorCode, ValidationFailed
from app.utils.lifecycle.transitions import TransitionTable


def normalize_slot(slot: Any) -> Dict[str, str]:
    """Coerce a slot (dict or schema) into `{"date": "YYYY-MM-DD", "time": "HH:MM"}`."""
    if hasattr(slot, "model_dump"):
        slot = slot.model_dump(mode="json")
    try:
        slot_date = slot["date"]
        slot_time = slot["time"]
    except (KeyError, TypeError):
        raise ValidationFailed("Each slot needs a date and a time")
    if isinstance(slot_date, date):
        slot_date = slot_date.isoformat()
    if isinstance(slot_time, time):
        slot_time = slot_time.strftime("%H:%M")
    return {"date": str(slot_date), "time": str(slot_time)[:5]}


def combine_slot(slot: Mapping[str, str]) -> datetime:
    """`{"date": "2026-03-10", "time": "14:00"}` -> datetime(2026, 3, 10, 14, 0)."""
    try:
        return datetime.combine(
            date.fromisoformat(slot["date"]),
            time.fromisoformat(slot["time"]),
        )
    except (KeyError, TypeError, ValueError):
        raise ValidationFailed(f"Invalid slot: {slot!r}")


def select_slot(slots: Sequence[Mapping[str, str]], index: int) -> Mapping[str, str]:
    """Return `slots[index]`, rejecting anything outside 0..len-1."""
    if not slots:
        raise ValidationFailed("No preferred time slots to choose from")
    last = len(slots) - 1
    if not isinstance(index, int) or isinstance(index, bool) or index < 0 or index > last:
        allowed = ", ".join(str(i) for i in range(len(slots)))
        raise ValidationFailed(
            f"selected_slot_index must be between 0 and {last} ({allowed})",
            details=[{"field": "selected_slot_index", "allowed": list(range(len(slots)))}],
        )
    return slots[index]


def require_reason(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationFailed(
            f"{field_name} is required",
            code=ErrorCode.MISSING_REQUIRED_FIELDS,
            details=[{"field": field_name, "message": "This field is required"}],
        )
    return value.strip()


@dataclass(frozen=True)
class NegotiationProfile:
    """Entity-specific rules for one negotiated meeting type."""

    entity: str
    table: TransitionTable
    min_slots: int = 1
    max_slots: int = MAX_PREFERRED_SLOTS
    state_field: str = "status"


class SchedulingNegotiation:
    """Applies gatekeeper actions to any entity with slot and audit columns."""

    def __init__(self, profile: NegotiationProfile):
        self.profile = profile
        self.table = profile.table

    def validate_slots(self, slots: Sequence[Any]) -> List[Dict[str, str]]:
        normalized = [normalize_slot(slot) for slot in slots or []]
        low, high = self.profile.min_slots, self.profile.max_slots
        if not low <= len(normalized) <= high:
            expected = str(high) if low == high else f"between {low} and {high}"
            raise ValidationFailed(
                f"A {self.profile.entity} needs {expected} preferred time slots",
                details=[{"field": "preferred_slots", "received": len(normalized)}],
            )
        for slot in normalized:
            combine_slot(slot)
        return normalized

    def _transition(self, entity, action: str) -> str:
        return self.table.next_state(getattr(entity, self.profile.state_field), action)

    def _move(self, entity, new_state) -> None:
        setattr(entity, self.profile.state_field, new_state)

    def confirm(
        self,
        entity,
        selected_slot_index: int,
        actor_id: str,
        meeting_link: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Mapping[str, str]:
        """Confirm one of the proposed slots. Nothing changes when a guard fails."""
        new_state = self._transition(entity, "confirm")
        slot = select_slot(entity.preferred_slots or [], selected_slot_index)
        confirmed_time = combine_slot(slot)

        now = datetime.utcnow()
        self._move(entity, new_state)
        entity.confirmed_slot = dict(slot)
        entity.confirmed_time = confirmed_time
        entity.confirmed_by = actor_id
        entity.confirmed_at = now
        if meeting_link:
            entity.meeting_link = meeting_link
        if notes:
            entity.admin_notes = notes
        return slot

    def request_new_times(self, entity, reason: Optional[str], actor_id: str, notes: Optional[str] = None) -> str:
        reason = require_reason(reason, "reschedule_reason")
        new_state = self._transition(entity, "reschedule")
        self._move(entity, new_state)
        entity.reschedule_reason = reason
        entity.rescheduled_by = actor_id
        entity.rescheduled_at = datetime.utcnow()
        entity.confirmed_slot = None
        entity.confirmed_time = None
        if notes:
            entity.admin_notes = notes
        return reason

    def waitlist(self, entity, reason: Optional[str], actor_id: str, notes: Optional[str] = None) -> str:
        reason = require_reason(reason, "waitlist_reason")
        new_state = self._transition(entity, "waitlist")
        self._move(entity, new_state)
        entity.waitlist_reason = reason
        entity.waitlisted_by = actor_id
        entity.waitlisted_at = datetime.utcnow()
        if notes:
            entity.admin_notes = notes
        return reason

    def submit_new_times(self, entity, slots: Sequence[Any]) -> List[Dict[str, str]]:
        new_state = self._transition(entity, "submit_new_times")
        normalized = self.validate_slots(slots)
        self._move(entity, new_state)
        entity.preferred_slots = normalized
        entity.new_times_submitted_at = datetime.utcnow()
        return normalized

    def complete(self, entity) -> None:
        self._move(entity, self._transition(entity, "complete"))
        entity.completed_at = datetime.utcnow()

    def cancel(self, entity, reason: Optional[str] = None) -> None:
        self._move(entity, self._transition(entity, "cancel"))
        entity.cancelled_at = datetime.utcnow()
        entity.cancellation_reason = reason
