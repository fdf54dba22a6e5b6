"""Declarative state tables for the entity lifecycles."""

from enum import Enum
from typing import Dict, Iterable, List, Mapping, Union

from app.constants.constants import (
    AdminStatus,
    ConsultationStatus,
    MeetingStatus,
    MockSessionStatus,
    OnboardingExecutionStatus,
)
from app.core.errors import InvalidTransition

State = Union[str, Enum]


def _value(state: State) -> str:
    return state.value if isinstance(state, Enum) else str(state)


class TransitionTable:
    """Maps (current state, action) onto the next state for one entity."""

    def __init__(self, entity: str, transitions: Mapping[State, Mapping[str, State]]):
        self.entity = entity
        self._transitions: Dict[str, Dict[str, State]] = {
            _value(state): dict(actions)
            for state, actions in transitions.items()
        }

    def allowed_actions(self, state: State) -> List[str]:
        return sorted(self._transitions.get(_value(state), {}))

    def can(self, state: State, action: str) -> bool:
        return action in self._transitions.get(_value(state), {})

    def is_terminal(self, state: State) -> bool:
        return not self._transitions.get(_value(state))

    def next_state(self, state: State, action: str) -> State:
        """Return the state reached by `action`, or raise InvalidTransition."""
        targets = self._transitions.get(_value(state), {})
        if action not in targets:
            allowed = self.allowed_actions(state)
            raise InvalidTransition(
                f"Cannot {action.replace('_', ' ')} a {self.entity} in status '{_value(state)}'",
                details=[{
                    "current_status": _value(state),
                    "action": action,
                    "allowed_actions": allowed,
                }],
            )
        return targets[action]

    def reachable_by(self, state: State, target: State) -> Iterable[str]:
        """Actions that move `state` to `target`."""
        return [
            action for action, to_state in self._transitions.get(_value(state), {}).items()
            if _value(to_state) == _value(target)
        ]


C = ConsultationStatus

# Overall lifecycle. A reschedule hands the request back to the client, so
# the overall status returns to pending while admin_status records why.
CONSULTATION_TRANSITIONS = TransitionTable("consultation request", {
    C.pending: {
        "mark_under_review": C.under_review,
        "approve": C.approved,
        "reject": C.rejected,
        "confirm": C.confirmed,
        "reschedule": C.pending,
        "waitlist": C.waitlisted,
        "submit_new_times": C.pending,
    },
    C.under_review: {
        "approve": C.approved,
        "reject": C.rejected,
        "confirm": C.confirmed,
        "reschedule": C.pending,
        "waitlist": C.waitlisted,
    },
    C.waitlisted: {
        "submit_new_times": C.pending,
        "confirm": C.confirmed,
        "reschedule": C.pending,
        "reject": C.rejected,
    },
    C.confirmed: {
        "schedule": C.scheduled,
        "approve": C.approved,
        "reschedule": C.pending,
        "verify_payment": C.payment_verified,
        "reject": C.rejected,
    },
    C.scheduled: {
        "verify_payment": C.payment_verified,
        "reject": C.rejected,
    },
    C.approved: {
        "confirm": C.confirmed,
        "verify_payment": C.payment_verified,
        "reject": C.rejected,
    },
    C.payment_verified: {
        # Re-verifying re-issues the registration token
        "verify_payment": C.payment_verified,
        "register": C.registered,
    },
    C.rejected: {},
    C.registered: {},
})

A = AdminStatus

# Gatekeeper queue. New slots are only accepted after the admin asked for them.
GATEKEEPER_TRANSITIONS = TransitionTable("consultation request", {
    A.pending: {
        "confirm": A.confirmed,
        "reschedule": A.rescheduled,
        "waitlist": A.waitlisted,
    },
    A.rescheduled: {
        "submit_new_times": A.pending,
    },
    A.waitlisted: {
        "submit_new_times": A.pending,
        "confirm": A.confirmed,
        "reschedule": A.rescheduled,
    },
    A.confirmed: {
        "reschedule": A.rescheduled,
    },
})

M = MeetingStatus

MEETING_TRANSITIONS = TransitionTable("meeting", {
    M.pending_confirmation: {
        "confirm": M.confirmed,
        "reschedule": M.awaiting_new_times,
        "cancel": M.cancelled,
    },
    M.awaiting_new_times: {
        "submit_new_times": M.pending_confirmation,
        "confirm": M.confirmed,
        "cancel": M.cancelled,
    },
    M.confirmed: {
        "reschedule": M.awaiting_new_times,
        "complete": M.completed,
        "cancel": M.cancelled,
    },
    M.completed: {},
    M.cancelled: {},
})

S = MockSessionStatus

MOCK_SESSION_TRANSITIONS = TransitionTable("mock session", {
    S.scheduled: {
        "start": S.in_progress,
        "complete": S.completed,
        "reschedule": S.rescheduled,
        "cancel": S.cancelled,
    },
    S.rescheduled: {
        "confirm": S.scheduled,
        "start": S.in_progress,
        "complete": S.completed,
        "reschedule": S.rescheduled,
        "cancel": S.cancelled,
    },
    S.in_progress: {
        "complete": S.completed,
        "cancel": S.cancelled,
    },
    S.completed: {},
    S.cancelled: {},
})

ONBOARDING_TRANSITIONS = TransitionTable("onboarding record", {
    OnboardingExecutionStatus.pending_approval: {
        "approve": OnboardingExecutionStatus.active,
        "resubmit": OnboardingExecutionStatus.pending_approval,
    },
    OnboardingExecutionStatus.active: {},
})
