"""Mock interview sessions: client booking, coach feedback and rescheduling."""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants.constants import (
    DEFAULT_MOCK_SESSION_COACH,
    MOCK_SESSION_COACHES,
    MockSessionStatus,
    MockSessionType,
    NotificationCategory,
    NotificationPriority,
)
from app.core.config import Settings
from app.core.database import aget_db
from app.core.dependencies import get_dispatcher
from app.core.errors import Forbidden, InvalidTransition, NotFound
from app.core.security import CurrentUser, get_current_user, get_settings, require_admin, require_client
from app.models.base import generate_uuid
from app.models.mocksession import MockSession
from app.models.user import RegisteredUser
from app.schemas.mockSessionSchema import (
    MockSessionCreate,
    MockSessionFeedback,
    MockSessionOut,
    MockSessionUpdate,
)
from app.services.SideEffects import EmailJob, NotificationJob, SideEffectDispatcher
from app.utils.lifecycle.transitions import MOCK_SESSION_TRANSITIONS
from app.utils.responses import paginated_response, success_response, with_report

router = APIRouter(
    prefix="/mock-sessions",
    tags=["mock sessions"]
)

admin_router = APIRouter(
    prefix="/admin/mock-sessions",
    tags=["admin mock sessions"]
)

PREPARATION_NOTES = "Please review the preparation materials that will be sent separately."
DEFAULT_NEXT_STEPS = "Continue practicing based on the recommendations provided."


def serialize(session) -> dict:
    data = MockSessionOut.model_validate(session).model_dump(mode="json")
    data["coach"] = {
        "name": data.pop("coach_name"),
        "title": data.pop("coach_title"),
        "experience": data.pop("coach_experience"),
        "specialties": data.pop("coach_specialties"),
    }
    return data


def _format_date(moment: datetime) -> str:
    return moment.strftime("%A, %B %d, %Y")


def _format_time(moment: datetime) -> str:
    return moment.strftime("%H:%M")


async def _get_session(db: AsyncSession, session_id: str) -> MockSession:
    session = await db.get(MockSession, session_id)
    if session is None:
        raise NotFound("Mock session not found")
    return session


# -----------------------------
# Client
# -----------------------------
@router.post("", status_code=201)
async def book_mock_session(
    payload: MockSessionCreate,
    current_user: CurrentUser = Depends(require_client),
    db: AsyncSession = Depends(aget_db),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
    settings: Settings = Depends(get_settings),
):
    """Book a mock session. A coach is assigned from the session type."""
    user = await db.get(RegisteredUser, current_user.id)
    coach = MOCK_SESSION_COACHES.get(payload.session_type, DEFAULT_MOCK_SESSION_COACH)
    session_id = generate_uuid()
    session = MockSession(
        id=session_id,
        user_id=user.id,
        session_type=payload.session_type,
        scheduled_date=payload.preferred_date,
        status=MockSessionStatus.scheduled,
        coach_name=coach["name"],
        coach_title=coach["title"],
        coach_experience=coach["experience"],
        coach_specialties=list(coach["specialties"]),
        meeting_link=f"{settings.MOCK_SESSION_MEETING_BASE_URL.rstrip('/')}/mock-session-{session_id[:8]}",
        focus_areas=payload.focus_areas,
        preparation_level=payload.preparation_level,
        specific_company=payload.specific_company,
        notes=payload.notes,
    )
    db.add(session)
    await db.commit()

    session_type = MockSessionType(session.session_type).value
    report = await dispatcher.dispatch(
        emails=[EmailJob(user.email, "mock_session_scheduled", {
            "client_name": user.full_name,
            "session_type": session_type,
            "scheduled_date": _format_date(session.scheduled_date),
            "scheduled_time": _format_time(session.scheduled_date),
            "coach_name": session.coach_name,
            "coach_title": session.coach_title,
            "meeting_link": session.meeting_link,
            "focus_areas": ", ".join(session.focus_areas),
            "preparation_notes": PREPARATION_NOTES,
        })],
        notifications=[NotificationJob.for_admins(
            type="mock_session_booked",
            title="Mock session booked",
            message=f"{user.full_name} booked a {session_type} session for {_format_date(session.scheduled_date)}.",
            category=NotificationCategory.mock_session,
            metadata={"mock_session_id": session.id, "user_id": user.id},
            action_url=f"/admin/mock-sessions/{session.id}",
        )],
    )
    return with_report(success_response("Mock session scheduled successfully", serialize(session)), report)


@router.get("")
async def get_my_mock_sessions(
    status: Optional[MockSessionStatus] = None,
    session_type: Optional[MockSessionType] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: CurrentUser = Depends(require_client),
    db: AsyncSession = Depends(aget_db),
):
    query = select(MockSession).where(MockSession.user_id == current_user.id)
    if status:
        query = query.where(MockSession.status == status)
    if session_type:
        query = query.where(MockSession.session_type == session_type)

    total = (await db.execute(
        select(func.count()).select_from(query.subquery())
    )).scalar() or 0
    result = await db.execute(
        query.order_by(MockSession.scheduled_date.desc()).limit(limit).offset(offset)
    )
    return paginated_response(
        "Mock sessions retrieved",
        [serialize(s) for s in result.scalars().all()],
        total,
        limit,
        offset,
    )


@router.patch("/{session_id}")
async def update_mock_session(
    session_id: str,
    payload: MockSessionUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
):
    """Move, annotate or change the status of a session. Clients may only touch their own."""
    session = await _get_session(db, session_id)
    if not current_user.is_admin and session.user_id != current_user.id:
        raise Forbidden("Insufficient permissions")

    updates = payload.model_dump(exclude_unset=True)
    new_status = updates.pop("status", None)
    old_status = MockSessionStatus(session.status)
    if new_status is not None and new_status != old_status:
        if not MOCK_SESSION_TRANSITIONS.reachable_by(old_status, new_status):
            raise InvalidTransition(
                f"Cannot move a mock session from '{old_status.value}' to '{new_status.value}'",
                details=[{"allowed_actions": MOCK_SESSION_TRANSITIONS.allowed_actions(old_status)}],
            )

    if updates.get("scheduled_date") is not None:
        session.scheduled_date = updates["scheduled_date"]
    if "notes" in updates:
        session.notes = updates["notes"]
    if new_status is not None:
        session.status = new_status
    await db.commit()

    report = None
    if new_status == MockSessionStatus.rescheduled and updates.get("scheduled_date"):
        user = await db.get(RegisteredUser, session.user_id)
        session_type = MockSessionType(session.session_type).value
        report = await dispatcher.dispatch(
            emails=[EmailJob(user.email, "mock_session_rescheduled", {
                "client_name": user.full_name,
                "session_type": session_type,
                "new_date": _format_date(session.scheduled_date),
                "new_time": _format_time(session.scheduled_date),
                "coach_name": session.coach_name,
                "meeting_link": session.meeting_link,
            })],
            notifications=[NotificationJob(
                type="mock_session_rescheduled",
                title="Mock session rescheduled",
                message=f"Your {session_type} session moved to {_format_date(session.scheduled_date)}.",
                user_id=user.id,
                recipient_email=user.email,
                category=NotificationCategory.mock_session,
                priority=NotificationPriority.high,
                metadata={"mock_session_id": session.id},
            )],
        )
    return with_report(success_response("Mock session updated successfully", serialize(session)), report)


# -----------------------------
# Admin
# -----------------------------
@admin_router.get("")
async def list_mock_sessions(
    status: Optional[MockSessionStatus] = None,
    user_id: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(aget_db),
):
    query = select(MockSession)
    if status:
        query = query.where(MockSession.status == status)
    if user_id:
        query = query.where(MockSession.user_id == user_id)

    total = (await db.execute(
        select(func.count()).select_from(query.subquery())
    )).scalar() or 0
    result = await db.execute(
        query.order_by(MockSession.scheduled_date.asc()).limit(limit).offset(offset)
    )
    return paginated_response(
        "Mock sessions retrieved",
        [serialize(s) for s in result.scalars().all()],
        total,
        limit,
        offset,
    )


@admin_router.post("/{session_id}/feedback")
async def submit_mock_session_feedback(
    session_id: str,
    payload: MockSessionFeedback,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(aget_db),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
    settings: Settings = Depends(get_settings),
):
    """Record coach feedback and complete the session."""
    session = await _get_session(db, session_id)
    now = datetime.utcnow()
    session.status = MOCK_SESSION_TRANSITIONS.next_state(session.status, "complete")
    session.feedback = {
        **payload.model_dump(),
        "feedback_date": now.isoformat(),
        "feedback_by": admin.full_name or "Coach",
    }
    session.completed_at = now
    await db.commit()

    user = await db.get(RegisteredUser, session.user_id)
    session_type = MockSessionType(session.session_type).value
    report = await dispatcher.dispatch(
        emails=[EmailJob(user.email, "mock_session_feedback", {
            "client_name": user.full_name,
            "session_type": session_type,
            "coach_name": session.coach_name,
            "overall_rating": payload.overall_rating,
            "strengths": ", ".join(payload.strengths),
            "areas_for_improvement": ", ".join(payload.areas_for_improvement),
            "recommendations": ", ".join(payload.recommendations),
            "next_session_suggestions": payload.next_session_suggestions or DEFAULT_NEXT_STEPS,
            "dashboard_url": settings.build_url("/client/dashboard"),
        })],
        notifications=[NotificationJob(
            type="mock_session_feedback",
            title="Mock session feedback ready",
            message=f"{session.coach_name} rated your {session_type} session {payload.overall_rating}/5.",
            user_id=user.id,
            recipient_email=user.email,
            category=NotificationCategory.mock_session,
            metadata={"mock_session_id": session.id},
        )],
    )
    return with_report(success_response("Feedback submitted successfully", serialize(session)), report)
