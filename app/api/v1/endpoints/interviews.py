"""Interview coordination: admin CRUD and feedback, client read access."""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants.constants import (
    MeetingStatus,
    NotificationCategory,
    NotificationPriority,
    UserRole,
)
from app.core.database import aget_db
from app.core.dependencies import get_dispatcher
from app.core.errors import ErrorCode, InvalidTransition, NotFound, ValidationFailed
from app.core.security import CurrentUser, require_admin, require_client
from app.models.application import Application
from app.models.interview import Interview
from app.models.user import RegisteredUser
from app.schemas.interviewSchema import InterviewCreate, InterviewFeedback, InterviewOut, InterviewUpdate
from app.services.SideEffects import EmailJob, NotificationJob, SideEffectDispatcher
from app.utils.lifecycle.transitions import MEETING_TRANSITIONS
from app.utils.responses import paginated_response, success_response, with_report

router = APIRouter(
    prefix="/interviews",
    tags=["interviews"]
)

admin_router = APIRouter(
    prefix="/admin/interviews",
    tags=["admin interviews"]
)

HISTORY_FIELDS = (
    "interview_type", "scheduled_date", "company", "role", "duration_minutes",
    "timezone", "interviewer_name", "interviewer_email", "meeting_link", "status",
)


def serialize(interview) -> dict:
    return InterviewOut.model_validate(interview).model_dump(mode="json")


def _plain(value):
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, MeetingStatus):
        return value.value
    return value


async def _get_interview(db: AsyncSession, interview_id: str) -> Interview:
    interview = await db.get(Interview, interview_id)
    if interview is None:
        raise NotFound("Interview not found")
    return interview


async def _get_client(db: AsyncSession, client_id: str) -> RegisteredUser:
    client = await db.get(RegisteredUser, client_id)
    if client is None or client.role != UserRole.client:
        raise NotFound("Client not found")
    return client


def _format_when(interview: Interview) -> str:
    if not interview.scheduled_date:
        return "a time to be confirmed"
    return interview.scheduled_date.strftime("%A, %B %d, %Y at %H:%M")


@admin_router.post("", status_code=201)
async def schedule_interview(
    payload: InterviewCreate,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(aget_db),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
):
    """Schedule an interview for a client at an explicit date and time."""
    client = await _get_client(db, payload.client_id)
    if payload.application_id and await db.get(Application, payload.application_id) is None:
        raise NotFound("Application not found")

    now = datetime.utcnow()
    interview = Interview(
        **payload.model_dump(),
        status=MeetingStatus.confirmed,
        confirmed_by=admin.id,
        confirmed_at=now,
        created_by=admin.id,
        history=[{"changed_at": now.isoformat(), "changed_by": admin.id, "event": "scheduled"}],
    )
    db.add(interview)
    await db.commit()

    when = _format_when(interview)
    report = await dispatcher.dispatch(
        emails=[EmailJob(client.email, "interview_scheduled", {
            "client_name": client.full_name,
            "company": interview.company,
            "role": interview.role,
            "interview_type": interview.interview_type,
            "interview_date": when,
            "duration_minutes": interview.duration_minutes,
            "timezone": interview.timezone,
            "interviewer_name": interview.interviewer_name,
            "meeting_link": interview.meeting_link,
        })],
        notifications=[NotificationJob(
            type="interview_scheduled",
            title="Interview scheduled",
            message=f"Your {interview.interview_type} interview{' with ' + interview.company if interview.company else ''} is set for {when}.",
            user_id=client.id,
            recipient_email=client.email,
            category=NotificationCategory.interview,
            priority=NotificationPriority.high,
            metadata={"interview_id": interview.id},
            action_url=interview.meeting_link,
            action_text="Join interview" if interview.meeting_link else None,
        )],
    )
    return with_report(success_response("Interview scheduled", serialize(interview)), report)


@admin_router.get("")
async def list_interviews(
    status: Optional[MeetingStatus] = None,
    client_id: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(aget_db),
):
    query = select(Interview)
    count_query = select(func.count(Interview.id))
    if status:
        query = query.where(Interview.status == status)
        count_query = count_query.where(Interview.status == status)
    if client_id:
        query = query.where(Interview.client_id == client_id)
        count_query = count_query.where(Interview.client_id == client_id)

    result = await db.execute(
        query.order_by(Interview.scheduled_date.desc()).limit(limit).offset(offset)
    )
    total = (await db.execute(count_query)).scalar() or 0
    return paginated_response(
        "Interviews retrieved",
        [serialize(i) for i in result.scalars().all()],
        total,
        limit,
        offset,
    )


@admin_router.get("/{interview_id}")
async def get_interview(
    interview_id: str,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(aget_db),
):
    interview = await _get_interview(db, interview_id)
    return success_response("Interview retrieved", serialize(interview))


@admin_router.patch("/{interview_id}")
async def update_interview(
    interview_id: str,
    payload: InterviewUpdate,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(aget_db),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
):
    """Edit interview details. Status moves follow the meeting lifecycle."""
    interview = await _get_interview(db, interview_id)
    updates = payload.model_dump(exclude_unset=True)
    new_status = updates.pop("status", None)
    old_status = interview.status

    if new_status is not None and new_status != old_status:
        if not list(MEETING_TRANSITIONS.reachable_by(old_status, new_status)):
            raise InvalidTransition(
                f"Cannot move an interview from '{MeetingStatus(old_status).value}' to '{new_status.value}'",
                details=[{"allowed_actions": MEETING_TRANSITIONS.allowed_actions(old_status)}],
            )
        if new_status == MeetingStatus.confirmed and not (updates.get("scheduled_date") or interview.scheduled_date):
            raise ValidationFailed(
                "A confirmed interview needs a scheduled_date",
                code=ErrorCode.MISSING_REQUIRED_FIELDS,
            )

    changes = {}
    for field, value in updates.items():
        if getattr(interview, field) != value:
            changes[field] = [_plain(getattr(interview, field)), _plain(value)]
            setattr(interview, field, value)

    if new_status is not None and new_status != old_status:
        changes["status"] = [_plain(old_status), new_status.value]
        interview.status = new_status
        if new_status == MeetingStatus.confirmed:
            interview.confirmed_by = admin.id
            interview.confirmed_at = datetime.utcnow()

    if not changes:
        return success_response("No changes", serialize(interview))

    interview.history = list(interview.history or []) + [{
        "changed_at": datetime.utcnow().isoformat(),
        "changed_by": admin.id,
        "event": "updated",
        "changes": changes,
    }]
    await db.commit()

    report = None
    if "status" in changes or "scheduled_date" in changes:
        report = await dispatcher.dispatch(notifications=[NotificationJob(
            type="interview_updated",
            title="Interview updated",
            message=f"Your interview is now {MeetingStatus(interview.status).value.replace('_', ' ')} for {_format_when(interview)}.",
            user_id=interview.client_id,
            category=NotificationCategory.interview,
            priority=NotificationPriority.high,
            metadata={"interview_id": interview.id, "changes": list(changes)},
        )])
    return with_report(success_response("Interview updated", serialize(interview)), report)


@admin_router.delete("/{interview_id}")
async def delete_interview(
    interview_id: str,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(aget_db),
):
    interview = await _get_interview(db, interview_id)
    await db.delete(interview)
    await db.commit()
    return success_response("Interview deleted", {"id": interview_id})


@admin_router.post("/{interview_id}/feedback")
async def submit_interview_feedback(
    interview_id: str,
    payload: InterviewFeedback,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(aget_db),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
):
    """Record the outcome and mark the interview completed."""
    interview = await _get_interview(db, interview_id)
    interview.status = MEETING_TRANSITIONS.next_state(interview.status, "complete")
    interview.outcome = payload.outcome
    interview.feedback = payload.feedback
    interview.next_steps = payload.next_steps
    interview.history = list(interview.history or []) + [{
        "changed_at": datetime.utcnow().isoformat(),
        "changed_by": admin.id,
        "event": "feedback",
        "outcome": payload.outcome,
    }]
    await db.commit()

    report = await dispatcher.dispatch(notifications=[NotificationJob(
        type="interview_feedback",
        title="Interview feedback available",
        message=f"Feedback from your interview{' with ' + interview.company if interview.company else ''} is ready.",
        user_id=interview.client_id,
        category=NotificationCategory.interview,
        priority=NotificationPriority.medium,
        metadata={"interview_id": interview.id, "outcome": payload.outcome},
    )])
    return with_report(success_response("Interview feedback recorded", serialize(interview)), report)


@router.get("/my")
async def get_my_interviews(
    current_user: CurrentUser = Depends(require_client),
    db: AsyncSession = Depends(aget_db),
):
    result = await db.execute(
        select(Interview)
        .where(Interview.client_id == current_user.id)
        .order_by(Interview.scheduled_date.asc())
    )
    return success_response(
        "Interviews retrieved",
        [serialize(i) for i in result.scalars().all()],
    )
