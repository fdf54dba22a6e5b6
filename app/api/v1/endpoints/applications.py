"""Application Tracker: admin-maintained job applications with status notifications."""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants.constants import (
    APPLICATION_STATUS_NOTIFICATIONS,
    ApplicationStatus,
    NotificationCategory,
    NotificationPriority,
    UserRole,
)
from app.core.database import aget_db
from app.core.dependencies import get_dispatcher
from app.core.errors import NotFound
from app.core.security import CurrentUser, require_admin
from app.models.application import Application
from app.models.user import RegisteredUser
from app.schemas.applicationSchema import ApplicationCreate, ApplicationOut, ApplicationStatusUpdate
from app.services.SideEffects import EmailJob, NotificationJob, SideEffectDispatcher
from app.utils.check_profile_unlocked import check_profile_unlocked
from app.utils.responses import paginated_response, success_response, with_report

router = APIRouter(
    prefix="/applications",
    tags=["applications"]
)

admin_router = APIRouter(
    prefix="/admin/applications",
    tags=["admin applications"]
)


def serialize(application) -> dict:
    return ApplicationOut.model_validate(application).model_dump(mode="json")


def status_change_side_effects(application: Application, client: RegisteredUser):
    """Email and notification jobs for a status, from the static lookup table."""
    entry = APPLICATION_STATUS_NOTIFICATIONS.get(ApplicationStatus(application.status))
    if entry is None:
        return [], []

    message = entry["message"].format(company=application.company, role=application.role)
    email = EmailJob(client.email, entry["template"], {
        "subject": entry["subject"],
        "client_name": client.full_name,
        "company": application.company,
        "role": application.role,
        "status": ApplicationStatus(application.status).value,
        "status_message": message,
        "next_steps": entry["next_steps"],
        "interview_date": application.interview_date.strftime("%A, %B %d, %Y at %H:%M")
        if application.interview_date else None,
        "meeting_link": application.meeting_link,
        "is_offer": application.status == ApplicationStatus.offer,
    })
    notification = NotificationJob(
        type="application_status_updated",
        title=entry["subject"],
        message=message,
        user_id=client.id,
        recipient_email=client.email,
        category=NotificationCategory.application,
        priority=entry["priority"],
        metadata={
            "application_id": application.id,
            "status": ApplicationStatus(application.status).value,
        },
        action_url=f"/dashboard/applications/{application.id}",
        action_text="View application",
    )
    return [email], [notification]


# -----------------------------
# Client
# -----------------------------
@router.get("")
async def get_my_applications(
    status: Optional[ApplicationStatus] = None,
    user: RegisteredUser = Depends(check_profile_unlocked),
    db: AsyncSession = Depends(aget_db),
):
    """List the client's applications. Requires an unlocked profile."""
    query = select(Application).where(Application.client_id == user.id)
    if status:
        query = query.where(Application.status == status)
    result = await db.execute(query.order_by(Application.created_at.desc()))
    applications = [serialize(a) for a in result.scalars().all()]

    counts = {s.value: 0 for s in ApplicationStatus}
    rows = await db.execute(
        select(Application.status, func.count(Application.id))
        .where(Application.client_id == user.id)
        .group_by(Application.status)
    )
    for app_status, count in rows.all():
        counts[ApplicationStatus(app_status).value] = count
    return success_response("Applications retrieved", applications, status_counts=counts)


# -----------------------------
# Admin
# -----------------------------
@admin_router.post("", status_code=201)
async def create_application(
    payload: ApplicationCreate,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(aget_db),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
):
    client = await db.get(RegisteredUser, payload.client_id)
    if client is None or client.role != UserRole.client:
        raise NotFound("Client not found")

    application = Application(
        **payload.model_dump(),
        status=ApplicationStatus.applied,
        created_by=admin.id,
    )
    if application.applied_date is None:
        application.applied_date = datetime.utcnow()
    db.add(application)
    await db.commit()

    report = await dispatcher.dispatch(notifications=[NotificationJob(
        type="application_created",
        title="New application submitted",
        message=f"We applied to {application.role} at {application.company} for you.",
        user_id=client.id,
        category=NotificationCategory.application,
        priority=NotificationPriority.low,
        metadata={"application_id": application.id},
        action_url=f"/dashboard/applications/{application.id}",
        action_text="View application",
    )])
    return with_report(success_response("Application created", serialize(application)), report)


@admin_router.get("")
async def list_applications(
    client_id: Optional[str] = None,
    status: Optional[ApplicationStatus] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(aget_db),
):
    query = select(Application)
    count_query = select(func.count(Application.id))
    if client_id:
        query = query.where(Application.client_id == client_id)
        count_query = count_query.where(Application.client_id == client_id)
    if status:
        query = query.where(Application.status == status)
        count_query = count_query.where(Application.status == status)

    result = await db.execute(
        query.order_by(Application.created_at.desc()).limit(limit).offset(offset)
    )
    total = (await db.execute(count_query)).scalar() or 0
    return paginated_response(
        "Applications retrieved",
        [serialize(a) for a in result.scalars().all()],
        total,
        limit,
        offset,
    )


@admin_router.patch("/{application_id}/status")
async def update_application_status(
    application_id: str,
    payload: ApplicationStatusUpdate,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(aget_db),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
):
    """Change an application's status and notify the client per the status table."""
    application = await db.get(Application, application_id)
    if application is None:
        raise NotFound("Application not found")

    status_changed = application.status != payload.status
    application.status = payload.status
    if payload.notes is not None:
        application.notes = payload.notes
    if payload.interview_date is not None:
        application.interview_date = payload.interview_date
    if payload.meeting_link is not None:
        application.meeting_link = payload.meeting_link
    await db.commit()

    report = None
    if status_changed:
        client = await db.get(RegisteredUser, application.client_id)
        emails, notifications = status_change_side_effects(application, client)
        if emails or notifications:
            report = await dispatcher.dispatch(emails=emails, notifications=notifications)
    return with_report(success_response("Application status updated", serialize(application)), report)
