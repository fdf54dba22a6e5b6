"""Public contact form and the admin inbox that works through it."""

from datetime import datetime, timedelta
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants.constants import (
    CONTACT_RESPONSE_TIME,
    ContactRequestStatus,
    ContactSource,
    NotificationCategory,
    NotificationPriority,
)
from app.core.config import Settings
from app.core.database import aget_db
from app.core.dependencies import get_dispatcher
from app.core.errors import NotFound
from app.core.security import CurrentUser, get_settings, require_admin
from app.models.contact import ContactRequest
from app.schemas.contactSchema import ContactRequestCreate, ContactRequestOut, ContactRequestUpdate
from app.services.SideEffects import EmailJob, NotificationJob, SideEffectDispatcher
from app.utils.responses import paginated_response, success_response, with_report

router = APIRouter(
    prefix="/contact-requests",
    tags=["contact requests"]
)

admin_router = APIRouter(
    prefix="/admin/contact-requests",
    tags=["admin contact requests"]
)

# Picking up or handling a request records who did it
HANDLING_STATUSES = {ContactRequestStatus.in_progress, ContactRequestStatus.handled}


def serialize(contact) -> dict:
    return ContactRequestOut.model_validate(contact).model_dump(mode="json")


async def _get_contact(db: AsyncSession, contact_id: str) -> ContactRequest:
    contact = await db.get(ContactRequest, contact_id)
    if contact is None:
        raise NotFound("Contact request not found")
    return contact


@router.post("", status_code=201)
async def submit_contact_request(
    payload: ContactRequestCreate,
    db: AsyncSession = Depends(aget_db),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
    settings: Settings = Depends(get_settings),
):
    """Submit the public contact form."""
    contact = ContactRequest(
        first_name=payload.first_name.strip(),
        last_name=payload.last_name.strip(),
        email=payload.email.lower(),
        phone=payload.phone,
        subject=payload.subject.strip(),
        message=payload.message,
        source=payload.source,
        status=ContactRequestStatus.new,
        priority=NotificationPriority.medium,
    )
    db.add(contact)
    await db.commit()

    client_name = f"{contact.first_name} {contact.last_name}"
    report = await dispatcher.dispatch(
        emails=[
            EmailJob(contact.email, "contact_form_received", {
                "client_name": client_name,
                "contact_subject": contact.subject,
                "message": contact.message,
                "request_id": contact.id,
                "response_time": CONTACT_RESPONSE_TIME,
            }),
            EmailJob(settings.ADMIN_NOTIFICATION_EMAIL, "new_contact_submission", {
                "client_name": client_name,
                "client_email": contact.email,
                "client_phone": contact.phone or "Not provided",
                "contact_subject": contact.subject,
                "message": contact.message,
                "source": ContactSource(contact.source).value,
                "admin_dashboard_url": settings.build_url("/admin/contact-requests"),
            }),
        ],
        notifications=[NotificationJob.for_admins(
            type="new_contact_request",
            title="New contact form message",
            message=f"{client_name}: {contact.subject}",
            category=NotificationCategory.contact,
            metadata={"contact_request_id": contact.id},
            action_url=f"/admin/contact-requests/{contact.id}",
            action_text="Read message",
        )],
    )
    return with_report(
        success_response(
            "Contact request submitted successfully",
            {"id": contact.id, "status": ContactRequestStatus.new.value},
        ),
        report,
    )


@admin_router.get("")
async def list_contact_requests(
    status: Optional[ContactRequestStatus] = None,
    priority: Optional[NotificationPriority] = None,
    source: Optional[ContactSource] = None,
    search: Optional[str] = None,
    limit: int = Query(10, ge=1, le=200),
    offset: int = Query(0, ge=0),
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(aget_db),
):
    query = select(ContactRequest)
    if status:
        query = query.where(ContactRequest.status == status)
    if priority:
        query = query.where(ContactRequest.priority == priority)
    if source:
        query = query.where(ContactRequest.source == source)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            ContactRequest.first_name.ilike(pattern),
            ContactRequest.last_name.ilike(pattern),
            ContactRequest.email.ilike(pattern),
            ContactRequest.subject.ilike(pattern),
        ))

    total = (await db.execute(
        select(func.count()).select_from(query.subquery())
    )).scalar() or 0
    result = await db.execute(
        query.order_by(ContactRequest.created_at.desc()).limit(limit).offset(offset)
    )
    return paginated_response(
        "Contact requests retrieved",
        [serialize(c) for c in result.scalars().all()],
        total,
        limit,
        offset,
    )


@admin_router.get("/stats")
async def contact_request_stats(
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(aget_db),
):
    """Counts by status, priority and source, plus the last seven days."""
    async def grouped(column):
        rows = await db.execute(select(column, func.count(ContactRequest.id)).group_by(column))
        return {(value.value if hasattr(value, "value") else value): count for value, count in rows.all()}

    by_status = await grouped(ContactRequest.status)
    by_priority = await grouped(ContactRequest.priority)
    by_source = await grouped(ContactRequest.source)
    week_ago = datetime.utcnow() - timedelta(days=7)
    this_week = (await db.execute(
        select(func.count(ContactRequest.id)).where(ContactRequest.created_at > week_ago)
    )).scalar() or 0

    return success_response("Contact request statistics", {
        "total": sum(by_status.values()),
        **{s.value: by_status.get(s.value, 0) for s in ContactRequestStatus},
        "high_priority": by_priority.get(NotificationPriority.high.value, 0),
        "urgent": by_priority.get(NotificationPriority.urgent.value, 0),
        "this_week": this_week,
        "by_source": {s.value: by_source.get(s.value, 0) for s in ContactSource},
    })


@admin_router.get("/{contact_id}")
async def get_contact_request(
    contact_id: str,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(aget_db),
):
    contact = await _get_contact(db, contact_id)
    return success_response("Contact request retrieved", serialize(contact))


@admin_router.patch("/{contact_id}")
async def update_contact_request(
    contact_id: str,
    payload: ContactRequestUpdate,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(aget_db),
):
    contact = await _get_contact(db, contact_id)
    updates = payload.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in updates.items():
        setattr(contact, field, value)
    if updates.get("status") in HANDLING_STATUSES:
        contact.handled_by = admin.id
    await db.commit()
    return success_response("Contact request updated successfully", serialize(contact))


@admin_router.delete("/{contact_id}")
async def delete_contact_request(
    contact_id: str,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(aget_db),
):
    contact = await _get_contact(db, contact_id)
    await db.delete(contact)
    await db.commit()
    return success_response("Contact request deleted successfully", {"id": contact_id})
