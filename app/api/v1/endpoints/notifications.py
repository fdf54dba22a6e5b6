from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_, func, update
from datetime import datetime

from app.core.database import aget_db
from app.core.errors import NotFound
from app.core.security import CurrentUser, get_current_user
from app.models.notifications import Notification
from app.schemas.notificationSchema import NotificationOut
from app.utils.responses import success_response

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def _owned_by(current_user: CurrentUser):
    """Rows addressed to the account, or to its email before it existed."""
    return or_(
        Notification.user_id == current_user.id,
        and_(
            Notification.user_id.is_(None),
            Notification.recipient_email == current_user.email,
            Notification.user_type == current_user.role.value,
        ),
    )


async def _unread_count(db: AsyncSession, current_user: CurrentUser) -> int:
    result = await db.execute(
        select(func.count(Notification.id))
        .where(
            and_(
                _owned_by(current_user),
                Notification.is_read == False
            )
        )
    )
    return result.scalar() or 0


@router.get("")
async def get_notifications(
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    """Get notifications for the current user."""

    query = select(Notification).where(_owned_by(current_user))

    if unread_only:
        query = query.where(Notification.is_read == False)

    query = query.order_by(Notification.created_at.desc()).limit(limit)

    result = await db.execute(query)
    notifications = result.scalars().all()

    return success_response(
        "Notifications retrieved",
        [NotificationOut.model_validate(n).model_dump(mode="json") for n in notifications],
        unread_count=await _unread_count(db, current_user),
    )


@router.get("/unread-count")
async def get_unread_count(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    return success_response("Unread count", {"unread_count": await _unread_count(db, current_user)})


@router.post("/{notification_id}/read")
async def mark_notification_as_read(
    notification_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    """Mark a notification as read."""

    query = await db.execute(
        select(Notification).where(
            and_(
                Notification.id == notification_id,
                _owned_by(current_user)
            )
        )
    )
    notification = query.scalar_one_or_none()

    if not notification:
        raise NotFound("Notification not found")

    if not notification.is_read:
        notification.is_read = True
        notification.read_at = datetime.utcnow()
        await db.commit()

    return success_response("Notification marked as read", {"id": notification.id})


@router.post("/read-all")
async def mark_all_notifications_as_read(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    """Mark all notifications as read for the current user."""

    result = await db.execute(
        update(Notification)
        .where(
            and_(
                _owned_by(current_user),
                Notification.is_read == False
            )
        )
        .values(is_read=True, read_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    return success_response("All notifications marked as read", {"marked_count": result.rowcount})
