"""Admin account management. Only the super admin may create or suspend admins."""

from datetime import datetime
import logging
from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants.constants import NotificationCategory, UserRole
from app.core.config import Settings
from app.core.database import aget_db
from app.core.dependencies import get_dispatcher
from app.core.errors import BusinessRuleViolation, ErrorCode, Forbidden, NotFound
from app.core.security import (
    CurrentUser,
    check_password_strength,
    get_settings,
    hash_password,
    require_admin,
)
from app.models.user import RegisteredUser
from app.schemas.userSchema import AdminCreate, ResetPasswordRequest, SuspendAccountRequest, UserOut
from app.services.SideEffects import EmailJob, NotificationJob, SideEffectDispatcher
from app.utils.responses import paginated_response, success_response, with_report

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin/admins",
    tags=["admin accounts"]
)


def _is_super_admin(email: str, settings: Settings) -> bool:
    return email.lower() == settings.SUPER_ADMIN_EMAIL.lower()


def serialize(user: RegisteredUser, settings: Settings) -> dict:
    data = UserOut.model_validate(user).model_dump(mode="json")
    data["is_super_admin"] = _is_super_admin(user.email, settings)
    data["can_be_modified"] = not data["is_super_admin"]
    return data


async def require_super_admin(
    admin: CurrentUser = Depends(require_admin),
    settings: Settings = Depends(get_settings),
) -> CurrentUser:
    if not _is_super_admin(admin.email, settings):
        raise Forbidden("Super admin access required")
    return admin


async def _get_admin(db: AsyncSession, admin_id: str) -> RegisteredUser:
    user = await db.get(RegisteredUser, admin_id)
    if user is None or user.role != UserRole.admin:
        raise NotFound("Admin account not found")
    return user


@router.get("")
async def list_admins(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    admin: CurrentUser = Depends(require_super_admin),
    db: AsyncSession = Depends(aget_db),
    settings: Settings = Depends(get_settings),
):
    query = select(RegisteredUser).where(RegisteredUser.role == UserRole.admin)
    total = (await db.execute(
        select(func.count()).select_from(query.subquery())
    )).scalar() or 0
    result = await db.execute(
        query.order_by(RegisteredUser.created_at.asc()).limit(limit).offset(offset)
    )
    admins = [serialize(u, settings) for u in result.scalars().all()]
    return paginated_response("Admin accounts retrieved", admins, total, limit, offset)


@router.post("", status_code=201)
async def create_admin(
    payload: AdminCreate,
    admin: CurrentUser = Depends(require_super_admin),
    db: AsyncSession = Depends(aget_db),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
    settings: Settings = Depends(get_settings),
):
    """Create an active admin account and mail the temporary password."""
    check_password_strength(payload.password)
    email = payload.email.lower()
    existing = await db.execute(select(RegisteredUser.id).where(RegisteredUser.email == email))
    if existing.scalar_one_or_none():
        raise BusinessRuleViolation(
            "An account with this email already exists",
            code=ErrorCode.ALREADY_EXISTS,
            status_code=409,
        )

    user = RegisteredUser(
        email=email,
        full_name=payload.full_name.strip(),
        phone=payload.phone,
        role=UserRole.admin,
        passcode_hash=hash_password(payload.password),
        is_active=True,
        created_by=admin.id,
    )
    db.add(user)
    await db.commit()
    logger.info(f"Admin account {email} created by {admin.email}")

    report = await dispatcher.dispatch(
        emails=[EmailJob(user.email, "admin_welcome", {
            "admin_name": user.full_name,
            "temporary_password": payload.password,
            "login_url": settings.build_url("/admin/login"),
            "super_admin_email": settings.SUPER_ADMIN_EMAIL,
        })],
    )
    return with_report(success_response("Admin account created successfully", serialize(user, settings)), report)


@router.post("/{admin_id}/suspend")
async def suspend_admin(
    admin_id: str,
    payload: SuspendAccountRequest,
    admin: CurrentUser = Depends(require_super_admin),
    db: AsyncSession = Depends(aget_db),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
    settings: Settings = Depends(get_settings),
):
    user = await _get_admin(db, admin_id)
    # Only the super admin gets here, so this also protects the super admin
    if user.id == admin.id:
        raise BusinessRuleViolation("You cannot suspend your own account")
    if not user.is_active:
        raise BusinessRuleViolation("Admin account is already suspended")

    reason = payload.reason or "No reason provided"
    user.is_active = False
    user.suspended_at = datetime.utcnow()
    user.suspended_by = admin.id
    user.suspension_reason = reason
    await db.commit()
    logger.info(f"Admin account {user.email} suspended by {admin.email}")

    report = await dispatcher.dispatch(
        emails=[EmailJob(user.email, "admin_account_suspended", {
            "admin_name": user.full_name,
            "suspended_by": admin.full_name or admin.email,
            "reason": reason,
            "contact_email": settings.SUPER_ADMIN_EMAIL,
        })],
    )
    return with_report(success_response("Admin account suspended", serialize(user, settings)), report)


@router.post("/{admin_id}/reactivate")
async def reactivate_admin(
    admin_id: str,
    admin: CurrentUser = Depends(require_super_admin),
    db: AsyncSession = Depends(aget_db),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
    settings: Settings = Depends(get_settings),
):
    user = await _get_admin(db, admin_id)
    if user.is_active:
        raise BusinessRuleViolation("Admin account is already active")

    user.is_active = True
    user.suspended_at = None
    user.suspended_by = None
    user.suspension_reason = None
    user.reactivated_at = datetime.utcnow()
    user.reactivated_by = admin.id
    await db.commit()
    logger.info(f"Admin account {user.email} reactivated by {admin.email}")

    report = await dispatcher.dispatch(
        emails=[EmailJob(user.email, "admin_account_reactivated", {
            "admin_name": user.full_name,
            "reactivated_by": admin.full_name or admin.email,
            "login_url": settings.build_url("/admin/login"),
            "contact_email": settings.SUPER_ADMIN_EMAIL,
        })],
    )
    return with_report(success_response("Admin account reactivated", serialize(user, settings)), report)


@router.post("/{admin_id}/reset-password")
async def reset_admin_password(
    admin_id: str,
    payload: ResetPasswordRequest,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(aget_db),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
    settings: Settings = Depends(get_settings),
):
    """Set a new password. The super admin may reset anyone, other admins only themselves."""
    own_account = admin_id == admin.id
    if not own_account and not _is_super_admin(admin.email, settings):
        raise Forbidden("Only the super admin can reset other admins' passwords")
    check_password_strength(payload.new_password, field="new_password")

    user = await _get_admin(db, admin_id)
    user.passcode_hash = hash_password(payload.new_password)
    user.password_changed_at = datetime.utcnow()
    user.password_reset_by = admin.id
    await db.commit()
    logger.info(f"Password for admin {user.email} reset by {admin.email}")

    if own_account:
        report = await dispatcher.dispatch(
            notifications=[NotificationJob(
                type="password_changed",
                title="Password changed",
                message="Your admin password was reset.",
                user_id=user.id,
                recipient_email=user.email,
                user_type="admin",
                category=NotificationCategory.account,
            )],
        )
    else:
        report = await dispatcher.dispatch(
            emails=[EmailJob(user.email, "admin_password_reset", {
                "admin_name": user.full_name,
                "reset_by": admin.full_name or admin.email,
                "new_password": payload.new_password,
                "login_url": settings.build_url("/admin/login"),
            })],
        )
    return with_report(success_response("Password reset successfully", serialize(user, settings)), report)
