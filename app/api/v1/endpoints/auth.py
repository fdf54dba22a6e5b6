from datetime import datetime
import logging
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants.constants import NotificationCategory
from app.core.config import Settings
from app.core.database import aget_db
from app.core.dependencies import get_dispatcher
from app.core.errors import ErrorCode, Unauthorized
from app.core.security import (
    CurrentUser,
    check_password_strength,
    create_access_token,
    get_current_user,
    get_settings,
    hash_password,
    verify_password,
)
from app.models.user import RegisteredUser
from app.schemas.userSchema import ChangePasswordRequest, LoginRequest, UserOut
from app.services.SideEffects import NotificationJob, SideEffectDispatcher
from app.utils.responses import success_response, with_report

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)


@router.post("/login")
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(aget_db),
    settings: Settings = Depends(get_settings),
):
    """Exchange email and password for a bearer token."""
    result = await db.execute(
        select(RegisteredUser).where(RegisteredUser.email == payload.email.lower())
    )
    user = result.scalar_one_or_none()

    if not user or not user.is_active or not verify_password(payload.password, user.passcode_hash):
        logger.info(f"Failed login for {payload.email}")
        raise Unauthorized("Invalid email or password", code=ErrorCode.INVALID_CREDENTIALS)

    user.last_login_at = datetime.utcnow()
    await db.commit()

    return success_response(
        "Login successful",
        {
            "token": create_access_token(user, settings),
            "token_type": "bearer",
            "user": UserOut.model_validate(user).model_dump(mode="json"),
        },
    )


@router.get("/me")
async def get_me(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db),
):
    user = await db.get(RegisteredUser, current_user.id)
    return success_response("Current user", UserOut.model_validate(user).model_dump(mode="json"))


@router.post("/change-password")
async def change_password(
    payload: ChangePasswordRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
):
    """Replace the caller's password after checking the current one."""
    user = await db.get(RegisteredUser, current_user.id)
    if not verify_password(payload.current_password, user.passcode_hash):
        raise Unauthorized("Current password is incorrect", code=ErrorCode.INVALID_CREDENTIALS)
    check_password_strength(payload.new_password, field="new_password")

    user.passcode_hash = hash_password(payload.new_password)
    user.password_changed_at = datetime.utcnow()
    await db.commit()
    logger.info(f"Password changed for {user.email}")

    report = await dispatcher.dispatch(
        notifications=[NotificationJob(
            type="password_changed",
            title="Password changed",
            message="Your password was changed. Contact support if this was not you.",
            user_id=user.id,
            recipient_email=user.email,
            user_type=current_user.role.value,
            category=NotificationCategory.account,
        )],
    )
    return with_report(success_response("Password updated successfully"), report)
