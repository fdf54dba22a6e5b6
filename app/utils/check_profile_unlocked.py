from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import aget_db
from app.core.errors import ErrorCode, Forbidden
from app.core.security import CurrentUser, require_client
from app.models.user import RegisteredUser


async def check_profile_unlocked(
    current_user: CurrentUser = Depends(require_client),
    db: AsyncSession = Depends(aget_db),
) -> RegisteredUser:
    """Gate for Application Tracker routes: the client's profile must be unlocked."""
    user = await db.get(RegisteredUser, current_user.id)
    if user is None or not user.profile_unlocked:
        raise Forbidden(
            "Your profile must be unlocked by an advisor before using the Application Tracker",
            code=ErrorCode.PROFILE_LOCKED,
        )
    return user
