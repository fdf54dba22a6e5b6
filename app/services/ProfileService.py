"""Client profile reads and edits, and the admin unlock of the Application Tracker."""

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.constants.constants import NotificationCategory, NotificationPriority, UserRole
from app.core.config import Settings
from app.core.errors import BusinessRuleViolation, ErrorCode, NotFound, ValidationFailed
from app.core.security import CurrentUser
from app.models.user import RegisteredUser
from app.services.SideEffects import DispatchReport, EmailJob, NotificationJob, SideEffectDispatcher

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "full_name",
    "phone",
    "linkedin_url",
    "current_job",
    "target_job",
    "country",
    "location",
    "years_of_experience",
)
REQUIRED_FOR_COMPLETION = ("full_name", "phone", "current_job", "target_job", "country")


def profile_completion(user: RegisteredUser) -> int:
    """Percentage of editable profile fields that are filled in."""
    filled = sum(1 for field in EDITABLE_FIELDS if getattr(user, field) not in (None, ""))
    return round(filled * 100 / len(EDITABLE_FIELDS))


class ProfileService:
    def __init__(self, db: AsyncSession, dispatcher: SideEffectDispatcher, settings: Settings):
        self.db = db
        self.dispatcher = dispatcher
        self.settings = settings

    async def get_client(self, client_id: str) -> RegisteredUser:
        user = await self.db.get(RegisteredUser, client_id)
        if user is None or user.role != UserRole.client:
            raise NotFound("Client not found")
        return user

    async def update(self, user_id: str, fields: Dict[str, Any]) -> RegisteredUser:
        user = await self.get_client(user_id)
        for field, value in fields.items():
            if field in EDITABLE_FIELDS:
                setattr(user, field, value)
        await self.db.commit()
        return user

    async def complete(self, user_id: str, fields: Dict[str, Any]) -> RegisteredUser:
        user = await self.get_client(user_id)
        for field, value in fields.items():
            if field in EDITABLE_FIELDS and value is not None:
                setattr(user, field, value)
        missing = [field for field in REQUIRED_FOR_COMPLETION if getattr(user, field) in (None, "")]
        if missing:
            raise ValidationFailed(
                "Profile is missing required fields",
                code=ErrorCode.MISSING_REQUIRED_FIELDS,
                details=[{"field": field, "message": "This field is required"} for field in missing],
            )
        user.profile_completed = True
        await self.db.commit()
        return user

    async def unlock(
        self,
        client_id: str,
        admin: CurrentUser,
        admin_notes: Optional[str] = None,
    ) -> Tuple[RegisteredUser, DispatchReport]:
        """
        Grant Application Tracker access.

        Fails with ONBOARDING_NOT_COMPLETED before onboarding and with
        PROFILE_ALREADY_UNLOCKED on a repeat call. Email and notification are
        best effort and reported back through the DispatchReport.
        """
        user = await self.get_client(client_id)
        if not user.onboarding_completed:
            raise BusinessRuleViolation(
                "Client must complete onboarding before the profile can be unlocked",
                code=ErrorCode.ONBOARDING_NOT_COMPLETED,
                status_code=400,
            )
        if user.profile_unlocked:
            raise BusinessRuleViolation(
                "Profile is already unlocked",
                code=ErrorCode.PROFILE_ALREADY_UNLOCKED,
                status_code=409,
                details=[{"profile_unlock_date": user.profile_unlock_date.isoformat()
                          if user.profile_unlock_date else None}],
            )

        now = datetime.utcnow()
        user.profile_unlocked = True
        user.profile_unlock_date = now
        user.profile_unlocked_by = admin.id
        user.profile_unlock_notes = admin_notes
        await self.db.commit()
        logger.info(f"🔓 Profile unlocked for {user.email} by {admin.email}")

        report = await self.dispatcher.dispatch(
            emails=[EmailJob(user.email, "profile_unlocked", {
                "client_name": user.full_name,
                "unlock_date": now.strftime("%B %d, %Y"),
                "dashboard_url": self.settings.build_url("/dashboard"),
                "admin_notes": admin_notes,
            })],
            notifications=[NotificationJob(
                type="profile_unlocked",
                title="Profile unlocked",
                message="Your profile has been unlocked. You now have access to the Application Tracker.",
                user_id=user.id,
                recipient_email=user.email,
                category=NotificationCategory.profile,
                priority=NotificationPriority.high,
                metadata={"unlocked_by": admin.id},
                action_url="/dashboard/applications",
                action_text="Open tracker",
            )],
        )
        return user, report
