"""20-question onboarding: client submission and the admin approval that unlocks the tracker."""

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants.constants import (
    NotificationCategory,
    NotificationPriority,
    OnboardingExecutionStatus,
)
from app.core.config import Settings
from app.core.errors import ErrorCode, InvalidTransition, NotFound
from app.core.security import CurrentUser
from app.models.onboarding import OnboardingRecord
from app.models.user import RegisteredUser
from app.schemas.onboardingSchema import OnboardingQuestionnaire
from app.services.SideEffects import DispatchReport, EmailJob, NotificationJob, SideEffectDispatcher
from app.utils.lifecycle.transitions import ONBOARDING_TRANSITIONS

logger = logging.getLogger(__name__)


class OnboardingService:
    def __init__(self, db: AsyncSession, dispatcher: SideEffectDispatcher, settings: Settings):
        self.db = db
        self.dispatcher = dispatcher
        self.settings = settings

    async def _user(self, user_id: str) -> RegisteredUser:
        user = await self.db.get(RegisteredUser, user_id)
        if user is None:
            raise NotFound("Client not found")
        return user

    async def get_record(self, user_id: str) -> Optional[OnboardingRecord]:
        result = await self.db.execute(
            select(OnboardingRecord).where(OnboardingRecord.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def status(self, user_id: str) -> dict:
        user = await self._user(user_id)
        record = await self.get_record(user_id)
        execution_status = record.execution_status.value if record else None
        return {
            "onboarding_completed": user.onboarding_completed,
            "onboarding_completion_date": user.onboarding_completion_date,
            "execution_status": execution_status,
            "requires_admin_approval": execution_status == OnboardingExecutionStatus.pending_approval.value,
            "profile_unlocked": user.profile_unlocked,
            "can_access_tracker": user.profile_unlocked,
        }

    async def submit(
        self,
        client: CurrentUser,
        answers: OnboardingQuestionnaire,
    ) -> Tuple[OnboardingRecord, DispatchReport]:
        """Upsert the questionnaire keyed on the owner and queue it for approval."""
        user = await self._user(client.id)
        record = await self.get_record(client.id)
        now = datetime.utcnow()

        if record is None:
            record = OnboardingRecord(user_id=client.id)
            self.db.add(record)
        else:
            record.execution_status = ONBOARDING_TRANSITIONS.next_state(record.execution_status, "resubmit")

        for field, value in answers.model_dump(mode="json").items():
            setattr(record, field, value)
        record.execution_status = OnboardingExecutionStatus.pending_approval
        record.completed_at = now

        user.onboarding_completed = True
        user.onboarding_completion_date = now
        user.years_of_experience = answers.years_of_experience

        await self.db.commit()
        logger.info(f"📝 Onboarding submitted by {user.email}, pending approval")

        report = await self.dispatcher.dispatch(
            emails=[
                EmailJob(user.email, "onboarding_submitted_pending_approval", {
                    "client_name": user.full_name,
                    "submitted_date": now.strftime("%B %d, %Y"),
                }),
                EmailJob(self.settings.ADMIN_NOTIFICATION_EMAIL, "onboarding_completed_needs_approval", {
                    "client_name": user.full_name,
                    "client_email": user.email,
                    "target_job_titles": answers.target_job_titles,
                    "job_search_timeline": answers.job_search_timeline,
                    "admin_dashboard_url": self.settings.build_url(f"/admin/onboarding/{record.id}"),
                }),
            ],
            notifications=[NotificationJob.for_admins(
                type="onboarding_pending_approval",
                title="Onboarding needs approval",
                message=f"{user.full_name} completed onboarding and is waiting for approval.",
                category=NotificationCategory.onboarding,
                priority=NotificationPriority.high,
                metadata={"user_id": user.id, "onboarding_id": record.id},
                action_url=f"/admin/onboarding/{record.id}",
                action_text="Review onboarding",
            )],
        )
        return record, report

    async def list(
        self,
        execution_status: Optional[OnboardingExecutionStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Tuple[OnboardingRecord, RegisteredUser]], dict]:
        query = (
            select(OnboardingRecord, RegisteredUser)
            .join(RegisteredUser, OnboardingRecord.user_id == RegisteredUser.id)
            .order_by(OnboardingRecord.completed_at.desc())
        )
        if execution_status:
            query = query.where(OnboardingRecord.execution_status == execution_status)
        rows = (await self.db.execute(query.limit(limit).offset(offset))).all()

        counts = {s.value: 0 for s in OnboardingExecutionStatus}
        count_rows = await self.db.execute(
            select(OnboardingRecord.execution_status, func.count(OnboardingRecord.id))
            .group_by(OnboardingRecord.execution_status)
        )
        for status, count in count_rows.all():
            counts[OnboardingExecutionStatus(status).value] = count
        return [(record, user) for record, user in rows], counts

    async def approve(
        self,
        record_id: str,
        admin: CurrentUser,
        admin_notes: Optional[str] = None,
    ) -> Tuple[OnboardingRecord, RegisteredUser, DispatchReport]:
        """
        pending_approval -> active, then unlock the owner's profile.

        The record and the user are two separate writes. If the second fails the
        record stays active with the profile still locked; approving again is
        rejected, so the unlock endpoint is the recovery path.
        """
        record = await self.db.get(OnboardingRecord, record_id)
        if record is None:
            raise NotFound("Onboarding record not found")
        if record.execution_status != OnboardingExecutionStatus.pending_approval:
            raise InvalidTransition(
                "Onboarding record is not pending approval",
                code=ErrorCode.INVALID_STATUS,
                details=[{"current_status": OnboardingExecutionStatus(record.execution_status).value}],
            )

        now = datetime.utcnow()
        record.execution_status = ONBOARDING_TRANSITIONS.next_state(record.execution_status, "approve")
        record.approved_by = admin.id
        record.approved_at = now
        if admin_notes:
            record.admin_notes = admin_notes
        await self.db.commit()

        user = await self._user(record.user_id)
        user.profile_unlocked = True
        user.profile_unlock_date = now
        user.profile_unlocked_by = admin.id
        user.profile_unlock_notes = admin_notes
        user.onboarding_completed = True
        await self.db.commit()
        logger.info(f"🔓 Onboarding {record.id} approved, tracker unlocked for {user.email}")

        admin_name = admin.full_name or "Apply Bureau Team"
        report = await self.dispatcher.dispatch(
            emails=[EmailJob(user.email, "profile_unlocked_tracker_active", {
                "client_name": user.full_name,
                "admin_name": admin_name,
                "tracker_url": self.settings.build_url("/dashboard/applications"),
                "admin_notes": admin_notes,
            })],
            notifications=[NotificationJob(
                type="profile_unlocked_by_admin",
                title="Application Tracker unlocked",
                message=f"{admin_name} approved your onboarding. Your Application Tracker is now active.",
                user_id=user.id,
                recipient_email=user.email,
                category=NotificationCategory.onboarding,
                priority=NotificationPriority.high,
                metadata={"onboarding_id": record.id, "approved_by": admin.id},
                action_url="/dashboard/applications",
                action_text="Open tracker",
            )],
        )
        return record, user, report
