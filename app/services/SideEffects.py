"""
Detached side effects of a lifecycle transition.

The primary state change is committed by the caller first. Emails and
in-app notifications are then dispatched as independent jobs: each one
runs on its own, failures are logged and reported back, never raised.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import select

from app.constants.constants import NotificationCategory, NotificationPriority, UserRole
from app.core.database import DatabaseSessionManager
from app.models.notifications import Notification
from app.models.user import RegisteredUser
from app.services.EmailService import EmailService

logger = logging.getLogger(__name__)


@dataclass
class EmailJob:
    to: str
    template_name: str
    variables: Dict[str, Any] = field(default_factory=dict)


@dataclass
class NotificationJob:
    type: str
    title: str
    message: str
    user_id: Optional[str] = None
    recipient_email: Optional[str] = None
    user_type: str = "client"
    category: NotificationCategory = NotificationCategory.system
    priority: NotificationPriority = NotificationPriority.medium
    metadata: Dict[str, Any] = field(default_factory=dict)
    action_url: Optional[str] = None
    action_text: Optional[str] = None

    @classmethod
    def for_admins(cls, type: str, title: str, message: str, **kwargs) -> "NotificationJob":
        """A notification copied to every active admin account."""
        return cls(type=type, title=title, message=message, user_type="admin", **kwargs)

    @property
    def is_admin_broadcast(self) -> bool:
        return self.user_type == "admin" and self.user_id is None


@dataclass
class DispatchReport:
    emails_attempted: int = 0
    emails_failed: int = 0
    notifications_attempted: int = 0
    notifications_failed: int = 0

    @property
    def email_sent(self) -> bool:
        return self.emails_attempted > 0 and self.emails_failed == 0

    @property
    def notification_created(self) -> bool:
        return self.notifications_attempted > 0 and self.notifications_failed == 0


class SideEffectDispatcher:
    """Runs email and notification jobs after a committed transition."""

    def __init__(self, session_manager: DatabaseSessionManager, email_service: EmailService):
        self.session_manager = session_manager
        self.email_service = email_service

    async def dispatch(
        self,
        emails: Sequence[EmailJob] = (),
        notifications: Sequence[NotificationJob] = (),
    ) -> DispatchReport:
        report = DispatchReport(
            emails_attempted=len(emails),
            notifications_attempted=len(notifications),
        )
        email_results, notifications_ok = await asyncio.gather(
            asyncio.gather(*(self._send_email(job) for job in emails)),
            self._write_notifications(notifications),
        )
        report.emails_failed = sum(1 for ok in email_results if not ok)
        report.notifications_failed = sum(1 for ok in notifications_ok if not ok)
        return report

    async def _send_email(self, job: EmailJob) -> bool:
        try:
            await self.email_service.send_email(job.to, job.template_name, job.variables)
            return True
        except Exception as e:
            logger.warning(f"⚠️ Email '{job.template_name}' to {job.to} failed: {e}")
            return False

    async def _write_notifications(self, jobs: Sequence[NotificationJob]) -> List[bool]:
        # Sequential: each job gets its own session so one bad row cannot sink the rest
        results = []
        for job in jobs:
            try:
                async with self.session_manager.get_session() as session:
                    for row in await self._rows_for(session, job):
                        session.add(row)
                results.append(True)
            except Exception as e:
                logger.warning(f"⚠️ Notification '{job.type}' failed: {e}")
                results.append(False)
        return results

    async def _rows_for(self, session, job: NotificationJob) -> List[Notification]:
        if job.is_admin_broadcast:
            result = await session.execute(
                select(RegisteredUser.id).where(
                    RegisteredUser.role == UserRole.admin,
                    RegisteredUser.is_active == True
                )
            )
            user_ids = list(result.scalars().all())
            if not user_ids:
                logger.info(f"No active admins to notify for '{job.type}'")
        else:
            user_ids = [job.user_id]

        return [
            Notification(
                user_id=user_id,
                recipient_email=job.recipient_email,
                user_type=job.user_type,
                type=job.type,
                title=job.title,
                message=job.message,
                category=NotificationCategory(job.category).value,
                priority=NotificationPriority(job.priority).value,
                meta=job.metadata,
                action_url=job.action_url,
                action_text=job.action_text,
            )
            for user_id in user_ids
        ]
