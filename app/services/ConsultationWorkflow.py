"""Consultation request lifecycle: public submission, gatekeeper actions and the sales pipeline."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants.constants import (
    DEFAULT_MEETING_LINK_COPY,
    AdminStatus,
    ConsultationStatus,
    NotificationCategory,
    NotificationPriority,
    PipelineStatus,
)
from app.core.config import Settings
from app.core.errors import NotFound
from app.core.security import CurrentUser
from app.models.consultation import ConsultationRequest
from app.models.user import RegisteredUser
from app.services.RegistrationService import RegistrationService
from app.services.SchedulingNegotiation import NegotiationProfile, SchedulingNegotiation
from app.services.SideEffects import DispatchReport, EmailJob, NotificationJob, SideEffectDispatcher
from app.utils.lifecycle.transitions import CONSULTATION_TRANSITIONS, GATEKEEPER_TRANSITIONS

logger = logging.getLogger(__name__)

CONSULTATION_NEGOTIATION = SchedulingNegotiation(
    NegotiationProfile(
        "consultation request", GATEKEEPER_TRANSITIONS, min_slots=1, state_field="admin_status"
    )
)

SORTABLE_FIELDS = {"created_at", "updated_at", "full_name", "status", "admin_status"}

REJECTION_ALTERNATIVES = (
    "In the meantime, our free resume checklist and interview preparation guides "
    "are available on our website, and you are welcome to reach out again in the future."
)


def format_slot_date(moment: datetime) -> str:
    return moment.strftime("%A, %B %d, %Y")


def format_slot_time(moment: datetime) -> str:
    return moment.strftime("%H:%M")


class ConsultationWorkflow:
    def __init__(self, db: AsyncSession, dispatcher: SideEffectDispatcher, settings: Settings):
        self.db = db
        self.dispatcher = dispatcher
        self.settings = settings
        self.negotiation = CONSULTATION_NEGOTIATION
        self.registration = RegistrationService(db, dispatcher, settings)

    # ------------------------------
    # Reads
    # ------------------------------
    async def get(self, consultation_id: str) -> ConsultationRequest:
        consultation = await self.db.get(ConsultationRequest, consultation_id)
        if consultation is None:
            raise NotFound("Consultation request not found")
        return consultation

    async def list(
        self,
        status: Optional[ConsultationStatus] = None,
        admin_status: Optional[AdminStatus] = None,
        limit: int = 50,
        offset: int = 0,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Tuple[List[ConsultationRequest], int]:
        query = select(ConsultationRequest)
        count_query = select(func.count(ConsultationRequest.id))
        if status:
            query = query.where(ConsultationRequest.status == status)
            count_query = count_query.where(ConsultationRequest.status == status)
        if admin_status:
            query = query.where(ConsultationRequest.admin_status == admin_status)
            count_query = count_query.where(ConsultationRequest.admin_status == admin_status)

        column = getattr(ConsultationRequest, sort_by if sort_by in SORTABLE_FIELDS else "created_at")
        query = query.order_by(column.asc() if sort_order == "asc" else column.desc())

        result = await self.db.execute(query.limit(limit).offset(offset))
        total = (await self.db.execute(count_query)).scalar() or 0
        return list(result.scalars().all()), total

    async def status_counts(self) -> Dict[str, Dict[str, int]]:
        admin_rows = await self.db.execute(
            select(ConsultationRequest.admin_status, func.count(ConsultationRequest.id))
            .group_by(ConsultationRequest.admin_status)
        )
        status_rows = await self.db.execute(
            select(ConsultationRequest.status, func.count(ConsultationRequest.id))
            .group_by(ConsultationRequest.status)
        )
        admin_counts = {s.value: 0 for s in AdminStatus}
        for admin_status, count in admin_rows.all():
            admin_counts[AdminStatus(admin_status).value] = count
        status_counts = {s.value: 0 for s in ConsultationStatus}
        for status, count in status_rows.all():
            status_counts[ConsultationStatus(status).value] = count
        return {"admin_status": admin_counts, "status": status_counts}

    async def _client_user_id(self, email: str) -> Optional[str]:
        result = await self.db.execute(
            select(RegisteredUser.id).where(RegisteredUser.email == email.lower())
        )
        return result.scalar_one_or_none()

    async def _client_notification(self, consultation: ConsultationRequest, **kwargs) -> NotificationJob:
        return NotificationJob(
            user_id=await self._client_user_id(consultation.email),
            recipient_email=consultation.email,
            category=NotificationCategory.consultation,
            metadata={"consultation_id": consultation.id},
            **kwargs,
        )

    async def _commit(self, consultation: ConsultationRequest) -> None:
        await self.db.commit()
        logger.info(
            f"Consultation {consultation.id} now status={consultation.status} "
            f"admin_status={consultation.admin_status}"
        )

    # ------------------------------
    # Public
    # ------------------------------
    async def submit(
        self,
        full_name: str,
        email: str,
        preferred_slots: Sequence,
        phone: Optional[str] = None,
        message: Optional[str] = None,
    ) -> Tuple[ConsultationRequest, DispatchReport]:
        slots = self.negotiation.validate_slots(preferred_slots)
        consultation = ConsultationRequest(
            full_name=full_name.strip(),
            email=email.lower(),
            phone=phone,
            message=message,
            preferred_slots=slots,
            status=ConsultationStatus.pending,
            admin_status=AdminStatus.pending,
            pipeline_status=PipelineStatus.lead,
        )
        self.db.add(consultation)
        await self.db.flush()
        await self._commit(consultation)

        report = await self.dispatcher.dispatch(
            emails=[
                EmailJob(consultation.email, "consultation_request_received", {
                    "client_name": consultation.full_name,
                    "request_id": consultation.id,
                    "preferred_slots": self._slot_lines(slots),
                    "message": message,
                }),
                EmailJob(self.settings.ADMIN_NOTIFICATION_EMAIL, "new_consultation_request", {
                    "client_name": consultation.full_name,
                    "client_email": consultation.email,
                    "client_phone": phone,
                    "message": message,
                    "preferred_slots": self._slot_lines(slots),
                    "admin_dashboard_url": self.settings.build_url(f"/admin/consultations/{consultation.id}"),
                }),
            ],
            notifications=[NotificationJob.for_admins(
                type="new_consultation_request",
                title="New consultation request",
                message=f"{consultation.full_name} requested a consultation.",
                category=NotificationCategory.consultation,
                priority=NotificationPriority.high,
                metadata={"consultation_id": consultation.id},
                action_url=f"/admin/consultations/{consultation.id}",
                action_text="Review request",
            )],
        )
        return consultation, report

    async def submit_new_times(
        self,
        consultation_id: str,
        preferred_slots: Sequence,
        client_message: Optional[str] = None,
    ) -> Tuple[ConsultationRequest, DispatchReport]:
        consultation = await self.get(consultation_id)
        status = CONSULTATION_TRANSITIONS.next_state(consultation.status, "submit_new_times")
        slots = self.negotiation.submit_new_times(consultation, preferred_slots)
        consultation.status = status
        if client_message:
            consultation.message = client_message
        await self._commit(consultation)

        report = await self.dispatcher.dispatch(
            emails=[
                EmailJob(consultation.email, "new_times_received", {
                    "client_name": consultation.full_name,
                    "preferred_slots": self._slot_lines(slots),
                }),
                EmailJob(self.settings.ADMIN_NOTIFICATION_EMAIL, "new_times_submitted_admin", {
                    "client_name": consultation.full_name,
                    "client_email": consultation.email,
                    "preferred_slots": self._slot_lines(slots),
                    "client_message": client_message,
                    "admin_dashboard_url": self.settings.build_url(f"/admin/consultations/{consultation.id}"),
                }),
            ],
            notifications=[NotificationJob.for_admins(
                type="consultation_new_times_submitted",
                title="New consultation times submitted",
                message=f"{consultation.full_name} submitted new availability.",
                category=NotificationCategory.consultation,
                metadata={"consultation_id": consultation.id},
                action_url=f"/admin/consultations/{consultation.id}",
                action_text="Review times",
            )],
        )
        return consultation, report

    # ------------------------------
    # Gatekeeper actions
    # ------------------------------
    async def confirm(
        self,
        consultation_id: str,
        admin: CurrentUser,
        selected_slot_index: int,
        meeting_link: Optional[str] = None,
        admin_notes: Optional[str] = None,
    ) -> Tuple[ConsultationRequest, DispatchReport]:
        consultation = await self.get(consultation_id)
        status = CONSULTATION_TRANSITIONS.next_state(consultation.status, "confirm")
        self.negotiation.confirm(consultation, selected_slot_index, admin.id, meeting_link, admin_notes)
        consultation.status = status
        await self._commit(consultation)

        admin_name = admin.full_name or "Apply Bureau Team"
        confirmed_date = format_slot_date(consultation.confirmed_time)
        confirmed_time = format_slot_time(consultation.confirmed_time)
        report = await self.dispatcher.dispatch(
            emails=[EmailJob(consultation.email, "consultation_confirmed", {
                "client_name": consultation.full_name,
                "confirmed_date": confirmed_date,
                "confirmed_time": confirmed_time,
                "meeting_link": consultation.meeting_link or DEFAULT_MEETING_LINK_COPY,
                "has_meeting_link": bool(consultation.meeting_link),
                "admin_name": admin_name,
                "next_steps": "Please join the meeting at the scheduled time. If you need to reschedule, reply to this email.",
            })],
            notifications=[await self._client_notification(
                consultation,
                type="consultation_confirmed",
                title="Consultation confirmed",
                message=f"Your consultation has been confirmed by {admin_name} for {confirmed_date} at {confirmed_time}.",
                priority=NotificationPriority.high,
                action_url=consultation.meeting_link,
                action_text="Join meeting" if consultation.meeting_link else None,
            )],
        )
        return consultation, report

    async def reschedule(
        self,
        consultation_id: str,
        admin: CurrentUser,
        reschedule_reason: Optional[str],
        admin_notes: Optional[str] = None,
    ) -> Tuple[ConsultationRequest, DispatchReport]:
        consultation = await self.get(consultation_id)
        status = CONSULTATION_TRANSITIONS.next_state(consultation.status, "reschedule")
        reason = self.negotiation.request_new_times(consultation, reschedule_reason, admin.id, admin_notes)
        consultation.status = status
        await self._commit(consultation)

        new_times_url = self.settings.build_url(f"/consultation/new-times/{consultation.id}")
        admin_name = admin.full_name or "Apply Bureau Team"
        report = await self.dispatcher.dispatch(
            emails=[EmailJob(consultation.email, "consultation_reschedule_request", {
                "client_name": consultation.full_name,
                "reschedule_reason": reason,
                "admin_name": admin_name,
                "new_times_url": new_times_url,
            })],
            notifications=[await self._client_notification(
                consultation,
                type="consultation_rescheduled",
                title="New consultation times needed",
                message=f"Your consultation needs new times, requested by {admin_name}: {reason}",
                priority=NotificationPriority.high,
                action_url=new_times_url,
                action_text="Submit new times",
            )],
        )
        return consultation, report

    async def waitlist(
        self,
        consultation_id: str,
        admin: CurrentUser,
        waitlist_reason: Optional[str],
        admin_notes: Optional[str] = None,
    ) -> Tuple[ConsultationRequest, DispatchReport]:
        consultation = await self.get(consultation_id)
        status = CONSULTATION_TRANSITIONS.next_state(consultation.status, "waitlist")
        reason = self.negotiation.waitlist(consultation, waitlist_reason, admin.id, admin_notes)
        consultation.status = status
        await self._commit(consultation)

        admin_name = admin.full_name or "Apply Bureau Team"
        report = await self.dispatcher.dispatch(
            emails=[EmailJob(consultation.email, "consultation_waitlisted", {
                "client_name": consultation.full_name,
                "waitlist_reason": reason,
                "admin_name": admin_name,
            })],
            notifications=[await self._client_notification(
                consultation,
                type="consultation_waitlisted",
                title="Consultation waitlisted",
                message=f"Your consultation has been added to the waitlist by {admin_name}.",
                priority=NotificationPriority.medium,
            )],
        )
        return consultation, report

    # ------------------------------
    # Pipeline actions
    # ------------------------------
    async def mark_under_review(
        self,
        consultation_id: str,
        admin: CurrentUser,
        admin_notes: Optional[str] = None,
    ) -> ConsultationRequest:
        consultation = await self.get(consultation_id)
        consultation.status = CONSULTATION_TRANSITIONS.next_state(consultation.status, "mark_under_review")
        consultation.pipeline_status = PipelineStatus.under_review
        consultation.reviewed_by = admin.id
        consultation.reviewed_at = datetime.utcnow()
        if admin_notes:
            consultation.admin_notes = admin_notes
        await self._commit(consultation)
        return consultation

    async def mark_scheduled(self, consultation_id: str, admin: CurrentUser) -> ConsultationRequest:
        consultation = await self.get(consultation_id)
        consultation.status = CONSULTATION_TRANSITIONS.next_state(consultation.status, "schedule")
        consultation.scheduled_at = datetime.utcnow()
        await self._commit(consultation)
        return consultation

    async def approve(
        self,
        consultation_id: str,
        admin: CurrentUser,
        admin_notes: Optional[str] = None,
    ) -> Tuple[ConsultationRequest, DispatchReport]:
        consultation = await self.get(consultation_id)
        consultation.status = CONSULTATION_TRANSITIONS.next_state(consultation.status, "approve")
        consultation.pipeline_status = PipelineStatus.approved
        consultation.approved_by = admin.id
        consultation.approved_at = datetime.utcnow()
        if admin_notes:
            consultation.admin_notes = admin_notes
        token, user = await self.registration.issue_for_consultation(consultation)
        await self._commit(consultation)

        report = await self.dispatcher.dispatch(
            emails=[EmailJob(consultation.email, "consultation_approved", {
                "client_name": consultation.full_name,
                "registration_url": self.registration.registration_url(token),
                "token_expiry_days": self.settings.REGISTRATION_TOKEN_EXPIRE_DAYS,
                "admin_name": admin.full_name,
            })],
            notifications=[NotificationJob(
                type="consultation_approved",
                title="Consultation approved",
                message="Your consultation request has been approved. Check your email to create your account.",
                user_id=user.id,
                recipient_email=user.email,
                category=NotificationCategory.consultation,
                priority=NotificationPriority.high,
                metadata={"consultation_id": consultation.id},
            )],
        )
        return consultation, report

    async def reject(
        self,
        consultation_id: str,
        admin: CurrentUser,
        rejection_reason: Optional[str] = None,
    ) -> Tuple[ConsultationRequest, DispatchReport]:
        consultation = await self.get(consultation_id)
        consultation.status = CONSULTATION_TRANSITIONS.next_state(consultation.status, "reject")
        consultation.pipeline_status = PipelineStatus.rejected
        consultation.rejected_by = admin.id
        consultation.rejected_at = datetime.utcnow()
        consultation.rejection_reason = rejection_reason
        await self._commit(consultation)

        report = await self.dispatcher.dispatch(
            emails=[EmailJob(consultation.email, "consultation_rejected", {
                "client_name": consultation.full_name,
                "rejection_reason": rejection_reason,
                "alternative_options": REJECTION_ALTERNATIVES,
            })],
            notifications=[await self._client_notification(
                consultation,
                type="consultation_rejected",
                title="Consultation update",
                message="We are unable to move forward with your consultation request at this time.",
                priority=NotificationPriority.medium,
            )],
        )
        return consultation, report

    async def verify_payment(
        self,
        consultation_id: str,
        admin: CurrentUser,
        payment_amount: Decimal,
        payment_method: Optional[str] = None,
        payment_reference: Optional[str] = None,
        package_tier: Optional[int] = None,
        admin_notes: Optional[str] = None,
    ) -> Tuple[ConsultationRequest, DispatchReport]:
        """Record payment and (re)issue the registration token that payment unlocks."""
        consultation = await self.get(consultation_id)
        consultation.status = CONSULTATION_TRANSITIONS.next_state(consultation.status, "verify_payment")
        consultation.pipeline_status = PipelineStatus.approved
        consultation.payment_amount = payment_amount
        consultation.payment_method = payment_method
        consultation.payment_reference = payment_reference
        consultation.package_tier = package_tier
        consultation.payment_verified_by = admin.id
        consultation.payment_verified_at = datetime.utcnow()
        if admin_notes:
            consultation.admin_notes = admin_notes
        token, user = await self.registration.issue_for_consultation(
            consultation, payment_confirmed=True, package_tier=package_tier
        )
        await self._commit(consultation)

        registration_url = self.registration.registration_url(token)
        report = await self.dispatcher.dispatch(
            emails=[EmailJob(consultation.email, "payment_verified_registration", {
                "client_name": consultation.full_name,
                "payment_amount": str(payment_amount),
                "payment_method": payment_method,
                "package_tier": package_tier,
                "registration_url": registration_url,
                "token_expiry_days": self.settings.REGISTRATION_TOKEN_EXPIRE_DAYS,
            })],
            notifications=[
                NotificationJob(
                    type="payment_confirmed",
                    title="Payment confirmed",
                    message="Your payment has been confirmed. Use the link in your email to create your account.",
                    user_id=user.id,
                    recipient_email=user.email,
                    category=NotificationCategory.registration,
                    priority=NotificationPriority.high,
                    metadata={"consultation_id": consultation.id},
                ),
                NotificationJob.for_admins(
                    type="payment_verified",
                    title="Payment verified",
                    message=f"Payment of {payment_amount} verified for {consultation.full_name}.",
                    category=NotificationCategory.registration,
                    metadata={"consultation_id": consultation.id},
                ),
            ],
        )
        return consultation, report

    async def update_notes(self, consultation_id: str, admin_notes: str) -> ConsultationRequest:
        consultation = await self.get(consultation_id)
        consultation.admin_notes = admin_notes
        await self._commit(consultation)
        return consultation

    @staticmethod
    def _slot_lines(slots: Sequence[Dict[str, str]]) -> List[str]:
        return [f"{slot['date']} at {slot['time']}" for slot in slots]
