"""Consultation request endpoints: public submission and admin gatekeeper actions."""

from typing import Optional
from fastapi import APIRouter, Depends, Query

from app.constants.constants import AdminStatus, ConsultationStatus
from app.core.dependencies import get_consultation_workflow
from app.core.errors import ErrorCode, ValidationFailed
from app.core.security import CurrentUser, require_admin
from app.schemas.consultationSchema import (
    AdminNotesRequest,
    ConfirmConsultationRequest,
    ConsultationOut,
    ConsultationSubmit,
    ConsultationUpdate,
    NewTimesSubmit,
    RejectRequest,
    RescheduleRequest,
    VerifyPaymentRequest,
    WaitlistRequest,
)
from app.services.ConsultationWorkflow import ConsultationWorkflow
from app.utils.lifecycle.transitions import GATEKEEPER_TRANSITIONS
from app.utils.responses import paginated_response, success_response, with_report

router = APIRouter(
    prefix="/consultations",
    tags=["consultations"]
)

admin_router = APIRouter(
    prefix="/admin/consultations",
    tags=["admin consultations"]
)


def serialize(consultation) -> dict:
    return ConsultationOut.model_validate(consultation).model_dump(mode="json")


# -----------------------------
# Public
# -----------------------------
@router.post("", status_code=201)
async def submit_consultation_request(
    payload: ConsultationSubmit,
    workflow: ConsultationWorkflow = Depends(get_consultation_workflow),
):
    """Submit a consultation request with up to three preferred time slots."""
    consultation, report = await workflow.submit(
        full_name=payload.full_name,
        email=payload.email,
        phone=payload.phone,
        message=payload.message,
        preferred_slots=payload.preferred_slots,
    )
    return with_report(
        success_response(
            "Consultation request received. We will confirm your time shortly.",
            {"request_id": consultation.id, "status": consultation.status.value},
        ),
        report,
    )


@router.post("/{consultation_id}/new-times")
async def submit_new_times(
    consultation_id: str,
    payload: NewTimesSubmit,
    workflow: ConsultationWorkflow = Depends(get_consultation_workflow),
):
    """Client resubmits availability after a reschedule or waitlist."""
    consultation, report = await workflow.submit_new_times(
        consultation_id, payload.preferred_slots, payload.client_message
    )
    return with_report(
        success_response(
            "New availability submitted",
            {"request_id": consultation.id, "status": consultation.status.value},
        ),
        report,
    )


# -----------------------------
# Admin
# -----------------------------
@admin_router.get("")
async def list_consultations(
    status: Optional[ConsultationStatus] = None,
    admin_status: Optional[AdminStatus] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    sort_by: str = "created_at",
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    admin: CurrentUser = Depends(require_admin),
    workflow: ConsultationWorkflow = Depends(get_consultation_workflow),
):
    """List consultation requests with status counts for the gatekeeper queue."""
    items, total = await workflow.list(status, admin_status, limit, offset, sort_by, sort_order)
    counts = await workflow.status_counts()
    return paginated_response(
        "Consultations retrieved",
        [serialize(c) for c in items],
        total,
        limit,
        offset,
        status_counts=counts["admin_status"],
        pipeline_counts=counts["status"],
        gatekeeper_actions=GATEKEEPER_TRANSITIONS.allowed_actions(AdminStatus.pending),
    )


@admin_router.get("/{consultation_id}")
async def get_consultation(
    consultation_id: str,
    admin: CurrentUser = Depends(require_admin),
    workflow: ConsultationWorkflow = Depends(get_consultation_workflow),
):
    consultation = await workflow.get(consultation_id)
    return success_response("Consultation retrieved", serialize(consultation))


@admin_router.patch("/{consultation_id}")
async def update_consultation(
    consultation_id: str,
    payload: ConsultationUpdate,
    admin: CurrentUser = Depends(require_admin),
    workflow: ConsultationWorkflow = Depends(get_consultation_workflow),
):
    """Update admin notes, or move the request along the pipeline."""
    report = None
    if payload.status is None:
        if payload.admin_notes is None:
            raise ValidationFailed("Nothing to update", code=ErrorCode.MISSING_REQUIRED_FIELDS)
        consultation = await workflow.update_notes(consultation_id, payload.admin_notes)
    elif payload.status == ConsultationStatus.under_review:
        consultation = await workflow.mark_under_review(consultation_id, admin, payload.admin_notes)
    elif payload.status == ConsultationStatus.approved:
        consultation, report = await workflow.approve(consultation_id, admin, payload.admin_notes)
    elif payload.status == ConsultationStatus.rejected:
        consultation, report = await workflow.reject(consultation_id, admin, payload.rejection_reason)
    elif payload.status == ConsultationStatus.scheduled:
        consultation = await workflow.mark_scheduled(consultation_id, admin)
    else:
        raise ValidationFailed(
            f"Status '{payload.status.value}' has its own endpoint",
            code=ErrorCode.INVALID_STATUS,
        )
    return with_report(success_response("Consultation updated", serialize(consultation)), report)


@admin_router.post("/{consultation_id}/confirm")
async def confirm_consultation(
    consultation_id: str,
    payload: ConfirmConsultationRequest,
    admin: CurrentUser = Depends(require_admin),
    workflow: ConsultationWorkflow = Depends(get_consultation_workflow),
):
    """Gatekeeper action: confirm one of the client's preferred slots."""
    consultation, report = await workflow.confirm(
        consultation_id,
        admin,
        payload.selected_slot_index,
        payload.meeting_link,
        payload.admin_notes,
    )
    return with_report(
        success_response("Consultation confirmed", serialize(consultation)),
        report,
    )


@admin_router.post("/{consultation_id}/reschedule")
async def reschedule_consultation(
    consultation_id: str,
    payload: RescheduleRequest,
    admin: CurrentUser = Depends(require_admin),
    workflow: ConsultationWorkflow = Depends(get_consultation_workflow),
):
    """Gatekeeper action: ask the client for new times."""
    consultation, report = await workflow.reschedule(
        consultation_id, admin, payload.reschedule_reason, payload.admin_notes
    )
    return with_report(
        success_response("Reschedule request sent to client", serialize(consultation)),
        report,
    )


@admin_router.post("/{consultation_id}/waitlist")
async def waitlist_consultation(
    consultation_id: str,
    payload: WaitlistRequest,
    admin: CurrentUser = Depends(require_admin),
    workflow: ConsultationWorkflow = Depends(get_consultation_workflow),
):
    """Gatekeeper action: add the request to the waitlist."""
    consultation, report = await workflow.waitlist(
        consultation_id, admin, payload.waitlist_reason, payload.admin_notes
    )
    return with_report(
        success_response("Consultation added to waitlist", serialize(consultation)),
        report,
    )


@admin_router.post("/{consultation_id}/under-review")
async def mark_consultation_under_review(
    consultation_id: str,
    payload: AdminNotesRequest,
    admin: CurrentUser = Depends(require_admin),
    workflow: ConsultationWorkflow = Depends(get_consultation_workflow),
):
    consultation = await workflow.mark_under_review(consultation_id, admin, payload.admin_notes)
    return success_response("Consultation marked under review", serialize(consultation))


@admin_router.post("/{consultation_id}/approve")
async def approve_consultation(
    consultation_id: str,
    payload: AdminNotesRequest,
    admin: CurrentUser = Depends(require_admin),
    workflow: ConsultationWorkflow = Depends(get_consultation_workflow),
):
    """Approve the lead and email a registration link."""
    consultation, report = await workflow.approve(consultation_id, admin, payload.admin_notes)
    return with_report(
        success_response("Consultation approved", serialize(consultation)),
        report,
    )


@admin_router.post("/{consultation_id}/reject")
async def reject_consultation(
    consultation_id: str,
    payload: RejectRequest,
    admin: CurrentUser = Depends(require_admin),
    workflow: ConsultationWorkflow = Depends(get_consultation_workflow),
):
    consultation, report = await workflow.reject(consultation_id, admin, payload.rejection_reason)
    return with_report(
        success_response("Consultation rejected", serialize(consultation)),
        report,
    )


@admin_router.post("/{consultation_id}/verify-payment")
async def verify_consultation_payment(
    consultation_id: str,
    payload: VerifyPaymentRequest,
    admin: CurrentUser = Depends(require_admin),
    workflow: ConsultationWorkflow = Depends(get_consultation_workflow),
):
    """Record payment and send the client their registration link."""
    consultation, report = await workflow.verify_payment(
        consultation_id,
        admin,
        payload.payment_amount,
        payload.payment_method,
        payload.payment_reference,
        payload.package_tier,
        payload.admin_notes,
    )
    return with_report(
        success_response(
            "Payment verified and registration link sent",
            serialize(consultation),
            registration_token_expires_at=consultation.token_expires_at.isoformat(),
        ),
        report,
    )
