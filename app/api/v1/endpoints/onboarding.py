"""Onboarding endpoints - 20-question concierge questionnaire and admin approval."""

from typing import Optional
from fastapi import APIRouter, Depends, Query

from app.constants.constants import OnboardingExecutionStatus
from app.core.dependencies import get_onboarding_service
from app.core.errors import NotFound
from app.core.security import CurrentUser, require_admin, require_client
from app.schemas.onboardingSchema import (
    ApproveOnboardingRequest,
    OnboardingOut,
    OnboardingQuestionnaire,
)
from app.services.OnboardingService import OnboardingService
from app.utils.responses import success_response, with_report

router = APIRouter(
    prefix="/client/onboarding",
    tags=["onboarding"]
)

admin_router = APIRouter(
    prefix="/admin/onboarding",
    tags=["admin onboarding"]
)


def serialize(record) -> dict:
    return OnboardingOut.model_validate(record).model_dump(mode="json")


@router.post("/questionnaire", status_code=201)
async def submit_questionnaire(
    payload: OnboardingQuestionnaire,
    current_user: CurrentUser = Depends(require_client),
    onboarding: OnboardingService = Depends(get_onboarding_service),
):
    """
    Submit the onboarding questionnaire.
    The Application Tracker stays locked until an admin approves it.
    """
    record, report = await onboarding.submit(current_user, payload)
    return with_report(
        success_response(
            "Onboarding submitted. An advisor will review it shortly.",
            serialize(record),
            requires_admin_approval=True,
            can_access_tracker=False,
        ),
        report,
    )


@router.get("/questionnaire")
async def get_questionnaire(
    current_user: CurrentUser = Depends(require_client),
    onboarding: OnboardingService = Depends(get_onboarding_service),
):
    record = await onboarding.get_record(current_user.id)
    if record is None:
        raise NotFound("Onboarding questionnaire not submitted yet")
    return success_response("Onboarding retrieved", serialize(record))


@router.get("/status")
async def get_onboarding_status(
    current_user: CurrentUser = Depends(require_client),
    onboarding: OnboardingService = Depends(get_onboarding_service),
):
    status = await onboarding.status(current_user.id)
    return success_response("Onboarding status", status)


@admin_router.get("")
async def list_onboarding_records(
    execution_status: Optional[OnboardingExecutionStatus] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    admin: CurrentUser = Depends(require_admin),
    onboarding: OnboardingService = Depends(get_onboarding_service),
):
    rows, counts = await onboarding.list(execution_status, limit, offset)
    records = []
    for record, user in rows:
        item = serialize(record)
        item["client"] = {"id": user.id, "full_name": user.full_name, "email": user.email}
        records.append(item)
    return success_response("Onboarding records retrieved", records, status_counts=counts)


@admin_router.post("/{record_id}/approve")
async def approve_onboarding(
    record_id: str,
    payload: ApproveOnboardingRequest,
    admin: CurrentUser = Depends(require_admin),
    onboarding: OnboardingService = Depends(get_onboarding_service),
):
    """Activate the onboarding record and unlock the client's Application Tracker."""
    record, user, report = await onboarding.approve(record_id, admin, payload.admin_notes)
    return with_report(
        success_response(
            "Onboarding approved and profile unlocked",
            serialize(record),
            profile_unlocked=user.profile_unlocked,
        ),
        report,
    )
