"""Admin endpoints for client accounts and the dashboard summary."""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants.constants import (
    ApplicationStatus,
    ConsultationStatus,
    MeetingStatus,
    OnboardingExecutionStatus,
    UserRole,
)
from app.core.database import aget_db
from app.core.dependencies import get_profile_service
from app.core.security import CurrentUser, require_admin
from app.models.application import Application
from app.models.consultation import ConsultationRequest
from app.models.onboarding import OnboardingRecord
from app.models.strategycall import StrategyCall
from app.models.user import RegisteredUser
from app.schemas.userSchema import UnlockProfileRequest, UserOut
from app.services.ProfileService import ProfileService
from app.utils.responses import paginated_response, success_response, with_report

router = APIRouter(
    prefix="/admin",
    tags=["admin"]
)


@router.get("/clients")
async def list_clients(
    search: Optional[str] = None,
    profile_unlocked: Optional[bool] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(aget_db),
):
    query = select(RegisteredUser).where(RegisteredUser.role == UserRole.client)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            RegisteredUser.full_name.ilike(pattern),
            RegisteredUser.email.ilike(pattern)
        ))
    if profile_unlocked is not None:
        query = query.where(RegisteredUser.profile_unlocked == profile_unlocked)

    total = (await db.execute(
        select(func.count()).select_from(query.subquery())
    )).scalar() or 0
    result = await db.execute(
        query.order_by(RegisteredUser.created_at.desc()).limit(limit).offset(offset)
    )
    clients = [UserOut.model_validate(u).model_dump(mode="json") for u in result.scalars().all()]
    return paginated_response("Clients retrieved", clients, total, limit, offset)


@router.get("/clients/{client_id}")
async def get_client(
    client_id: str,
    admin: CurrentUser = Depends(require_admin),
    profiles: ProfileService = Depends(get_profile_service),
):
    user = await profiles.get_client(client_id)
    return success_response("Client retrieved", UserOut.model_validate(user).model_dump(mode="json"))


@router.post("/clients/{client_id}/unlock")
async def unlock_client_profile(
    client_id: str,
    payload: UnlockProfileRequest,
    admin: CurrentUser = Depends(require_admin),
    profiles: ProfileService = Depends(get_profile_service),
):
    """Unlock the Application Tracker for a client who finished onboarding."""
    user, report = await profiles.unlock(client_id, admin, payload.admin_notes)
    return with_report(
        success_response(
            "Profile unlocked",
            {
                "client_id": user.id,
                "profile_unlock_date": user.profile_unlock_date.isoformat(),
                "profile_unlocked_by": user.profile_unlocked_by,
            },
            profile_unlocked=True,
        ),
        report,
    )


async def _count(db: AsyncSession, column, *criteria) -> int:
    query = select(func.count(column))
    if criteria:
        query = query.where(*criteria)
    return (await db.execute(query)).scalar() or 0


@router.get("/dashboard/stats")
async def get_dashboard_stats(
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(aget_db),
):
    """Headline counts for the admin dashboard."""
    return success_response("Dashboard stats", {
        "clients": {
            "total": await _count(db, RegisteredUser.id, RegisteredUser.role == UserRole.client),
            "active": await _count(
                db, RegisteredUser.id,
                RegisteredUser.role == UserRole.client, RegisteredUser.is_active == True
            ),
            "profile_unlocked": await _count(
                db, RegisteredUser.id,
                RegisteredUser.role == UserRole.client, RegisteredUser.profile_unlocked == True
            ),
        },
        "consultations": {
            "pending": await _count(
                db, ConsultationRequest.id, ConsultationRequest.status == ConsultationStatus.pending
            ),
            "confirmed": await _count(
                db, ConsultationRequest.id, ConsultationRequest.status == ConsultationStatus.confirmed
            ),
            "total": await _count(db, ConsultationRequest.id),
        },
        "onboarding_pending_approval": await _count(
            db, OnboardingRecord.id,
            OnboardingRecord.execution_status == OnboardingExecutionStatus.pending_approval
        ),
        "strategy_calls_pending": await _count(
            db, StrategyCall.id, StrategyCall.status == MeetingStatus.pending_confirmation
        ),
        "applications": {
            "total": await _count(db, Application.id),
            "interviews": await _count(db, Application.id, Application.status == ApplicationStatus.interview),
            "offers": await _count(db, Application.id, Application.status == ApplicationStatus.offer),
        },
    })
