"""Strategy call endpoints: client requests with three slots, admin confirmation."""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants.constants import (
    DEFAULT_MEETING_LINK_COPY,
    MeetingStatus,
    NotificationCategory,
    NotificationPriority,
)
from app.core.config import Settings
from app.core.database import aget_db
from app.core.dependencies import get_dispatcher
from app.core.errors import BusinessRuleViolation, ErrorCode, NotFound
from app.core.security import CurrentUser, get_settings, require_admin, require_client
from app.models.strategycall import StrategyCall
from app.models.user import RegisteredUser
from app.schemas.strategyCallSchema import (
    CancelMeetingRequest,
    ConfirmStrategyCallRequest,
    RequestNewAvailability,
    StrategyCallNewTimes,
    StrategyCallOut,
    StrategyCallRequest,
)
from app.services.SchedulingNegotiation import NegotiationProfile, SchedulingNegotiation
from app.services.SideEffects import EmailJob, NotificationJob, SideEffectDispatcher
from app.utils.lifecycle.transitions import MEETING_TRANSITIONS
from app.utils.responses import paginated_response, success_response, with_report

router = APIRouter(
    prefix="/strategy-calls",
    tags=["strategy calls"]
)

admin_router = APIRouter(
    prefix="/admin/strategy-calls",
    tags=["admin strategy calls"]
)

STRATEGY_CALL_NEGOTIATION = SchedulingNegotiation(
    NegotiationProfile("strategy call", MEETING_TRANSITIONS, min_slots=3, max_slots=3)
)


def serialize(call) -> dict:
    return StrategyCallOut.model_validate(call).model_dump(mode="json")


def _slot_lines(slots) -> list:
    return [f"{slot['date']} at {slot['time']}" for slot in slots]


async def _get_call(db: AsyncSession, call_id: str, owner_id: Optional[str] = None) -> StrategyCall:
    call = await db.get(StrategyCall, call_id)
    if call is None or (owner_id and call.user_id != owner_id):
        raise NotFound("Strategy call not found")
    return call


# -----------------------------
# Client
# -----------------------------
@router.post("", status_code=201)
async def request_strategy_call(
    payload: StrategyCallRequest,
    current_user: CurrentUser = Depends(require_client),
    db: AsyncSession = Depends(aget_db),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
    settings: Settings = Depends(get_settings),
):
    """Request a strategy call by proposing exactly three time slots."""
    user = await db.get(RegisteredUser, current_user.id)
    if not user.onboarding_completed:
        raise BusinessRuleViolation(
            "Complete your onboarding before booking a strategy call",
            code=ErrorCode.ONBOARDING_NOT_COMPLETED,
        )

    slots = STRATEGY_CALL_NEGOTIATION.validate_slots(payload.preferred_slots)
    call = StrategyCall(
        user_id=user.id,
        preferred_slots=slots,
        timezone=payload.timezone,
        preparation_notes=payload.preparation_notes,
        specific_topics=payload.specific_topics,
        urgency_level=payload.urgency_level,
        status=MeetingStatus.pending_confirmation,
    )
    db.add(call)
    await db.commit()

    report = await dispatcher.dispatch(
        emails=[
            EmailJob(user.email, "strategy_call_requested", {
                "client_name": user.full_name,
                "preferred_slots": _slot_lines(slots),
                "timezone": payload.timezone,
            }),
            EmailJob(settings.ADMIN_NOTIFICATION_EMAIL, "new_strategy_call_request", {
                "client_name": user.full_name,
                "client_email": user.email,
                "preferred_slots": _slot_lines(slots),
                "specific_topics": payload.specific_topics,
                "urgency_level": payload.urgency_level,
                "preparation_notes": payload.preparation_notes,
                "admin_dashboard_url": settings.build_url(f"/admin/strategy-calls/{call.id}"),
            }),
        ],
        notifications=[NotificationJob.for_admins(
            type="new_strategy_call_request",
            title="New strategy call request",
            message=f"{user.full_name} requested a strategy call.",
            category=NotificationCategory.strategy_call,
            priority=NotificationPriority.high if payload.urgency_level in ("high", "urgent") else NotificationPriority.medium,
            metadata={"strategy_call_id": call.id, "user_id": user.id},
            action_url=f"/admin/strategy-calls/{call.id}",
            action_text="Review request",
        )],
    )
    return with_report(
        success_response("Strategy call requested. An advisor will confirm a time.", serialize(call)),
        report,
    )


@router.get("/my-calls")
async def get_my_strategy_calls(
    current_user: CurrentUser = Depends(require_client),
    db: AsyncSession = Depends(aget_db),
):
    result = await db.execute(
        select(StrategyCall)
        .where(StrategyCall.user_id == current_user.id)
        .order_by(StrategyCall.created_at.desc())
    )
    return success_response(
        "Strategy calls retrieved",
        [serialize(c) for c in result.scalars().all()],
    )


@router.post("/{call_id}/new-times")
async def submit_strategy_call_new_times(
    call_id: str,
    payload: StrategyCallNewTimes,
    current_user: CurrentUser = Depends(require_client),
    db: AsyncSession = Depends(aget_db),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
):
    call = await _get_call(db, call_id, owner_id=current_user.id)
    slots = STRATEGY_CALL_NEGOTIATION.submit_new_times(call, payload.preferred_slots)
    await db.commit()

    report = await dispatcher.dispatch(notifications=[NotificationJob.for_admins(
        type="strategy_call_new_times",
        title="Strategy call times updated",
        message=f"{current_user.full_name} proposed new times: {', '.join(_slot_lines(slots))}.",
        category=NotificationCategory.strategy_call,
        metadata={"strategy_call_id": call.id},
        action_url=f"/admin/strategy-calls/{call.id}",
        action_text="Review times",
    )])
    return with_report(success_response("New times submitted", serialize(call)), report)


# -----------------------------
# Admin
# -----------------------------
@admin_router.get("")
async def list_strategy_calls(
    status: Optional[MeetingStatus] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(aget_db),
):
    query = select(StrategyCall, RegisteredUser).join(
        RegisteredUser, StrategyCall.user_id == RegisteredUser.id
    )
    count_query = select(func.count(StrategyCall.id))
    if status:
        query = query.where(StrategyCall.status == status)
        count_query = count_query.where(StrategyCall.status == status)

    rows = (await db.execute(
        query.order_by(StrategyCall.created_at.desc()).limit(limit).offset(offset)
    )).all()
    total = (await db.execute(count_query)).scalar() or 0

    calls = []
    for call, user in rows:
        item = serialize(call)
        item["client"] = {"id": user.id, "full_name": user.full_name, "email": user.email}
        calls.append(item)
    return paginated_response("Strategy calls retrieved", calls, total, limit, offset)


@admin_router.post("/{call_id}/confirm")
async def confirm_strategy_call(
    call_id: str,
    payload: ConfirmStrategyCallRequest,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(aget_db),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
):
    """Confirm one of the three proposed slots."""
    call = await _get_call(db, call_id)
    STRATEGY_CALL_NEGOTIATION.confirm(
        call, payload.selected_slot_index, admin.id, payload.meeting_link, payload.admin_notes
    )
    await db.commit()

    user = await db.get(RegisteredUser, call.user_id)
    confirmed_date = call.confirmed_time.strftime("%A, %B %d, %Y")
    confirmed_time = call.confirmed_time.strftime("%H:%M")
    report = await dispatcher.dispatch(
        emails=[EmailJob(user.email, "strategy_call_confirmed", {
            "client_name": user.full_name,
            "confirmed_date": confirmed_date,
            "confirmed_time": confirmed_time,
            "timezone": call.timezone,
            "meeting_link": call.meeting_link or DEFAULT_MEETING_LINK_COPY,
            "has_meeting_link": bool(call.meeting_link),
            "admin_name": admin.full_name,
        })],
        notifications=[NotificationJob(
            type="strategy_call_confirmed",
            title="Strategy call confirmed",
            message=f"Your strategy call is confirmed for {confirmed_date} at {confirmed_time}.",
            user_id=user.id,
            recipient_email=user.email,
            category=NotificationCategory.strategy_call,
            priority=NotificationPriority.high,
            metadata={"strategy_call_id": call.id},
            action_url=call.meeting_link,
            action_text="Join meeting" if call.meeting_link else None,
        )],
    )
    return with_report(success_response("Strategy call confirmed", serialize(call)), report)


@admin_router.post("/{call_id}/request-new-availability")
async def request_new_strategy_call_times(
    call_id: str,
    payload: RequestNewAvailability,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(aget_db),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
    settings: Settings = Depends(get_settings),
):
    call = await _get_call(db, call_id)
    reason = STRATEGY_CALL_NEGOTIATION.request_new_times(call, payload.reason, admin.id, payload.admin_notes)
    await db.commit()

    user = await db.get(RegisteredUser, call.user_id)
    new_times_url = settings.build_url(f"/dashboard/strategy-calls/{call.id}/new-times")
    report = await dispatcher.dispatch(
        emails=[EmailJob(user.email, "request_new_strategy_call_times", {
            "client_name": user.full_name,
            "reason": reason,
            "new_times_url": new_times_url,
            "admin_name": admin.full_name,
        })],
        notifications=[NotificationJob(
            type="strategy_call_new_times_requested",
            title="Please propose new times",
            message=f"Your advisor asked for new strategy call times: {reason}",
            user_id=user.id,
            recipient_email=user.email,
            category=NotificationCategory.strategy_call,
            priority=NotificationPriority.high,
            metadata={"strategy_call_id": call.id},
            action_url=new_times_url,
            action_text="Submit new times",
        )],
    )
    return with_report(success_response("New availability requested", serialize(call)), report)


@admin_router.post("/{call_id}/complete")
async def complete_strategy_call(
    call_id: str,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(aget_db),
):
    call = await _get_call(db, call_id)
    STRATEGY_CALL_NEGOTIATION.complete(call)
    await db.commit()
    return success_response("Strategy call completed", serialize(call))


@admin_router.post("/{call_id}/cancel")
async def cancel_strategy_call(
    call_id: str,
    payload: CancelMeetingRequest,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(aget_db),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
):
    call = await _get_call(db, call_id)
    STRATEGY_CALL_NEGOTIATION.cancel(call, payload.reason)
    await db.commit()

    report = await dispatcher.dispatch(notifications=[NotificationJob(
        type="strategy_call_cancelled",
        title="Strategy call cancelled",
        message=payload.reason or "Your strategy call has been cancelled.",
        user_id=call.user_id,
        category=NotificationCategory.strategy_call,
        metadata={"strategy_call_id": call.id},
    )])
    return with_report(success_response("Strategy call cancelled", serialize(call)), report)
