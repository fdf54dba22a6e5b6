"""
Registration tokens: issue after approval or payment, redeem once.

The token is signed and time-boxed. The copy stored on the client account is
authoritative: re-issuing replaces it, which turns every older token into a
mismatch even though its signature is still valid.
"""
import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional, Tuple

import jwt
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants.constants import (
    ConsultationStatus,
    NotificationCategory,
    NotificationPriority,
    PipelineStatus,
    UserRole,
)
from app.core.config import Settings
from app.core.errors import (
    BusinessRuleViolation,
    ErrorCode,
    NotFound,
    ValidationFailed,
)
from app.core.security import (
    REGISTRATION_TOKEN_TYPE,
    check_password_strength,
    create_access_token,
    create_jwt_token,
    decode_jwt_token,
    hash_password,
)
from app.models.consultation import ConsultationRequest
from app.models.user import RegisteredUser
from app.services.SideEffects import DispatchReport, EmailJob, NotificationJob, SideEffectDispatcher
from app.utils.lifecycle.transitions import CONSULTATION_TRANSITIONS

logger = logging.getLogger(__name__)


class RegistrationService:
    def __init__(self, db: AsyncSession, dispatcher: SideEffectDispatcher, settings: Settings):
        self.db = db
        self.dispatcher = dispatcher
        self.settings = settings

    def registration_url(self, token: str) -> str:
        return self.settings.build_url(f"/register?token={token}")

    async def _user_by_email(self, email: str) -> Optional[RegisteredUser]:
        result = await self.db.execute(
            select(RegisteredUser).where(RegisteredUser.email == email.lower())
        )
        return result.scalar_one_or_none()

    async def issue_for_consultation(
        self,
        consultation: ConsultationRequest,
        payment_confirmed: bool = False,
        package_tier: Optional[int] = None,
    ) -> Tuple[str, RegisteredUser]:
        """
        Sign a fresh registration token and store it on the client account,
        creating the pending (inactive) account on first issue. The caller commits.
        """
        user = await self._user_by_email(consultation.email)
        if user and (user.role == UserRole.admin or user.token_used):
            raise BusinessRuleViolation(
                "An account already exists for this email",
                code=ErrorCode.ALREADY_EXISTS,
                status_code=409,
            )
        if user is None:
            user = RegisteredUser(
                email=consultation.email.lower(),
                full_name=consultation.full_name,
                phone=consultation.phone,
                role=UserRole.client,
                is_active=False,
            )
            self.db.add(user)

        now = datetime.utcnow()
        lifetime = timedelta(days=self.settings.REGISTRATION_TOKEN_EXPIRE_DAYS)
        token = create_jwt_token(
            {
                "consultation_id": consultation.id,
                "email": user.email,
                "full_name": consultation.full_name,
                "type": REGISTRATION_TOKEN_TYPE,
                "package_tier": package_tier,
                "jti": uuid.uuid4().hex,
            },
            self.settings,
            expires_delta=lifetime,
        )

        user.registration_token = token
        user.token_expires_at = now + lifetime
        user.token_used = False
        user.consultation_id = consultation.id
        if package_tier:
            user.package_tier = package_tier
        if payment_confirmed:
            user.payment_confirmed = True
            user.payment_confirmed_at = now

        consultation.registration_token = token
        consultation.token_expires_at = user.token_expires_at
        consultation.token_used = False

        logger.info(f"🔑 Registration token issued for consultation {consultation.id}")
        return token, user

    async def check_token(self, token: str) -> Tuple[dict, RegisteredUser]:
        """Run the redemption guard chain. Each failure has its own code."""
        try:
            payload = decode_jwt_token(token, self.settings)
        except jwt.ExpiredSignatureError:
            raise BusinessRuleViolation("Token expired", code=ErrorCode.TOKEN_EXPIRED)
        except jwt.InvalidTokenError:
            raise BusinessRuleViolation("Invalid or expired token", code=ErrorCode.INVALID_TOKEN)

        if payload.get("type") != REGISTRATION_TOKEN_TYPE:
            raise BusinessRuleViolation("Invalid token type", code=ErrorCode.INVALID_TOKEN_TYPE)

        user = await self._user_by_email(payload.get("email", ""))
        if user is None:
            raise NotFound("Token not found")

        if user.registration_token != token:
            raise BusinessRuleViolation(
                "Token has been superseded by a newer one",
                code=ErrorCode.TOKEN_MISMATCH,
            )

        if user.token_used:
            raise BusinessRuleViolation(
                "Token already used",
                code=ErrorCode.TOKEN_ALREADY_USED,
                status_code=409,
            )

        if not user.payment_confirmed:
            raise BusinessRuleViolation(
                "Payment not received",
                code=ErrorCode.PAYMENT_NOT_CONFIRMED,
            )

        if user.token_expires_at is None or datetime.utcnow() > user.token_expires_at:
            raise BusinessRuleViolation("Token expired", code=ErrorCode.TOKEN_EXPIRED)

        return payload, user

    async def validate(self, token: str) -> dict:
        payload, user = await self.check_token(token)
        return {
            "valid": True,
            "email": user.email,
            "full_name": user.full_name,
            "package_tier": user.package_tier,
            "expires_at": user.token_expires_at.isoformat(),
            "consultation_id": payload.get("consultation_id"),
        }

    async def redeem(
        self,
        token: str,
        password: str,
        confirm_password: str,
        full_name: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> Tuple[RegisteredUser, str, DispatchReport]:
        """Exchange a registration token for a password and an active account."""
        if password != confirm_password:
            raise ValidationFailed(
                "Passwords do not match",
                details=[{"field": "confirm_password", "message": "Passwords do not match"}],
            )
        check_password_strength(password)

        payload, user = await self.check_token(token)
        now = datetime.utcnow()
        values = {
            "passcode_hash": hash_password(password),
            "token_used": True,
            "is_active": True,
            "last_login_at": now,
            "updated_at": now,
        }
        if full_name:
            values["full_name"] = full_name
        if phone:
            values["phone"] = phone

        # Conditional write: only one concurrent redemption can flip token_used
        result = await self.db.execute(
            update(RegisteredUser)
            .where(
                RegisteredUser.id == user.id,
                RegisteredUser.registration_token == token,
                RegisteredUser.token_used == False
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await self.db.rollback()
            raise BusinessRuleViolation(
                "Token already used",
                code=ErrorCode.TOKEN_ALREADY_USED,
                status_code=409,
            )

        await self._mark_consultation_registered(payload.get("consultation_id"), user.id, now)
        await self.db.commit()
        await self.db.refresh(user)

        access_token = create_access_token(user, self.settings)
        logger.info(f"✅ Client {user.email} registered")

        report = await self.dispatcher.dispatch(
            emails=[EmailJob(
                to=user.email,
                template_name="client_portal_welcome",
                variables={
                    "client_name": user.full_name,
                    "login_url": self.settings.build_url("/login"),
                    "onboarding_url": self.settings.build_url("/onboarding"),
                },
            )],
            notifications=[NotificationJob(
                type="registration_complete",
                title="Welcome to your client portal",
                message="Your account is active. Complete your onboarding questionnaire to get started.",
                user_id=user.id,
                recipient_email=user.email,
                category=NotificationCategory.registration,
                priority=NotificationPriority.high,
                action_url="/onboarding",
                action_text="Start onboarding",
            )],
        )
        return user, access_token, report

    async def _mark_consultation_registered(self, consultation_id: Optional[str], user_id: str, now: datetime):
        if not consultation_id:
            return
        consultation = await self.db.get(ConsultationRequest, consultation_id)
        if consultation is None:
            logger.warning(f"Consultation {consultation_id} missing while registering {user_id}")
            return
        consultation.token_used = True
        consultation.registered_user_id = user_id
        consultation.registered_at = now
        consultation.pipeline_status = PipelineStatus.client
        if CONSULTATION_TRANSITIONS.can(consultation.status, "register"):
            consultation.status = ConsultationStatus.registered
        else:
            logger.warning(
                f"Consultation {consultation_id} left in '{consultation.status}' after registration"
            )
