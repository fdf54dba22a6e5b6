"""Security utilities for hashing passwords, handling JWT tokens and resolving the caller."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants.constants import MIN_PASSWORD_LENGTH, UserRole
from app.core.config import Settings
from app.core.database import aget_db
from app.core.errors import ErrorCode, Forbidden, Unauthorized, ValidationFailed
from app.models.user import RegisteredUser

ACCESS_TOKEN_TYPE = "access"
REGISTRATION_TOKEN_TYPE = "client_registration"


def hash_password(password: str) -> str:
    """Hash a password with bcrypt. Input is truncated to bcrypt's 72 byte limit."""
    password_bytes = password.encode("utf-8")[:72]
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8")[:72], password_hash.encode("utf-8"))
    except ValueError:
        return False


def check_password_strength(password: str, field: str = "password") -> None:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
            details=[{"field": field, "message": "Password too short"}],
        )


def create_jwt_token(data: dict, settings: Settings, expires_delta: timedelta = timedelta(hours=1)) -> str:
    """
    Creates a JWT with the provided data and expiration time.

    Args:
        data (dict): The payload data to be encoded in the JWT.
        settings (Settings): Supplies the signing key and algorithm.
        expires_delta (timedelta, optional): The time until the token expires.
            Defaults to 1 hour.

    Returns:
        str: The encoded JWT string.

    Note:
        The token includes the standard `exp` and `iat` claims.
    """
    to_encode = data.copy()
    now = datetime.utcnow()
    to_encode.update({
        "exp": now + expires_delta,
        "iat": now
    })
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_jwt_token(token: str, settings: Settings) -> dict:
    """Decodes and validates a JWT token.

    Raises:
        jwt.ExpiredSignatureError: If the token is past its `exp` claim.
        jwt.InvalidTokenError: If the token is invalid or improperly formatted.
    """
    return jwt.decode(
        token,
        settings.SECRET_KEY,
        algorithms=[settings.ALGORITHM]
    )


def create_access_token(user: RegisteredUser, settings: Settings) -> str:
    """Session token issued at login and after registration."""
    return create_jwt_token(
        {
            "sub": user.id,
            "email": user.email,
            "role": UserRole(user.role).value,
            "full_name": user.full_name,
            "type": ACCESS_TOKEN_TYPE,
        },
        settings,
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


@dataclass
class CurrentUser:
    """Identity resolved from the bearer credential."""

    id: str
    email: str
    role: UserRole
    full_name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(aget_db),
    settings: Settings = Depends(get_settings),
) -> CurrentUser:
    """
    Dependency to get the authenticated user from the bearer token
    Raises 401 if not authenticated
    """
    token = _bearer_token(request)
    if not token:
        raise Unauthorized("Authentication required")

    try:
        payload = decode_jwt_token(token, settings)
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token expired", code=ErrorCode.TOKEN_EXPIRED)
    except jwt.InvalidTokenError:
        raise Unauthorized("Invalid token", code=ErrorCode.INVALID_TOKEN)

    if payload.get("type") != ACCESS_TOKEN_TYPE or not payload.get("sub"):
        raise Unauthorized("Invalid token", code=ErrorCode.INVALID_TOKEN)

    result = await db.execute(
        select(RegisteredUser).where(RegisteredUser.id == payload["sub"])
    )
    user = result.scalar_one_or_none()

    if not user or not user.is_active:
        raise Unauthorized("User not found or inactive")

    return CurrentUser(
        id=user.id,
        email=user.email,
        role=UserRole(user.role),
        full_name=user.full_name,
    )


async def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if current_user.role != UserRole.admin:
        raise Forbidden("Admin access required", code=ErrorCode.FORBIDDEN)
    return current_user


async def require_client(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if current_user.role != UserRole.client:
        raise Forbidden("Client access required", code=ErrorCode.FORBIDDEN)
    return current_user
