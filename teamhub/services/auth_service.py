"""
Authentication service: password hashing, JWT tokens, registration and login.
"""

import os
import re
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Dict, Any

import bcrypt
from jose import jwt, JWTError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from teamhub.database.models import Role
from teamhub.services import user_service
from teamhub.services.errors import AuthError, ConflictError, ForbiddenError, ValidationError
from teamhub.utils.constants import ACCESS_TOKEN_EXPIRATION_DAYS, MIN_PASSWORD_LENGTH
from teamhub.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "teamhub-dev-secret-change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Same message for unknown email and wrong password
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
TRAINER_REQUIRED_MESSAGE = "Trainer access required"


@dataclass(frozen=True)
class Identity:
    """Caller identity carried in the access token."""

    id: int
    email: str
    role: Role
    name: str


def hash_password(password: str) -> str:
    """Hash a password with a per-password bcrypt salt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plaintext password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT access token.

    Args:
        data: Claims to include (user_id, email, role, name)
        expires_delta: Validity window, defaults to ACCESS_TOKEN_EXPIRATION_DAYS

    Returns:
        Encoded JWT string
    """
    now = utcnow()
    expire = now + (expires_delta or timedelta(days=ACCESS_TOKEN_EXPIRATION_DAYS))
    payload = dict(data)
    payload.update({"exp": expire, "iat": now})
    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and validate a JWT token.

    Returns:
        Decoded payload, or None if the token is invalid or expired
    """
    try:
        return jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_email(email: str) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email.strip()) is not None


def _token_for_user(user: Dict) -> str:
    return create_access_token(
        {
            "user_id": user["id"],
            "email": user["email"],
            "role": user["role"],
            "name": user["name"],
        }
    )


def _public_user(user: Dict) -> Dict:
    return {
        "id": user["id"],
        "email": user["email"],
        "name": user["name"],
        "role": user["role"],
        "player_id": user.get("player_id"),
    }


def _validate_registration(email: str, password: str, name: str, role: str) -> None:
    errors = []
    if not validate_email(email or ""):
        errors.append({"field": "email", "message": "Invalid email address"})
    if len(password or "") < MIN_PASSWORD_LENGTH:
        errors.append(
            {
                "field": "password",
                "message": f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
            }
        )
    if not name or not name.strip():
        errors.append({"field": "name", "message": "Name is required"})
    if role not in {r.value for r in Role}:
        errors.append(
            {"field": "role", "message": f"Role must be one of: {', '.join(r.value for r in Role)}"}
        )
    if errors:
        raise ValidationError(errors)


async def register(
    session: AsyncSession,
    email: str,
    password: str,
    name: str,
    role: str,
    player_id: Optional[int] = None,
    phone: Optional[str] = None,
) -> Dict:
    """
    Register a new user and issue an access token.

    Raises:
        ValidationError: Malformed email, short password, blank name or unknown role
        ConflictError: Email already registered
        IntegrityError: Any other constraint failure (rendered as a server error)
    """
    _validate_registration(email, password, name, role)
    email = normalize_email(email)

    if player_id is not None and not await user_service.player_exists(session, player_id):
        raise ValidationError.for_field("player_id", "Player not found")

    if await user_service.get_user_by_email(session, email):
        raise ConflictError("Email is already registered")

    try:
        user = await user_service.create_user(
            session,
            email=email,
            password_hash=hash_password(password),
            name=name.strip(),
            role=Role(role),
            player_id=player_id,
            phone=phone,
        )
    except IntegrityError:
        await session.rollback()
        # Only a concurrent registration of the same email is a conflict
        if await user_service.get_user_by_email(session, email):
            raise ConflictError("Email is already registered")
        raise

    logger.info(f"Registered user {user['id']} with role {user['role']}")
    return {"token": _token_for_user(user), "user": _public_user(user)}


async def login(session: AsyncSession, email: str, password: str) -> Dict:
    """
    Authenticate by email and password.

    Raises:
        AuthError: Unknown email or wrong password (same message for both)
    """
    user = None
    if validate_email(email or ""):
        user = await user_service.get_user_by_email(session, normalize_email(email))

    if not user or not verify_password(password, user["password_hash"]):
        raise AuthError(INVALID_CREDENTIALS_MESSAGE)

    return {"token": _token_for_user(user), "user": _public_user(user)}


def identity_from_token(token: Optional[str]) -> Identity:
    """
    Verify a bearer token and return the caller identity.

    Raises:
        AuthError: No token supplied
        ForbiddenError: Token invalid, expired or missing claims
    """
    if not token:
        raise AuthError("No token provided")

    payload = verify_token(token)
    if payload is None:
        raise ForbiddenError("Invalid token")

    try:
        return Identity(
            id=int(payload["user_id"]),
            email=payload["email"],
            role=Role(payload["role"]),
            name=payload["name"],
        )
    except (KeyError, TypeError, ValueError):
        raise ForbiddenError("Invalid token")


def authorize(identity: Identity, permission: str) -> Identity:
    """
    Raise ForbiddenError unless the identity's role grants ``permission``.

    Args:
        identity: Caller identity
        permission: Name of a Role predicate, e.g. "can_manage_events"
    """
    if not getattr(identity.role, permission):
        raise ForbiddenError(TRAINER_REQUIRED_MESSAGE)
    return identity
