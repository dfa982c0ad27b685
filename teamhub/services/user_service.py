"""
User service layer for user account database operations.
"""

from typing import Optional, Dict
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from teamhub.database.models import Player, User, Role
import logging

logger = logging.getLogger(__name__)


async def create_user(
    session: AsyncSession,
    email: str,
    password_hash: str,
    name: str,
    role: Role = Role.PARENT,
    player_id: Optional[int] = None,
    phone: Optional[str] = None,
) -> Dict:
    """
    Create a new user account.

    Args:
        session: Database session
        email: Normalized (lowercase) email address
        password_hash: Hashed password
        name: Display name
        role: User role
        player_id: Optional linked player
        phone: Optional phone number

    Returns:
        User dictionary of the created user

    Raises:
        IntegrityError: If the email is already registered
    """
    new_user = User(
        email=email,
        password_hash=password_hash,
        name=name,
        role=Role(role).value,
        player_id=player_id,
        phone=phone,
    )
    session.add(new_user)
    await session.flush()
    await session.commit()
    await session.refresh(new_user)

    return _user_to_dict(new_user)


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[Dict]:
    """
    Get user by email address.

    Args:
        session: Database session
        email: Email address (will be normalized to lowercase)

    Returns:
        User dictionary or None if not found
    """
    # Normalize email to lowercase for consistent lookup
    email = email.strip().lower() if email else None
    if not email:
        return None

    result = await session.execute(
        select(User).where(func.lower(User.email) == email).limit(1)
    )
    user = result.scalar_one_or_none()
    return _user_to_dict(user) if user else None


async def get_user_by_id(session: AsyncSession, user_id: int) -> Optional[Dict]:
    """
    Get user by ID.

    Args:
        session: Database session
        user_id: User ID

    Returns:
        User dictionary or None if not found
    """
    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    return _user_to_dict(user) if user else None


async def player_exists(session: AsyncSession, player_id: int) -> bool:
    """Check that a roster entry exists before linking an account to it."""
    result = await session.execute(select(Player.id).where(Player.id == player_id))
    return result.scalar_one_or_none() is not None


async def count_users(session: AsyncSession) -> int:
    result = await session.execute(select(func.count(User.id)))
    return result.scalar_one()


def _user_to_dict(user: User) -> Dict:
    """
    Convert a User ORM instance to a dictionary.

    Args:
        user: User ORM instance

    Returns:
        User dictionary (includes password_hash; never return it to clients)
    """
    return {
        "id": user.id,
        "email": user.email,
        "password_hash": user.password_hash,
        "name": user.name,
        "role": user.role,
        "player_id": user.player_id,
        "phone": user.phone,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }
