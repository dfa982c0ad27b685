"""
Data service layer for database operations.
Handles CRUD for the roster, events, confirmations, messages and news,
plus the team stats summary.
"""

import enum
from datetime import date
from typing import List, Dict, Optional, Any

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func, case
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from teamhub.database.models import (
    Confirmation,
    ConfirmationStatus,
    Event,
    Message,
    News,
    Player,
    PlayerStatus,
    RecipientType,
    Role,
    User,
)
from teamhub.services.errors import NotFoundError, ValidationError
from teamhub.utils import datetime_utils
from teamhub.utils.constants import NEWS_LIMIT
from teamhub.utils.datetime_utils import isoformat_or_none, utcnow
import logging

logger = logging.getLogger(__name__)

# Columns a trainer may change through a partial update
EVENT_MUTABLE_FIELDS = (
    "type",
    "title",
    "description",
    "date",
    "time",
    "end_time",
    "location",
    "opponent",
    "status",
)
PLAYER_MUTABLE_FIELDS = ("name", "number", "birth_date", "position", "status")


#
# Helper functions
#


def _plain(value: Any) -> Any:
    """Store enum members by value."""
    return value.value if isinstance(value, enum.Enum) else value


def _clean_fields(fields: Dict[str, Any], allowed) -> Dict[str, Any]:
    """Keep allow-listed keys only; raise if nothing is left to update."""
    values = {key: _plain(value) for key, value in fields.items() if key in allowed}
    if not values:
        raise ValidationError.for_field("body", "No fields to update")
    return values


def _insert_for(session: AsyncSession):
    """Dialect-specific INSERT construct (supports ON CONFLICT on both backends)."""
    if session.get_bind().dialect.name == "postgresql":
        return pg_insert
    return sqlite_insert


def _confirmed_count():
    return func.count(case((Confirmation.status == ConfirmationStatus.CONFIRMED.value, 1)))


def _declined_count():
    return func.count(case((Confirmation.status == ConfirmationStatus.DECLINED.value, 1)))


def _event_to_dict(event: Event, confirmed_count: int = 0, declined_count: int = 0) -> Dict:
    return {
        "id": event.id,
        "type": event.type,
        "title": event.title,
        "description": event.description,
        "date": isoformat_or_none(event.date),
        "time": isoformat_or_none(event.time),
        "end_time": isoformat_or_none(event.end_time),
        "location": event.location,
        "opponent": event.opponent,
        "status": event.status,
        "created_by": event.created_by,
        "created_at": isoformat_or_none(event.created_at),
        "confirmed_count": confirmed_count or 0,
        "declined_count": declined_count or 0,
    }


def _player_to_dict(player: Player) -> Dict:
    return {
        "id": player.id,
        "name": player.name,
        "number": player.number,
        "birth_date": isoformat_or_none(player.birth_date),
        "position": player.position,
        "status": player.status,
        "created_at": isoformat_or_none(player.created_at),
    }


def _confirmation_to_dict(
    confirmation: Confirmation,
    player_name: Optional[str] = None,
    player_number: Optional[int] = None,
    confirmed_by: Optional[str] = None,
) -> Dict:
    data = {
        "id": confirmation.id,
        "event_id": confirmation.event_id,
        "player_id": confirmation.player_id,
        "user_id": confirmation.user_id,
        "status": confirmation.status,
        "comment": confirmation.comment,
        "confirmed_at": isoformat_or_none(confirmation.confirmed_at),
    }
    if player_name is not None:
        data.update(
            player_name=player_name, player_number=player_number, confirmed_by=confirmed_by
        )
    return data


def _message_to_dict(message: Message, sender_name: str) -> Dict:
    return {
        "id": message.id,
        "sender_id": message.sender_id,
        "sender_name": sender_name,
        "subject": message.subject,
        "content": message.content,
        "recipient_type": message.recipient_type,
        "event_id": message.event_id,
        "created_at": isoformat_or_none(message.created_at),
    }


def _news_to_dict(news: News, author_name: str) -> Dict:
    return {
        "id": news.id,
        "title": news.title,
        "content": news.content,
        "author_id": news.author_id,
        "author_name": author_name,
        "published": bool(news.published),
        "created_at": isoformat_or_none(news.created_at),
    }


async def _require_event(session: AsyncSession, event_id: int) -> Event:
    result = await session.execute(select(Event).where(Event.id == event_id))
    event = result.scalar_one_or_none()
    if event is None:
        raise NotFoundError("Event not found")
    return event


async def _require_player(session: AsyncSession, player_id: int) -> Player:
    result = await session.execute(select(Player).where(Player.id == player_id))
    player = result.scalar_one_or_none()
    if player is None:
        raise NotFoundError("Player not found")
    return player


async def get_attendance_counts(session: AsyncSession, event_id: int) -> Dict[str, int]:
    """
    Get confirmed/declined counts for one event.

    Returns:
        Dict with confirmed and declined counts
    """
    result = await session.execute(
        select(_confirmed_count().label("confirmed"), _declined_count().label("declined")).where(
            Confirmation.event_id == event_id
        )
    )
    row = result.one()
    return {"confirmed": row.confirmed or 0, "declined": row.declined or 0}


#
# Events
#


async def list_events(session: AsyncSession) -> List[Dict]:
    """
    Get all events with their confirmation counts.

    Returns:
        List of event dicts ordered by date then start time
    """
    result = await session.execute(
        select(
            Event,
            _confirmed_count().label("confirmed_count"),
            _declined_count().label("declined_count"),
        )
        .outerjoin(Confirmation, Confirmation.event_id == Event.id)
        .group_by(Event.id)
        .order_by(Event.date.asc(), Event.time.asc())
    )
    return [
        _event_to_dict(row.Event, row.confirmed_count, row.declined_count)
        for row in result.all()
    ]


async def get_event(session: AsyncSession, event_id: int) -> Dict:
    """
    Get a single event with its confirmation counts.

    Raises:
        NotFoundError: If the event does not exist
    """
    event = await _require_event(session, event_id)
    counts = await get_attendance_counts(session, event_id)
    return _event_to_dict(event, counts["confirmed"], counts["declined"])


async def create_event(session: AsyncSession, data: Dict[str, Any], created_by: int) -> Dict:
    """
    Create an event.

    Args:
        session: Database session
        data: Event fields (type, title, description, date, time, end_time, location, opponent)
        created_by: ID of the trainer creating the event

    Returns:
        Created event dict
    """
    values = {key: _plain(value) for key, value in data.items() if key in EVENT_MUTABLE_FIELDS}
    event = Event(**values, created_by=created_by)
    session.add(event)
    await session.flush()
    await session.commit()
    await session.refresh(event)
    logger.info(f"Event {event.id} created by user {created_by}")
    return _event_to_dict(event)


async def update_event(session: AsyncSession, event_id: int, fields: Dict[str, Any]) -> None:
    """
    Apply a partial update to an event.

    Only keys in EVENT_MUTABLE_FIELDS are written.

    Raises:
        ValidationError: If no updatable field was supplied
        NotFoundError: If no event matched the id
    """
    values = _clean_fields(fields, EVENT_MUTABLE_FIELDS)
    result = await session.execute(update(Event).where(Event.id == event_id).values(**values))
    if result.rowcount == 0:
        await session.rollback()
        raise NotFoundError("Event not found")
    await session.commit()


async def delete_event(session: AsyncSession, event_id: int) -> None:
    """
    Delete an event and its confirmations.

    Messages that referenced the event are kept with the link cleared.

    Raises:
        NotFoundError: If the event did not exist
    """
    await session.execute(delete(Confirmation).where(Confirmation.event_id == event_id))
    await session.execute(
        update(Message).where(Message.event_id == event_id).values(event_id=None)
    )
    result = await session.execute(delete(Event).where(Event.id == event_id))
    if result.rowcount == 0:
        await session.rollback()
        raise NotFoundError("Event not found")
    await session.commit()
    logger.info(f"Event {event_id} deleted")


#
# Confirmations
#


async def submit_confirmation(
    session: AsyncSession,
    event_id: int,
    player_id: int,
    user_id: int,
    status: ConfirmationStatus,
    comment: Optional[str] = None,
) -> Dict:
    """
    Record an attendance response for (event, player).

    A single INSERT ... ON CONFLICT keeps at most one row per pair; a repeated
    submission overwrites status, comment and timestamp.

    Raises:
        NotFoundError: If the event or player does not exist
    """
    await _require_event(session, event_id)
    await _require_player(session, player_id)

    insert = _insert_for(session)
    stmt = insert(Confirmation).values(
        event_id=event_id,
        player_id=player_id,
        user_id=user_id,
        status=_plain(status),
        comment=comment,
        confirmed_at=utcnow(),
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["event_id", "player_id"],
        set_=dict(
            status=stmt.excluded.status,
            comment=stmt.excluded.comment,
            confirmed_at=stmt.excluded.confirmed_at,
        ),
    )
    await session.execute(stmt)
    await session.commit()

    result = await session.execute(
        select(Confirmation).where(
            Confirmation.event_id == event_id, Confirmation.player_id == player_id
        )
    )
    confirmation = result.scalar_one()
    # Upsert bypasses the identity map; reload the row if it was cached
    await session.refresh(confirmation)
    return _confirmation_to_dict(confirmation)


async def list_confirmations(session: AsyncSession, event_id: int) -> List[Dict]:
    """
    Get confirmations for an event with player and responder names.

    Returns:
        List of confirmation dicts ordered by player name
    """
    result = await session.execute(
        select(
            Confirmation,
            Player.name.label("player_name"),
            Player.number.label("player_number"),
            User.name.label("confirmed_by"),
        )
        .join(Player, Confirmation.player_id == Player.id)
        .join(User, Confirmation.user_id == User.id)
        .where(Confirmation.event_id == event_id)
        .order_by(Player.name.asc())
    )
    return [
        _confirmation_to_dict(
            row.Confirmation, row.player_name, row.player_number, row.confirmed_by
        )
        for row in result.all()
    ]


#
# Players
#


async def list_players(session: AsyncSession) -> List[Dict]:
    """Get active players ordered by jersey number."""
    result = await session.execute(
        select(Player)
        .where(Player.status == PlayerStatus.ACTIVE.value)
        .order_by(Player.number.asc())
    )
    return [_player_to_dict(player) for player in result.scalars().all()]


async def create_player(session: AsyncSession, data: Dict[str, Any]) -> Dict:
    """Add a player to the roster."""
    values = {key: _plain(value) for key, value in data.items() if key in PLAYER_MUTABLE_FIELDS}
    player = Player(**values)
    session.add(player)
    await session.flush()
    await session.commit()
    await session.refresh(player)
    return _player_to_dict(player)


async def update_player(session: AsyncSession, player_id: int, fields: Dict[str, Any]) -> None:
    """
    Apply a partial update to a roster entry.

    Raises:
        ValidationError: If no updatable field was supplied
        NotFoundError: If no player matched the id
    """
    values = _clean_fields(fields, PLAYER_MUTABLE_FIELDS)
    result = await session.execute(update(Player).where(Player.id == player_id).values(**values))
    if result.rowcount == 0:
        await session.rollback()
        raise NotFoundError("Player not found")
    await session.commit()


#
# Messages
#


async def create_message(session: AsyncSession, sender_id: int, data: Dict[str, Any]) -> Dict:
    """
    Create an announcement.

    Raises:
        NotFoundError: If a linked event_id does not exist
    """
    if data.get("event_id") is not None:
        await _require_event(session, data["event_id"])

    message = Message(
        sender_id=sender_id,
        subject=data["subject"],
        content=data["content"],
        recipient_type=_plain(data.get("recipient_type") or RecipientType.ALL),
        event_id=data.get("event_id"),
    )
    session.add(message)
    await session.flush()
    await session.commit()
    await session.refresh(message)
    return {"id": message.id}


async def list_messages(session: AsyncSession, role: Role) -> List[Dict]:
    """
    Get messages visible to a role.

    Trainers see every message; parents and players see messages addressed
    to everyone or to their own audience.
    """
    query = select(Message, User.name.label("sender_name")).join(
        User, Message.sender_id == User.id
    )
    if not role.is_trainer:
        query = query.where(
            Message.recipient_type.in_([RecipientType.ALL.value, role.recipient_type.value])
        )
    query = query.order_by(Message.created_at.desc(), Message.id.desc())

    result = await session.execute(query)
    return [_message_to_dict(row.Message, row.sender_name) for row in result.all()]


#
# News
#


async def create_news(session: AsyncSession, author_id: int, data: Dict[str, Any]) -> Dict:
    news = News(
        title=data["title"],
        content=data["content"],
        author_id=author_id,
        published=bool(data.get("published", False)),
    )
    session.add(news)
    await session.flush()
    await session.commit()
    await session.refresh(news)
    return {"id": news.id}


async def list_news(session: AsyncSession, limit: int = NEWS_LIMIT) -> List[Dict]:
    """Get the newest published articles."""
    result = await session.execute(
        select(News, User.name.label("author_name"))
        .join(User, News.author_id == User.id)
        .where(News.published == True)  # noqa: E712
        .order_by(News.created_at.desc(), News.id.desc())
        .limit(limit)
    )
    return [_news_to_dict(row.News, row.author_name) for row in result.all()]


#
# Stats
#


async def get_team_stats(session: AsyncSession, today: Optional[date] = None) -> Dict:
    """
    Team summary: active player count, next upcoming event and its attendance.

    The attendance query only runs when an upcoming event exists.

    Args:
        session: Database session
        today: Reference date for "upcoming" (defaults to the current UTC date)

    Returns:
        Dict with total_players, next_event and next_event_attendance
    """
    today = today or datetime_utils.today()

    result = await session.execute(
        select(func.count(Player.id)).where(Player.status == PlayerStatus.ACTIVE.value)
    )
    stats = {
        "total_players": result.scalar_one(),
        "next_event": None,
        "next_event_attendance": None,
    }

    result = await session.execute(
        select(Event)
        .where(Event.date >= today)
        .order_by(Event.date.asc(), Event.time.asc())
        .limit(1)
    )
    next_event = result.scalar_one_or_none()
    if next_event is None:
        return stats

    attendance = await get_attendance_counts(session, next_event.id)
    stats["next_event"] = _event_to_dict(
        next_event, attendance["confirmed"], attendance["declined"]
    )
    stats["next_event_attendance"] = attendance
    return stats
