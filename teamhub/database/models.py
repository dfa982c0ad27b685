"""
SQLAlchemy ORM models for the team management system.
"""

import enum
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    Date,
    Time,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from teamhub.database.db import Base


class Role(str, enum.Enum):
    """User role enum. Only trainers may manage the team."""

    TRAINER = "trainer"
    PARENT = "parent"
    PLAYER = "player"

    @property
    def is_trainer(self) -> bool:
        return self is Role.TRAINER

    @property
    def can_manage_roster(self) -> bool:
        return self.is_trainer

    @property
    def can_manage_events(self) -> bool:
        return self.is_trainer

    @property
    def can_send_messages(self) -> bool:
        return self.is_trainer

    @property
    def can_publish_news(self) -> bool:
        return self.is_trainer

    @property
    def recipient_type(self) -> "RecipientType":
        """Message audience a non-trainer role belongs to."""
        if self is Role.PLAYER:
            return RecipientType.PLAYERS
        return RecipientType.PARENTS


class PlayerStatus(str, enum.Enum):
    """Roster status enum."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class EventType(str, enum.Enum):
    """Event type enum."""

    TRAINING = "training"
    MATCH = "match"
    TOURNAMENT = "tournament"
    OTHER = "other"


class EventStatus(str, enum.Enum):
    """Event status enum."""

    SCHEDULED = "scheduled"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class ConfirmationStatus(str, enum.Enum):
    """Attendance response enum."""

    CONFIRMED = "confirmed"
    DECLINED = "declined"
    MAYBE = "maybe"


class RecipientType(str, enum.Enum):
    """Message audience enum."""

    ALL = "all"
    PARENTS = "parents"
    PLAYERS = "players"


class User(Base):
    """User accounts with email/password authentication."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String, nullable=False, unique=True)
    password_hash = Column(String, nullable=False)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False, default=Role.PARENT.value)  # Role enum value
    player_id = Column(Integer, ForeignKey("players.id"), nullable=True)  # Linked child/player
    phone = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    player = relationship("Player", back_populates="users")

    __table_args__ = (Index("idx_users_role", "role"),)


class Player(Base):
    """Roster entries."""

    __tablename__ = "players"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    number = Column(Integer, nullable=True)  # Jersey number (1-99)
    birth_date = Column(Date, nullable=True)
    position = Column(String, nullable=True)
    status = Column(String, nullable=False, default=PlayerStatus.ACTIVE.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    users = relationship("User", back_populates="player")
    confirmations = relationship("Confirmation", back_populates="player")

    __table_args__ = (
        Index("idx_players_status_number", "status", "number"),
        Index("idx_players_name", "name"),
    )


class Event(Base):
    """Scheduled trainings, matches and tournaments."""

    __tablename__ = "events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String, nullable=False)  # EventType enum value
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False)
    time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=True)
    location = Column(String, nullable=False)
    opponent = Column(String, nullable=True)
    status = Column(String, nullable=False, default=EventStatus.SCHEDULED.value)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    creator = relationship("User")
    confirmations = relationship("Confirmation", back_populates="event")

    __table_args__ = (Index("idx_events_date_time", "date", "time"),)


class Confirmation(Base):
    """Attendance response, one per (event, player)."""

    __tablename__ = "confirmations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False)
    player_id = Column(Integer, ForeignKey("players.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    status = Column(String, nullable=False)  # ConfirmationStatus enum value
    comment = Column(Text, nullable=True)
    confirmed_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    event = relationship("Event", back_populates="confirmations")
    player = relationship("Player", back_populates="confirmations")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint("event_id", "player_id", name="uq_confirmations_event_player"),
        Index("idx_confirmations_event", "event_id"),
    )


class Message(Base):
    """Announcements sent by trainers."""

    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    subject = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    recipient_type = Column(String, nullable=False, default=RecipientType.ALL.value)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    sender = relationship("User")
    event = relationship("Event")

    __table_args__ = (
        Index("idx_messages_recipient_created", "recipient_type", "created_at"),
    )


class News(Base):
    """News articles. Only published articles are public."""

    __tablename__ = "news"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    published = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    author = relationship("User")

    __table_args__ = (Index("idx_news_published_created", "published", "created_at"),)
