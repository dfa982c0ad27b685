"""
Pydantic models for API request/response validation.
"""

import re
import datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from teamhub.database.models import (
    ConfirmationStatus,
    EventStatus,
    EventType,
    PlayerStatus,
    RecipientType,
)
from teamhub.utils.constants import MIN_JERSEY_NUMBER, MAX_JERSEY_NUMBER

CLOCK_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$")


def _not_blank(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


def _parse_clock(value):
    """Accept HH:MM (or H:MM) strings and time objects."""
    if value is None or isinstance(value, datetime.time):
        return value
    match = CLOCK_PATTERN.match(str(value).strip())
    if not match:
        raise ValueError("must be a time in HH:MM format")
    return datetime.time(int(match.group(1)), int(match.group(2)))


# ============================================================================
# Auth
# ============================================================================


class RegisterRequest(BaseModel):
    """Request to register a new user. Field rules are enforced by auth_service.register."""

    email: str
    password: str
    name: str
    role: str
    player_id: Optional[int] = None
    phone: Optional[str] = None


class LoginRequest(BaseModel):
    """Request to login with email and password."""

    email: str
    password: str = Field(min_length=1)


class UserResponse(BaseModel):
    """Public user fields."""

    id: int
    email: str
    name: str
    role: str
    player_id: Optional[int] = None


class AuthResponse(BaseModel):
    """Authentication response with JWT token."""

    token: str
    user: UserResponse


# ============================================================================
# Generic responses
# ============================================================================


class CreatedResponse(BaseModel):
    id: int
    message: str


class MessageOnlyResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str
    timestamp: str


# ============================================================================
# Events
# ============================================================================


class EventCreateRequest(BaseModel):
    """Request to create an event."""

    type: EventType
    title: str
    description: Optional[str] = None
    date: datetime.date
    time: datetime.time
    end_time: Optional[datetime.time] = None
    location: str
    opponent: Optional[str] = None

    @field_validator("title", "location")
    @classmethod
    def strip_required(cls, value):
        return _not_blank(value)

    @field_validator("time", "end_time", mode="before")
    @classmethod
    def parse_clock(cls, value):
        return _parse_clock(value)


class EventUpdateRequest(BaseModel):
    """
    Partial event update.

    Only the fields declared here may be changed; any other key is rejected.
    Non-nullable columns may be omitted but not set to null.
    """

    model_config = ConfigDict(extra="forbid")

    type: Optional[EventType] = None
    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[datetime.date] = None
    time: Optional[datetime.time] = None
    end_time: Optional[datetime.time] = None
    location: Optional[str] = None
    opponent: Optional[str] = None
    status: Optional[EventStatus] = None

    @field_validator("time", "end_time", mode="before")
    @classmethod
    def parse_clock(cls, value):
        return _parse_clock(value)

    @field_validator("type", "title", "date", "time", "location", "status")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("must not be null")
        if isinstance(value, str) and not isinstance(value, (EventType, EventStatus)):
            return _not_blank(value)
        return value


class EventResponse(BaseModel):
    id: int
    type: str
    title: str
    description: Optional[str] = None
    date: str
    time: str
    end_time: Optional[str] = None
    location: str
    opponent: Optional[str] = None
    status: str
    created_by: Optional[int] = None
    created_at: Optional[str] = None
    confirmed_count: int = 0
    declined_count: int = 0


# ============================================================================
# Confirmations
# ============================================================================


class ConfirmationRequest(BaseModel):
    """Attendance response for one player."""

    status: ConfirmationStatus
    player_id: int
    comment: Optional[str] = None


class ConfirmationResponse(BaseModel):
    id: int
    event_id: int
    player_id: int
    user_id: int
    status: str
    comment: Optional[str] = None
    confirmed_at: Optional[str] = None
    player_name: str
    player_number: Optional[int] = None
    confirmed_by: str


# ============================================================================
# Players
# ============================================================================


class PlayerCreateRequest(BaseModel):
    """Request to add a player to the roster."""

    name: str
    number: int = Field(ge=MIN_JERSEY_NUMBER, le=MAX_JERSEY_NUMBER)
    birth_date: Optional[datetime.date] = None
    position: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value):
        return _not_blank(value)


class PlayerUpdateRequest(BaseModel):
    """Partial roster update."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    number: Optional[int] = Field(default=None, ge=MIN_JERSEY_NUMBER, le=MAX_JERSEY_NUMBER)
    birth_date: Optional[datetime.date] = None
    position: Optional[str] = None
    status: Optional[PlayerStatus] = None

    @field_validator("name", "status")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("must not be null")
        if isinstance(value, str) and not isinstance(value, PlayerStatus):
            return _not_blank(value)
        return value


class PlayerResponse(BaseModel):
    id: int
    name: str
    number: Optional[int] = None
    birth_date: Optional[str] = None
    position: Optional[str] = None
    status: str
    created_at: Optional[str] = None


# ============================================================================
# Messages & news
# ============================================================================


class MessageCreateRequest(BaseModel):
    """Announcement from a trainer."""

    subject: str
    content: str
    recipient_type: RecipientType = RecipientType.ALL
    event_id: Optional[int] = None

    @field_validator("subject", "content")
    @classmethod
    def strip_text(cls, value):
        return _not_blank(value)


class MessageResponse(BaseModel):
    id: int
    sender_id: int
    sender_name: str
    subject: str
    content: str
    recipient_type: str
    event_id: Optional[int] = None
    created_at: Optional[str] = None


class NewsCreateRequest(BaseModel):
    title: str
    content: str
    published: bool = False

    @field_validator("title", "content")
    @classmethod
    def strip_text(cls, value):
        return _not_blank(value)


class NewsResponse(BaseModel):
    id: int
    title: str
    content: str
    author_id: int
    author_name: str
    published: bool
    created_at: Optional[str] = None


# ============================================================================
# Stats
# ============================================================================


class AttendanceCounts(BaseModel):
    confirmed: int
    declined: int


class TeamStatsResponse(BaseModel):
    total_players: int
    next_event: Optional[EventResponse] = None
    next_event_attendance: Optional[AttendanceCounts] = None


class ValidationErrorItem(BaseModel):
    field: str
    message: str


class ValidationErrorResponse(BaseModel):
    errors: List[ValidationErrorItem]
