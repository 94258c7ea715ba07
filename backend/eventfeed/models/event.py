"""Event ORM model and the visibility policy enum."""
import uuid
import enum
from typing import Optional
from sqlalchemy import Column, String, Date, Time, DateTime, Text, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from eventfeed.database import Base


class Visibility(str, enum.Enum):
    public = "public"
    friends_only = "friends_only"
    private = "private"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "Visibility":
        """Map a stored value onto the policy enum.

        Rows written before visibility existed carry NULL, and the store does
        not constrain the column, so anything unrecognised reads as public.
        """
        if isinstance(raw, cls):
            return raw
        if not raw:
            return cls.public
        key = str(raw).strip().lower().replace("-", "_")
        if key == "friendsonly":
            key = "friends_only"
        try:
            return cls(key)
        except ValueError:
            return cls.public


class Event(Base):
    __tablename__ = "events"

    event_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    creator_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    event_date = Column(Date, nullable=False)
    event_time = Column(Time, nullable=True)
    location = Column(String(500), nullable=True)
    category = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    cover_image = Column(String(500), nullable=True)
    # Raw string on purpose: legacy rows hold NULL and the column is unconstrained.
    visibility = Column(String(20), nullable=True, default=Visibility.public.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    attendees = relationship("Attendee", back_populates="event", cascade="all, delete-orphan")
    invitations = relationship("Invitation", back_populates="event", cascade="all, delete-orphan")
