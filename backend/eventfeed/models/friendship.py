"""Friendship ORM model.

A friendship is undirected but stored as a single directed row from the
requester to the recipient, so readers must check both directions.
"""
import uuid
import enum
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.sql import func
from eventfeed.database import Base


class FriendshipStatus(str, enum.Enum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"


class Friendship(Base):
    __tablename__ = "friends"

    friendship_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    friend_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    status = Column(SAEnum(FriendshipStatus), nullable=False, default=FriendshipStatus.pending)
    pinned = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
