"""User ORM model.

Identity lives with the external auth provider; this table only mirrors the
profile fields the feed needs to render names and avatars.
"""
import uuid
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from eventfeed.database import Base


class User(Base):
    __tablename__ = "users"

    user_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    username = Column(String(50), nullable=False, unique=True)
    display_name = Column(String(100), nullable=True)
    avatar_url = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
