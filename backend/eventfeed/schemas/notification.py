"""Synthesized notification items and the composed feed.

Nothing here is persisted. Items exist for the lifetime of one feed
computation and are rebuilt from scratch on every refresh.
"""
from __future__ import annotations
import enum
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from eventfeed.schemas.common import as_utc
from eventfeed.schemas.social import InvitationSummary


class NotificationKind(str, enum.Enum):
    reminder = "reminder"
    rsvp = "rsvp"
    rsvp_aggregate = "rsvp_aggregate"


class NotificationItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    kind: NotificationKind
    event_id: str
    title: str
    body: str
    avatar_url: Optional[str] = None
    created_at: datetime
    # Users the item talks about (the RSVP'ing attendees, or the event host for
    # reminders). Self-filtering works off this set, never the rendered body.
    referenced_user_ids: frozenset[str] = Field(default_factory=frozenset, exclude=True)

    @field_validator("created_at", mode="after")
    @classmethod
    def _created_at_utc(cls, value):
        return as_utc(value)

    @computed_field
    @property
    def read(self) -> bool:
        # There is no read-state store; every synthesized item is unread.
        return False


class FeedResult(BaseModel):
    viewer_id: str
    items: list[NotificationItem] = []
    invitations: list[InvitationSummary] = []
    unread_count: int = 0
    partial: bool = False  # True when a sub-fetch failed and was treated as empty
