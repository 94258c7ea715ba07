"""RSVP aggregation for events the viewer hosts.

Up to ``threshold`` attendees produce one notification each. Past that, a
single summary names the two most recent attendees and counts the rest.
"""
from datetime import datetime
from typing import Any, Optional, Sequence

from eventfeed.config import settings
from eventfeed.schemas.notification import NotificationItem, NotificationKind
from eventfeed.services.access_control import normalize_id

FALLBACK_NAME = "User"


def first_name(display_name: Optional[str], username: Optional[str] = None) -> str:
    """First whitespace-separated token of the display name, else the username, else "User"."""
    for candidate in (display_name, username):
        if candidate and candidate.strip():
            return candidate.split()[0]
    return FALLBACK_NAME


def _attendee_name(attendee: Any) -> str:
    return first_name(getattr(attendee, "display_name", None), getattr(attendee, "username", None))


def summarize(
    event: Any,
    attendees: Sequence[Any],
    now: datetime,
    threshold: Optional[int] = None,
) -> list[NotificationItem]:
    """Build RSVP notifications for one hosted event.

    ``attendees`` must already be in join order (oldest first).
    """
    if threshold is None:
        threshold = settings.RSVP_AGGREGATE_THRESHOLD
    if not attendees:
        return []

    event_id = normalize_id(event.event_id)

    if len(attendees) <= threshold:
        return [
            NotificationItem(
                id=f"{event_id}-rsvp-{normalize_id(att.user_id)}",
                kind=NotificationKind.rsvp,
                event_id=event_id,
                title=f"RSVP: {event.title}",
                body=f"{_attendee_name(att)} has RSVP'ed to your event!",
                avatar_url=att.avatar_url,
                created_at=att.created_at or now,
                referenced_user_ids=frozenset({normalize_id(att.user_id)}),
            )
            for att in attendees
        ]

    latest = list(attendees[-2:])
    others = max(len(attendees) - 2, 0)
    names = ", ".join(_attendee_name(att) for att in latest)
    created_at = latest[0].created_at or latest[-1].created_at or now
    return [
        NotificationItem(
            id=f"{event_id}-rsvp-ig",
            kind=NotificationKind.rsvp_aggregate,
            event_id=event_id,
            title=f"RSVP: {event.title}",
            body=f"{names} and {others} other{'s' if others != 1 else ''} have RSVP'ed to your event!",
            avatar_url=getattr(event, "cover_image", None),
            created_at=created_at,
            referenced_user_ids=frozenset(normalize_id(att.user_id) for att in latest),
        )
    ]
