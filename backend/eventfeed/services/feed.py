"""Notification feed composer.

The feed is recomputed from scratch on every call from three independent
fact streams:

1. reminders for upcoming events the viewer is attending,
2. RSVP activity on events the viewer hosts,
3. the viewer's pending invitations (counted as unread, rendered separately).

Nothing is cached or merged with a previous result. Items are sorted newest
first; the relative order of items with equal ``created_at`` is not part of
the contract.

A failed sub-fetch is logged and treated as empty so the rest of the feed
still renders; ``compose_feed`` reports it through ``FeedResult.partial``.
"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Optional, Sequence, TypeVar

from eventfeed.config import settings
from eventfeed.exceptions import RelationshipLookupError
from eventfeed.schemas.notification import FeedResult, NotificationItem, NotificationKind
from eventfeed.services.access_control import normalize_id
from eventfeed.services.relationships import EventRepository
from eventfeed.services.reminders import active_reminders, event_starts_at, window_opens_at
from eventfeed.services.rsvp_summary import summarize

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _reminder_items(viewer: str, events: Sequence[Any], now: datetime, tz_name: str) -> list[NotificationItem]:
    items = []
    for ev in events:
        creator = normalize_id(ev.creator_id)
        if creator == viewer:
            # Hosts never get reminders about their own event
            continue
        event_id = normalize_id(ev.event_id)
        starts_at = event_starts_at(ev.event_date, ev.event_time, tz_name)
        for label in active_reminders(starts_at, now):
            items.append(
                NotificationItem(
                    id=f"{event_id}-reminder-{label.value}",
                    kind=NotificationKind.reminder,
                    event_id=event_id,
                    title="Event Reminder",
                    body=f'"{ev.title}" is starting {label.phrase}!',
                    avatar_url=ev.cover_image,
                    created_at=window_opens_at(starts_at, label),
                    referenced_user_ids=frozenset({creator}),
                )
            )
    return items


def drop_self_references(
    viewer: str,
    items: Sequence[NotificationItem],
    hosted_event_ids: set[str],
) -> list[NotificationItem]:
    """Remove items about the viewer's own actions on the viewer's own events."""
    kept = []
    for item in items:
        if viewer in item.referenced_user_ids:
            continue
        if item.kind is NotificationKind.reminder and item.event_id in hosted_event_ids:
            continue
        kept.append(item)
    return kept


def matches_search(item: NotificationItem, search: Optional[str]) -> bool:
    if not search:
        return True
    needle = search.lower()
    return needle in item.title.lower() or needle in item.body.lower()


def unread_count(invitations: Sequence[Any], items: Sequence[NotificationItem]) -> int:
    """Pending invitations plus feed items; synthesized items are always unread."""
    return len(invitations) + len(items)


async def compose_feed(
    viewer_id: str,
    now: datetime,
    repository: EventRepository,
    search: Optional[str] = None,
    tz_name: Optional[str] = None,
    threshold: Optional[int] = None,
) -> FeedResult:
    viewer = normalize_id(viewer_id)
    if not viewer:
        return FeedResult(viewer_id="")
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    tz_name = tz_name or settings.EVENT_TIMEZONE
    failed: list[str] = []

    async def _or_empty(label: str, call: Awaitable[list[T]]) -> list[T]:
        try:
            return await call
        except RelationshipLookupError:
            logger.warning("Feed for %s: %s unavailable, continuing without it", viewer, label)
            failed.append(label)
            return []

    # One day of slack so events "today" in any timezone still get reminders
    since = (now - timedelta(days=1)).date()
    attending, hosted, invitations = await asyncio.gather(
        _or_empty("attending events", repository.list_attending_events(viewer, since)),
        _or_empty("hosted events", repository.list_hosted_events(viewer)),
        _or_empty("pending invitations", repository.list_pending_invitations(viewer)),
    )

    reminders = _reminder_items(viewer, attending, now, tz_name)

    attendee_lists = await asyncio.gather(
        *(_or_empty(f"attendees of {ev.event_id}", repository.list_attendees(ev.event_id)) for ev in hosted)
    )
    rsvps: list[NotificationItem] = []
    for ev, attendees in zip(hosted, attendee_lists):
        # The host's own RSVP row is not news to the host
        guests = [att for att in attendees if normalize_id(att.user_id) != viewer]
        rsvps.extend(summarize(ev, guests, now, threshold))

    hosted_ids = {normalize_id(ev.event_id) for ev in hosted}
    hosted_ids.update(normalize_id(ev.event_id) for ev in attending if normalize_id(ev.creator_id) == viewer)
    items = drop_self_references(viewer, reminders + rsvps, hosted_ids)

    items.sort(key=lambda item: item.created_at, reverse=True)
    items = [item for item in items if matches_search(item, search)]

    logger.debug(
        "Feed for %s: %d reminders, %d rsvp items, %d invitations, %d after filtering",
        viewer, len(reminders), len(rsvps), len(invitations), len(items),
    )
    return FeedResult(
        viewer_id=viewer,
        items=items,
        invitations=invitations,
        unread_count=unread_count(invitations, items),
        partial=bool(failed),
    )


async def build_feed(
    viewer_id: str,
    now: datetime,
    repository: EventRepository,
    search: Optional[str] = None,
) -> list[NotificationItem]:
    """Full recomputation of the viewer's notification feed, newest first."""
    result = await compose_feed(viewer_id, now, repository, search=search)
    return result.items
