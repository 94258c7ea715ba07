"""Event visibility evaluator.

Decides, per (event, viewer), whether the viewer may see an event whose owner
restricted its audience:

- anonymous viewers see public events only
- the creator always sees their own event
- friends_only: accepted friendship with the creator, either direction
- private: an active invitation or an attendance row for the event
- missing or unknown visibility values read as public

If the store cannot answer, the viewer is treated as unauthorized.
"""
import asyncio
import logging
from typing import Any, Optional, Sequence

from eventfeed.exceptions import RelationshipLookupError
from eventfeed.models.event import Visibility
from eventfeed.services.relationships import RelationshipProvider

logger = logging.getLogger(__name__)


def normalize_id(value: Any) -> str:
    """String form used for every identity comparison (UUIDs, ints and padded strings alike)."""
    return "" if value is None else str(value).strip()


def _visibility_of(event: Any) -> Visibility:
    return Visibility.parse(getattr(event, "visibility", None))


async def can_view(event: Any, viewer_id: Optional[str], provider: RelationshipProvider) -> bool:
    """Return True if ``viewer_id`` (None for anonymous) may see ``event``."""
    visibility = _visibility_of(event)
    viewer = normalize_id(viewer_id)

    if not viewer:
        return visibility is Visibility.public
    if viewer == normalize_id(event.creator_id):
        return True
    if visibility is Visibility.public:
        return True

    try:
        if visibility is Visibility.friends_only:
            friends = await provider.friend_ids_of(viewer)
            return normalize_id(event.creator_id) in {normalize_id(f) for f in friends}

        # private
        event_id = normalize_id(event.event_id)
        if await provider.is_invited(event_id, viewer):
            return True
        attending = await provider.attending_event_ids_of(viewer)
        return event_id in {normalize_id(e) for e in attending}
    except RelationshipLookupError:
        logger.warning(
            "Denying %s event %s to %s: relationship lookup failed",
            visibility.value, event.event_id, viewer,
        )
        return False


async def _id_set_or_empty(label: str, viewer: str, coro) -> set[str]:
    try:
        return {normalize_id(v) for v in await coro}
    except RelationshipLookupError:
        logger.warning("Treating %s of %s as empty: relationship lookup failed", label, viewer)
        return set()


async def filter_visible(
    events: Sequence[Any],
    viewer_id: Optional[str],
    provider: RelationshipProvider,
) -> list:
    """Batch form of ``can_view`` for listing screens.

    The viewer's friend, attendance and invitation sets are fetched once per
    call, then each event is decided in memory. Input order is preserved.
    """
    viewer = normalize_id(viewer_id)
    if not viewer:
        return [ev for ev in events if _visibility_of(ev) is Visibility.public]

    needs_friends = False
    needs_private = False
    for ev in events:
        if viewer == normalize_id(ev.creator_id):
            continue
        visibility = _visibility_of(ev)
        needs_friends = needs_friends or visibility is Visibility.friends_only
        needs_private = needs_private or visibility is Visibility.private

    async def _empty() -> set[str]:
        return set()

    friend_ids, attending_ids, invited_ids = await asyncio.gather(
        _id_set_or_empty("friends", viewer, provider.friend_ids_of(viewer)) if needs_friends else _empty(),
        _id_set_or_empty("attending events", viewer, provider.attending_event_ids_of(viewer)) if needs_private else _empty(),
        _id_set_or_empty("invitations", viewer, provider.invited_event_ids_of(viewer)) if needs_private else _empty(),
    )

    visible = []
    for ev in events:
        visibility = _visibility_of(ev)
        if viewer == normalize_id(ev.creator_id) or visibility is Visibility.public:
            visible.append(ev)
        elif visibility is Visibility.friends_only:
            if normalize_id(ev.creator_id) in friend_ids:
                visible.append(ev)
        else:
            event_id = normalize_id(ev.event_id)
            if event_id in attending_ids or event_id in invited_ids:
                visible.append(ev)

    logger.debug("filter_visible: %d of %d events visible to %s", len(visible), len(events), viewer)
    return visible
