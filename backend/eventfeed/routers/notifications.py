"""Notification feed route."""
import logging
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends, Query

from eventfeed.dependencies import get_relationship_provider
from eventfeed.schemas.notification import FeedResult
from eventfeed.services.feed import compose_feed
from eventfeed.services.relationships import SqlRelationshipProvider

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/{viewer_id}", response_model=FeedResult)
async def get_feed(
    viewer_id: str,
    q: Optional[str] = Query(None, description="Case-insensitive filter over title and body"),
    as_of: Optional[datetime] = Query(None, description="Evaluate reminders at this instant instead of now"),
    provider: SqlRelationshipProvider = Depends(get_relationship_provider),
):
    """Recompute the viewer's feed. Every call is a full rebuild; there is no cursor."""
    now = as_of or datetime.now(timezone.utc)
    result = await compose_feed(viewer_id, now, provider, search=q)
    if result.partial:
        logger.warning("Served partial feed to %s", viewer_id)
    return result
