"""Domain exceptions raised by the read-side core."""


class EventFeedError(Exception):
    """Base class for errors raised by the visibility and feed services."""


class RelationshipLookupError(EventFeedError):
    """The data store could not answer a relationship or event query."""

    def __init__(self, query: str, user_id: str | None = None):
        self.query = query
        self.user_id = user_id
        super().__init__(f"{query} lookup failed" + (f" for user {user_id}" if user_id else ""))
