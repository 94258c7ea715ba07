"""FastAPI dependencies shared by the routers."""
from fastapi import Depends
from sqlalchemy.ext.asyncio import async_sessionmaker

from eventfeed.database import get_session_factory
from eventfeed.services.relationships import SqlRelationshipProvider


def get_relationship_provider(
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> SqlRelationshipProvider:
    return SqlRelationshipProvider(session_factory)
