"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from eventfeed.config import settings
from eventfeed.database import Base, engine

# Import routers
from eventfeed.routers import users, events, attendees, friends, invitations, notifications

# Import all models so Base.metadata knows about them
from eventfeed.models.user import User              # noqa: F401
from eventfeed.models.event import Event            # noqa: F401
from eventfeed.models.attendee import Attendee      # noqa: F401
from eventfeed.models.friendship import Friendship  # noqa: F401
from eventfeed.models.invitation import Invitation  # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")
    yield
    await engine.dispose()


app = FastAPI(
    title="Event Feed",
    description="Event visibility checks and recomputed notification feeds for a social event planner",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(attendees.router, prefix="/api/attendees", tags=["Attendees"])
app.include_router(friends.router, prefix="/api/friends", tags=["Friends"])
app.include_router(invitations.router, prefix="/api/invitations", tags=["Invitations"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"])


@app.get("/api/health")
async def health_check():
    return {"status": "ok"}
