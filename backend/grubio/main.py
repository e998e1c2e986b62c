"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from grubio.config import settings
from grubio.database import Base, engine
from grubio.errors import GrubioError
from grubio.realtime.live_query import live_queries
from grubio.realtime.redis_bridge import start_bridge

# Import routers
from grubio.routers import auth, users, events, posts, notifications

# Import all models so Base.metadata knows about them
from grubio.models.user import User                  # noqa: F401
from grubio.models.auth_session import AuthSession   # noqa: F401
from grubio.models.event import Event                # noqa: F401
from grubio.models.attendee import EventAttendee     # noqa: F401
from grubio.models.post import Post                  # noqa: F401
from grubio.models.notification import Notification  # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Grub.io",
    description="Event-scoped food-surplus sharing. Post leftovers, claim them, track what was saved",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(GrubioError)
async def grubio_error_handler(request: Request, exc: GrubioError) -> JSONResponse:
    """Every domain failure becomes one user-visible message."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error", "code": "error"})


# Register routers
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(posts.router, prefix="/api/posts", tags=["Posts"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"])


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
    if settings.REDIS_URL:
        app.state.live_bridge = start_bridge(live_queries, settings.REDIS_URL)


@app.on_event("shutdown")
def on_shutdown():
    bridge = getattr(app.state, "live_bridge", None)
    if bridge is not None:
        bridge.stop()


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
