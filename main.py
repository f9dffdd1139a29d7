import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.application.use_cases.notifications import NotificationBatchQueue
from app.config import get_settings
from app.infrastructure.database import SessionLocal, engine, initialize_database
from app.infrastructure.dispatch import NotificationDispatcher
from app.infrastructure.realtime import (
    BestEffortRunner,
    RoomConnectionManager,
    WebSocketRealtimeMirror,
)
from app.infrastructure.repositories import SessionNotificationStore
from app.interfaces.api.routes import register_routes

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize storage and realtime services on startup and drain them on shutdown."""

    settings = get_settings()
    initialize_database()

    manager = RoomConnectionManager()
    mirror = WebSocketRealtimeMirror(manager)
    runner = BestEffortRunner()
    runner.bind()
    queue = NotificationBatchQueue.from_settings(
        settings,
        SessionNotificationStore(SessionLocal),
        mirror=mirror,
        dispatcher=NotificationDispatcher.from_settings(settings, SessionLocal),
        runner=runner,
    )

    app.state.connection_manager = manager
    app.state.realtime_mirror = mirror
    app.state.background_runner = runner
    app.state.notification_queue = queue
    queue.start()
    logger.info("Messaging core started")
    try:
        yield
    finally:
        await queue.stop()
        await runner.drain(timeout=settings.push_timeout_seconds)
        runner.unbind()
        engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Case Messaging Core", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)
    return app


app = create_app()
