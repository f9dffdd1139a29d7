from fastapi import FastAPI

from .chat import router as chat_router
from .notifications import router as notifications_router


def register_routes(app: FastAPI) -> None:
    """Register every API router on the FastAPI application."""

    app.include_router(chat_router)
    app.include_router(notifications_router)
