"""Application factory for the Doctor Botter FastAPI backend."""

import logging

from fastapi import FastAPI

from .config import BotSettings, get_bot_settings
from .conversation import ConversationManager
from .routers import sessions, telegram


def create_app(
    settings: BotSettings | None = None,
    manager: ConversationManager | None = None,
) -> FastAPI:
    """Create and configure a FastAPI application instance.

    Loading the state file happens here, so a corrupt snapshot stops the
    service before it accepts any update.
    """
    settings = settings or get_bot_settings()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(
        title="Doctor Botter",
        version="0.1.0",
        description="Telegram bot that collects and remembers facts about its users.",
    )
    app.state.bot_settings = settings
    app.state.conversation_manager = manager or ConversationManager.from_path(settings.state_file)
    app.include_router(telegram.router)
    app.include_router(sessions.router)
    return app
