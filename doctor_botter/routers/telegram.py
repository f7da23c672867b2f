"""Telegram webhook endpoints for the Doctor Botter FastAPI backend."""

from __future__ import annotations

import logging
import secrets
from typing import Any, Optional

from fastapi import APIRouter, Header, HTTPException, Request

from ..gateway import dispatch_update
from ..schemas import TelegramUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/telegram", tags=["telegram"])


@router.get("/health")
async def healthcheck() -> dict[str, str]:
    """Simple health check endpoint."""

    return {"status": "ok"}


@router.post("/webhook")
async def receive_update(
    update: TelegramUpdate,
    request: Request,
    secret_token: Optional[str] = Header(default=None, alias="X-Telegram-Bot-Api-Secret-Token"),
) -> dict[str, Any]:
    """Handle one update and answer with a sendMessage call in the body."""

    expected = request.app.state.bot_settings.webhook_secret
    if expected and not secrets.compare_digest((secret_token or "").encode(), expected.encode()):
        logger.warning("Rejected webhook update %s with a bad secret token", update.update_id)
        raise HTTPException(status_code=401, detail="Invalid webhook secret token.")

    reply = dispatch_update(request.app.state.conversation_manager, update)
    if reply is None:
        return {}
    return reply.model_dump(exclude_none=True)
