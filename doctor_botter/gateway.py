"""Translate Telegram updates into conversation commands and messages."""

from __future__ import annotations

import logging

from .conversation import ConversationManager
from .keyboard import render_reply
from .schemas import SendMessageReply, TelegramUpdate

logger = logging.getLogger(__name__)


def parse_command(text: str | None) -> str | None:
    """Return the command name for ``/command@bot args`` style texts.

    Plain text (anything not starting with a slash) yields ``None``.
    """

    if not text or not text.startswith("/"):
        return None
    words = text[1:].split(maxsplit=1)
    head = words[0] if words else ""
    command, _, _bot = head.partition("@")
    return command


def dispatch_update(manager: ConversationManager, update: TelegramUpdate) -> SendMessageReply | None:
    """Route one update to the manager and render its reply."""

    message = update.message
    if message is None:
        logger.debug("Ignoring update %s without a message", update.update_id)
        return None

    chat_id = message.chat.id
    command = parse_command(message.text)
    if command is not None:
        reply = manager.handle_command(chat_id, command)
    else:
        reply = manager.handle_message(chat_id, message.text or "")
    return render_reply(chat_id, reply)
