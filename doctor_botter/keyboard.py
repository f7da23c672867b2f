"""Render conversation replies as Telegram sendMessage calls."""

from __future__ import annotations

from .conversation import MAIN_KEYBOARD_OPTIONS
from .schemas import (
    ConversationReply,
    KeyboardButton,
    ReplyKeyboardMarkup,
    ReplyKeyboardRemove,
    SendMessageReply,
)

# Two options per row, the last option on its own row.
_ROW_LAYOUT = ((0, 1), (2, 3), (4,))


def build_main_keyboard() -> ReplyKeyboardMarkup:
    rows = [[KeyboardButton(text=MAIN_KEYBOARD_OPTIONS[index]) for index in row] for row in _ROW_LAYOUT]
    return ReplyKeyboardMarkup(keyboard=rows, resize_keyboard=True, one_time_keyboard=False)


def build_remove_keyboard() -> ReplyKeyboardRemove:
    return ReplyKeyboardRemove(remove_keyboard=True)


def render_reply(chat_id: int, reply: ConversationReply) -> SendMessageReply:
    """Attach the keyboard markup requested by ``reply``."""

    markup = None
    if reply.show_keyboard:
        markup = build_main_keyboard()
    elif reply.remove_keyboard:
        markup = build_remove_keyboard()
    return SendMessageReply(chat_id=chat_id, text=reply.text, reply_markup=markup)
