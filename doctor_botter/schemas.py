"""Pydantic models and enums for the Doctor Botter conversation service."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    """Enumerate the positions of a chat within the conversation."""

    CHOOSING = "CHOOSING"
    TYPING_REPLY = "TYPING_REPLY"
    TYPING_CHOICE = "TYPING_CHOICE"


class SessionState(BaseModel):
    """Conversation state persisted for a single chat."""

    stage: Stage = Stage.CHOOSING
    data: Dict[str, str] = Field(default_factory=dict)
    pending_key: str = ""

    @field_validator("stage", mode="before")
    @classmethod
    def _default_stage(cls, value: object) -> object:
        # Older snapshots may carry an empty stage for untouched chats.
        if value is None or value == "":
            return Stage.CHOOSING
        if isinstance(value, str) and value not in Stage._value2member_map_:
            logger.warning("Unknown stage %r, falling back to %s", value, Stage.CHOOSING.value)
            return Stage.CHOOSING
        return value

    @field_validator("data", mode="before")
    @classmethod
    def _default_data(cls, value: object) -> object:
        return {} if value is None else value

    @field_validator("pending_key", mode="before")
    @classmethod
    def _default_pending_key(cls, value: object) -> object:
        return "" if value is None else value


class ConversationReply(BaseModel):
    """Text to send back plus a hint for the choice keyboard.

    Both flags false means the keyboard currently shown is left alone.
    """

    text: str
    show_keyboard: bool = False
    remove_keyboard: bool = False


# ---------------------------------------------------------------------------
# Telegram wire models (only the fields the gateway reads)
# ---------------------------------------------------------------------------


class TelegramChat(BaseModel):
    id: int
    type: Optional[str] = None


class TelegramMessage(BaseModel):
    message_id: int
    chat: TelegramChat
    text: Optional[str] = None


class TelegramUpdate(BaseModel):
    """Inbound webhook payload."""

    update_id: int
    message: Optional[TelegramMessage] = None


class KeyboardButton(BaseModel):
    text: str


class ReplyKeyboardMarkup(BaseModel):
    keyboard: List[List[KeyboardButton]]
    resize_keyboard: bool = True
    one_time_keyboard: bool = False


class ReplyKeyboardRemove(BaseModel):
    remove_keyboard: Literal[True] = True
    selective: bool = True


class SendMessageReply(BaseModel):
    """Telegram method call returned in the webhook response body."""

    method: Literal["sendMessage"] = "sendMessage"
    chat_id: int
    text: str
    # Unset: texts embed unescaped user input.
    parse_mode: Optional[str] = None
    reply_markup: Optional[Union[ReplyKeyboardMarkup, ReplyKeyboardRemove]] = None


# ---------------------------------------------------------------------------
# Inspection payloads
# ---------------------------------------------------------------------------


class SessionSummary(BaseModel):
    """Expose one chat's stored facts."""

    chat_id: int
    stage: Stage
    facts: Dict[str, str]


class AllSessionsSummary(BaseModel):
    """Rendered listing of every chat's facts."""

    text: str
