"""Conversation state machine that collects facts about each chat's user."""

from __future__ import annotations

import logging
import os
import threading
from typing import Callable, Dict, List, Mapping

from .schemas import ConversationReply, SessionState, Stage
from .store import FileStore, StoreError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Choice keyboard options
# ---------------------------------------------------------------------------

FREE_FORM_OPTION = "Something else..."
DONE_OPTION = "Done"

MAIN_KEYBOARD_OPTIONS: List[str] = [
    "Age",
    "Favourite colour",
    "Number of siblings",
    FREE_FORM_OPTION,
    DONE_OPTION,
]

CATEGORY_OPTIONS: List[str] = [
    option for option in MAIN_KEYBOARD_OPTIONS if option not in (FREE_FORM_OPTION, DONE_OPTION)
]

PersistErrorHook = Callable[[int, StoreError], None]


def _log_persist_error(chat_id: int, exc: StoreError) -> None:
    logger.error("Failed to persist state for chat %s", chat_id, exc_info=exc)


# ---------------------------------------------------------------------------
# Text rendering
# ---------------------------------------------------------------------------


def facts_to_str(facts: Mapping[str, str]) -> str:
    """Render facts one per line, sorted by label, wrapped in newlines."""

    if not facts:
        return "\n(nothing yet)\n"
    lines = [f"{label} - {facts[label]}" for label in sorted(facts)]
    return "\n" + "\n".join(lines) + "\n"


def render_all_sessions(states: Mapping[int, SessionState]) -> str:
    if not states:
        return "All saved data:\n(nothing yet)\n"
    blocks = [f"User {chat_id}:{facts_to_str(states[chat_id].data)}" for chat_id in sorted(states)]
    return "All saved data:\n" + "\n".join(blocks)


# ---------------------------------------------------------------------------
# Manager
# ---------------------------------------------------------------------------


class ConversationManager:
    """Single owner of every chat's state.

    All access to the mapping goes through ``_lock``. Every transition that
    changes a chat's state saves the whole mapping before the reply is
    returned; a failed save is reported to ``on_persist_error`` and the
    in-memory change stands.
    """

    def __init__(self, store: FileStore, on_persist_error: PersistErrorHook | None = None) -> None:
        self._store = store
        self._on_persist_error = on_persist_error or _log_persist_error
        self._lock = threading.Lock()
        self._states: Dict[int, SessionState] = store.load()

    @classmethod
    def from_path(cls, path: str | os.PathLike[str], **kwargs) -> "ConversationManager":
        return cls(FileStore(path), **kwargs)

    # -- public operations --------------------------------------------------

    def handle_command(self, chat_id: int, command: str) -> ConversationReply:
        """Run a slash command regardless of the chat's current stage."""

        with self._lock:
            if command == "start":
                return self._start(chat_id)
            if command in ("cancel", "stop"):
                return self._finish(chat_id)
            if command == "show_data":
                state = self._ensure_state(chat_id)
                return ConversationReply(text="Stored facts:" + facts_to_str(state.data), show_keyboard=True)
            if command == "show_all_data":
                return ConversationReply(text=render_all_sessions(self._states))
        return ConversationReply(text="Unknown command. Try /start to begin.")

    def handle_message(self, chat_id: int, text: str) -> ConversationReply:
        """Interpret free text according to the chat's current stage."""

        with self._lock:
            state = self._ensure_state(chat_id)
            if state.stage is Stage.TYPING_CHOICE:
                return self._typing_choice(chat_id, state, text)
            if state.stage is Stage.TYPING_REPLY:
                return self._typing_reply(chat_id, state, text)
            return self._choosing(chat_id, state, text)

    def all_sessions_summary(self) -> str:
        """Render every chat's facts in ascending chat id order."""

        with self._lock:
            return render_all_sessions(self._states)

    def get_state(self, chat_id: int) -> SessionState:
        """Return a copy of the chat's state, creating it on first contact."""

        with self._lock:
            return self._ensure_state(chat_id).model_copy(deep=True)

    def peek_state(self, chat_id: int) -> SessionState | None:
        """Return a copy of the chat's state without creating one."""

        with self._lock:
            state = self._states.get(chat_id)
            return state.model_copy(deep=True) if state is not None else None

    def session_ids(self) -> List[int]:
        with self._lock:
            return sorted(self._states)

    # -- transitions (caller holds the lock) ---------------------------------

    def _start(self, chat_id: int) -> ConversationReply:
        state = self._ensure_state(chat_id)
        state.stage = Stage.CHOOSING
        state.pending_key = ""
        self._persist(chat_id)

        greeting = "Hi! My name is Doctor Botter."
        if state.data:
            greeting += (
                f" You already told me your {', '.join(sorted(state.data))}."
                " Tell me more or update something."
            )
        else:
            greeting += " I will hold a more complex conversation with you. Tell me something about yourself."
        return ConversationReply(text=greeting, show_keyboard=True)

    def _finish(self, chat_id: int) -> ConversationReply:
        state = self._ensure_state(chat_id)
        summary = "I learned these facts about you:" + facts_to_str(state.data) + "Until next time!"
        state.stage = Stage.CHOOSING
        state.pending_key = ""
        self._persist(chat_id)
        return ConversationReply(text=summary, remove_keyboard=True)

    def _choosing(self, chat_id: int, state: SessionState, text: str) -> ConversationReply:
        choice = text.strip()
        if choice == FREE_FORM_OPTION:
            state.stage = Stage.TYPING_CHOICE
            self._persist(chat_id)
            return ConversationReply(text="Tell me the category name.", remove_keyboard=True)
        if choice == DONE_OPTION:
            return self._finish(chat_id)
        if choice in CATEGORY_OPTIONS:
            state.stage = Stage.TYPING_REPLY
            state.pending_key = choice
            self._persist(chat_id)
            return ConversationReply(text=f"Your {choice}? Please type it.", remove_keyboard=True)
        return ConversationReply(text="Please choose one of the options on the keyboard.", show_keyboard=True)

    def _typing_choice(self, chat_id: int, state: SessionState, text: str) -> ConversationReply:
        label = text.strip()
        if not label:
            return ConversationReply(text="Category cannot be empty. Please send a label for your data.")
        state.stage = Stage.TYPING_REPLY
        state.pending_key = label
        self._persist(chat_id)
        return ConversationReply(text=f"Great, now tell me about {label}.")

    def _typing_reply(self, chat_id: int, state: SessionState, text: str) -> ConversationReply:
        label = state.pending_key
        if not label:
            state.stage = Stage.CHOOSING
            self._persist(chat_id)
            return ConversationReply(
                text="I lost track of what we were talking about. Pick an option again.",
                show_keyboard=True,
            )

        state.data[label] = text.strip()
        state.pending_key = ""
        state.stage = Stage.CHOOSING
        self._persist(chat_id)
        return ConversationReply(text=f"Saved {label}. What would you like to do next?", show_keyboard=True)

    # -- helpers (caller holds the lock) -------------------------------------

    def _ensure_state(self, chat_id: int) -> SessionState:
        state = self._states.get(chat_id)
        if state is None:
            state = SessionState()
            self._states[chat_id] = state
        return state

    def _persist(self, chat_id: int) -> None:
        try:
            self._store.save(self._states)
        except StoreError as exc:
            self._on_persist_error(chat_id, exc)
