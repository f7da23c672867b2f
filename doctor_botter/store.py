"""JSON file persistence for the per-chat conversation state."""

from __future__ import annotations

import contextlib
import json
import logging
import os
import re
from pathlib import Path
from typing import Dict, Mapping

from pydantic import ValidationError

from .schemas import SessionState

logger = logging.getLogger(__name__)

_CHAT_ID_PATTERN = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class StoreError(Exception):
    """Base class for state store failures."""


class CorruptStoreError(StoreError):
    """The snapshot file exists but cannot be read back."""


class StoreWriteError(StoreError):
    """Creating the directory, writing the temp file or renaming it failed."""


def _decode_chat_id(key: str) -> int | None:
    if not _CHAT_ID_PATTERN.fullmatch(key):
        return None
    chat_id = int(key)
    if not _INT64_MIN <= chat_id <= _INT64_MAX:
        return None
    return chat_id


class FileStore:
    """Load and save the complete chat-state snapshot as one JSON document.

    The store keeps no state of its own apart from ``dropped_keys``; callers
    hand it the full mapping on every save and it replaces the file
    atomically, so readers see either the old or the new snapshot.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        self.dropped_keys = 0

    @property
    def temp_path(self) -> Path:
        return self.path.with_name(self.path.name + ".tmp")

    def load(self) -> Dict[int, SessionState]:
        """Return the persisted mapping, or an empty one if no file exists."""

        self.dropped_keys = 0
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("No state file at %s, starting empty", self.path)
            return {}
        except OSError as exc:
            raise CorruptStoreError(f"cannot read state file {self.path}: {exc}") from exc

        try:
            encoded = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise CorruptStoreError(f"state file {self.path} is not valid JSON: {exc}") from exc
        if not isinstance(encoded, dict):
            raise CorruptStoreError(f"state file {self.path} must contain a JSON object")

        states: Dict[int, SessionState] = {}
        for key, value in encoded.items():
            chat_id = _decode_chat_id(key)
            if chat_id is None:
                self.dropped_keys += 1
                continue
            try:
                states[chat_id] = SessionState.model_validate(value)
            except ValidationError as exc:
                raise CorruptStoreError(f"invalid state for chat {key!r} in {self.path}") from exc

        if self.dropped_keys:
            logger.warning(
                "Dropped %d entries with malformed chat ids from %s",
                self.dropped_keys,
                self.path,
            )
        logger.info("Loaded %d chat states from %s", len(states), self.path)
        return states

    def save(self, states: Mapping[int, SessionState]) -> None:
        """Write the full mapping to a temp file, then rename it into place."""

        payload = {str(chat_id): state.model_dump(mode="json") for chat_id, state in states.items()}
        document = json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False)

        tmp = self.temp_path
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as handle:
                handle.write(document)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp, self.path)
        except OSError as exc:
            with contextlib.suppress(OSError):
                tmp.unlink()
            raise StoreWriteError(f"cannot save state to {self.path}: {exc}") from exc
