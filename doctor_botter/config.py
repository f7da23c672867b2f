"""Configuration helpers for the Doctor Botter service."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping

from dotenv import load_dotenv

DEFAULT_STATE_FILE = "data/state.json"

load_dotenv(override=False)


@dataclass(frozen=True)
class BotSettings:
    """Settings container for the webhook gateway and the state store."""

    state_file: str = DEFAULT_STATE_FILE
    # Shared secret Telegram echoes back in every webhook call.
    webhook_secret: str | None = None
    debug: bool = False

    @property
    def log_level(self) -> str:
        return "DEBUG" if self.debug else "INFO"


def _clean(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value.strip()


def settings_from_env(environ: Mapping[str, str]) -> BotSettings:
    """Build settings from an environment mapping, ignoring blank values."""

    return BotSettings(
        state_file=_clean(environ.get("STATE_FILE")) or DEFAULT_STATE_FILE,
        webhook_secret=_clean(environ.get("TELEGRAM_WEBHOOK_SECRET")),
        debug=environ.get("BOT_DEBUG") == "1",
    )


@lru_cache(maxsize=1)
def get_bot_settings() -> BotSettings:
    """Read environment variables and return cached bot settings."""

    return settings_from_env(os.environ)
