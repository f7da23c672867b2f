"""Doctor Botter conversation service package."""

from .app import create_app
from .config import get_bot_settings
from .conversation import ConversationManager
from .store import CorruptStoreError, FileStore, StoreWriteError

__all__ = [
    "ConversationManager",
    "CorruptStoreError",
    "FileStore",
    "StoreWriteError",
    "create_app",
    "get_bot_settings",
]
