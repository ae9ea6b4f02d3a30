from .analytics import AnalyticsRecorder, BackgroundDispatcher, inline_dispatcher
from .db import Database
from .settings_store import SettingsStore

__all__ = [
    "AnalyticsRecorder",
    "BackgroundDispatcher",
    "inline_dispatcher",
    "Database",
    "SettingsStore",
]
