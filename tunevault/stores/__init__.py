"""Store adapters for every backup section."""

from .base import StoreAdapter
from .database import Database
from .preferences import PreferencesAdapter, PreferencesStore
from .tables import (
    FavoritesAdapter,
    LyricsAdapter,
    SearchHistoryAdapter,
    SqliteTableAdapter,
    TransitionsAdapter,
)

__all__ = [
    # base
    "StoreAdapter",
    # database
    "Database",
    # preferences
    "PreferencesAdapter",
    "PreferencesStore",
    # tables
    "FavoritesAdapter",
    "LyricsAdapter",
    "SearchHistoryAdapter",
    "SqliteTableAdapter",
    "TransitionsAdapter",
]
