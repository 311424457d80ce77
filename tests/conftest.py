"""Shared fixtures for backup engine tests."""

import pytest

from tunevault.backup import (
    BackupEngine,
    FavoriteRecord,
    LyricsRecord,
    SearchHistoryRecord,
    Section,
    TransitionRuleRecord,
)
from tunevault.stores import Database, PreferencesStore


@pytest.fixture
def database():
    db = Database(":memory:")
    yield db
    db.close()


@pytest.fixture
def preferences(tmp_path):
    return PreferencesStore(tmp_path / "preferences.yaml")


@pytest.fixture
def engine(database, preferences):
    return BackupEngine.from_stores(database, preferences)


@pytest.fixture
def seeded_engine(engine, preferences):
    """Engine whose stores all hold some data."""
    preferences.set("theme", "string", "dark")
    preferences.set("crossfade_enabled", "boolean", True)
    preferences.set("crossfade_seconds", "int", 6)
    preferences.set("hidden_folders", "string_set", ["/sdcard/Ringtones", "/sdcard/Alarms"])

    engine.adapters[Section.FAVORITES].replace([
        FavoriteRecord(songId=3, timestamp=1_700_000_000_003),
        FavoriteRecord(songId=1, timestamp=1_700_000_000_001),
        FavoriteRecord(songId=2, isFavorite=False, timestamp=1_700_000_000_002),
    ])
    engine.adapters[Section.LYRICS].replace([
        LyricsRecord(songId=1, content="[00:01.00] Hello", isSynced=True, source="lrclib"),
        LyricsRecord(songId=7, content="Plain words"),
    ])
    engine.adapters[Section.SEARCH_HISTORY].replace([
        SearchHistoryRecord(id=1, query="daft punk", timestamp=1_700_000_000_100),
        SearchHistoryRecord(id=2, query="bonobo", timestamp=1_700_000_000_200),
    ])
    engine.adapters[Section.TRANSITIONS].replace([
        TransitionRuleRecord(id=1, playlistId="road-trip", durationMs=8000),
        TransitionRuleRecord(id=2, playlistId="road-trip", fromTrackId="11", toTrackId="12", mode="NONE"),
    ])
    return engine
