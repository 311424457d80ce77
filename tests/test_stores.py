"""Tests for the store adapters."""

import sqlite3
from unittest.mock import MagicMock, patch

import pytest

from tunevault.backup.errors import StoreFailure
from tunevault.backup.records import (
    FavoriteRecord,
    LyricsRecord,
    PreferenceEntry,
    SearchHistoryRecord,
    TransitionRuleRecord,
)
from tunevault.backup.sections import Section
from tunevault.stores import (
    Database,
    FavoritesAdapter,
    LyricsAdapter,
    PreferencesAdapter,
    PreferencesStore,
    SearchHistoryAdapter,
    TransitionsAdapter,
)
from tunevault.stores.database import _is_busy


class TestFavoritesAdapter:
    """Test the favorites table adapter."""

    def test_export_in_key_order(self, database):
        """Test exports are ordered by song id whatever the insert order."""
        database.execute("INSERT INTO favorites (songId, isFavorite, timestamp) VALUES (9, 1, 90)")
        database.execute("INSERT INTO favorites (songId, isFavorite, timestamp) VALUES (2, 0, 20)")

        records = FavoritesAdapter(database).export()

        assert records == [
            FavoriteRecord(songId=2, isFavorite=False, timestamp=20),
            FavoriteRecord(songId=9, isFavorite=True, timestamp=90),
        ]
        assert records[0].is_favorite is False

    def test_replace_is_a_full_overwrite(self, database):
        """Test rows missing from the replacement do not survive."""
        adapter = FavoritesAdapter(database)
        adapter.replace([FavoriteRecord(songId=i) for i in (1, 2, 3)])

        adapter.replace([FavoriteRecord(songId=5, timestamp=50)])

        assert adapter.export() == [FavoriteRecord(songId=5, timestamp=50)]

    def test_replace_with_nothing_empties_store(self, database):
        """Test an empty replacement wipes the table."""
        adapter = FavoritesAdapter(database)
        adapter.replace([FavoriteRecord(songId=1)])

        adapter.replace([])

        assert adapter.export() == []

    def test_export_does_not_mutate(self, database):
        """Test reading twice gives the same result."""
        adapter = FavoritesAdapter(database)
        adapter.replace([FavoriteRecord(songId=1), FavoriteRecord(songId=2)])

        assert adapter.export() == adapter.export()

    def test_wrong_record_type_rejected(self, database):
        """Test records from another section are refused before writing."""
        adapter = FavoritesAdapter(database)
        adapter.replace([FavoriteRecord(songId=1)])

        with pytest.raises(StoreFailure):
            adapter.replace([LyricsRecord(songId=1, content="x")])

        assert adapter.export() == [FavoriteRecord(songId=1)]

    def test_unstorable_integer_raises_store_failure(self, database):
        """Test an integer too large for SQLite surfaces as StoreFailure."""
        adapter = FavoritesAdapter(database)
        adapter.replace([FavoriteRecord(songId=1)])
        oversized = FavoriteRecord.model_construct(song_id=2 ** 63, is_favorite=True, timestamp=0)

        with pytest.raises(StoreFailure):
            adapter.replace([oversized])

        assert adapter.export() == [FavoriteRecord(songId=1)]

    def test_closed_database_raises_store_failure(self):
        """Test storage errors surface as StoreFailure."""
        database = Database(":memory:")
        adapter = FavoritesAdapter(database)
        database.close()

        with pytest.raises(StoreFailure) as excinfo:
            adapter.export()
        assert excinfo.value.section is Section.FAVORITES

        with pytest.raises(StoreFailure):
            adapter.replace([FavoriteRecord(songId=1)])


class TestOtherTables:
    """Test lyrics, search history and transition adapters."""

    def test_lyrics_round_trip(self, database):
        """Test optional and boolean lyrics columns."""
        adapter = LyricsAdapter(database)
        records = [
            LyricsRecord(songId=4, content="[00:01.00] la", isSynced=True, source="embedded"),
            LyricsRecord(songId=2, content="plain"),
        ]

        adapter.replace(records)

        assert adapter.export() == [records[1], records[0]]

    def test_search_history_newest_first(self, database):
        """Test history is exported newest first."""
        adapter = SearchHistoryAdapter(database)
        adapter.replace([
            SearchHistoryRecord(id=1, query="old", timestamp=100),
            SearchHistoryRecord(id=2, query="new", timestamp=300),
            SearchHistoryRecord(id=3, query="mid", timestamp=200),
        ])

        assert [r.query for r in adapter.export()] == ["new", "mid", "old"]

    def test_search_history_assigns_missing_ids(self, database):
        """Test entries without an id get one from the database."""
        adapter = SearchHistoryAdapter(database)
        adapter.replace([SearchHistoryRecord(query="bonobo", timestamp=1)])

        [record] = adapter.export()

        assert record.id is not None
        assert record.query == "bonobo"

    def test_transitions_defaults_and_order(self, database):
        """Test transition rules keep defaults and sort by playlist."""
        adapter = TransitionsAdapter(database)
        adapter.replace([
            TransitionRuleRecord(id=2, playlistId="z-list", enabled=False),
            TransitionRuleRecord(id=1, playlistId="a-list", fromTrackId="1", toTrackId="2"),
        ])

        records = adapter.export()

        assert [r.playlist_id for r in records] == ["a-list", "z-list"]
        assert records[0].duration_ms == 6000
        assert records[0].curve_in == "S_CURVE"
        assert records[1].enabled is False


class TestDatabase:
    """Test the shared SQLite handle."""

    def test_failed_replace_keeps_previous_rows(self, database):
        """Test a replace that fails midway rolls back entirely."""
        adapter = LyricsAdapter(database)
        adapter.replace([LyricsRecord(songId=1, content="a"), LyricsRecord(songId=2, content="b")])

        with pytest.raises(sqlite3.IntegrityError):
            database.replace_table(
                "lyrics",
                ("songId", "content", "isSynced", "source"),
                [(3, "c", 0, None), (4, None, 0, None)],
            )

        assert [r.song_id for r in adapter.export()] == [1, 2]

    def test_busy_detection(self):
        """Test which errors are retried."""
        assert _is_busy(sqlite3.OperationalError("database is locked"))
        assert _is_busy(sqlite3.OperationalError("database table is busy"))
        assert not _is_busy(sqlite3.OperationalError("no such table: nope"))
        assert not _is_busy(sqlite3.IntegrityError("locked"))

    def test_locked_database_retried(self, database):
        """Test a transient lock is retried until it clears."""
        cursor = MagicMock()
        cursor.fetchall.return_value = ["row"]

        with patch.object(database, "_connection") as connection:
            connection.execute.side_effect = [sqlite3.OperationalError("database is locked"), cursor]
            rows = database.fetch_all("SELECT 1")

        assert rows == ["row"]
        assert connection.execute.call_count == 2

    def test_other_errors_not_retried(self, database):
        """Test permanent errors surface on the first attempt."""
        with patch.object(database, "_connection") as connection:
            connection.execute.side_effect = sqlite3.OperationalError("no such table: nope")
            with pytest.raises(sqlite3.OperationalError):
                database.fetch_all("SELECT * FROM nope")

        assert connection.execute.call_count == 1

    def test_file_database_persists(self, tmp_path):
        """Test a file-backed database keeps rows across connections."""
        path = tmp_path / "nested" / "library.db"

        with Database(path) as database:
            FavoritesAdapter(database).replace([FavoriteRecord(songId=8)])

        with Database(path) as database:
            assert FavoritesAdapter(database).export() == [FavoriteRecord(songId=8)]


class TestPreferences:
    """Test the preferences store and adapter."""

    def test_missing_file_exports_nothing(self, preferences):
        """Test a fresh install has no preferences."""
        assert PreferencesAdapter(preferences).export() == []

    def test_export_sorted_typed_entries(self, preferences):
        """Test exported entries keep their types and sort by key."""
        preferences.set("volume", "float", 0.75)
        preferences.set("theme", "string", "dark")
        preferences.set("folders", "string_set", ["b", "a"])

        entries = PreferencesAdapter(preferences).export()

        assert entries == [
            PreferenceEntry(key="folders", type="string_set", value=["a", "b"]),
            PreferenceEntry(key="theme", type="string", value="dark"),
            PreferenceEntry(key="volume", type="float", value=0.75),
        ]

    def test_replace_drops_unlisted_keys(self, preferences):
        """Test restore is a full replace, not a merge."""
        preferences.set("theme", "string", "dark")
        preferences.set("gapless", "boolean", True)

        PreferencesAdapter(preferences).replace([PreferenceEntry(key="theme", type="string", value="light")])

        assert preferences.get("theme") == "light"
        assert preferences.get("gapless") is None

    def test_replace_with_nothing_empties_store(self, preferences):
        """Test an empty replacement leaves no preferences."""
        preferences.set("theme", "string", "dark")

        PreferencesAdapter(preferences).replace([])

        assert PreferencesAdapter(preferences).export() == []

    def test_import_without_clearing_merges(self, preferences):
        """Test the store can also lay entries over existing values."""
        preferences.set("theme", "string", "dark")

        preferences.import_from_backup(
            [PreferenceEntry(key="gapless", type="boolean", value=False)],
            clear_existing=False,
        )

        assert preferences.get("theme") == "dark"
        assert preferences.get("gapless") is False

    def test_unreadable_file_raises_store_failure(self, tmp_path):
        """Test a damaged preferences file surfaces as StoreFailure."""
        path = tmp_path / "preferences.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(StoreFailure) as excinfo:
            PreferencesAdapter(PreferencesStore(path)).export()

        assert excinfo.value.section is Section.PREFERENCES

    def test_replace_leaves_no_temp_files(self, preferences, tmp_path):
        """Test atomic writes clean up after themselves."""
        PreferencesAdapter(preferences).replace([PreferenceEntry(key="a", type="int", value=1)])

        assert sorted(p.name for p in tmp_path.iterdir()) == ["preferences.yaml"]

    def test_failed_write_keeps_previous_file(self, preferences, tmp_path):
        """Test a write error leaves the old preferences in place."""
        preferences.set("theme", "string", "dark")

        with patch("tunevault.stores.preferences.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(StoreFailure):
                PreferencesAdapter(preferences).replace([])

        assert preferences.get("theme") == "dark"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["preferences.yaml"]
