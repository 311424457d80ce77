"""Adapters for the SQLite-backed stores."""

import sqlite3
from typing import Any, Dict, FrozenSet, List, Sequence, Tuple, Type

from pydantic import ValidationError

from ..backup.errors import StoreFailure
from ..backup.records import (
    BackupRecord,
    FavoriteRecord,
    LyricsRecord,
    SearchHistoryRecord,
    TransitionRuleRecord,
)
from ..backup.sections import Section
from ..util.logging import get_logger
from .base import StoreAdapter
from .database import Database

logger = get_logger(__name__)


class SqliteTableAdapter(StoreAdapter):
    """Adapter for a store that is exactly one table.

    Column names match the record's wire field names, so a row maps onto
    a record without a translation table.
    """

    table: str
    record_type: Type[BackupRecord]
    columns: Tuple[str, ...]
    bool_columns: FrozenSet[str] = frozenset()
    order_by: str

    def __init__(self, database: Database) -> None:
        self.database = database

    def export(self) -> List[BackupRecord]:
        sql = f"SELECT {', '.join(self.columns)} FROM {self.table} ORDER BY {self.order_by}"
        try:
            rows = self.database.fetch_all(sql)
        except (sqlite3.Error, OverflowError) as e:
            logger.error(f"Failed to read {self.table}: {e}")
            raise StoreFailure(self.section, f"cannot read table {self.table}: {e}") from e

        records = [self._row_to_record(row) for row in rows]
        logger.debug(f"Read {len(records)} rows from {self.table}")
        return records

    def replace(self, records: Sequence[BackupRecord]) -> None:
        rows = [self._record_to_row(record) for record in records]
        try:
            count = self.database.replace_table(self.table, self.columns, rows)
        except (sqlite3.Error, OverflowError) as e:
            logger.error(f"Failed to replace {self.table}: {e}")
            raise StoreFailure(self.section, f"cannot replace table {self.table}: {e}") from e

        logger.debug(f"Replaced {self.table} with {count} rows")

    def _row_to_record(self, row: sqlite3.Row) -> BackupRecord:
        data: Dict[str, Any] = {}
        for column in self.columns:
            value = row[column]
            if column in self.bool_columns and value is not None:
                value = bool(value)
            data[column] = value

        try:
            return self.record_type.model_validate(data)
        except ValidationError as e:
            raise StoreFailure(self.section, f"unreadable row in {self.table}: {e}") from e

    def _record_to_row(self, record: BackupRecord) -> Tuple[Any, ...]:
        if not isinstance(record, self.record_type):
            raise StoreFailure(
                self.section,
                f"expected {self.record_type.__name__}, got {type(record).__name__}",
            )
        wire = record.to_wire()
        return tuple(wire[column] for column in self.columns)


class FavoritesAdapter(SqliteTableAdapter):
    section = Section.FAVORITES
    table = "favorites"
    record_type = FavoriteRecord
    columns = ("songId", "isFavorite", "timestamp")
    bool_columns = frozenset({"isFavorite"})
    order_by = "songId"


class LyricsAdapter(SqliteTableAdapter):
    section = Section.LYRICS
    table = "lyrics"
    record_type = LyricsRecord
    columns = ("songId", "content", "isSynced", "source")
    bool_columns = frozenset({"isSynced"})
    order_by = "songId"


class SearchHistoryAdapter(SqliteTableAdapter):
    section = Section.SEARCH_HISTORY
    table = "search_history"
    record_type = SearchHistoryRecord
    columns = ("id", "query", "timestamp")
    order_by = "timestamp DESC, id DESC"


class TransitionsAdapter(SqliteTableAdapter):
    """Transition rules, ordered by playlist then rule id."""

    section = Section.TRANSITIONS
    table = "transition_rules"
    record_type = TransitionRuleRecord
    columns = (
        "id",
        "playlistId",
        "fromTrackId",
        "toTrackId",
        "mode",
        "durationMs",
        "curveIn",
        "curveOut",
        "enabled",
    )
    bool_columns = frozenset({"enabled"})
    order_by = "playlistId, id"
