"""Backup module initialization."""

from .codec import CURRENT_FORMAT_VERSION, MAX_FORMAT_VERSION, Snapshot, SnapshotCodec
from .engine import BackupEngine, EngineStage, ExportReport, RestorePlan, RestoreReport
from .errors import (
    BackupCancelled,
    BackupError,
    CorruptSnapshot,
    PartialRestoreFailure,
    SectionDecodeFailure,
    SinkUnavailable,
    StoreFailure,
    UnsupportedFormat,
)
from .records import (
    BackupRecord,
    FavoriteRecord,
    LyricsRecord,
    PreferenceEntry,
    SearchHistoryRecord,
    TransitionRuleRecord,
)
from .sections import Section, all_sections, default_selection, resolve_selection
from .sink import FileSink, MemorySink, StorageSink

__all__ = [
    # sections
    "Section",
    "all_sections",
    "default_selection",
    "resolve_selection",
    # records
    "BackupRecord",
    "FavoriteRecord",
    "LyricsRecord",
    "PreferenceEntry",
    "SearchHistoryRecord",
    "TransitionRuleRecord",
    # codec
    "CURRENT_FORMAT_VERSION",
    "MAX_FORMAT_VERSION",
    "Snapshot",
    "SnapshotCodec",
    # sink
    "FileSink",
    "MemorySink",
    "StorageSink",
    # engine
    "BackupEngine",
    "EngineStage",
    "ExportReport",
    "RestorePlan",
    "RestoreReport",
    # errors
    "BackupCancelled",
    "BackupError",
    "CorruptSnapshot",
    "PartialRestoreFailure",
    "SectionDecodeFailure",
    "SinkUnavailable",
    "StoreFailure",
    "UnsupportedFormat",
]
