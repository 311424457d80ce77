"""Backup engine: moves selected sections between the live stores and a snapshot."""

import asyncio
import threading
import time
import typing as t
from dataclasses import dataclass, field

from ..util.logging import get_logger
from ..util.timeutil import epoch_millis_to_iso, format_duration
from .codec import Snapshot, SnapshotCodec
from .errors import (
    BackupCancelled,
    BackupError,
    PartialRestoreFailure,
    SectionDecodeFailure,
    StoreFailure,
)
from .sections import Section, SelectionItem, resolve_selection
from .sink import StorageSink, read_all, write_all

if t.TYPE_CHECKING:
    from ..stores.base import StoreAdapter
    from ..stores.database import Database
    from ..stores.preferences import PreferencesStore

logger = get_logger(__name__)

ProgressCallback = t.Callable[[str, int, int], None]


class EngineStage:
    """Stages a single export or restore call moves through."""

    IDLE = "idle"
    VALIDATING = "validating"
    READING = "reading"
    WRITING = "writing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ExportReport:
    """Outcome of a successful export."""

    format_version: int
    exported_at_epoch_millis: int
    sections: t.Dict[Section, int] = field(default_factory=dict)
    """Records written per section"""
    size: int = 0
    """Snapshot size in bytes"""
    duration: float = 0.0


@dataclass
class RestoreReport:
    """Outcome of a restore call."""

    format_version: int
    exported_at_epoch_millis: int
    restored: t.Dict[Section, int] = field(default_factory=dict)
    """Records applied per section"""
    skipped: t.List[Section] = field(default_factory=list)
    """Selected sections absent from the snapshot, left untouched"""
    failed: t.Dict[Section, BackupError] = field(default_factory=dict)
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return not self.failed


@dataclass
class RestorePlan:
    """What a snapshot offers, as shown to a user before restoring."""

    format_version: int
    exported_at_epoch_millis: int
    available: t.Dict[Section, int] = field(default_factory=dict)
    """Cleanly decoded sections and their record counts"""
    unreadable: t.Dict[Section, SectionDecodeFailure] = field(default_factory=dict)
    selected: t.List[Section] = field(default_factory=list)

    @property
    def exported_at(self) -> str:
        return epoch_millis_to_iso(self.exported_at_epoch_millis)

    @property
    def warnings(self) -> t.List[str]:
        return [f"{section.label} cannot be restored: {error}" for section, error in self.unreadable.items()]

    def with_selection(self, selection: t.Iterable[SelectionItem]) -> "RestorePlan":
        """Copy of the plan selecting only sections the snapshot can restore."""
        chosen = [section for section in resolve_selection(selection) if section in self.available]
        return RestorePlan(
            format_version=self.format_version,
            exported_at_epoch_millis=self.exported_at_epoch_millis,
            available=dict(self.available),
            unreadable=dict(self.unreadable),
            selected=chosen,
        )


def _notify(callback: t.Optional[ProgressCallback], message: str, current: int, total: int) -> None:
    if callback:
        callback(message, current, total)


class BackupEngine:
    """Exports and restores selected sections.

    The engine keeps no state between calls beyond its adapters and
    codec. Sections are processed one at a time in catalog order.
    """

    def __init__(self, adapters: t.Iterable["StoreAdapter"], codec: t.Optional[SnapshotCodec] = None) -> None:
        """Initialize backup engine.

        Args:
            adapters: Exactly one store adapter per section
            codec: Snapshot codec (default: pretty-printed JSON)
        """
        self.adapters: t.Dict[Section, "StoreAdapter"] = {}
        for adapter in adapters:
            if adapter.section in self.adapters:
                raise ValueError(f"Duplicate adapter for section '{adapter.section.key}'")
            self.adapters[adapter.section] = adapter

        missing = [section.key for section in Section if section not in self.adapters]
        if missing:
            raise ValueError(f"No adapter for section(s): {', '.join(missing)}")

        self.codec = codec or SnapshotCodec()

    @classmethod
    def from_stores(
        cls,
        database: "Database",
        preferences: "PreferencesStore",
        codec: t.Optional[SnapshotCodec] = None,
    ) -> "BackupEngine":
        """Build an engine over the default SQLite and preferences stores."""
        from ..stores.preferences import PreferencesAdapter
        from ..stores.tables import (
            FavoritesAdapter,
            LyricsAdapter,
            SearchHistoryAdapter,
            TransitionsAdapter,
        )

        return cls(
            [
                PreferencesAdapter(preferences),
                FavoritesAdapter(database),
                LyricsAdapter(database),
                SearchHistoryAdapter(database),
                TransitionsAdapter(database),
            ],
            codec=codec,
        )

    def export(
        self,
        selection: t.Iterable[SelectionItem],
        sink: StorageSink,
        progress_callback: t.Optional[ProgressCallback] = None,
        cancel_event: t.Optional[threading.Event] = None,
    ) -> ExportReport:
        """Export the selected sections into ``sink``.

        The snapshot is encoded completely in memory before the sink is
        opened, so a failing adapter never leaves a partial artifact.

        Raises:
            StoreFailure: If an adapter cannot read its store
            SinkUnavailable: If the destination cannot be written
            BackupCancelled: If ``cancel_event`` is set between sections
        """
        started = time.monotonic()
        stage = EngineStage.VALIDATING
        sections = resolve_selection(selection)
        total = len(sections) + 1

        logger.info(
            f"Exporting {len(sections)} section(s) to {sink.describe()}: "
            f"{', '.join(section.key for section in sections) or 'none'}"
        )

        try:
            snapshot = Snapshot(format_version=self.codec.write_version)

            stage = EngineStage.READING
            for index, section in enumerate(sections):
                self._check_cancelled(cancel_event, list(snapshot.sections))
                _notify(progress_callback, f"Reading {section.label}", index, total)

                records = list(self.adapters[section].export())
                snapshot.sections[section] = records
                logger.debug(f"Collected {len(records)} record(s) from {section.key}")

            self._check_cancelled(cancel_event, list(snapshot.sections))
            data = self.codec.encode(snapshot)

            stage = EngineStage.WRITING
            _notify(progress_callback, "Writing snapshot", len(sections), total)
            write_all(sink, data)

        except BackupError as e:
            logger.error(f"Export failed while {stage}: {e}")
            raise

        report = ExportReport(
            format_version=snapshot.format_version,
            exported_at_epoch_millis=snapshot.exported_at_epoch_millis,
            sections={section: len(records) for section, records in snapshot.sections.items()},
            size=len(data),
            duration=time.monotonic() - started,
        )
        _notify(progress_callback, "Backup complete", total, total)
        logger.info(f"Export {EngineStage.COMPLETED}: {len(data)} bytes in {format_duration(report.duration)}")
        return report

    def restore(
        self,
        selection: t.Iterable[SelectionItem],
        source: StorageSink,
        progress_callback: t.Optional[ProgressCallback] = None,
        cancel_event: t.Optional[threading.Event] = None,
    ) -> RestoreReport:
        """Replace the selected sections with the contents of a snapshot.

        Sections are applied independently. A section that fails does not
        stop the others, and sections already applied are not rolled back.

        Raises:
            SinkUnavailable: If the source cannot be read (no store touched)
            CorruptSnapshot: If the snapshot cannot be parsed (no store touched)
            UnsupportedFormat: If the snapshot is too new (no store touched)
            PartialRestoreFailure: If at least one selected section failed
            BackupCancelled: If ``cancel_event`` is set between sections
        """
        started = time.monotonic()
        sections = resolve_selection(selection)

        logger.info(
            f"Restoring {len(sections)} section(s) from {source.describe()}: "
            f"{', '.join(section.key for section in sections) or 'none'}"
        )

        try:
            snapshot = self._read_snapshot(source)
        except BackupError as e:
            logger.error(f"Restore failed while {EngineStage.VALIDATING}: {e}")
            raise

        report = RestoreReport(
            format_version=snapshot.format_version,
            exported_at_epoch_millis=snapshot.exported_at_epoch_millis,
        )

        pending = []
        for section in sections:
            if section in snapshot.decode_failures:
                report.failed[section] = snapshot.decode_failures[section]
            elif snapshot.has_section(section):
                pending.append(section)
            else:
                logger.info(f"Section '{section.key}' not in snapshot, leaving store untouched")
                report.skipped.append(section)

        for index, section in enumerate(pending):
            self._check_cancelled(cancel_event, list(report.restored))
            _notify(progress_callback, f"Restoring {section.label}", index, len(pending))

            records = snapshot.records(section) or []
            try:
                self.adapters[section].replace(records)
            except StoreFailure as e:
                logger.error(f"Failed to restore section '{section.key}': {e}")
                report.failed[section] = e
                continue

            report.restored[section] = len(records)
            logger.debug(f"Restored {len(records)} record(s) into {section.key}")

        report.duration = time.monotonic() - started

        if report.failed:
            logger.error(
                f"Restore {EngineStage.FAILED}: {len(report.restored)} section(s) applied, "
                f"{len(report.failed)} failed ({', '.join(s.key for s in report.failed)})"
            )
            raise PartialRestoreFailure(list(report.restored), report.failed, report=report)

        _notify(progress_callback, "Restore complete", len(pending), len(pending))
        logger.info(
            f"Restore {EngineStage.COMPLETED}: {len(report.restored)} section(s) "
            f"in {format_duration(report.duration)}"
        )
        return report

    def inspect(self, source: StorageSink) -> RestorePlan:
        """Describe what a snapshot contains without touching any store."""
        snapshot = self._read_snapshot(source)

        available = {
            section: len(records)
            for section, records in snapshot.sections.items()
        }
        plan = RestorePlan(
            format_version=snapshot.format_version,
            exported_at_epoch_millis=snapshot.exported_at_epoch_millis,
            available={section: available[section] for section in Section if section in available},
            unreadable=dict(snapshot.decode_failures),
        )
        plan.selected = list(plan.available)
        return plan

    async def export_async(
        self,
        selection: t.Iterable[SelectionItem],
        sink: StorageSink,
        progress_callback: t.Optional[ProgressCallback] = None,
    ) -> ExportReport:
        """Run :meth:`export` in a worker thread.

        Cancelling the awaiting task stops the export before its next section.
        """
        cancel_event = threading.Event()
        try:
            return await asyncio.to_thread(
                self.export, list(selection), sink, progress_callback, cancel_event
            )
        except asyncio.CancelledError:
            cancel_event.set()
            raise

    async def restore_async(
        self,
        selection: t.Iterable[SelectionItem],
        source: StorageSink,
        progress_callback: t.Optional[ProgressCallback] = None,
    ) -> RestoreReport:
        """Run :meth:`restore` in a worker thread.

        Cancelling the awaiting task stops the restore before its next
        section; sections already applied stay applied.
        """
        cancel_event = threading.Event()
        try:
            return await asyncio.to_thread(
                self.restore, list(selection), source, progress_callback, cancel_event
            )
        except asyncio.CancelledError:
            cancel_event.set()
            raise

    def _read_snapshot(self, source: StorageSink) -> Snapshot:
        data = read_all(source)
        snapshot = self.codec.decode(data)
        logger.debug(
            f"Decoded snapshot v{snapshot.format_version} exported at "
            f"{epoch_millis_to_iso(snapshot.exported_at_epoch_millis)}"
        )
        return snapshot

    def _check_cancelled(self, cancel_event: t.Optional[threading.Event], completed: t.List[Section]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.warning("Operation cancelled")
            raise BackupCancelled(completed)
