"""Backup and restore error taxonomy."""

from typing import Dict, List, Optional, Sequence

from .sections import Section


class BackupError(Exception):
    """Base class for every backup or restore failure."""
    pass


class StoreFailure(BackupError):
    """A store adapter could not read, delete or insert."""

    def __init__(self, section: Section, message: str) -> None:
        super().__init__(f"{section.key}: {message}")
        self.section = section


class CorruptSnapshot(BackupError):
    """Snapshot bytes do not parse, or a required top-level field is missing."""
    pass


class UnsupportedFormat(BackupError):
    """Snapshot format version is not one this codec can read."""

    def __init__(self, version: int, max_supported: int) -> None:
        super().__init__(
            f"Unsupported snapshot format version {version} "
            f"(this build reads up to version {max_supported})"
        )
        self.version = version
        self.max_supported = max_supported


class SectionDecodeFailure(BackupError):
    """Records of one section do not match the expected shape."""

    def __init__(self, section: Section, message: str) -> None:
        super().__init__(f"{section.key}: {message}")
        self.section = section


class SinkUnavailable(BackupError):
    """The destination or source stream could not be opened, read or written."""

    def __init__(self, sink: str, message: str) -> None:
        super().__init__(f"{sink}: {message}")
        self.sink = sink


class PartialRestoreFailure(BackupError):
    """Some selected sections were restored, others failed.

    Sections listed in ``succeeded`` stay applied; nothing is rolled back.
    """

    def __init__(
        self,
        succeeded: Sequence[Section],
        failed: Dict[Section, BackupError],
        report: Optional[object] = None,
    ) -> None:
        names = ", ".join(f"{section.key} ({error})" for section, error in failed.items())
        super().__init__(f"Restore partially failed: {names}")
        self.succeeded: List[Section] = list(succeeded)
        self.failed: Dict[Section, BackupError] = dict(failed)
        self.report = report


class BackupCancelled(BackupError):
    """The operation was cancelled between two section steps."""

    def __init__(self, completed: Sequence[Section]) -> None:
        done = ", ".join(section.key for section in completed) or "none"
        super().__init__(f"Operation cancelled (completed sections: {done})")
        self.completed: List[Section] = list(completed)
