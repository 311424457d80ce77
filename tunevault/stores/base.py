"""Store adapter contract."""

from abc import ABC, abstractmethod
from typing import List, Sequence

from ..backup.records import BackupRecord
from ..backup.sections import Section


class StoreAdapter(ABC):
    """Moves the full contents of one store in and out of a snapshot.

    Implementations raise ``StoreFailure`` when the underlying storage
    cannot complete a read, delete or insert.
    """

    section: Section

    @abstractmethod
    def export(self) -> List[BackupRecord]:
        """Read every record of the store in a stable order without mutating it."""

    @abstractmethod
    def replace(self, records: Sequence[BackupRecord]) -> None:
        """Delete every existing record, then insert ``records``.

        An empty sequence leaves the store empty. Never merges.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(section={self.section.key!r})"
