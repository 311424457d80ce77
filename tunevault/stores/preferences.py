"""Typed key/value preferences store and its adapter."""

import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Sequence

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ..backup.errors import StoreFailure
from ..backup.records import BackupRecord, PreferenceEntry
from ..backup.sections import Section
from ..util.logging import get_logger
from ..util.paths import ensure_directory
from .base import StoreAdapter

logger = get_logger(__name__)


class PreferencesStore:
    """Preferences kept in a YAML file as ``key: {type, value}`` entries."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _load(self) -> Dict[str, Dict[str, Any]]:
        if not self.path.exists():
            return {}

        yaml = YAML(typ="safe")
        with open(self.path, "r", encoding="utf-8") as f:
            data = yaml.load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Preferences file {self.path} does not hold a mapping")
        return data

    def _save(self, data: Dict[str, Dict[str, Any]]) -> None:
        """Write the whole file atomically."""
        ensure_directory(self.path.parent)

        yaml = YAML()
        yaml.default_flow_style = False

        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.dump(data, f)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def get(self, key: str, default: Any = None) -> Any:
        """Get a preference value."""
        entry = self._load().get(key)
        if entry is None:
            return default
        return entry.get("value", default)

    def set(self, key: str, value_type: str, value: Any) -> None:
        """Set a preference, validating the value against its type."""
        entry = PreferenceEntry(key=key, type=value_type, value=value)
        data = self._load()
        data[key] = {"type": entry.type, "value": entry.value}
        self._save(data)

    def export_for_backup(self) -> List[PreferenceEntry]:
        """Get every preference as typed entries sorted by key."""
        data = self._load()
        return [
            PreferenceEntry(key=key, type=item.get("type"), value=item.get("value"))
            for key, item in sorted(data.items())
        ]

    def import_from_backup(self, entries: Sequence[PreferenceEntry], clear_existing: bool = True) -> None:
        """Write entries into the store.

        With ``clear_existing`` the store holds exactly ``entries``
        afterwards; otherwise they are laid over the current values.
        """
        data: Dict[str, Dict[str, Any]] = {} if clear_existing else self._load()
        for entry in entries:
            data[entry.key] = {"type": entry.type, "value": entry.value}
        self._save(data)


class PreferencesAdapter(StoreAdapter):
    section = Section.PREFERENCES

    def __init__(self, store: PreferencesStore) -> None:
        self.store = store

    def export(self) -> List[BackupRecord]:
        try:
            entries = self.store.export_for_backup()
        except (OSError, YAMLError, ValueError, AttributeError) as e:
            logger.error(f"Failed to read preferences from {self.store.path}: {e}")
            raise StoreFailure(self.section, f"cannot read preferences: {e}") from e

        logger.debug(f"Read {len(entries)} preferences")
        return list(entries)

    def replace(self, records: Sequence[BackupRecord]) -> None:
        entries: List[PreferenceEntry] = []
        for record in records:
            if not isinstance(record, PreferenceEntry):
                raise StoreFailure(self.section, f"expected PreferenceEntry, got {type(record).__name__}")
            entries.append(record)

        try:
            self.store.import_from_backup(entries, clear_existing=True)
        except (OSError, YAMLError) as e:
            logger.error(f"Failed to write preferences to {self.store.path}: {e}")
            raise StoreFailure(self.section, f"cannot write preferences: {e}") from e

        logger.debug(f"Replaced preferences with {len(entries)} entries")
