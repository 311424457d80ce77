"""Snapshot model and JSON codec.

Layout of format version 1::

    {
      "formatVersion": 1,
      "exportedAtEpochMillis": 1718000000000,
      "preferences": [{"key": ..., "type": ..., "value": ...}],
      "favorites": [...],
      "lyrics": [...],
      "searchHistory": [...],
      "transitions": [...]
    }

Section fields that were not exported are left out of the document.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from ..util.logging import get_logger
from ..util.timeutil import now_epoch_millis
from .errors import CorruptSnapshot, SectionDecodeFailure, UnsupportedFormat
from .records import BackupRecord, record_type_for, records_to_wire
from .sections import Section

logger = get_logger(__name__)

FORMAT_VERSION_FIELD = "formatVersion"
EXPORTED_AT_FIELD = "exportedAtEpochMillis"
LEGACY_EXPORTED_AT_FIELD = "exportedAtEpochMs"

CURRENT_FORMAT_VERSION = 1
MAX_FORMAT_VERSION = 1


@dataclass
class Snapshot:
    """In-memory aggregate of exported section data.

    A section missing from ``sections`` was not exported. A section
    mapped to an empty list was exported and held no records.
    """

    format_version: int = CURRENT_FORMAT_VERSION
    exported_at_epoch_millis: int = field(default_factory=now_epoch_millis)
    sections: Dict[Section, List[BackupRecord]] = field(default_factory=dict)
    decode_failures: Dict[Section, SectionDecodeFailure] = field(default_factory=dict)

    def has_section(self, section: Section) -> bool:
        """Check whether a section was exported and decoded cleanly."""
        return section in self.sections

    def records(self, section: Section) -> Optional[List[BackupRecord]]:
        """Get the records of a section, or None when it is absent."""
        return self.sections.get(section)

    @property
    def present_sections(self) -> List[Section]:
        """Sections present in the snapshot, in catalog order."""
        return [
            section for section in Section
            if section in self.sections or section in self.decode_failures
        ]


SectionDecoder = Callable[[Dict[str, Any], Snapshot], None]


class SnapshotCodec:
    """Encodes snapshots to JSON bytes and decodes them back."""

    def __init__(self, indent: Optional[int] = 2) -> None:
        self.indent = indent
        self._decoders: Dict[int, SectionDecoder] = {
            1: self._decode_sections_v1,
        }

    @property
    def write_version(self) -> int:
        """Format version used for new snapshots."""
        return CURRENT_FORMAT_VERSION

    @property
    def supported_versions(self) -> List[int]:
        """Format versions this codec can read."""
        return sorted(self._decoders)

    def encode(self, snapshot: Snapshot) -> bytes:
        """Serialize a snapshot to UTF-8 JSON bytes."""
        document: Dict[str, Any] = {
            FORMAT_VERSION_FIELD: snapshot.format_version,
            EXPORTED_AT_FIELD: snapshot.exported_at_epoch_millis,
        }
        for section in Section:
            records = snapshot.sections.get(section)
            if records is None:
                continue
            document[section.field] = records_to_wire(records)

        text = json.dumps(document, indent=self.indent, ensure_ascii=False)
        return text.encode("utf-8")

    def decode(self, data: bytes) -> Snapshot:
        """Parse snapshot bytes.

        Raises:
            CorruptSnapshot: If the bytes are not a JSON object or lack a
                usable ``formatVersion``
            UnsupportedFormat: If the format version cannot be read by
                this codec
        """
        document = self._parse_document(data)

        if FORMAT_VERSION_FIELD not in document:
            raise CorruptSnapshot(f"Snapshot has no '{FORMAT_VERSION_FIELD}' field")

        version = document[FORMAT_VERSION_FIELD]
        if not isinstance(version, int) or isinstance(version, bool):
            raise CorruptSnapshot(f"Snapshot '{FORMAT_VERSION_FIELD}' is not an integer: {version!r}")

        if version > MAX_FORMAT_VERSION or version not in self._decoders:
            raise UnsupportedFormat(version, MAX_FORMAT_VERSION)

        snapshot = Snapshot(
            format_version=version,
            exported_at_epoch_millis=self._read_exported_at(document),
        )
        self._decoders[version](document, snapshot)

        for section, failure in snapshot.decode_failures.items():
            logger.warning(f"Section '{section.key}' could not be decoded: {failure}")

        return snapshot

    def _parse_document(self, data: bytes) -> Dict[str, Any]:
        """Parse raw bytes into the top-level JSON object."""
        if not data:
            raise CorruptSnapshot("Snapshot is empty")

        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise CorruptSnapshot(f"Snapshot is not UTF-8 text: {e}") from e

        try:
            document = json.loads(text)
        except (json.JSONDecodeError, RecursionError) as e:
            raise CorruptSnapshot(f"Snapshot is not valid JSON: {e}") from e

        if not isinstance(document, dict):
            raise CorruptSnapshot(f"Snapshot root must be an object, got {type(document).__name__}")

        return document

    def _read_exported_at(self, document: Dict[str, Any]) -> int:
        """Read the export timestamp, accepting the legacy field name."""
        value = document.get(EXPORTED_AT_FIELD, document.get(LEGACY_EXPORTED_AT_FIELD))
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if value is not None:
            logger.warning(f"Ignoring non-integer export timestamp: {value!r}")
        return 0

    def _decode_sections_v1(self, document: Dict[str, Any], snapshot: Snapshot) -> None:
        """Decode every section field of a version 1 document."""
        for section in Section:
            raw = document.get(section.field)
            if raw is None:
                continue
            try:
                snapshot.sections[section] = self._decode_records(section, raw)
            except SectionDecodeFailure as e:
                snapshot.decode_failures[section] = e

    def _decode_records(self, section: Section, raw: Any) -> List[BackupRecord]:
        """Validate the raw entries of one section."""
        if not isinstance(raw, list):
            raise SectionDecodeFailure(section, f"expected a list, got {type(raw).__name__}")

        record_type = record_type_for(section)
        records = []
        for index, entry in enumerate(raw):
            if not isinstance(entry, dict):
                raise SectionDecodeFailure(
                    section, f"entry {index} is {type(entry).__name__}, expected an object"
                )
            try:
                records.append(record_type.model_validate(entry))
            except ValidationError as e:
                raise SectionDecodeFailure(
                    section, f"entry {index} is malformed: {e.error_count()} validation error(s)"
                ) from e

        return records
