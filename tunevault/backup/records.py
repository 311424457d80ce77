"""Record models for each backup section.

Wire names are camelCase to match the snapshot file format; Python
attributes stay snake_case. Validation is strict so that a snapshot
carrying mistyped values is reported instead of silently coerced.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .sections import Section

PreferenceType = Literal["string", "int", "long", "boolean", "float", "double", "string_set"]

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

# SQLite INTEGER columns hold signed 64-bit values
Int64 = Annotated[int, Field(ge=INT64_MIN, le=INT64_MAX)]


class BackupRecord(BaseModel):
    """Base model shared by every section record."""

    model_config = ConfigDict(populate_by_name=True, strict=True, extra="ignore", frozen=True)

    def to_wire(self) -> Dict[str, Any]:
        """Dump the record using wire field names."""
        return self.model_dump(by_alias=True)


class PreferenceEntry(BackupRecord):
    """Typed preference key/value pair."""

    key: str = Field(description="Preference key")
    type: PreferenceType = Field(description="Declared value type")
    value: Any = Field(description="Value matching the declared type")

    @model_validator(mode="after")
    def _check_value_type(self) -> "PreferenceEntry":
        value = self.value
        kind = self.type

        if kind == "string":
            ok = isinstance(value, str)
        elif kind in ("int", "long"):
            low, high = (INT32_MIN, INT32_MAX) if kind == "int" else (INT64_MIN, INT64_MAX)
            ok = isinstance(value, int) and not isinstance(value, bool) and low <= value <= high
        elif kind == "boolean":
            ok = isinstance(value, bool)
        elif kind in ("float", "double"):
            ok = isinstance(value, (int, float)) and not isinstance(value, bool)
            if ok:
                object.__setattr__(self, "value", float(value))
        else:
            ok = isinstance(value, (list, tuple, set, frozenset)) and all(
                isinstance(item, str) for item in value
            )
            if ok:
                # Sets have no JSON form; keep a sorted, de-duplicated list
                object.__setattr__(self, "value", sorted(set(value)))

        if not ok:
            raise ValueError(f"value {value!r} does not match type '{kind}' for key '{self.key}'")
        return self


class FavoriteRecord(BackupRecord):
    """Favorited song."""

    song_id: Int64 = Field(alias="songId")
    is_favorite: bool = Field(default=True, alias="isFavorite")
    timestamp: Int64 = Field(default=0, description="When the song was favorited (epoch ms)")


class LyricsRecord(BackupRecord):
    """Cached lyrics for one song."""

    song_id: Int64 = Field(alias="songId")
    content: str
    is_synced: bool = Field(default=False, alias="isSynced")
    source: Optional[str] = Field(default=None, description="Where the lyrics came from")


class SearchHistoryRecord(BackupRecord):
    """One past search query."""

    id: Optional[Int64] = None
    query: str
    timestamp: Int64 = Field(description="When the search ran (epoch ms)")


class TransitionRuleRecord(BackupRecord):
    """Crossfade rule between tracks of a playlist."""

    id: Optional[Int64] = None
    playlist_id: str = Field(alias="playlistId")
    from_track_id: Optional[str] = Field(default=None, alias="fromTrackId")
    to_track_id: Optional[str] = Field(default=None, alias="toTrackId")
    mode: str = "OVERLAP"
    duration_ms: Int64 = Field(default=6000, alias="durationMs")
    curve_in: str = Field(default="S_CURVE", alias="curveIn")
    curve_out: str = Field(default="S_CURVE", alias="curveOut")
    enabled: bool = True


RECORD_TYPES: Dict[Section, Type[BackupRecord]] = {
    Section.PREFERENCES: PreferenceEntry,
    Section.FAVORITES: FavoriteRecord,
    Section.LYRICS: LyricsRecord,
    Section.SEARCH_HISTORY: SearchHistoryRecord,
    Section.TRANSITIONS: TransitionRuleRecord,
}


def record_type_for(section: Section) -> Type[BackupRecord]:
    """Get the record model used by a section."""
    return RECORD_TYPES[section]


def records_to_wire(records: List[BackupRecord]) -> List[Dict[str, Any]]:
    """Dump a record list using wire field names."""
    return [record.to_wire() for record in records]
