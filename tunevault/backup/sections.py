"""Catalog of backup-able sections."""

from enum import Enum
from typing import Iterable, List, Union

from ..util.logging import get_logger

logger = get_logger(__name__)


class Section(Enum):
    """A named, independently stored subset of app data.

    The catalog is closed: adding a section means adding a member here
    and registering a matching store adapter.
    """

    PREFERENCES = ("preferences", "preferences", "Preferences")
    FAVORITES = ("favorites", "favorites", "Favorites")
    LYRICS = ("lyrics", "lyrics", "Lyrics cache")
    SEARCH_HISTORY = ("search_history", "searchHistory", "Search history")
    TRANSITIONS = ("transitions", "transitions", "Transition rules")

    def __init__(self, key: str, field: str, label: str) -> None:
        self.key = key
        self.field = field
        self.label = label

    def __repr__(self) -> str:
        return f"Section.{self.name}"


SelectionItem = Union[Section, str]


def all_sections() -> List[Section]:
    """Get every known section in catalog order."""
    return list(Section)


def default_selection() -> List[Section]:
    """Get the default selection (back up everything)."""
    return all_sections()


def section_for_key(key: str) -> Section:
    """Look up a section by key or wire field name (case-insensitive).

    Raises:
        KeyError: If no section matches
    """
    wanted = key.strip().lower()
    for section in Section:
        if wanted in (section.key, section.field.lower(), section.name.lower()):
            return section
    raise KeyError(key)


def resolve_selection(selection: Iterable[SelectionItem]) -> List[Section]:
    """Intersect a caller selection with the catalog.

    Unknown keys are dropped. The result is in catalog order with no
    duplicates, whatever order the caller used.
    """
    chosen = set()
    for item in selection:
        if isinstance(item, Section):
            chosen.add(item)
            continue
        try:
            chosen.add(section_for_key(str(item)))
        except KeyError:
            logger.debug(f"Ignoring unknown section key: {item!r}")

    return [section for section in Section if section in chosen]
