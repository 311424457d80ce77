"""Tests for the section catalog."""

import pytest

from tunevault.backup.sections import (
    Section,
    all_sections,
    default_selection,
    resolve_selection,
    section_for_key,
)


class TestSectionCatalog:
    """Test the fixed section catalog."""

    def test_catalog_order_and_keys(self):
        """Test the catalog lists every section in a stable order."""
        assert [s.key for s in all_sections()] == [
            "preferences",
            "favorites",
            "lyrics",
            "search_history",
            "transitions",
        ]

    def test_default_selection_is_everything(self):
        """Test the default selection backs up every section."""
        assert default_selection() == all_sections()

    def test_wire_field_names(self):
        """Test search history uses its camelCase snapshot field."""
        assert Section.SEARCH_HISTORY.field == "searchHistory"
        assert Section.FAVORITES.field == "favorites"

    def test_section_for_key(self):
        """Test lookup by key, wire name and enum name."""
        assert section_for_key("lyrics") is Section.LYRICS
        assert section_for_key("searchHistory") is Section.SEARCH_HISTORY
        assert section_for_key("SEARCH_HISTORY") is Section.SEARCH_HISTORY

        with pytest.raises(KeyError):
            section_for_key("playlists")


class TestResolveSelection:
    """Test intersecting caller selections with the catalog."""

    def test_unknown_keys_are_dropped(self):
        """Test unknown keys never fail the selection."""
        assert resolve_selection(["favorites", "playlists", "equalizer"]) == [Section.FAVORITES]

    def test_result_in_catalog_order_without_duplicates(self):
        """Test ordering and de-duplication."""
        selection = [Section.TRANSITIONS, "favorites", Section.FAVORITES, "preferences"]

        assert resolve_selection(selection) == [
            Section.PREFERENCES,
            Section.FAVORITES,
            Section.TRANSITIONS,
        ]

    def test_empty_selection(self):
        """Test an empty selection stays empty."""
        assert resolve_selection([]) == []
