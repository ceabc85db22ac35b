"""
Tests for data explorer session state.
"""

import pandas as pd
import pytest

from footballviz.data.explorer import DataExplorer
from footballviz.errors import APIError


def ids(rows):
    return [row.id for row in rows]


@pytest.fixture
def explorer(plays) -> DataExplorer:
    return DataExplorer(plays, page_size=4)


# ============================================================================
# FILTERS AND PAGES
# ============================================================================


def test_defaults(explorer):
    assert explorer.sort_field == "play_id"
    assert explorer.total_pages == 3
    assert ids(explorer.page_rows()) == [1, 2, 3, 4]
    assert explorer.page_label == "Showing 1-4 of 10 plays (page 1 of 3)"


def test_filter_changes_reset_page(explorer):
    explorer.set_page(3)
    flt = explorer.add_filter("down", "equals", 3)
    assert explorer.page == 1
    assert ids(explorer.filtered_rows()) == [1, 4, 7, 9]

    explorer.set_page(2)
    explorer.update_filter(flt.id, value=1)
    assert explorer.page == 1
    assert ids(explorer.filtered_rows()) == [2, 5, 8]

    explorer.remove_filter(flt.id)
    assert len(explorer.filtered_rows()) == 10


def test_update_missing_filter(explorer):
    with pytest.raises(KeyError):
        explorer.update_filter("nope", value=1)


def test_apply_preset_labels_filters(explorer):
    explorer.apply_preset("red_zone")
    assert explorer.filters[0].label == "Red Zone Plays"
    assert ids(explorer.filtered_rows()) == [1, 4, 6, 9]
    explorer.clear_filters()
    assert explorer.filters == []


def test_set_page_is_clamped(explorer):
    explorer.set_page(99)
    assert explorer.page == 3
    explorer.set_page(0)
    assert explorer.page == 1


def test_set_page_size(explorer):
    explorer.set_page(2)
    explorer.set_page_size(5)
    assert (explorer.page, explorer.total_pages) == (1, 2)
    with pytest.raises(ValueError):
        explorer.set_page_size(0)


def test_sort_toggle(explorer):
    explorer.sort_by("yards_gained")
    assert explorer.sort_direction == "asc"
    assert ids(explorer.sorted_rows())[0] == 7
    explorer.sort_by("yards_gained")
    assert explorer.sort_direction == "desc"
    assert ids(explorer.sorted_rows())[0] == 8


def test_empty_filter_result(explorer):
    explorer.add_filter("down", "equals", 4)
    assert explorer.page_rows() == []
    assert explorer.summary() is None
    assert explorer.page_label == "No plays"


# ============================================================================
# COLUMNS AND VIEWS
# ============================================================================


def test_toggle_column(explorer):
    explorer.toggle_column("play_name")
    assert "play_name" in [c.key for c in explorer.visible_columns()]
    with pytest.raises(KeyError):
        explorer.toggle_column("weather")


def test_pinned_columns_first(explorer):
    assert explorer.visible_columns()[0].key == "play_id"


def test_builtin_views(explorer):
    view = explorer.load_view("1")
    assert view.name == "Red Zone Analysis"
    assert (explorer.sort_field, explorer.sort_direction) == ("yard_line", "desc")
    assert ids(explorer.sorted_rows()) == [9, 4, 6, 1]


def test_save_and_load_view(explorer):
    assert explorer.save_view("   ") is None
    explorer.add_filter("play_type", "equals", "Run")
    explorer.sort_by("distance")
    view = explorer.save_view("Runs by distance")
    assert explorer.saved_views[0] is view
    assert view.description == "Custom view with 1 filters"

    explorer.clear_filters()
    explorer.load_view(view.id)
    assert ids(explorer.sorted_rows()) == [9, 6, 3, 2, 8]

    with pytest.raises(KeyError):
        explorer.load_view("missing")


# ============================================================================
# SELECTION
# ============================================================================


def test_plain_and_toggle_selection(explorer):
    explorer.select(2)
    explorer.toggle_selection(5)
    assert explorer.selected == {2, 5}
    explorer.toggle_selection(2)
    assert explorer.selected == {5}


def test_range_selection_follows_sorted_order(explorer):
    explorer.sort_by("yards_gained")
    # ascending yards: 7, 6, 5, 2, 10, 1, 9, 4, 3, 8
    explorer.select(5)
    explorer.select_range(9)
    assert ids(explorer.selected_rows()) == [5, 2, 10, 1, 9]


def test_range_without_anchor_selects_one(explorer):
    explorer.select_range(3)
    assert explorer.selected == {3}


def test_highlight(explorer):
    explorer.toggle_highlight(4)
    assert explorer.highlighted == {4}
    explorer.toggle_highlight(4)
    assert explorer.highlighted == set()


# ============================================================================
# SUMMARY, EXPORT, LOADING
# ============================================================================


def test_summary(explorer):
    explorer.add_filter("down", "equals", 3)
    summary = explorer.summary()
    assert summary.total_plays == 4
    assert summary.total_yards == 22
    assert summary.success_rate == pytest.approx(75.0)
    assert summary.by_play_type == {"Pass": 3, "Run": 1}


def test_export_uses_labels(explorer, tmp_path):
    path = explorer.export_csv(tmp_path / "page.csv")
    frame = pd.read_csv(path)
    assert frame.columns[0] == "Play #"
    assert len(frame) == 4
    full = pd.read_csv(explorer.export_csv(tmp_path / "all.csv", page_only=False))
    assert len(full) == 10


def test_export_filename(explorer):
    assert explorer.export_filename("Eagles").startswith("Eagles_play_data_")


class FakeConsultant:
    def __init__(self, plays=None, error=None):
        self.plays = plays
        self.error = error

    async def get_team_play_data(self, team_id):
        if self.error:
            raise self.error
        return self.plays


@pytest.mark.asyncio
async def test_load(plays):
    explorer = DataExplorer()
    await explorer.load(4, FakeConsultant(plays=plays))
    assert len(explorer.plays) == 10
    assert not explorer.loading


@pytest.mark.asyncio
async def test_load_failure_sets_banner():
    explorer = DataExplorer()
    await explorer.load(4, FakeConsultant(error=APIError("Team not found", 404)))
    assert explorer.error
    assert explorer.error.message == "Team not found"
    assert explorer.plays == []
