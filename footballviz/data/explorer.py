"""
Data explorer session state for one team's plays.

Holds the play list plus every view setting a consultant can change:
active filters, sort, pagination, column visibility / pinning, saved views
and row selection. Derived rows (filtered, sorted, paged) are recomputed
from the untouched play list on demand.

Usage:
    explorer = DataExplorer()
    await explorer.load(team_id=4, consultant=ConsultantService(client))
    explorer.apply_preset("red_zone")
    explorer.sort_by("yards_gained")
    for play in explorer.page_rows():
        ...
"""

import logging
import math
import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Sequence, Set, Union

from footballviz.config import settings
from footballviz.data.models.query import FilterPreset, FlatFilter
from footballviz.data.pipeline import (
    apply_filters,
    export_csv,
    paginate,
    record_value,
    sort_plays,
    to_number,
    total_pages,
)
from footballviz.data.presets import get_preset
from footballviz.errors import ErrorBanner, FootballVizError

logger = logging.getLogger(__name__)

Direction = Literal["asc", "desc"]
Pinned = Optional[Literal["left", "right"]]


@dataclass
class Column:
    key: str
    label: str
    type: Literal["number", "string"]
    width: int = 100
    visible: bool = True
    pinned: Pinned = None


def default_columns() -> List[Column]:
    return [
        Column("play_id", "Play #", "number", 80, True, "left"),
        Column("game_week", "Week", "number", 80),
        Column("game_opponent", "Opponent", "string", 120),
        Column("down", "Down", "number", 80),
        Column("distance", "Distance", "number", 100),
        Column("yard_line", "Yard Line", "number", 100),
        Column("formation", "Formation", "string", 140),
        Column("play_type", "Play Type", "string", 120),
        Column("play_name", "Play Name", "string", 180, False),
        Column("result_of_play", "Result", "string", 150, False),
        Column("yards_gained", "Yards", "number", 80),
        Column("points_scored", "Points", "number", 80, False),
        Column("unit", "Unit", "string", 80),
        Column("quarter", "Quarter", "number", 80, False),
        Column("time_remaining", "Time", "string", 100, False),
    ]


@dataclass
class SavedView:
    id: str
    name: str
    description: str
    columns: List[Column]
    filters: List[FlatFilter]
    sort_field: str
    sort_direction: Direction
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())


def _columns_showing(keys: Sequence[str]) -> List[Column]:
    return [replace(column, visible=column.key in keys) for column in default_columns()]


def builtin_views() -> List[SavedView]:
    return [
        SavedView(
            id="1",
            name="Red Zone Analysis",
            description="Plays in the red zone with key metrics",
            columns=_columns_showing(
                ["play_id", "yard_line", "play_type", "yards_gained", "points_scored"]
            ),
            filters=[
                FlatFilter(
                    id="1",
                    field="yard_line",
                    operator="greater_equal",
                    value=80,
                    label="Red Zone (80+ yard line)",
                )
            ],
            sort_field="yard_line",
            sort_direction="desc",
        ),
        SavedView(
            id="2",
            name="Third Down Situations",
            description="All third down plays with context",
            columns=_columns_showing(
                ["play_id", "down", "distance", "formation", "play_type", "yards_gained"]
            ),
            filters=[
                FlatFilter(id="2", field="down", operator="equals", value=3, label="Third Down")
            ],
            sort_field="distance",
            sort_direction="asc",
            created_at=(datetime.now() - timedelta(days=1)).isoformat(),
        ),
    ]


@dataclass
class ExplorerSummary:
    total_plays: int
    total_yards: float
    avg_yards: float
    success_rate: float
    by_play_type: Dict[str, int]


class DataExplorer:
    """
    Filter / sort / paginate / select state over a fixed play list.

    Every change to the filters resets the view to page 1.
    """

    def __init__(self, plays: Optional[Sequence[Any]] = None, page_size: Optional[int] = None):
        self.plays: List[Any] = list(plays or [])
        self.page_size = page_size or settings.EXPLORER_PAGE_SIZE
        self.page = 1
        self.filters: List[FlatFilter] = []
        self.sort_field: Optional[str] = "play_id"
        self.sort_direction: Direction = "asc"
        self.columns: List[Column] = default_columns()
        self.saved_views: List[SavedView] = builtin_views()
        self.selected: Set[Any] = set()
        self.highlighted: Set[Any] = set()
        self.last_clicked: Optional[Any] = None
        self.loading = False
        self.error = ErrorBanner()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self, team_id: int, consultant: Any) -> None:
        """Fetch the team's plays; failures go to the error banner."""
        self.loading = True
        try:
            self.set_plays(await consultant.get_team_play_data(team_id))
        except FootballVizError as e:
            logger.warning(f"Failed to load play data for team {team_id}: {e}")
            self.error.show(e, "Failed to load play data")
        finally:
            self.loading = False

    def set_plays(self, plays: Sequence[Any]) -> None:
        self.plays = list(plays)
        self.selected.clear()
        self.last_clicked = None
        self.page = 1

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def add_filter(
        self, field: str = "", operator: str = "", value: Any = "", label: str = ""
    ) -> FlatFilter:
        flt = FlatFilter(
            id=uuid.uuid4().hex[:12], field=field, operator=operator, value=value, label=label
        )
        self.filters = self.filters + [flt]
        self.page = 1
        return flt

    def update_filter(self, filter_id: str, **changes: Any) -> None:
        if not any(flt.id == filter_id for flt in self.filters):
            raise KeyError(f"No active filter with id {filter_id}")
        self.filters = [
            flt.model_copy(update=changes) if flt.id == filter_id else flt
            for flt in self.filters
        ]
        self.page = 1

    def remove_filter(self, filter_id: str) -> None:
        self.filters = [flt for flt in self.filters if flt.id != filter_id]
        self.page = 1

    def clear_filters(self) -> None:
        self.filters = []
        self.page = 1

    def apply_preset(self, preset: Union[str, FilterPreset]) -> None:
        """Append a preset's filters (by key, name or model)."""
        if isinstance(preset, str):
            found = get_preset(preset)
            if found is None:
                raise KeyError(f"Unknown preset: {preset}")
            preset = found
        for flt in preset.filters:
            self.add_filter(flt.field, flt.operator, flt.value, flt.label or preset.name)

    # ------------------------------------------------------------------
    # Derived rows
    # ------------------------------------------------------------------

    def filtered_rows(self) -> List[Any]:
        return apply_filters(self.plays, self.filters)

    def sorted_rows(self) -> List[Any]:
        return sort_plays(self.filtered_rows(), self.sort_field, self.sort_direction)

    def page_rows(self) -> List[Any]:
        return paginate(self.sorted_rows(), self.page, self.page_size)

    @property
    def total_pages(self) -> int:
        return total_pages(len(self.filtered_rows()), self.page_size)

    # ------------------------------------------------------------------
    # Sort and pagination
    # ------------------------------------------------------------------

    def sort_by(self, field: str) -> None:
        """Same field toggles direction; a new field sorts ascending."""
        if self.sort_field == field:
            self.sort_direction = "desc" if self.sort_direction == "asc" else "asc"
        else:
            self.sort_field = field
            self.sort_direction = "asc"

    def set_page(self, page: int) -> None:
        last = max(self.total_pages, 1)
        self.page = min(max(page, 1), last)

    def set_page_size(self, page_size: int) -> None:
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self.page_size = page_size
        self.page = 1

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    def toggle_column(self, key: str) -> None:
        if not any(column.key == key for column in self.columns):
            raise KeyError(f"Unknown column: {key}")
        self.columns = [
            replace(column, visible=not column.visible) if column.key == key else column
            for column in self.columns
        ]

    def visible_columns(self) -> List[Column]:
        """Visible columns: left-pinned first, right-pinned last, others in order."""
        order = {"left": 0, None: 1, "right": 2}
        visible = [column for column in self.columns if column.visible]
        return sorted(visible, key=lambda column: order[column.pinned])

    # ------------------------------------------------------------------
    # Saved views
    # ------------------------------------------------------------------

    def save_view(self, name: str) -> Optional[SavedView]:
        """Snapshot columns, filters and sort. Blank names are ignored."""
        name = name.strip()
        if not name:
            return None
        view = SavedView(
            id=uuid.uuid4().hex[:12],
            name=name,
            description=f"Custom view with {len(self.filters)} filters",
            columns=[replace(column) for column in self.columns],
            filters=[flt.model_copy() for flt in self.filters],
            sort_field=self.sort_field or "play_id",
            sort_direction=self.sort_direction,
        )
        self.saved_views = [view] + self.saved_views
        return view

    def load_view(self, view_id: str) -> SavedView:
        for view in self.saved_views:
            if view.id == view_id:
                self.columns = [replace(column) for column in view.columns]
                self.filters = [flt.model_copy() for flt in view.filters]
                self.sort_field = view.sort_field
                self.sort_direction = view.sort_direction
                self.page = 1
                return view
        raise KeyError(f"No saved view with id {view_id}")

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def _row_id(self, play: Any) -> Any:
        return record_value(play, "id")

    def select(self, row_id: Any) -> None:
        """Plain click: select only this row."""
        self.selected = {row_id}
        self.last_clicked = row_id

    def toggle_selection(self, row_id: Any) -> None:
        """Ctrl/Cmd click."""
        if row_id in self.selected:
            self.selected.discard(row_id)
        else:
            self.selected.add(row_id)
        self.last_clicked = row_id

    def select_range(self, row_id: Any) -> None:
        """
        Shift click: add every row between the last clicked row and this one,
        in the current sorted order. Without an anchor it acts as select().
        """
        order = [self._row_id(play) for play in self.sorted_rows()]
        if self.last_clicked is None or self.last_clicked not in order or row_id not in order:
            self.select(row_id)
            return
        start, end = sorted((order.index(self.last_clicked), order.index(row_id)))
        self.selected.update(order[start : end + 1])
        self.last_clicked = row_id

    def clear_selection(self) -> None:
        self.selected = set()
        self.last_clicked = None

    def selected_rows(self) -> List[Any]:
        return [play for play in self.sorted_rows() if self._row_id(play) in self.selected]

    def toggle_highlight(self, row_id: Any) -> None:
        if row_id in self.highlighted:
            self.highlighted.discard(row_id)
        else:
            self.highlighted.add(row_id)

    # ------------------------------------------------------------------
    # Summary and export
    # ------------------------------------------------------------------

    def summary(self) -> Optional[ExplorerSummary]:
        """Totals over the filtered rows; None when nothing matches."""
        rows = self.filtered_rows()
        if not rows:
            return None
        yards = [to_number(record_value(play, "yards_gained")) or 0.0 for play in rows]
        by_play_type: Dict[str, int] = {}
        for play in rows:
            play_type = str(record_value(play, "play_type"))
            by_play_type[play_type] = by_play_type.get(play_type, 0) + 1
        total_yards = sum(yards)
        return ExplorerSummary(
            total_plays=len(rows),
            total_yards=total_yards,
            avg_yards=total_yards / len(rows),
            success_rate=sum(1 for value in yards if value > 0) / len(rows) * 100,
            by_play_type=by_play_type,
        )

    def export_filename(self, team_name: str) -> str:
        return f"{team_name}_play_data_{date.today().isoformat()}.csv"

    def export_csv(self, path: Union[str, Path], page_only: bool = True) -> Path:
        """
        Write visible columns (labels as header) to CSV.

        Args:
            path: Destination file
            page_only: Export the current page (default) or all filtered rows
        """
        rows = self.page_rows() if page_only else self.sorted_rows()
        columns = self.visible_columns()
        return export_csv(
            rows,
            [column.key for column in columns],
            path,
            headers=[column.label for column in columns],
        )

    @property
    def page_label(self) -> str:
        count = len(self.filtered_rows())
        if count == 0:
            return "No plays"
        first = (self.page - 1) * self.page_size + 1
        last = min(self.page * self.page_size, count)
        return f"Showing {first}-{last} of {count} plays (page {self.page} of {math.ceil(count / self.page_size)})"
