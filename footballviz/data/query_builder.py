"""
Custom query builder session.

Owns one root QueryGroup plus everything around it: the field schema,
remote presets, the game list and selection, server-side stats and
results. Tree edits delegate to footballviz.data.logic_group and each one
schedules a debounced stats refresh; an empty root never hits the server.

Usage:
    async with ApiClient() as client:
        builder = QueryBuilder(client, on_results=chart.load_rows)
        await builder.load()
        builder.add_condition()
        builder.add_group()
        builder.add_condition(path=(1,))
        await builder.refresh_stats()
        rows = await builder.execute()
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from rich.tree import Tree

from footballviz.api.client import ApiClient
from footballviz.api.filters import FilterService
from footballviz.api.games import GameService
from footballviz.config import settings
from footballviz.data import logic_group
from footballviz.data.evaluator import filter_by_group
from footballviz.data.models.plays import Game
from footballviz.data.models.query import (
    FieldSchema,
    FilterPreset,
    LogicOperator,
    QueryGroup,
    QueryStats,
)
from footballviz.data.pipeline import PlaySummary, summarize
from footballviz.data.presets import preset_to_group
from footballviz.errors import ErrorBanner, FootballVizError
from footballviz.scheduling import Debouncer

logger = logging.getLogger(__name__)

ResultHandler = Callable[[List[Dict[str, Any]]], Any]


def empty_query() -> QueryGroup:
    return QueryGroup(operator=LogicOperator.AND, conditions=[])


class QueryBuilder:
    """
    Args:
        client: Shared ApiClient
        on_results: Called with the rows of every successful execute()
        stats_delay: Debounce for stats refresh (default QUERY_STATS_DEBOUNCE_SECONDS)
        max_level: Nesting cap for add_group (default QUERY_MAX_NESTING_LEVEL)
    """

    def __init__(
        self,
        client: ApiClient,
        on_results: Optional[ResultHandler] = None,
        stats_delay: Optional[float] = None,
        max_level: Optional[int] = None,
    ):
        self.filters = FilterService(client)
        self.games_api = GameService(client)
        self.on_results = on_results
        self.max_level = settings.QUERY_MAX_NESTING_LEVEL if max_level is None else max_level

        self.query: QueryGroup = empty_query()
        self.schema: Optional[FieldSchema] = None
        self.presets: Dict[str, FilterPreset] = {}
        self.games: List[Game] = []
        self.selected_game: Optional[int] = None
        self.stats: Optional[QueryStats] = None
        self.results: List[Dict[str, Any]] = []
        self.loading = False
        self.error = ErrorBanner()

        delay = settings.QUERY_STATS_DEBOUNCE_SECONDS if stats_delay is None else stats_delay
        self._stats_debouncer = Debouncer(delay, self.refresh_stats)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self) -> None:
        """Fetch schema, presets and games together; the first game is selected."""
        schema, presets, games = await asyncio.gather(
            self.filters.get_schema(),
            self.filters.get_presets(),
            self.games_api.list_games(),
            return_exceptions=True,
        )

        for name, result in (("filter schema", schema), ("filter presets", presets), ("games", games)):
            if isinstance(result, BaseException):
                if not isinstance(result, FootballVizError):
                    raise result
                logger.warning(f"Failed to load {name}: {result}")
                self.error.show(result, f"Failed to load {name}")

        if not isinstance(schema, BaseException):
            self.schema = schema
        if not isinstance(presets, BaseException):
            self.presets = presets.presets
        if not isinstance(games, BaseException):
            self.games = games
            if games:
                self.selected_game = games[0].id

    @property
    def ready(self) -> bool:
        return self.schema is not None

    # ------------------------------------------------------------------
    # Tree edits
    # ------------------------------------------------------------------

    def _set_query(self, query: QueryGroup) -> None:
        self.query = query
        self._schedule_stats()

    def _schedule_stats(self) -> None:
        if self.query.is_empty:
            self._stats_debouncer.cancel()
            self.stats = None
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # No loop: the caller refreshes explicitly
            return
        self._stats_debouncer.trigger()

    def set_query(self, query: Any) -> None:
        """Replace the tree (a QueryGroup or its wire / tagged dict form)."""
        if not isinstance(query, QueryGroup):
            query = QueryGroup.model_validate(query)
        self._set_query(query)

    def add_condition(self, path: Sequence[int] = ()) -> None:
        self._set_query(logic_group.add_condition(self.query, path))

    def add_group(self, path: Sequence[int] = ()) -> None:
        self._set_query(logic_group.add_group(self.query, path, self.max_level))

    def can_add_group(self, path: Sequence[int] = ()) -> bool:
        return logic_group.can_add_group(len(path), self.max_level)

    def update_condition(self, index: int, node: Any, path: Sequence[int] = ()) -> None:
        self._set_query(logic_group.update_condition(self.query, index, node, path))

    def update_nested_group(self, index: int, nested: QueryGroup, path: Sequence[int] = ()) -> None:
        self._set_query(logic_group.update_nested_group(self.query, index, nested, path))

    def remove_condition(self, index: int, path: Sequence[int] = ()) -> None:
        self._set_query(logic_group.remove_condition(self.query, index, path))

    def change_operator(self, operator: Any, path: Sequence[int] = ()) -> None:
        self._set_query(logic_group.change_operator(self.query, operator, path))

    def apply_preset(self, key: str) -> bool:
        """
        Replace the tree with a remote preset's filters (ANDed).

        Returns:
            False when the preset key is unknown (tree left as is)
        """
        preset = self.presets.get(key)
        if preset is None:
            return False
        self._set_query(preset_to_group(preset))
        return True

    def select_game(self, game_id: Optional[int]) -> None:
        self.selected_game = game_id
        self._schedule_stats()

    def clear(self) -> None:
        self._stats_debouncer.cancel()
        self.query = empty_query()
        self.stats = None
        self.results = []

    # ------------------------------------------------------------------
    # Remote stats and execution
    # ------------------------------------------------------------------

    async def refresh_stats(self) -> Optional[QueryStats]:
        if self.query.is_empty:
            self.stats = None
            return None

        self.loading = True
        try:
            self.stats = await self.filters.query_stats(self.query, self.selected_game)
        except FootballVizError as e:
            logger.warning(f"Failed to get query stats: {e}")
            self.stats = None
            self.error.show(e, "Failed to get query stats")
        finally:
            self.loading = False
        return self.stats

    async def flush_stats(self) -> None:
        """Wait for a scheduled stats refresh to land."""
        await self._stats_debouncer.flush()

    async def execute(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Run the tree server-side and hand the rows to on_results.

        An empty tree sends nothing and returns the current results.
        """
        if self.query.is_empty:
            return self.results

        self.loading = True
        try:
            self.results = await self.filters.execute_query(
                self.query, self.selected_game, limit or settings.QUERY_EXECUTE_LIMIT
            )
        except FootballVizError as e:
            logger.warning(f"Failed to execute query: {e}")
            self.error.show(e, "Failed to execute query")
            return self.results
        finally:
            self.loading = False

        if self.on_results is not None:
            self.on_results(self.results)
        return self.results

    # ------------------------------------------------------------------
    # Local helpers
    # ------------------------------------------------------------------

    def preview(self, plays: Sequence[Any]) -> Tuple[List[Any], PlaySummary]:
        """Evaluate the tree locally over already fetched plays."""
        rows = filter_by_group(plays, self.query)
        return rows, summarize(rows)

    def unknown_fields(self, strict: bool = False) -> List[Tuple[Tuple[int, ...], str]]:
        if self.schema is None:
            return []
        return logic_group.find_unknown_fields(self.query, self.schema, strict=strict)

    def render(self) -> Tree:
        return logic_group.render_group(self.query, self.schema or FieldSchema())

    def describe(self) -> str:
        return logic_group.describe_group(self.query, self.schema or FieldSchema())

    async def close(self) -> None:
        self._stats_debouncer.cancel()
