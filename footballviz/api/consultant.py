"""
Consultant endpoints: cross-team play data, analytics and chart generation.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from footballviz.api.client import ApiClient, parse_model, parse_models, payload_field
from footballviz.data.models.plays import (
    ChartImage,
    ChartRecommendations,
    Game,
    GameAnalytics,
    PlayData,
    Team,
)
from footballviz.data.models.query import FlatFilter

logger = logging.getLogger(__name__)

FilterLike = Union[FlatFilter, Dict[str, Any]]


def _wire_filters(filters: Optional[Sequence[FilterLike]]) -> List[Dict[str, Any]]:
    wire = []
    for flt in filters or []:
        if isinstance(flt, FlatFilter):
            wire.append({"field": flt.field, "operator": flt.operator, "value": flt.value})
        else:
            wire.append(dict(flt))
    return wire


class ConsultantService:
    def __init__(self, client: ApiClient):
        self.client = client

    async def get_teams(self) -> List[Team]:
        endpoint = "/consultant/teams"
        return parse_models(Team, await self.client.get(endpoint), endpoint, "teams")

    async def get_team_games(self, team_id: int) -> Tuple[Team, List[Game]]:
        endpoint = f"/consultant/teams/{team_id}/games"
        data = await self.client.get(endpoint)
        return (
            parse_model(Team, payload_field(data, "team", endpoint), endpoint),
            parse_models(Game, data, endpoint, "games"),
        )

    async def get_game_analytics(self, game_id: int) -> GameAnalytics:
        endpoint = f"/consultant/analytics/{game_id}"
        return parse_model(GameAnalytics, await self.client.get(endpoint), endpoint)

    async def get_team_play_data(self, team_id: int) -> List[PlayData]:
        endpoint = f"/consultant/team/{team_id}/play-data"
        return parse_models(PlayData, await self.client.get(endpoint), endpoint, "plays")

    async def filter_play_data(
        self, team_id: int, filters: Sequence[FilterLike]
    ) -> List[PlayData]:
        """Server-side filtering with the same flat filter shape as the local pipeline."""
        data = await self.client.post(
            "/consultant/data/filter",
            json={"team_id": team_id, "filters": _wire_filters(filters)},
        )
        return parse_models(PlayData, data, "/consultant/data/filter", "plays")

    async def generate_statistical_chart(
        self,
        team_id: int,
        chart_type: str,
        filters: Optional[Sequence[FilterLike]] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> ChartImage:
        data = await self.client.post(
            "/consultant/charts/statistical",
            json={
                "team_id": team_id,
                "chart_type": chart_type,
                "filters": _wire_filters(filters),
                "options": options or {},
            },
        )
        chart = parse_model(ChartImage, data, "/consultant/charts/statistical")
        logger.info(
            f"Generated {chart.chart_type} chart over {chart.plays_analyzed} plays",
            extra={"rows": chart.plays_analyzed},
        )
        return chart

    async def get_chart_recommendations(
        self,
        team_id: int,
        filters: Optional[Sequence[FilterLike]] = None,
        selected_plays: int = 0,
    ) -> ChartRecommendations:
        data = await self.client.post(
            "/consultant/charts/recommend",
            json={
                "team_id": team_id,
                "filters": _wire_filters(filters),
                "selected_plays": selected_plays,
            },
        )
        return parse_model(ChartRecommendations, data, "/consultant/charts/recommend")
