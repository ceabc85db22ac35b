"""
Saved visualization endpoints.
"""

from typing import Any, Dict, List, Optional

from footballviz.api.client import ApiClient, parse_models
from footballviz.data.models.plays import Visualization


class VisualizationService:
    def __init__(self, client: ApiClient):
        self.client = client

    async def create_chart(
        self, game_id: int, chart_type: str, data_type: str, highlight: bool = False
    ) -> Dict[str, Any]:
        """Ask the backend to build and store a chart for a game."""
        return await self.client.post(
            "/consultant/visualizations/create-chart",
            json={
                "game_id": game_id,
                "chart_type": chart_type,
                "data_type": data_type,
                "highlight": highlight,
            },
        )

    async def toggle_highlight(self, visualization_id: int) -> Dict[str, Any]:
        return await self.client.put(f"/visualizations/{visualization_id}/highlight")

    async def get_team_visualizations(self, team_id: int) -> List[Visualization]:
        endpoint = f"/teams/{team_id}/visualizations"
        return parse_models(Visualization, await self.client.get(endpoint), endpoint, "visualizations")

    async def create_visualization(
        self,
        team_id: int,
        chart_type: str,
        title: str,
        configuration: Any,
        game_id: Optional[int] = None,
        description: Optional[str] = None,
        is_highlighted: Optional[bool] = None,
    ) -> Dict[str, Any]:
        payload = {
            "team_id": team_id,
            "game_id": game_id,
            "chart_type": chart_type,
            "title": title,
            "configuration": configuration,
            "description": description,
            "is_highlighted": is_highlighted,
        }
        return await self.client.post(
            "/visualizations",
            json={key: value for key, value in payload.items() if value is not None},
        )
