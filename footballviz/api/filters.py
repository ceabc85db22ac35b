"""
Query builder endpoints: field schema, presets, remote stats and execution.
"""

import logging
from typing import Any, Dict, List, Optional

from footballviz.api.client import ApiClient, parse_model, payload_field
from footballviz.data.models.query import FieldSchema, FilterPresets, QueryGroup, QueryStats
from footballviz.logging import TimedOperation

logger = logging.getLogger(__name__)


class FilterService:
    def __init__(self, client: ApiClient):
        self.client = client

    async def get_schema(self) -> FieldSchema:
        endpoint = "/footballviz/filters/schema"
        return parse_model(FieldSchema, await self.client.get(endpoint), endpoint)

    async def get_presets(self) -> FilterPresets:
        endpoint = "/footballviz/filters/presets"
        return parse_model(FilterPresets, await self.client.get(endpoint), endpoint)

    async def query_stats(self, group: QueryGroup, game_id: Optional[int]) -> QueryStats:
        """Aggregates for the tree, computed server-side."""
        endpoint = "/footballviz/query/stats"
        data = await self.client.post(
            endpoint,
            json={"filter_group": group.to_wire(), "game_id": game_id},
        )
        return parse_model(QueryStats, payload_field(data, "stats", endpoint, default={}), endpoint)

    async def execute_query(
        self, group: QueryGroup, game_id: Optional[int], limit: int = 50
    ) -> List[Dict[str, Any]]:
        """
        Run the tree server-side.

        Returns:
            Matching rows (at most `limit`)
        """
        with TimedOperation("execute query", logger, game_id=game_id) as op:
            data = await self.client.post(
                "/footballviz/query/execute",
                json={"filter_group": group.to_wire(), "game_id": game_id, "limit": limit},
            )
        results = payload_field(data, "results", "/footballviz/query/execute", default=[])
        logger.info(
            f"Query returned {len(results)} rows in {op.exec_ms:.0f}ms",
            extra={"rows": len(results), "exec_ms": op.exec_ms},
        )
        return results
