"""
Fourth-down decision service client.

The decision service is a separate deployment (DECISION_API_URL) and takes
no credentials, so it does not go through ApiClient.
"""

import logging
import time
from typing import Optional, Union

import httpx

from footballviz.api.client import parse_model, response_json
from footballviz.config import settings
from footballviz.data.models.plays import DecisionRecommendation
from footballviz.errors import APIConnectionError, APIError
from footballviz.logging import log_request_complete

logger = logging.getLogger(__name__)

ParamValue = Union[str, int, float, bool]


class DecisionService:
    """
    Example:
        service = DecisionService()
        rec = await service.recommend(down=4, distance=2, yard_line=65,
                                      score_diff=-3, seconds_left=420)
        rec.recommendation  # 'GO'
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.DECISION_API_URL).rstrip("/")
        self.transport = transport
        self.timeout = timeout or settings.FOOTBALLVIZ_HTTP_TIMEOUT

    async def recommend(self, **params: ParamValue) -> DecisionRecommendation:
        """
        GET /v1/recommend with the game situation as query parameters.

        Raises:
            APIError: On any non-2xx status ("Decision API error <status>")
            APIConnectionError: If the service cannot be reached
        """
        endpoint = "/v1/recommend"
        start = time.perf_counter()
        async with httpx.AsyncClient(
            base_url=self.base_url, transport=self.transport, timeout=self.timeout
        ) as client:
            try:
                response = await client.get(endpoint, params=params)
            except httpx.RequestError as e:
                raise APIConnectionError(
                    f"Could not reach decision service: {e}",
                    details={"endpoint": endpoint},
                ) from e

        log_request_complete(
            logger, "GET", endpoint, response.status_code, (time.perf_counter() - start) * 1000
        )
        if not response.is_success:
            raise APIError(
                f"Decision API error {response.status_code}",
                status_code=response.status_code,
                endpoint=endpoint,
            )
        return parse_model(DecisionRecommendation, response_json(response, endpoint), endpoint)
