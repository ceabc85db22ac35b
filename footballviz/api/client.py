"""
Async HTTP client for the football analytics backend.

Wraps httpx.AsyncClient with the pieces every service call needs:
- Base URL and timeout from settings
- Bearer token header on every request (when a token is configured)
- Per-endpoint-class concurrency limits
- Request timing logs
- Error mapping: 401/403 -> AuthenticationError, other error statuses ->
  APIError (message from the body's "message" / "error"), transport
  failures -> APIConnectionError
- Response parsing: non-JSON bodies and payloads that fail model validation
  become APIError("Malformed response ...")

Usage:
    async with ApiClient() as client:
        games = await GameService(client).list_games()
"""

import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

import httpx
from pydantic import BaseModel, ValidationError

from footballviz.concurrency import ConcurrencyManager
from footballviz.config import settings
from footballviz.errors import APIConnectionError, APIError, AuthenticationError
from footballviz.logging import log_request_complete, log_request_start

logger = logging.getLogger(__name__)

_FILENAME_RE = re.compile(r"filename=([^;]+)")

ModelT = TypeVar("ModelT", bound=BaseModel)
_REQUIRED = object()


@dataclass
class DownloadedFile:
    """A binary response plus the name the server suggested for it"""

    filename: str
    content: bytes
    content_type: Optional[str] = None

    def save(self, directory: Union[str, Path] = ".") -> Path:
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / Path(self.filename).name
        path.write_bytes(self.content)
        logger.info(f"Saved {path} ({len(self.content)} bytes)")
        return path


def filename_from_disposition(header: Optional[str], default: str) -> str:
    """
    Pull the filename out of a content-disposition header.

    Examples:
        filename_from_disposition('attachment; filename="r.pdf"', "x")  # 'r.pdf'
        filename_from_disposition(None, "team_report.pdf")              # 'team_report.pdf'
    """
    if not header:
        return default
    match = _FILENAME_RE.search(header)
    if not match:
        return default
    name = match.group(1).strip().strip("\"'")
    return name or default


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "error"):
            if body.get(key):
                return str(body[key])
    return f"Request failed with status {response.status_code}"


# ============================================================================
# RESPONSE PARSING
# ============================================================================


def _malformed(endpoint: str, reason: str, status_code: Optional[int] = None, **details: Any) -> APIError:
    return APIError(
        f"Malformed response from {endpoint}: {reason}",
        status_code=status_code,
        endpoint=endpoint,
        details=details,
    )


def response_json(response: httpx.Response, endpoint: str) -> Any:
    """
    Decode a successful response body.

    Raises:
        APIError: If the body is not JSON (an HTML proxy page, an empty 204)
    """
    try:
        return response.json()
    except ValueError as e:
        raise _malformed(
            endpoint,
            "expected JSON",
            status_code=response.status_code,
            content_type=response.headers.get("content-type"),
        ) from e


def payload_field(data: Any, key: str, endpoint: str, default: Any = _REQUIRED) -> Any:
    """
    data[key] from a JSON object body.

    A missing or null key gives `default`; without a default it is an error,
    as is a body that is not an object at all.
    """
    if not isinstance(data, dict):
        raise _malformed(endpoint, f"expected an object with '{key}'")
    value = data.get(key)
    if value is not None:
        return value
    if default is _REQUIRED:
        raise _malformed(endpoint, f"missing '{key}'")
    return default


def parse_model(model: Type[ModelT], data: Any, endpoint: str) -> ModelT:
    """
    Validate a response payload.

    Raises:
        APIError: "Malformed response" with the validation errors in details
    """
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning(
            f"{endpoint} returned an invalid {model.__name__}: {e.error_count()} error(s)",
            extra={"endpoint": endpoint, "error_kind": "ValidationError"},
        )
        raise _malformed(
            endpoint,
            f"invalid {model.__name__}",
            errors=e.errors(include_url=False, include_context=False),
        ) from e


def parse_models(model: Type[ModelT], data: Any, endpoint: str, key: str) -> List[ModelT]:
    """Validate the list under data[key] (missing or null means empty)."""
    items = payload_field(data, key, endpoint, default=[])
    if not isinstance(items, list):
        raise _malformed(endpoint, f"'{key}' is not a list")
    return [parse_model(model, item, endpoint) for item in items]


class ApiClient:
    """
    Shared HTTP client. One instance per session; close it with aclose()
    or use it as an async context manager.

    Args:
        base_url: Backend base URL (default FOOTBALLVIZ_API_URL)
        token: Bearer token (default FOOTBALLVIZ_API_TOKEN; None sends no header)
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests pass httpx.MockTransport)
        concurrency: Optional ConcurrencyManager (default limits from settings)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        concurrency: Optional[ConcurrencyManager] = None,
    ):
        self.base_url = (base_url or settings.FOOTBALLVIZ_API_URL).rstrip("/")
        self.token = token if token is not None else settings.FOOTBALLVIZ_API_TOKEN
        self.timeout = timeout or settings.FOOTBALLVIZ_HTTP_TIMEOUT
        self.concurrency = concurrency or ConcurrencyManager()
        self._client = httpx.AsyncClient(
            base_url=self.base_url + "/",
            timeout=self.timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def set_token(self, token: Optional[str]) -> None:
        self.token = token

    def _headers(self) -> Dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    async def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """
        Send a request and return the successful response.

        Raises:
            AuthenticationError: On 401 / 403
            APIError: On any other error status
            APIConnectionError: When no response was received
        """
        url = path.lstrip("/")
        log_request_start(logger, method, path, kwargs.get("params"))
        start = time.perf_counter()

        async with await self.concurrency.acquire(path, method):
            try:
                response = await self._client.request(
                    method, url, headers=self._headers(), **kwargs
                )
            except httpx.RequestError as e:
                logger.warning(
                    f"{method} {path} failed: {e}",
                    extra={"method": method, "endpoint": path, "error_kind": type(e).__name__},
                )
                raise APIConnectionError(
                    f"Could not reach {self.base_url}: {e}",
                    details={"endpoint": path, "method": method},
                ) from e

        log_request_complete(
            logger, method, path, response.status_code, (time.perf_counter() - start) * 1000
        )

        if response.is_error:
            message = _error_message(response)
            if response.status_code in (401, 403):
                raise AuthenticationError(message, response.status_code, path)
            raise APIError(message, response.status_code, path)
        return response

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        response = await self.request("GET", path, params=_clean(params))
        return response_json(response, path)

    async def post(self, path: str, json: Any = None) -> Any:
        response = await self.request("POST", path, json=json)
        return response_json(response, path)

    async def put(self, path: str, json: Any = None) -> Any:
        response = await self.request("PUT", path, json=json)
        return response_json(response, path)

    async def post_multipart(
        self, path: str, data: Dict[str, Any], files: Dict[str, Any]
    ) -> Any:
        response = await self.request("POST", path, data=_clean(data), files=files)
        return response_json(response, path)

    async def download(
        self,
        path: str,
        default_filename: str,
        method: str = "GET",
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> DownloadedFile:
        """Fetch a binary body; the filename comes from content-disposition."""
        response = await self.request(method, path, params=_clean(params), json=json)
        return DownloadedFile(
            filename=filename_from_disposition(
                response.headers.get("content-disposition"), default_filename
            ),
            content=response.content,
            content_type=response.headers.get("content-type"),
        )


def _clean(values: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Drop None entries so optional query parameters are not sent."""
    if values is None:
        return None
    return {key: value for key, value in values.items() if value is not None}
