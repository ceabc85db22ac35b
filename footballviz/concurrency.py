"""
Per-endpoint-class request limits for the HTTP client.

A dashboard refresh fires schema, presets, games and stats requests at
once; server-rendered charts and reports are slow. Each class gets its own
semaphore so heavy work never starves the light lookups.

Usage:
    manager = ConcurrencyManager()
    async with await manager.acquire("/consultant/charts/statistical", "POST"):
        response = await http.post(...)
"""

import asyncio
import logging
import time
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional

from footballviz.config import settings

logger = logging.getLogger(__name__)


class EndpointType(str, Enum):
    LIGHT = "light"  # schema, presets, game and team lists
    STANDARD = "standard"  # play data, query stats and execution
    HEAVY = "heavy"  # charts, reports, exports, uploads, LLM calls


# First matching prefix wins
ENDPOINT_PREFIXES = (
    ("/footballviz/filters", EndpointType.LIGHT),
    ("/consultant/teams", EndpointType.LIGHT),
    ("/langchain/status", EndpointType.LIGHT),
    ("/consultant/charts", EndpointType.HEAVY),
    ("/consultant/visualizations", EndpointType.HEAVY),
    ("/reports", EndpointType.HEAVY),
    ("/exports", EndpointType.HEAVY),
    ("/langchain", EndpointType.HEAVY),
    ("/ai", EndpointType.HEAVY),
)


def classify_endpoint(path: str, method: str = "GET") -> EndpointType:
    """
    Examples:
        classify_endpoint("/games")  # LIGHT
        classify_endpoint("/games", "POST")  # HEAVY (CSV upload)
        classify_endpoint("/games/12/plays")  # STANDARD
    """
    if path.rstrip("/") == "/games":
        return EndpointType.HEAVY if method.upper() == "POST" else EndpointType.LIGHT
    return next(
        (kind for prefix, kind in ENDPOINT_PREFIXES if path.startswith(prefix)),
        EndpointType.STANDARD,
    )


def default_limits() -> Dict[EndpointType, int]:
    return {
        EndpointType.LIGHT: settings.MAX_CONCURRENT_LIGHT,
        EndpointType.STANDARD: settings.MAX_CONCURRENT_STANDARD,
        EndpointType.HEAVY: settings.MAX_CONCURRENT_HEAVY,
    }


@dataclass
class SlotStats:
    limit: int
    active: int = 0
    waiting: int = 0
    total_acquired: int = 0
    total_released: int = 0
    total_timeouts: int = 0
    max_wait_ms: float = 0.0


class ConcurrencyManager:
    """One set of semaphores per ApiClient."""

    def __init__(self, limits: Optional[Dict[EndpointType, int]] = None):
        limits = limits or default_limits()
        self.semaphores = {kind: asyncio.Semaphore(n) for kind, n in limits.items()}
        self.stats = {kind: SlotStats(limit=n) for kind, n in limits.items()}

    def get_stats(self, endpoint_type: Optional[EndpointType] = None) -> Dict[str, Dict[str, Any]]:
        """Counters keyed by class name ("light" / "standard" / "heavy")."""
        kinds = [endpoint_type] if endpoint_type else list(self.stats)
        return {kind.value: asdict(self.stats[kind]) for kind in kinds}

    async def acquire(
        self, path: str, method: str = "GET", timeout: Optional[float] = None
    ) -> "ConcurrencyToken":
        """
        Wait for a slot in the path's class.

        Raises:
            asyncio.TimeoutError: If no slot frees up within `timeout` seconds
        """
        kind = classify_endpoint(path, method)
        stats = self.stats[kind]
        stats.waiting += 1
        started = time.perf_counter()
        try:
            await asyncio.wait_for(self.semaphores[kind].acquire(), timeout=timeout)
        except asyncio.TimeoutError:
            stats.total_timeouts += 1
            logger.warning(f"No {kind.value} slot for {method} {path} within {timeout}s")
            raise
        finally:
            stats.waiting -= 1

        waited_ms = (time.perf_counter() - started) * 1000
        stats.active += 1
        stats.total_acquired += 1
        stats.max_wait_ms = max(stats.max_wait_ms, waited_ms)
        if waited_ms > 100:
            logger.debug(f"Waited {waited_ms:.0f}ms for a {kind.value} slot ({path})")
        return ConcurrencyToken(self, kind)

    def release(self, kind: EndpointType) -> None:
        self.semaphores[kind].release()
        self.stats[kind].active -= 1
        self.stats[kind].total_released += 1


@dataclass
class ConcurrencyToken:
    """An acquired slot; released when the `async with` block exits."""

    manager: ConcurrencyManager
    endpoint_type: EndpointType

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.manager.release(self.endpoint_type)


__all__ = [
    "EndpointType",
    "ConcurrencyManager",
    "ConcurrencyToken",
    "classify_endpoint",
]
