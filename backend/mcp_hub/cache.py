# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Response Cache - short-TTL cache of successful connector invocations.

Reads honour the TTL (60s default). A background sweep evicts entries older
than max_age (5 min default) every sweep_interval, whether or not they are
read. Failed responses are never stored, so retries always go live.
"""
import asyncio
import json
import time
from typing import Any, Callable, Dict, Optional, Tuple

from .models import MCPResponse
from .core.logging import get_service_logger

logger = get_service_logger("cache")


class ResponseCache:
    """In-memory TTL cache keyed by (connector, action, params)"""

    def __init__(
        self,
        ttl: float = 60.0,
        max_age: float = 300.0,
        sweep_interval: float = 60.0,
        clock: Callable[[], float] = time.monotonic
    ):
        self.ttl = ttl
        self.max_age = max_age
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._entries: Dict[str, Tuple[MCPResponse, float]] = {}  # key -> (response, stored_at)
        self._sweep_task: Optional[asyncio.Task] = None

    @staticmethod
    def make_key(connector_id: str, action: str, params: Optional[Dict[str, Any]]) -> str:
        """
        Deterministic key: logically equal params hash identically
        regardless of dict ordering.
        """
        return json.dumps(
            [connector_id, action, params or {}],
            sort_keys=True,
            separators=(",", ":"),
            default=str
        )

    def get(self, key: str) -> Optional[MCPResponse]:
        """Return a copy flagged cached=True if younger than the TTL, else None"""
        entry = self._entries.get(key)
        if entry is None:
            return None

        response, stored_at = entry
        if self._clock() - stored_at >= self.ttl:
            return None

        # Original duration is kept: it reports the compute cost of the value
        return response.model_copy(update={"cached": True}, deep=True)

    def put(self, key: str, response: MCPResponse) -> bool:
        """Store a successful response. Returns False for failures (not stored)."""
        if not response.success:
            return False
        self._entries[key] = (response.model_copy(deep=True), self._clock())
        return True

    def sweep(self) -> int:
        """Evict entries older than max_age. Returns the number evicted."""
        now = self._clock()
        expired = [
            key for key, (_, stored_at) in self._entries.items()
            if now - stored_at > self.max_age
        ]
        for key in expired:
            del self._entries[key]

        if expired:
            logger.debug(f"Cache sweep evicted {len(expired)} entries")
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    # ========================================================================
    # Background sweep
    # ========================================================================

    @property
    def running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    def start(self) -> None:
        """Start the periodic sweep on the running event loop"""
        if self.running:
            return
        self._sweep_task = asyncio.create_task(self._sweep_loop())

    async def stop(self) -> None:
        """Cancel the periodic sweep and wait for it to exit"""
        if self._sweep_task is None:
            return
        self._sweep_task.cancel()
        try:
            await self._sweep_task
        except asyncio.CancelledError:
            pass
        self._sweep_task = None

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            self.sweep()
