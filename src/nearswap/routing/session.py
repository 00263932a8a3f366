"""Debounced, last-issued-wins route resolution for interactive callers.

A UI fires a resolution on every keystroke. ``RouteSession`` waits for input
to settle, cancels the superseded pending request and only ever applies the
result of the most recently issued request, whatever order responses arrive in.
"""

import asyncio
import logging
from typing import Optional

from nearswap.config import get_settings
from nearswap.routing.base import ResolutionError, Route, RouteResolver, RouteResult, SwapRequest

logger = logging.getLogger(__name__)


class RouteSession:
    """Holds the latest accepted route for one swap form.

    Example:
        session = RouteSession(create_resolver())
        session.submit(request_a)
        result = await session.request(request_b)  # request_a is discarded
    """

    def __init__(self, resolver: RouteResolver, debounce_seconds: Optional[float] = None):
        """Initialize the session.

        Args:
            resolver: Route resolver to query
            debounce_seconds: Input quiescence before resolving (default from settings)
        """
        self.resolver = resolver
        if debounce_seconds is None:
            debounce_seconds = get_settings().route_debounce_ms / 1000
        self.debounce_seconds = debounce_seconds

        self.latest: Optional[Route] = None
        self.latest_error: Optional[ResolutionError] = None
        self.accepted_generation = 0

        self._generation = 0
        self._pending: Optional[asyncio.Task] = None

    @property
    def generation(self) -> int:
        """Sequence number of the most recently issued request."""
        return self._generation

    def submit(self, request: SwapRequest) -> asyncio.Task:
        """Schedule a resolution, superseding any pending one."""
        self._generation += 1
        generation = self._generation

        if self._pending is not None and not self._pending.done():
            logger.debug(f"Route request #{generation - 1} superseded")
            self._pending.cancel()

        self._pending = asyncio.create_task(self._run(generation, request))
        return self._pending

    async def request(self, request: SwapRequest) -> Optional[RouteResult]:
        """Submit and wait. Returns None if a newer request superseded this one."""
        task = self.submit(request)
        await asyncio.wait({task})
        if task.cancelled():
            return None
        return task.result()

    def current(self) -> Optional[Route]:
        """The accepted route, or None once its deadline has passed."""
        if self.latest is not None and self.latest.is_expired:
            logger.info("Accepted route expired, discarding")
            self.latest = None
        return self.latest

    def invalidate(self) -> None:
        """Drop the accepted route and any pending request (inputs became invalid)."""
        self._generation += 1
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None
        self.latest = None
        self.latest_error = None

    async def close(self) -> None:
        """Cancel the pending request, if any."""
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
            await asyncio.wait({self._pending})
        self._pending = None

    async def _run(self, generation: int, request: SwapRequest) -> Optional[RouteResult]:
        if self.debounce_seconds > 0:
            await asyncio.sleep(self.debounce_seconds)

        result = await self.resolver.resolve_route(request)

        if generation != self._generation:
            logger.debug(f"Discarding stale route result #{generation} (latest #{self._generation})")
            return None

        self.accepted_generation = generation
        if isinstance(result, Route):
            self.latest = result
            self.latest_error = None
        else:
            self.latest = None
            self.latest_error = result
        return result
