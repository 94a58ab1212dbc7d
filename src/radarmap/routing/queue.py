"""Sequential, paced materialization of section routes.

Route requests go to a shared public router, so they run strictly one at a time in input
order, and every request after the first starts no earlier than `min_interval_seconds` after
the previous one completed. A failed item becomes a straight two-point line and never stops the
items after it.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional, Protocol, Sequence

from radarmap.ingestion.schemas import Coordinate, RouteGeometry, RouteSource, SegmentRecord
from radarmap.routing.errors import RoutingError, classify_routing_error

logger = logging.getLogger(__name__)

DEFAULT_MIN_INTERVAL_SECONDS = 0.12


class Router(Protocol):
    async def route(self, start: Coordinate, end: Coordinate) -> tuple[Coordinate, ...]: ...


class DisabledRouter:
    """Router used when routing is switched off; every section falls back to a straight line."""

    async def route(self, start: Coordinate, end: Coordinate) -> tuple[Coordinate, ...]:
        raise RoutingError("Routing is disabled.", code="routing_disabled")


class RouteQueue:
    def __init__(
        self,
        router: Router,
        min_interval_seconds: float = DEFAULT_MIN_INTERVAL_SECONDS,
        *,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        if min_interval_seconds < 0:
            raise ValueError("min_interval_seconds must be >= 0")
        self.router = router
        self.min_interval_seconds = float(min_interval_seconds)
        self._sleep = sleep or asyncio.sleep
        self._clock = clock or time.monotonic
        self._last_completed: Optional[float] = None

    async def _wait_for_slot(self) -> None:
        if self._last_completed is None or self.min_interval_seconds <= 0:
            return
        remaining = self.min_interval_seconds - (self._clock() - self._last_completed)
        if remaining > 0:
            await self._sleep(remaining)

    async def materialize_one(self, segment: SegmentRecord) -> RouteGeometry:
        if segment.end is None:
            raise ValueError("start-only segments cannot be routed")

        await self._wait_for_slot()
        logger.debug("Routing section %s -> %s", segment.start.as_lon_lat(), segment.end.as_lon_lat())
        try:
            path = await self.router.route(segment.start, segment.end)
        except RoutingError as exc:
            info = classify_routing_error(exc)
            logger.warning(
                "Routing failed (%s/%s); using a straight line: %s", info.kind, info.code, info.message
            )
            return RouteGeometry.fallback(segment.start, segment.end, reason=info.code)
        finally:
            self._last_completed = self._clock()
        if len(path) < 2:
            logger.warning("Routing returned fewer than two vertices; using a straight line.")
            return RouteGeometry.fallback(segment.start, segment.end, reason="no_geometry")
        return RouteGeometry(path=tuple(path), source=RouteSource.ROUTED)

    async def materialize(
        self,
        segments: Sequence[SegmentRecord],
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> list[RouteGeometry]:
        """Return exactly one geometry per segment, in input order."""

        if any(segment.end is None for segment in segments):
            raise ValueError("start-only segments cannot be routed")

        routes: list[RouteGeometry] = []
        cancelled = False
        for segment in segments:
            if not cancelled and cancel_event is not None and cancel_event.is_set():
                cancelled = True
                logger.info(
                    "Route materialization cancelled; %s remaining section(s) drawn as straight lines.",
                    len(segments) - len(routes),
                )
            if cancelled:
                routes.append(RouteGeometry.fallback(segment.start, segment.end, reason="cancelled"))
                continue
            routes.append(await self.materialize_one(segment))
        return routes
