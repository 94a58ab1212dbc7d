"""OSRM route client.

This module asks an OSRM-compatible `/route` service for the road-following path between a
section's start and end, and converts the answer into internal `Coordinate`s.

What the client guarantees:
- One request per call, with full overview geometry in GeoJSON encoding, no alternatives and
  no step instructions.
- OSRM answers in longitude-then-latitude order; every vertex is transposed into
  `Coordinate(lat, lon)` before it leaves this module.
- Any failure (transport error, non-2xx status, malformed JSON, `code != "Ok"`, fewer than two
  usable vertices) is raised as `RoutingError`.

The public OSRM demo server has no formal quota but asks clients to stay gentle; pacing between
requests lives in `radarmap.routing.queue`, while this client only retries when configured to.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, Optional

import httpx

from radarmap.ingestion.schemas import Coordinate
from radarmap.routing.errors import RoutingError
from radarmap.settings import RoutingSection

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]

ROUTE_PARAMS: dict[str, str] = {
    "overview": "full",
    "geometries": "geojson",
    "alternatives": "false",
    "steps": "false",
}


def _format_waypoint(coordinate: Coordinate) -> str:
    # OSRM waypoints are "lon,lat".
    return f"{coordinate.lon},{coordinate.lat}"


def parse_route_geometry(payload: Any) -> tuple[Coordinate, ...]:
    """Extract the first route's geometry from an OSRM response as lat/lon coordinates."""

    if not isinstance(payload, dict):
        raise RoutingError("Unexpected OSRM response shape; expected a JSON object.", code="bad_response")

    code = payload.get("code")
    if code is not None and code != "Ok":
        message = payload.get("message") or code
        raise RoutingError(f"OSRM returned {code}: {message}", code="no_route")

    routes = payload.get("routes")
    if not isinstance(routes, list) or not routes or not isinstance(routes[0], dict):
        raise RoutingError("OSRM response has no routes.", code="no_geometry")

    geometry = routes[0].get("geometry")
    coordinates = geometry.get("coordinates") if isinstance(geometry, dict) else None
    if not isinstance(coordinates, list) or len(coordinates) < 2:
        raise RoutingError("OSRM route has no usable geometry.", code="no_geometry")

    path: list[Coordinate] = []
    for vertex in coordinates:
        if not isinstance(vertex, (list, tuple)) or len(vertex) < 2:
            raise RoutingError(f"Malformed OSRM vertex: {vertex!r}", code="bad_geometry")
        lon, lat = vertex[0], vertex[1]
        if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in (lon, lat)):
            raise RoutingError(f"Non-numeric OSRM vertex: {vertex!r}", code="bad_geometry")
        try:
            lat, lon = float(lat), float(lon)
        except (OverflowError, ValueError) as exc:
            raise RoutingError(f"Unrepresentable OSRM vertex: {vertex!r}", code="bad_geometry") from exc
        coordinate = Coordinate.from_values(lat=lat, lon=lon)
        if coordinate is None:
            raise RoutingError(f"Invalid OSRM vertex: {vertex!r}", code="bad_geometry")
        path.append(coordinate)
    return tuple(path)


class OsrmRoutingClient:
    """Async wrapper around the OSRM `/route/v1/{profile}` endpoint.

    Resource lifetime:
    - A client created here is owned and closed by `aclose()`; an injected `http_client` is left
      open for its owner.
    """

    def __init__(
        self,
        config: Optional[RoutingSection] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        *,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self.config = config or RoutingSection()
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.request_timeout_seconds,
            headers={"accept": "application/json", "user-agent": self.config.user_agent},
        )
        self._sleep: Sleep = sleep or asyncio.sleep

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "OsrmRoutingClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def route_path(self, start: Coordinate, end: Coordinate) -> str:
        return f"/route/v1/{self.config.profile}/{_format_waypoint(start)};{_format_waypoint(end)}"

    @staticmethod
    def _parse_retry_after_seconds(value: Optional[str]) -> Optional[float]:
        """Parse a Retry-After header given in seconds; HTTP-date values are ignored."""

        if not value:
            return None
        try:
            seconds = float(value.strip())
        except ValueError:
            return None
        return seconds if seconds >= 0 else None

    @staticmethod
    def _is_retryable_status(status_code: int) -> bool:
        return status_code in {429, 502, 503, 504}

    def _compute_backoff_seconds(self, attempt: int, retry_after_seconds: Optional[float]) -> float:
        # Exponential backoff plus up to 10% jitter.
        delay = max(0.0, float(self.config.retry_backoff_seconds) * (2.0**attempt))
        if delay > 0:
            delay += random.uniform(0.0, delay * 0.1)
        if self.config.respect_retry_after and retry_after_seconds is not None:
            delay = max(delay, retry_after_seconds)
        return delay

    async def route(self, start: Coordinate, end: Coordinate) -> tuple[Coordinate, ...]:
        """Return the road path from `start` to `end`, or raise `RoutingError`."""

        max_retries = max(0, int(self.config.max_retries))
        path = self.route_path(start, end)

        last_error: Optional[Exception] = None
        for attempt in range(max_retries + 1):
            try:
                response = await self._http.get(path, params=ROUTE_PARAMS)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                last_error = exc
                status = int(exc.response.status_code)
                if not self._is_retryable_status(status) or attempt >= max_retries:
                    break
                retry_after = self._parse_retry_after_seconds(exc.response.headers.get("retry-after"))
                delay = self._compute_backoff_seconds(attempt, retry_after)
                logger.warning(
                    "OSRM request failed (%s). Retrying in %.2fs (attempt %s/%s).",
                    status,
                    delay,
                    attempt + 1,
                    max_retries,
                )
                await self._sleep(delay)
                continue
            except httpx.HTTPError as exc:
                # Transport failures are not retried; the caller falls back to a straight line.
                raise RoutingError(f"OSRM request error: {exc}") from exc

            try:
                payload = response.json()
            except ValueError as exc:
                raise RoutingError("OSRM response is not valid JSON.", code="bad_response") from exc
            return parse_route_geometry(payload)

        raise RoutingError(f"OSRM request failed: {last_error}") from last_error
