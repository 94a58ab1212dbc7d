"""End-to-end run: rows -> extracted records -> routed sections -> viewport coordinates.

Every stage returns its contribution and this module folds them; nothing is kept between runs.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

import httpx

from radarmap.analytics.bounds import ViewportBounds, accumulate
from radarmap.ingestion.extraction import extract_rows
from radarmap.ingestion.fields import DEFAULT_CATALOG, FieldCatalog
from radarmap.ingestion.schemas import Coordinate, PointRecord, RouteGeometry, RouteSource, Row, SegmentRecord
from radarmap.routing.osrm_client import OsrmRoutingClient
from radarmap.routing.queue import DEFAULT_MIN_INTERVAL_SECONDS, DisabledRouter, RouteQueue, Router
from radarmap.settings import AppConfig, get_config
from radarmap.sources.spreadsheet import load_rows

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineSummary:
    rows_processed: int
    rows_rejected: int
    points_rendered: int
    start_only_rendered: int
    segments_routed: int
    segments_fallback: int


@dataclass(frozen=True)
class PipelineResult:
    points: list[PointRecord]
    start_only: list[SegmentRecord]
    segments: list[SegmentRecord]
    routes: list[RouteGeometry]
    bounds: ViewportBounds
    summary: PipelineSummary
    fallback_reasons: dict[str, int] = field(default_factory=dict)


async def run_pipeline(
    rows: Iterable[Row],
    router: Router,
    *,
    catalog: FieldCatalog = DEFAULT_CATALOG,
    min_interval_seconds: float = DEFAULT_MIN_INTERVAL_SECONDS,
    cancel_event: Optional[asyncio.Event] = None,
) -> PipelineResult:
    extracted = extract_rows(rows, catalog)

    drawn: list[Coordinate] = [point.location for point in extracted.points]
    # Start-only sections are drawn at their start point.
    drawn.extend(segment.start for segment in extracted.start_only)

    queue = RouteQueue(router, min_interval_seconds)
    routes = await queue.materialize(extracted.segments, cancel_event=cancel_event)
    for route in routes:
        drawn.extend(route.path)
    bounds = accumulate(drawn)

    fallback_reasons: dict[str, int] = {}
    for route in routes:
        if route.source is RouteSource.FALLBACK:
            reason = route.reason or "unknown"
            fallback_reasons[reason] = fallback_reasons.get(reason, 0) + 1
    fallbacks = sum(fallback_reasons.values())

    summary = PipelineSummary(
        rows_processed=extracted.rows_processed,
        rows_rejected=extracted.rows_rejected,
        points_rendered=len(extracted.points),
        start_only_rendered=len(extracted.start_only),
        segments_routed=len(routes) - fallbacks,
        segments_fallback=fallbacks,
    )
    logger.info(
        "Processed %s row(s): %s point(s), %s section start(s), %s routed section(s), "
        "%s straight-line section(s), %s rejected.",
        summary.rows_processed,
        summary.points_rendered,
        summary.start_only_rendered,
        summary.segments_routed,
        summary.segments_fallback,
        summary.rows_rejected,
    )
    return PipelineResult(
        points=extracted.points,
        start_only=extracted.start_only,
        segments=extracted.segments,
        routes=routes,
        bounds=bounds,
        summary=summary,
        fallback_reasons=fallback_reasons,
    )


async def build_radar_map(
    config: Optional[AppConfig] = None,
    *,
    source: Optional[str] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> PipelineResult:
    """Load the configured dataset and run the full pipeline against the configured router.

    Raises `DatasetUnavailableError` when the dataset cannot be loaded.
    """

    config = (config or get_config()).resolve_paths()
    # load_rows blocks on download and parsing.
    rows = await asyncio.to_thread(
        load_rows,
        source or config.source.location,
        sheet_name=config.source.sheet_name,
        timeout_seconds=config.source.request_timeout_seconds,
    )
    catalog = FieldCatalog.from_config(config.columns)

    if not config.routing.enabled:
        return await run_pipeline(
            rows,
            DisabledRouter(),
            catalog=catalog,
            min_interval_seconds=0.0,
            cancel_event=cancel_event,
        )

    async with OsrmRoutingClient(config.routing, http_client=http_client) as router:
        return await run_pipeline(
            rows,
            router,
            catalog=catalog,
            min_interval_seconds=config.routing.min_request_interval_seconds,
            cancel_event=cancel_event,
        )
