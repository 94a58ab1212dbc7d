from __future__ import annotations

from dataclasses import asdict
from typing import Any, Optional

from radarmap.analytics.bounds import BoundingBox
from radarmap.ingestion.schemas import Coordinate, RouteGeometry, SegmentRecord
from radarmap.pipeline import PipelineResult


def _point_feature(location: Coordinate, properties: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": location.as_lon_lat()},
        "properties": properties,
    }


def _section_feature(segment: SegmentRecord, route: RouteGeometry) -> dict[str, Any]:
    return {
        "type": "Feature",
        "geometry": {
            "type": "LineString",
            "coordinates": [vertex.as_lon_lat() for vertex in route.path],
        },
        "properties": {
            "kind": "section",
            "source": route.source.value,
            "reason": route.reason,
            "speed_limit": segment.speed_limit,
            "label": segment.label,
        },
    }


def to_feature_collection(result: PipelineResult, *, pad: float = 0.0) -> dict[str, Any]:
    """Render a pipeline result as a GeoJSON FeatureCollection (lon/lat order)."""

    features: list[dict[str, Any]] = []
    for point in result.points:
        features.append(
            _point_feature(
                point.location,
                {"kind": "point", "speed_limit": point.speed_limit, "label": point.label},
            )
        )
    for segment in result.start_only:
        features.append(
            _point_feature(
                segment.start,
                {"kind": "section_start", "speed_limit": segment.speed_limit, "label": segment.label},
            )
        )
    for segment, route in zip(result.segments, result.routes):
        features.append(_section_feature(segment, route))

    collection: dict[str, Any] = {"type": "FeatureCollection", "features": features}
    box: Optional[BoundingBox] = result.bounds.envelope(pad)
    if box is not None:
        collection["bbox"] = box.as_geojson_bbox()
    collection["summary"] = {**asdict(result.summary), "fallback_reasons": dict(result.fallback_reasons)}
    return collection
