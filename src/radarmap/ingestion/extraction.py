"""Turn published rows into point and section-control records.

Each row is read only through header resolution, so spelling drift in the published
sheet (accents, spacing, alternate wording) is absorbed by the field catalog. Rows are
tried as sections first; a row without a usable section start is tried as a point, and a
row that is neither is counted as rejected without further noise.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from radarmap.ingestion.fields import DEFAULT_CATALOG, FieldCatalog
from radarmap.ingestion.resolver import resolve, resolve_first
from radarmap.ingestion.schemas import (
    Coordinate,
    ExtractedRecord,
    FieldCandidateList,
    PointRecord,
    Row,
    SegmentRecord,
)
from radarmap.utils.numbers import to_number, to_optional_text


@dataclass(frozen=True)
class ExtractionResult:
    points: list[PointRecord] = field(default_factory=list)
    segments: list[SegmentRecord] = field(default_factory=list)
    start_only: list[SegmentRecord] = field(default_factory=list)
    rows_processed: int = 0
    rows_rejected: int = 0


def _coordinate(row: Row, lon_candidates: FieldCandidateList, lat_candidates: FieldCandidateList) -> Optional[Coordinate]:
    lon_key = resolve(row, lon_candidates)
    lat_key = resolve(row, lat_candidates)
    if lon_key is None or lat_key is None:
        return None
    return Coordinate.from_values(lat=to_number(row[lat_key]), lon=to_number(row[lon_key]))


def _attributes(row: Row, catalog: FieldCatalog) -> tuple[Optional[str], Optional[str]]:
    speed_key = resolve(row, catalog.speed_limit)
    label_key = resolve_first(row, catalog.label)
    speed_limit = to_optional_text(row[speed_key]) if speed_key is not None else None
    label = to_optional_text(row[label_key]) if label_key is not None else None
    return speed_limit, label


def extract_segment(row: Row, catalog: FieldCatalog = DEFAULT_CATALOG) -> Optional[SegmentRecord]:
    start = _coordinate(row, catalog.segment_start_lon, catalog.segment_start_lat)
    if start is None:
        return None
    end = _coordinate(row, catalog.segment_end_lon, catalog.segment_end_lat)
    speed_limit, label = _attributes(row, catalog)
    return SegmentRecord(start=start, end=end, speed_limit=speed_limit, label=label)


def extract_point(row: Row, catalog: FieldCatalog = DEFAULT_CATALOG) -> Optional[PointRecord]:
    location = _coordinate(row, catalog.point_lon, catalog.point_lat)
    if location is None:
        return None
    speed_limit, label = _attributes(row, catalog)
    return PointRecord(location=location, speed_limit=speed_limit, label=label)


def extract(row: Row, catalog: FieldCatalog = DEFAULT_CATALOG) -> Optional[ExtractedRecord]:
    """Return a SegmentRecord or PointRecord for the row, or None when it is rejected."""

    segment = extract_segment(row, catalog)
    if segment is not None:
        return segment
    return extract_point(row, catalog)


def extract_rows(rows: Iterable[Row], catalog: FieldCatalog = DEFAULT_CATALOG) -> ExtractionResult:
    points: list[PointRecord] = []
    segments: list[SegmentRecord] = []
    start_only: list[SegmentRecord] = []
    processed = 0
    rejected = 0

    for row in rows:
        processed += 1
        record = extract(row, catalog)
        if record is None:
            rejected += 1
        elif isinstance(record, PointRecord):
            points.append(record)
        elif record.is_start_only:
            start_only.append(record)
        else:
            segments.append(record)

    return ExtractionResult(
        points=points,
        segments=segments,
        start_only=start_only,
        rows_processed=processed,
        rows_rejected=rejected,
    )
