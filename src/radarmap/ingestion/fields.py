from __future__ import annotations

from dataclasses import dataclass

from radarmap.ingestion.schemas import FieldCandidateList
from radarmap.settings import ColumnsSection


@dataclass(frozen=True)
class FieldCatalog:
    """Accepted header variants for every semantic field the extractor reads."""

    segment_start_lon: FieldCandidateList
    segment_start_lat: FieldCandidateList
    segment_end_lon: FieldCandidateList
    segment_end_lat: FieldCandidateList
    point_lon: FieldCandidateList
    point_lat: FieldCandidateList
    speed_limit: FieldCandidateList
    label: tuple[FieldCandidateList, ...]

    @classmethod
    def from_config(cls, columns: ColumnsSection) -> "FieldCatalog":
        return cls(
            segment_start_lon=tuple(columns.segment_start_lon),
            segment_start_lat=tuple(columns.segment_start_lat),
            segment_end_lon=tuple(columns.segment_end_lon),
            segment_end_lat=tuple(columns.segment_end_lat),
            point_lon=tuple(columns.point_lon),
            point_lat=tuple(columns.point_lat),
            speed_limit=tuple(columns.speed_limit),
            label=tuple(tuple(candidates) for candidates in columns.label),
        )


DEFAULT_CATALOG = FieldCatalog.from_config(ColumnsSection())
