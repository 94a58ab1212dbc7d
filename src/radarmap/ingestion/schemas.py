from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Union

from radarmap.utils.numbers import is_finite

# A row as delivered by the tabular source: published column name -> raw cell value.
Row = Mapping[str, Any]
FieldCandidateList = tuple[str, ...]


@dataclass(frozen=True)
class Coordinate:
    """A WGS84 position in latitude-then-longitude order."""

    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.lat) and math.isfinite(self.lon)):
            raise ValueError(f"Coordinate values must be finite: lat={self.lat}, lon={self.lon}")
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"Latitude out of range: {self.lat}")
        if not -180.0 <= self.lon <= 180.0:
            raise ValueError(f"Longitude out of range: {self.lon}")

    @classmethod
    def from_values(cls, lat: float, lon: float) -> Optional["Coordinate"]:
        """Return a Coordinate, or None when the values cannot form a valid one."""

        if not (is_finite(lat) and is_finite(lon)):
            return None
        if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
            return None
        return cls(lat=float(lat), lon=float(lon))

    def as_lon_lat(self) -> list[float]:
        return [self.lon, self.lat]


@dataclass(frozen=True)
class PointRecord:
    location: Coordinate
    speed_limit: Optional[str] = None
    label: Optional[str] = None


@dataclass(frozen=True)
class SegmentRecord:
    start: Coordinate
    end: Optional[Coordinate] = None
    speed_limit: Optional[str] = None
    label: Optional[str] = None

    @property
    def is_start_only(self) -> bool:
        return self.end is None


class RouteSource(str, Enum):
    ROUTED = "routed"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class RouteGeometry:
    path: tuple[Coordinate, ...]
    source: RouteSource
    # Classified failure code for fallback geometries (None when routed).
    reason: Optional[str] = None

    def __post_init__(self) -> None:
        if len(self.path) < 2:
            raise ValueError("RouteGeometry.path needs at least two coordinates")

    @classmethod
    def fallback(cls, start: Coordinate, end: Coordinate, reason: Optional[str] = None) -> "RouteGeometry":
        return cls(path=(start, end), source=RouteSource.FALLBACK, reason=reason)


ExtractedRecord = Union[PointRecord, SegmentRecord]
