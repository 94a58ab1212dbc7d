from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from radarmap.ingestion.schemas import Coordinate


@dataclass(frozen=True)
class BoundingBox:
    south: float
    west: float
    north: float
    east: float

    def as_geojson_bbox(self) -> list[float]:
        return [self.west, self.south, self.east, self.north]


@dataclass(frozen=True)
class ViewportBounds:
    """Every coordinate drawn during one run, in the order it was emitted."""

    coordinates: tuple[Coordinate, ...] = ()

    def __len__(self) -> int:
        return len(self.coordinates)

    def extend(self, coordinates: Iterable[Coordinate]) -> "ViewportBounds":
        return ViewportBounds(coordinates=self.coordinates + tuple(coordinates))

    def envelope(self, pad: float = 0.0) -> Optional[BoundingBox]:
        """Min/max box around all coordinates, grown by `pad` times its span on each side."""

        if not self.coordinates:
            return None
        lats = [c.lat for c in self.coordinates]
        lons = [c.lon for c in self.coordinates]
        south, north = min(lats), max(lats)
        west, east = min(lons), max(lons)
        lat_pad = (north - south) * pad
        lon_pad = (east - west) * pad
        return BoundingBox(
            south=max(-90.0, south - lat_pad),
            west=max(-180.0, west - lon_pad),
            north=min(90.0, north + lat_pad),
            east=min(180.0, east + lon_pad),
        )


def accumulate(coordinates: Iterable[Coordinate], bounds: Optional[ViewportBounds] = None) -> ViewportBounds:
    return (bounds or ViewportBounds()).extend(coordinates)
