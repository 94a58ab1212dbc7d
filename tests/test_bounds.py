from __future__ import annotations

import pytest

from radarmap.analytics.bounds import BoundingBox, ViewportBounds, accumulate
from radarmap.ingestion.schemas import Coordinate


def test_accumulate_preserves_order_and_is_immutable() -> None:
    a = Coordinate(lat=40.0, lon=-3.0)
    b = Coordinate(lat=41.0, lon=-4.0)
    c = Coordinate(lat=39.5, lon=-2.5)

    first = accumulate([a, b])
    second = accumulate([c], first)

    assert first.coordinates == (a, b)
    assert second.coordinates == (a, b, c)
    assert len(second) == 3


def test_envelope_with_padding() -> None:
    bounds = accumulate([Coordinate(lat=40.0, lon=-4.0), Coordinate(lat=42.0, lon=-2.0)])

    assert bounds.envelope() == BoundingBox(south=40.0, west=-4.0, north=42.0, east=-2.0)
    padded = bounds.envelope(pad=0.1)
    assert padded is not None
    assert padded.south == pytest.approx(39.8)
    assert padded.north == pytest.approx(42.2)
    assert padded.as_geojson_bbox() == pytest.approx([-4.2, 39.8, -1.8, 42.2])


def test_envelope_of_empty_bounds_is_none() -> None:
    assert ViewportBounds().envelope(pad=0.1) is None
