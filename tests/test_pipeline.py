from __future__ import annotations

import asyncio
import threading

import httpx
import pytest

from radarmap.export.geojson import to_feature_collection
from radarmap.ingestion.schemas import Coordinate, PointRecord, RouteSource
from radarmap.pipeline import build_radar_map, run_pipeline
from radarmap.routing.osrm_client import OsrmRoutingClient
from radarmap.routing.queue import DisabledRouter
from radarmap.settings import AppConfig, RoutingSection
from radarmap.sources.spreadsheet import DatasetUnavailableError


def _section_row(lon1: str, lat1: str, lon2: str, lat2: str) -> dict[str, str]:
    return {
        "Longitud inicio tramo": lon1,
        "Latitud inicio tramo": lat1,
        "Longitud fin tramo": lon2,
        "Latitud fin tramo": lat2,
    }


def test_point_row_end_to_end() -> None:
    rows = [{"Longitud": "-3,7038", "Latitud": "40,4168", "Velocidad límite": "50"}]
    result = asyncio.run(run_pipeline(rows, DisabledRouter(), min_interval_seconds=0.0))

    assert result.points == [
        PointRecord(location=Coordinate(lat=40.4168, lon=-3.7038), speed_limit="50")
    ]
    assert result.bounds.coordinates == (Coordinate(lat=40.4168, lon=-3.7038),)
    assert result.summary.points_rendered == 1


def test_start_only_segment_contributes_one_coordinate() -> None:
    rows = [{"Longitud inicio tramo": "-3,70", "Latitud inicio tramo": "40,41"}]
    result = asyncio.run(run_pipeline(rows, DisabledRouter(), min_interval_seconds=0.0))

    assert len(result.start_only) == 1
    assert result.start_only[0].end is None
    assert result.routes == []
    assert result.bounds.coordinates == (Coordinate(lat=40.41, lon=-3.70),)
    assert result.summary.start_only_rendered == 1


def test_three_sections_with_one_malformed_route() -> None:
    rows = [
        _section_row("-3,70", "40,41", "-3,60", "40,50"),
        _section_row("-4,70", "41,41", "-4,60", "41,50"),
        _section_row("-5,70", "42,41", "-5,60", "42,50"),
        {"Provincia": "Madrid"},
    ]
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        if calls["count"] == 2:
            return httpx.Response(200, json={"code": "Ok", "routes": [{"geometry": {"coordinates": []}}]})
        waypoints = request.url.path.rsplit("/", 1)[-1].split(";")
        coordinates = [[float(v) for v in waypoint.split(",")] for waypoint in waypoints]
        return httpx.Response(200, json={"code": "Ok", "routes": [{"geometry": {"coordinates": coordinates}}]})

    async def run():
        http_client = httpx.AsyncClient(base_url="https://osrm.test", transport=httpx.MockTransport(handler))
        try:
            router = OsrmRoutingClient(RoutingSection(base_url="https://osrm.test"), http_client=http_client)
            return await run_pipeline(rows, router, min_interval_seconds=0.0)
        finally:
            await http_client.aclose()

    result = asyncio.run(run())

    assert [r.source for r in result.routes] == [RouteSource.ROUTED, RouteSource.FALLBACK, RouteSource.ROUTED]
    assert result.routes[1].path == (Coordinate(lat=41.41, lon=-4.70), Coordinate(lat=41.50, lon=-4.60))
    assert result.routes[0].path[0] == Coordinate(lat=40.41, lon=-3.70)
    assert result.routes[2].path[-1] == Coordinate(lat=42.50, lon=-5.60)
    assert len(result.bounds) == 6
    assert result.summary.rows_processed == 4
    assert result.summary.rows_rejected == 1
    assert result.summary.segments_routed == 2
    assert result.summary.segments_fallback == 1
    assert result.fallback_reasons == {"no_geometry": 1}


def test_feature_collection_shape() -> None:
    rows = [
        {"Longitud": "-3,7038", "Latitud": "40,4168", "Ubicación": "Gran Vía"},
        {"Longitud inicio tramo": "-3,70", "Latitud inicio tramo": "40,41"},
        _section_row("-3,70", "40,41", "-3,60", "40,50"),
    ]
    result = asyncio.run(run_pipeline(rows, DisabledRouter(), min_interval_seconds=0.0))
    collection = to_feature_collection(result)

    assert collection["type"] == "FeatureCollection"
    kinds = [f["properties"]["kind"] for f in collection["features"]]
    assert kinds == ["point", "section_start", "section"]
    assert collection["features"][0]["geometry"] == {"type": "Point", "coordinates": [-3.7038, 40.4168]}
    assert collection["features"][0]["properties"]["label"] == "Gran Vía"
    line = collection["features"][2]
    assert line["geometry"]["coordinates"] == [[-3.70, 40.41], [-3.60, 40.50]]
    assert line["properties"]["source"] == "fallback"
    assert line["properties"]["reason"] == "routing_disabled"
    assert collection["bbox"] == pytest.approx([-3.7038, 40.41, -3.60, 40.50])
    assert collection["summary"]["segments_fallback"] == 1
    assert collection["summary"]["fallback_reasons"] == {"routing_disabled": 1}


def test_build_radar_map_from_csv_without_routing(tmp_path) -> None:
    path = tmp_path / "radares.csv"
    path.write_text(
        'Longitud,Latitud,Velocidad limite\n"-3,7038","40,4168",50\n"x","y",\n',
        encoding="utf-8",
    )
    config = AppConfig().model_copy(
        update={
            "source": AppConfig().source.model_copy(update={"location": str(path)}),
            "routing": AppConfig().routing.model_copy(update={"enabled": False}),
        }
    )

    result = asyncio.run(build_radar_map(config))

    assert result.summary.rows_processed == 2
    assert result.summary.points_rendered == 1
    assert result.points[0].speed_limit == "50"


def test_build_radar_map_missing_dataset_propagates(tmp_path) -> None:
    config = AppConfig().model_copy(
        update={"source": AppConfig().source.model_copy(update={"location": str(tmp_path / "none.xlsx")})}
    )
    with pytest.raises(DatasetUnavailableError):
        asyncio.run(build_radar_map(config))


def test_build_radar_map_loads_rows_off_the_event_loop(monkeypatch) -> None:
    threads: dict[str, int] = {}

    def fake_load_rows(source, **kwargs):
        threads["load"] = threading.get_ident()
        return [{"Longitud": "-3,7", "Latitud": "40,4"}]

    monkeypatch.setattr("radarmap.pipeline.load_rows", fake_load_rows)
    config = AppConfig().model_copy(
        update={"routing": AppConfig().routing.model_copy(update={"enabled": False})}
    )

    async def run():
        threads["loop"] = threading.get_ident()
        return await build_radar_map(config, source="https://data.test/radares.xlsx")

    result = asyncio.run(run())

    assert result.summary.points_rendered == 1
    assert threads["load"] != threads["loop"]


def test_bounds_list_points_then_section_starts_then_route_vertices() -> None:
    rows = [{"Longitud": "-3,0", "Latitud": "40,0"}]
    rows.append(
        {"Longitud inicio tramo": "-4,0", "Latitud inicio tramo": "41,0", "Longitud fin tramo": "", "Latitud fin tramo": ""}
    )
    rows.extend(_section_row(f"-5,{i}", "42,0", f"-5,{i + 1}", "42,5") for i in range(200))

    result = asyncio.run(run_pipeline(rows, DisabledRouter(), min_interval_seconds=0.0))

    expected = [Coordinate(lat=40.0, lon=-3.0), Coordinate(lat=41.0, lon=-4.0)]
    for route in result.routes:
        expected.extend(route.path)
    assert result.bounds.coordinates == tuple(expected)
    assert len(result.bounds) == 2 + 2 * 200
