from __future__ import annotations

import httpx
import pandas as pd
import pytest

from radarmap.sources.spreadsheet import DatasetUnavailableError, load_rows


def test_load_rows_from_csv_keeps_text_and_nulls(tmp_path) -> None:
    path = tmp_path / "radares.csv"
    path.write_text(
        'Longitud,Latitud,PK\n"-3,7038","40,4168",\n"-4,42","36,72",12\n',
        encoding="utf-8",
    )

    rows = load_rows(path)

    assert rows == [
        {"Longitud": "-3,7038", "Latitud": "40,4168", "PK": None},
        {"Longitud": "-4,42", "Latitud": "36,72", "PK": "12"},
    ]


def test_load_rows_from_xlsx(tmp_path) -> None:
    path = tmp_path / "radares.xlsx"
    pd.DataFrame(
        [
            {"Longitud": -3.7038, "Latitud": 40.4168, "Velocidad límite": 50},
            {"Longitud": -4.42, "Latitud": 36.72, "Velocidad límite": None},
        ]
    ).to_excel(path, index=False)

    rows = load_rows(path)

    assert len(rows) == 2
    assert rows[0]["Longitud"] == pytest.approx(-3.7038)
    assert rows[0]["Velocidad límite"] == 50
    assert rows[1]["Velocidad límite"] is None


def test_load_rows_from_url() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/datos/radares.csv"
        return httpx.Response(200, content='Longitud,Latitud\n"-3,70","40,41"\n'.encode("utf-8"))

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        rows = load_rows("https://data.test/datos/radares.csv", http_client=client)

    assert rows == [{"Longitud": "-3,70", "Latitud": "40,41"}]


def test_unreachable_url_is_fatal() -> None:
    with httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(404))) as client:
        with pytest.raises(DatasetUnavailableError):
            load_rows("https://data.test/datos/radares.xlsx", http_client=client)


def test_missing_file_is_fatal(tmp_path) -> None:
    with pytest.raises(DatasetUnavailableError):
        load_rows(tmp_path / "missing.xlsx")


def test_corrupt_spreadsheet_is_fatal(tmp_path) -> None:
    path = tmp_path / "radares.xlsx"
    path.write_bytes(b"not a spreadsheet")
    with pytest.raises(DatasetUnavailableError):
        load_rows(path)


@pytest.mark.parametrize("sheet_name", [5, "Hoja inexistente"])
def test_missing_sheet_is_fatal(tmp_path, sheet_name) -> None:
    path = tmp_path / "radares.xlsx"
    pd.DataFrame([{"Longitud": -3.7, "Latitud": 40.4}]).to_excel(path, index=False)
    with pytest.raises(DatasetUnavailableError):
        load_rows(path, sheet_name=sheet_name)
