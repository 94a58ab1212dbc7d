from __future__ import annotations

import csv
import io
import logging
import zipfile
from pathlib import Path, PurePosixPath
from typing import Any, Optional
from urllib.parse import urlparse

import httpx
import pandas as pd

from radarmap.ingestion.schemas import Row

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = {".xlsx", ".xlsm", ".xls", ".ods"}


class DatasetUnavailableError(RuntimeError):
    """Raised when the published dataset cannot be fetched or parsed; nothing is processed."""


def _is_url(source: str | Path) -> bool:
    return isinstance(source, str) and source.startswith(("http://", "https://"))


def _suffix(source: str | Path) -> str:
    if _is_url(source):
        return PurePosixPath(urlparse(str(source)).path).suffix.lower()
    return Path(source).suffix.lower()


def _fetch_bytes(url: str, http_client: Optional[httpx.Client], timeout_seconds: float) -> bytes:
    client = http_client or httpx.Client(timeout=timeout_seconds, follow_redirects=True)
    try:
        response = client.get(url)
        response.raise_for_status()
        return response.content
    finally:
        if http_client is None:
            client.close()


def read_frame(data: bytes | Path, suffix: str, *, sheet_name: str | int = 0) -> pd.DataFrame:
    buffer: Any = io.BytesIO(data) if isinstance(data, bytes) else data
    if suffix == ".csv":
        # sep=None sniffs `,` vs `;`, the latter being common in comma-decimal locales.
        return pd.read_csv(buffer, sep=None, engine="python", dtype=object)
    return pd.read_excel(buffer, sheet_name=sheet_name)


def frame_to_rows(df: pd.DataFrame) -> list[Row]:
    if df.empty:
        return []
    out = df.copy()
    out.columns = [str(c) for c in out.columns]
    # NaN cells become real `None` so the core sees absent values, not floats.
    out = out.astype(object).where(pd.notnull(out), None)
    return out.to_dict(orient="records")


def load_rows(
    source: str | Path,
    *,
    sheet_name: str | int = 0,
    http_client: Optional[httpx.Client] = None,
    timeout_seconds: float = 30,
) -> list[Row]:
    """Load the published sheet as rows keyed by its header row."""

    suffix = _suffix(source)
    if suffix != ".csv" and suffix not in EXCEL_SUFFIXES:
        # Unknown or missing extension: published sheets are spreadsheets more often than not.
        suffix = ".xlsx"

    try:
        if _is_url(source):
            data: bytes | Path = _fetch_bytes(str(source), http_client, timeout_seconds)
        else:
            data = Path(source)
            if not data.exists():
                raise FileNotFoundError(f"Dataset not found: {data}")
        df = read_frame(data, suffix, sheet_name=sheet_name)
    except (
        httpx.HTTPError,
        OSError,
        ValueError,
        IndexError,
        KeyError,
        ImportError,
        csv.Error,
        zipfile.BadZipFile,
    ) as exc:
        raise DatasetUnavailableError(f"Could not load dataset from {source}: {exc}") from exc

    rows = frame_to_rows(df)
    logger.info("Loaded %s row(s) from %s", len(rows), source)
    return rows
