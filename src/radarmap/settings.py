from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field


def project_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _resolve_path(root: Path, value: str | Path) -> Path:
    path = Path(value)
    return path if path.is_absolute() else (root / path)


class AppSection(BaseModel):
    name: str = "radarmap"


class SourceSection(BaseModel):
    # Local path (relative to the project root) or an http(s) URL.
    location: str = "data/raw/radares.xlsx"
    sheet_name: str | int = 0
    request_timeout_seconds: int = 30


class RoutingSection(BaseModel):
    enabled: bool = True
    base_url: str = "https://router.project-osrm.org"
    profile: str = "driving"
    request_timeout_seconds: float = 10.0
    # Self-imposed pacing between successive route requests on the shared router.
    min_request_interval_seconds: float = Field(default=0.12, ge=0.0)
    max_retries: int = Field(default=0, ge=0)
    retry_backoff_seconds: float = 1.0
    respect_retry_after: bool = True
    user_agent: str = "radarmap/0.1"


class ColumnsSection(BaseModel):
    """Header variants per semantic field, ordered by preference."""

    segment_start_lon: list[str] = Field(default_factory=lambda: ["Longitud inicio tramo"])
    segment_start_lat: list[str] = Field(default_factory=lambda: ["Latitud inicio tramo"])
    segment_end_lon: list[str] = Field(
        default_factory=lambda: ["Longitud fin tramo", "X (WGS84)", "Longitud"]
    )
    segment_end_lat: list[str] = Field(
        default_factory=lambda: ["Latitud fin tramo", "Y (WGS84)", "Latitud"]
    )
    point_lon: list[str] = Field(
        default_factory=lambda: ["Longitud", "X (WGS84)", "Longitude", "Lon"]
    )
    point_lat: list[str] = Field(
        default_factory=lambda: ["Latitud", "Y (WGS84)", "Latitude", "Lat"]
    )
    speed_limit: list[str] = Field(
        default_factory=lambda: ["Velocidad límite", "Velocidad limite", "Velocidad"]
    )
    label: list[list[str]] = Field(
        default_factory=lambda: [
            ["Ubicación"],
            ["Carretera o vial", "Carretara o vial"],
            ["Sentido"],
            ["Tipo"],
            ["PK"],
        ]
    )


class ExportSection(BaseModel):
    # Fraction of the bbox span added on every side when fitting the viewport.
    bbox_padding: float = Field(default=0.05, ge=0.0)


class CorsSection(BaseModel):
    allow_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:8000", "http://localhost:5173"]
    )


class ApiSection(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    cors: CorsSection = Field(default_factory=CorsSection)


class AppConfig(BaseModel):
    app: AppSection = Field(default_factory=AppSection)
    source: SourceSection = Field(default_factory=SourceSection)
    routing: RoutingSection = Field(default_factory=RoutingSection)
    columns: ColumnsSection = Field(default_factory=ColumnsSection)
    export: ExportSection = Field(default_factory=ExportSection)
    api: ApiSection = Field(default_factory=ApiSection)

    def resolve_paths(self, root: Optional[Path] = None) -> "AppConfig":
        location = self.source.location
        if location.startswith(("http://", "https://")):
            return self
        repo_root = project_root() if root is None else root
        updated_source = self.source.model_copy(
            update={"location": str(_resolve_path(repo_root, location))}
        )
        return self.model_copy(update={"source": updated_source})


def _maybe_load_dotenv() -> None:
    try:
        from dotenv import load_dotenv  # type: ignore
    except ImportError:
        return

    load_dotenv()


def load_config(config_path: str | Path | None = None) -> AppConfig:
    _maybe_load_dotenv()

    root = project_root()
    candidate = config_path or os.getenv("RADARMAP_CONFIG", "configs/config.yaml")
    path = _resolve_path(root, candidate)
    if not path.exists():
        path = root / "configs/config.example.yaml"
    if not path.exists():
        return AppConfig().resolve_paths(root)

    data: dict[str, Any] = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    return AppConfig.model_validate(data).resolve_paths(root)


_CONFIG: AppConfig | None = None


def get_config() -> AppConfig:
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = load_config()
    return _CONFIG
