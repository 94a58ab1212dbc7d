from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class ReasonCode(str, Enum):
    NO_ROWS = "no_rows"
    NO_RECORDS = "no_records"


class EmptyReason(BaseModel):
    code: ReasonCode
    message: str
    suggestion: str | None = None


class MapSummary(BaseModel):
    rows_processed: int
    rows_rejected: int
    points_rendered: int
    start_only_rendered: int
    segments_routed: int
    segments_fallback: int
    fallback_reasons: dict[str, int] = Field(default_factory=dict)


class FeatureCollectionResponse(BaseModel):
    type: str = "FeatureCollection"
    features: list[dict[str, Any]] = Field(default_factory=list)
    bbox: Optional[list[float]] = None
    summary: MapSummary
    reason: EmptyReason | None = None
