from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from radarmap.api.schemas import EmptyReason, FeatureCollectionResponse, ReasonCode
from radarmap.export.geojson import to_feature_collection
from radarmap.pipeline import build_radar_map
from radarmap.settings import get_config
from radarmap.sources.spreadsheet import DatasetUnavailableError


router = APIRouter()


@router.get("/map/radars", response_model=FeatureCollectionResponse)
async def get_radar_map(
    source: Optional[str] = Query(
        default=None, description="Dataset path or URL (default: config.source.location)."
    ),
    routing: bool = Query(default=True, description="Follow roads for section controls."),
) -> FeatureCollectionResponse:
    config = get_config()
    if not routing:
        config = config.model_copy(
            update={"routing": config.routing.model_copy(update={"enabled": False})}
        )

    try:
        result = await build_radar_map(config, source=source)
    except DatasetUnavailableError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    response = FeatureCollectionResponse.model_validate(
        to_feature_collection(result, pad=config.export.bbox_padding)
    )
    if result.summary.rows_processed == 0:
        response.reason = EmptyReason(
            code=ReasonCode.NO_ROWS,
            message="The dataset has no data rows.",
            suggestion="Check source.location and source.sheet_name in the config.",
        )
    elif not response.features:
        response.reason = EmptyReason(
            code=ReasonCode.NO_RECORDS,
            message="No row has recognizable coordinate columns.",
            suggestion="Add the published header names to the columns section of the config.",
        )
    return response
