from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from radarmap.api.routes_map import router as map_router
from radarmap.logging_config import configure_logging
from radarmap.settings import get_config


def create_app() -> FastAPI:
    configure_logging()
    config = get_config()

    app = FastAPI(title="RadarMap API", version="0.1.0")

    @app.get("/healthz")
    def healthz() -> dict[str, bool]:
        return {"ok": True}

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors.allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(map_router, tags=["map"])

    return app


app = create_app()
