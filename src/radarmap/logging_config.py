from __future__ import annotations

import logging
import logging.config
import os
from pathlib import Path
from typing import Any, Optional

import yaml

from radarmap.settings import project_root

# Per-request client chatter stays quiet; routing fallbacks are warnings from radarmap.routing.
_DEFAULT_LOGGING: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {"format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s"}
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": "DEBUG",
            "formatter": "standard",
            "stream": "ext://sys.stderr",
        }
    },
    "loggers": {
        "httpx": {"level": "WARNING"},
        "httpcore": {"level": "WARNING"},
        "radarmap": {"level": "INFO"},
        "radarmap.routing": {"level": "INFO"},
    },
    "root": {"level": "WARNING", "handlers": ["console"]},
}


def configure_logging(
    logging_config_path: str | Path | None = None,
    *,
    level: Optional[str] = None,
) -> None:
    """Configure logging from YAML (or the built-in console setup).

    `level` (or `RADARMAP_LOG_LEVEL`) overrides the `radarmap` logger after the config is applied,
    e.g. `DEBUG` to see every route request the queue makes.
    """

    root = project_root()
    candidate = logging_config_path or os.getenv(
        "RADARMAP_LOGGING_CONFIG", "configs/logging.yaml"
    )
    path = Path(candidate)
    if not path.is_absolute():
        path = root / path
    if path.exists():
        config: dict[str, Any] = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        logging.config.dictConfig(config)
    else:
        logging.config.dictConfig(_DEFAULT_LOGGING)

    override = level or os.getenv("RADARMAP_LOG_LEVEL")
    if override:
        logging.getLogger("radarmap").setLevel(override.upper())
