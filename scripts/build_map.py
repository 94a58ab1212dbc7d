from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from radarmap.export.geojson import to_feature_collection
from radarmap.logging_config import configure_logging
from radarmap.pipeline import build_radar_map
from radarmap.settings import get_config
from radarmap.sources.spreadsheet import DatasetUnavailableError


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Build a GeoJSON map of speed cameras and section controls from a published sheet."
    )
    parser.add_argument("--source", default=None, help="Dataset path or URL (default: config.source.location).")
    parser.add_argument("--sheet", default=None, help="Sheet name or index (default: config.source.sheet_name).")
    parser.add_argument("--out", default="data/processed/radares.geojson", help="Output GeoJSON path.")
    parser.add_argument(
        "--min-interval",
        type=float,
        default=None,
        help="Seconds between route requests (default: config.routing.min_request_interval_seconds).",
    )
    parser.add_argument("--no-routing", action="store_true", help="Draw sections as straight lines only.")
    parser.add_argument("--log-level", default=None, help="Level for radarmap loggers (e.g. DEBUG).")
    args = parser.parse_args()

    configure_logging(level=args.log_level)
    config = get_config()

    source_update: dict[str, object] = {}
    if args.sheet is not None:
        source_update["sheet_name"] = int(args.sheet) if args.sheet.isdigit() else args.sheet
    routing_update: dict[str, object] = {}
    if args.min_interval is not None:
        routing_update["min_request_interval_seconds"] = float(args.min_interval)
    if args.no_routing:
        routing_update["enabled"] = False
    config = config.model_copy(
        update={
            "source": config.source.model_copy(update=source_update),
            "routing": config.routing.model_copy(update=routing_update),
        }
    )

    try:
        result = asyncio.run(build_radar_map(config, source=args.source))
    except DatasetUnavailableError as exc:
        print(f"No data processed: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    collection = to_feature_collection(result, pad=config.export.bbox_padding)
    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(collection, ensure_ascii=False), encoding="utf-8")

    summary = result.summary
    print(f"Wrote GeoJSON: {out}")
    print(f"  rows={summary.rows_processed:,} rejected={summary.rows_rejected:,}")
    print(f"  points={summary.points_rendered:,} section_starts={summary.start_only_rendered:,}")
    print(f"  sections_routed={summary.segments_routed:,} sections_fallback={summary.segments_fallback:,}")
    for reason, count in sorted(result.fallback_reasons.items()):
        print(f"    fallback[{reason}]={count:,}")


if __name__ == "__main__":
    main()
