"""CLI entrypoint."""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from dotenv import load_dotenv

from route_discovery import config
from route_discovery.discovery import build_service
from route_discovery.geo import InvalidInputError, require_valid_coordinates, route_distance_m, simplify_route
from route_discovery.place_types import category_statistics
from route_discovery.places_client import utc_now_iso
from route_discovery.preferences import validate_discovery_screen_compatibility
from route_discovery.reporting import (
    atomic_write_text,
    ensure_dir,
    render_summary,
    write_json_object,
    write_places_csv,
    write_places_json,
)


def _repo_root() -> Path:
    return Path(__file__).resolve().parent


def load_env(path: str = ".env", root_dir: Optional[Path] = None) -> None:
    """Optionally load a repo-root .env file without overriding real env vars."""
    root = Path(root_dir) if root_dir else _repo_root()
    env_path = (root / path).resolve()
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path, override=False)


def load_route_file(path: str) -> Tuple[List[Dict[str, Any]], Any]:
    """Read a route file: either a bare coordinate list or {"coordinates": [...], "preferences": {...}}."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, list):
        return data, None
    if not isinstance(data, dict):
        raise InvalidInputError(f"Route file {path} must contain a list or an object")
    return data.get("coordinates") or [], data.get("preferences")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Discover places along a route")
    parser.add_argument("route", type=str, help="Route JSON file (coordinate list or object)")
    parser.add_argument("--preferences", type=str, default=None, help="Preferences JSON file")
    parser.add_argument("--min-rating", type=float, default=None, help="Override minimum rating (0-5)")
    parser.add_argument("--platform", choices=["ios", "android"], default=None)
    parser.add_argument("--config", type=str, default=None, help="Discovery config JSON overrides")
    parser.add_argument(
        "--simplify-m",
        type=float,
        default=None,
        help="Simplify the route with this tolerance in metres before searching",
    )
    parser.add_argument("--out", type=str, default=config.OUTPUT_DIR)
    parser.add_argument("--csv", action="store_true", help="Also write places.csv")
    parser.add_argument("--category-stats", action="store_true", help="Write category_stats.json")
    parser.add_argument(
        "--validate-preferences",
        action="store_true",
        help="Print preference validation results and exit",
    )
    return parser.parse_args(argv)


def _read_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    load_env()
    config.load_discovery_config(args.config)

    try:
        coordinates, route_prefs = load_route_file(args.route)
        require_valid_coordinates(coordinates)
    except (OSError, ValueError) as exc:
        print(f"Invalid route: {exc}")
        return 2

    raw_prefs = _read_json(args.preferences) if args.preferences else route_prefs

    if args.validate_preferences:
        report = validate_discovery_screen_compatibility(raw_prefs)
        print(json.dumps(report, indent=2))
        return 0 if report["is_valid"] else 1

    if args.simplify_m is not None:
        simplified = simplify_route(coordinates, tolerance_m=args.simplify_m)
        print(f"Simplified route: {len(coordinates)} -> {len(simplified)} points")
        coordinates = simplified

    try:
        service = build_service(platform=args.platform)
    except config.MissingApiKeyError as exc:
        print(str(exc))
        return 2

    places = service.search_along_route_with_fallback(coordinates, raw_prefs, args.min_rating)

    for place in places:
        rating = place.get("rating")
        rating_text = f"{rating:.1f}" if rating is not None else "-"
        print(f"{rating_text:>4}  {place['category']:<24} {place['name']} ({place['discovery_source']})")
    print(f"{len(places)} places discovered")

    ensure_dir(args.out)
    write_places_json(os.path.join(args.out, "places.json"), places)
    if args.csv:
        write_places_csv(os.path.join(args.out, "places.csv"), places)

    stats = category_statistics(places)
    if args.category_stats:
        write_json_object(os.path.join(args.out, "category_stats.json"), stats)

    summary = {
        "generated_at": utc_now_iso(),
        "coordinate_count": len(coordinates),
        "route_distance_m": round(route_distance_m(coordinates), 1),
        "place_count": len(places),
        "sources": dict(Counter(p.get("discovery_source") for p in places)),
        "metrics": vars(service.metrics),
        "category_stats": stats,
    }
    atomic_write_text(os.path.join(args.out, "summary.txt"), "\n".join(render_summary(summary)) + "\n")
    print(f"Wrote outputs to {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
