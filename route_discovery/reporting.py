"""Output writers for discovered places.

Every file is written to a sibling temp file first and moved over the target,
so readers never see a half-written report.
"""
from __future__ import annotations

import csv
import json
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, TextIO

PLACE_CSV_FIELDS = [
    "place_id",
    "name",
    "category",
    "primary_type",
    "rating",
    "price_level",
    "lat",
    "lon",
    "types",
    "discovery_source",
    "fallback_reason",
    "discovered_at",
]


def ensure_dir(path: str) -> None:
    Path(path).mkdir(parents=True, exist_ok=True)


@contextmanager
def replacing_file(path: str, newline: Optional[str] = None) -> Iterator[TextIO]:
    """Open a temp file beside path; on clean exit it replaces path."""
    target = Path(path)
    staged = tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        newline=newline,
        dir=target.parent,
        prefix=f".{target.name}-",
        delete=False,
    )
    staged_path = Path(staged.name)
    try:
        with staged:
            yield staged
            staged.flush()
            os.fsync(staged.fileno())
        staged_path.replace(target)
    except BaseException:
        if staged_path.exists():
            staged_path.unlink()
        raise


def atomic_write_text(path: str, text: str) -> None:
    with replacing_file(path) as f:
        f.write(text)


def build_place_row(place: Dict[str, Any]) -> Dict[str, Any]:
    location = place.get("location") or {}
    return {
        "place_id": place.get("place_id") or place.get("id"),
        "name": place.get("name"),
        "category": place.get("category"),
        "primary_type": place.get("primary_type"),
        "rating": place.get("rating"),
        "price_level": place.get("price_level"),
        "lat": location.get("latitude"),
        "lon": location.get("longitude"),
        "types": json.dumps(place.get("types", []), ensure_ascii=False),
        "discovery_source": place.get("discovery_source"),
        "fallback_reason": place.get("fallback_reason", ""),
        "discovered_at": place.get("discovered_at"),
    }


def write_places_csv(path: str, places: Iterable[Dict[str, Any]]) -> None:
    with replacing_file(path, newline="") as f:
        writer = csv.DictWriter(f, fieldnames=PLACE_CSV_FIELDS)
        writer.writeheader()
        for place in places:
            writer.writerow(build_place_row(place))


def write_places_json(path: str, places: Iterable[Dict[str, Any]]) -> None:
    with replacing_file(path) as f:
        json.dump(list(places), f, ensure_ascii=False, indent=2)


def write_json_object(path: str, payload: Dict[str, Any]) -> None:
    with replacing_file(path) as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)


def render_summary(summary: Dict[str, Any]) -> List[str]:
    lines = [
        "Route discovery summary",
        f"Generated: {summary.get('generated_at', '')}",
        f"Route points: {summary.get('coordinate_count', 0)}",
        f"Route length (m): {summary.get('route_distance_m', 0)}",
        f"Places discovered: {summary.get('place_count', 0)}",
    ]
    sources = summary.get("sources") or {}
    for source, count in sorted(sources.items()):
        lines.append(f"- {source}: {count}")

    metrics = summary.get("metrics") or {}
    if metrics:
        lines.append("")
        lines.append("Requests:")
        for key in ("network_route", "network_nearby", "cache_hits", "fallbacks", "failed_nearby_types"):
            lines.append(f"- {key}: {metrics.get(key, 0)}")

    stats = summary.get("category_stats")
    if stats:
        lines.append("")
        lines.append("Categories:")
        for category, count in stats.get("counts", {}).items():
            if count:
                pct = stats.get("percentages", {}).get(category, 0.0)
                lines.append(f"- {category}: {count} ({pct}%)")
    return lines
