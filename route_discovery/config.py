"""Project configuration.

Keeps Places API request shapes and discovery policy constants in one place.
Values can be overridden from discovery_config.json via load_discovery_config.
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

_REPO_ROOT = Path(__file__).resolve().parent.parent


class MissingApiKeyError(RuntimeError):
    pass


# --- API endpoints ---

PLACES_SEARCH_ALONG_ROUTE_URL = "https://places.googleapis.com/v1/places:searchAlongRoute"
PLACES_NEARBY_SEARCH_URL = "https://places.googleapis.com/v1/places:searchNearby"

# --- Field masks ---

PLACES_FIELD_MASK = (
    "places.id,places.displayName,places.types,places.location,"
    "places.rating,places.priceLevel,places.primaryType"
)
# Only requested when enhanced-data preferences filter on photos or hours.
PLACES_FIELD_MASK_ENHANCED = PLACES_FIELD_MASK + ",places.photos,places.regularOpeningHours"

# --- Places API request shape ---

MAX_RESULT_COUNT = 20
RANK_PREFERENCE = "DISTANCE"
FALLBACK_RADIUS_M = 500
PLACES_ROUTE_BODY_EXTRA: Dict[str, Any] = {}
PLACES_NEARBY_BODY_EXTRA: Dict[str, Any] = {}

# --- Discovery policy ---

MIN_ROUTE_LENGTH_M = 50.0
RESULT_CACHE_TTL_SECONDS = 10 * 60
UNRATED_CUTOFF_MIN_RATING = 4.5
CATEGORY_BALANCE_BUDGET = 20
MIN_RATING_LOW = 0.0
MIN_RATING_HIGH = 5.0
FEW_TYPES_SUGGESTION_THRESHOLD = 3
UNNAMED_PLACE = "Unnamed Place"
DEFAULT_PRIMARY_TYPE = "establishment"

# --- HTTP ---

HTTP_TIMEOUT_SECONDS = 20
HTTP_RETRY_MAX = 3
HTTP_BACKOFF_BASE = 0.5
HTTP_BACKOFF_MAX = 8.0

# --- API keys ---

API_KEY_ENV_IOS = "GOOGLE_MAPS_API_KEY_IOS"
API_KEY_ENV_ANDROID = "GOOGLE_MAPS_API_KEY_ANDROID"
API_KEY_ENV_DEFAULT = "GOOGLE_MAPS_API_KEY"

# --- Outputs ---

OUTPUT_DIR = "out"


def resolve_api_key(platform: Optional[str] = None) -> str:
    """Pick the Maps key for the given platform, falling back to any configured key."""
    ios_key = (os.environ.get(API_KEY_ENV_IOS) or "").strip()
    android_key = (os.environ.get(API_KEY_ENV_ANDROID) or "").strip()
    default_key = (os.environ.get(API_KEY_ENV_DEFAULT) or "").strip()

    platform = (platform or "").lower()
    if platform == "ios" and ios_key:
        return ios_key
    if platform == "android" and android_key:
        return android_key

    api_key = ios_key or android_key or default_key
    if not api_key:
        raise MissingApiKeyError(
            "No Google Maps API key available for route discovery. Set one of: "
            f"{API_KEY_ENV_IOS}, {API_KEY_ENV_ANDROID}, {API_KEY_ENV_DEFAULT}"
        )
    return api_key


def load_discovery_config(path: Optional[str] = None) -> bool:
    """Load discovery overrides from a JSON file.

    Updates module-level globals with values from the config file.
    Returns True if config was loaded, False if file not found.
    """
    if path is None:
        path = str(_REPO_ROOT / "discovery_config.json")

    config_path = Path(path)
    if not config_path.exists():
        return False

    with open(config_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    globals_ref = globals()

    search = data.get("search", {})
    if "max_result_count" in search:
        globals_ref["MAX_RESULT_COUNT"] = int(search["max_result_count"])
    if "rank_preference" in search:
        globals_ref["RANK_PREFERENCE"] = str(search["rank_preference"])
    if "fallback_radius_m" in search:
        globals_ref["FALLBACK_RADIUS_M"] = int(search["fallback_radius_m"])
    if "min_route_length_m" in search:
        globals_ref["MIN_ROUTE_LENGTH_M"] = float(search["min_route_length_m"])

    cache = data.get("cache", {})
    if "ttl_seconds" in cache:
        globals_ref["RESULT_CACHE_TTL_SECONDS"] = float(cache["ttl_seconds"])

    http = data.get("http", {})
    if "timeout_seconds" in http:
        globals_ref["HTTP_TIMEOUT_SECONDS"] = int(http["timeout_seconds"])
    if "retry_max" in http:
        globals_ref["HTTP_RETRY_MAX"] = int(http["retry_max"])
    if "backoff_base" in http:
        globals_ref["HTTP_BACKOFF_BASE"] = float(http["backoff_base"])
    if "backoff_max" in http:
        globals_ref["HTTP_BACKOFF_MAX"] = float(http["backoff_max"])

    route_extra = data.get("route_body_extra")
    if route_extra:
        globals_ref["PLACES_ROUTE_BODY_EXTRA"] = dict(route_extra)
    nearby_extra = data.get("nearby_body_extra")
    if nearby_extra:
        globals_ref["PLACES_NEARBY_BODY_EXTRA"] = dict(nearby_extra)

    return True
