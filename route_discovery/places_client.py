"""Places API client for route and nearby searches, plus response parsing."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from . import config
from .http import HttpClient, RequestMetrics
from .place_types import classify_place
from .preferences import CanonicalPreferences

logger = logging.getLogger(__name__)

SOURCE_SAR = "SAR"
SOURCE_CENTER_POINT = "center-point"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


class PlacesClient:
    def __init__(
        self,
        http_client: HttpClient,
        field_mask: str = config.PLACES_FIELD_MASK,
        metrics: Optional[RequestMetrics] = None,
    ) -> None:
        self.http = http_client
        self.field_mask = field_mask
        self.metrics = metrics

    def search_along_route(
        self,
        encoded_polyline: str,
        included_types: Sequence[str],
        min_rating: float = 0.0,
        field_mask: Optional[str] = None,
    ) -> Dict[str, Any]:
        body = build_route_search_body(encoded_polyline, included_types, min_rating)
        logger.info(
            "Search along route: %d types, min_rating=%s, max_results=%d",
            len(body["includedTypes"]),
            body.get("minRating", "none"),
            body["maxResultCount"],
        )
        if self.metrics is not None:
            self.metrics.inc_network("route")
        return self.http.post_json(
            config.PLACES_SEARCH_ALONG_ROUTE_URL, body, field_mask or self.field_mask
        )

    def search_nearby(
        self,
        center: Dict[str, float],
        included_types: Sequence[str],
        radius_m: float = config.FALLBACK_RADIUS_M,
        min_rating: float = 0.0,
        field_mask: Optional[str] = None,
    ) -> Dict[str, Any]:
        body = build_nearby_search_body(center, included_types, radius_m, min_rating)
        if self.metrics is not None:
            self.metrics.inc_network("nearby")
        return self.http.post_json(
            config.PLACES_NEARBY_SEARCH_URL, body, field_mask or self.field_mask
        )


def field_mask_for(prefs: CanonicalPreferences) -> str:
    enhanced = prefs.enhanced_data_preferences
    if enhanced and (enhanced.include_photos or enhanced.include_operating_hours):
        return config.PLACES_FIELD_MASK_ENHANCED
    return config.PLACES_FIELD_MASK


def build_route_search_body(
    encoded_polyline: str,
    included_types: Sequence[str],
    min_rating: float = 0.0,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "polyline": {"encodedPolyline": encoded_polyline},
        "includedTypes": list(included_types),
        "maxResultCount": config.MAX_RESULT_COUNT,
        "rankPreference": config.RANK_PREFERENCE,
    }
    if min_rating and 0 < min_rating <= config.MIN_RATING_HIGH:
        body["minRating"] = min_rating
    if config.PLACES_ROUTE_BODY_EXTRA:
        body.update(config.PLACES_ROUTE_BODY_EXTRA)
    return body


def build_nearby_search_body(
    center: Dict[str, float],
    included_types: Sequence[str],
    radius_m: float = config.FALLBACK_RADIUS_M,
    min_rating: float = 0.0,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "includedTypes": list(included_types),
        "maxResultCount": config.MAX_RESULT_COUNT,
        "locationRestriction": {
            "circle": {
                "center": {"latitude": center["latitude"], "longitude": center["longitude"]},
                "radius": radius_m,
            }
        },
    }
    if min_rating and 0 < min_rating <= config.MIN_RATING_HIGH:
        body["minRating"] = min_rating
    if config.PLACES_NEARBY_BODY_EXTRA:
        body.update(config.PLACES_NEARBY_BODY_EXTRA)
    return body


# Adapter/mapper for Places response fields

def parse_places_response(
    response: Any,
    discovery_source: str = SOURCE_SAR,
    discovered_at: Optional[str] = None,
) -> List[Dict[str, Any]]:
    if not isinstance(response, dict):
        return []
    places = response.get("places")
    if not isinstance(places, list):
        return []

    discovered_at = discovered_at or utc_now_iso()
    parsed: List[Dict[str, Any]] = []
    for p in places:
        if not isinstance(p, dict):
            continue
        place_id = p.get("id") or p.get("placeId")
        if not place_id:
            logger.debug("Skipping place without id: %r", p.get("displayName"))
            continue
        parsed.append(normalize_place(p, place_id, discovery_source, discovered_at))
    return parsed


def _coordinate(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def normalize_place(
    p: Dict[str, Any],
    place_id: str,
    discovery_source: str,
    discovered_at: str,
) -> Dict[str, Any]:
    display = p.get("displayName")
    if isinstance(display, dict):
        name = display.get("text") or display.get("value")
    else:
        name = display
    raw_types = p.get("types")
    types = [t for t in raw_types if isinstance(t, str)] if isinstance(raw_types, list) else []
    primary_type = p.get("primaryType")
    if not isinstance(primary_type, str) or not primary_type:
        primary_type = types[0] if types else config.DEFAULT_PRIMARY_TYPE
    location = p.get("location")
    if not isinstance(location, dict):
        location = {}
    rating = p.get("rating")
    if isinstance(rating, bool) or not isinstance(rating, (int, float)):
        rating = None

    place: Dict[str, Any] = {
        "id": place_id,
        "place_id": place_id,
        "name": name or config.UNNAMED_PLACE,
        "types": types,
        "primary_type": primary_type,
        "location": {
            "latitude": _coordinate(location.get("latitude")),
            "longitude": _coordinate(location.get("longitude")),
        },
        "rating": rating,
        "price_level": p.get("priceLevel"),
        "category": classify_place(p),
        "discovery_source": discovery_source,
        "discovered_at": discovered_at,
        "saved": False,
        "dismissed": False,
    }
    if "photos" in p:
        place["photos"] = p.get("photos") or []
    opening_hours = p.get("regularOpeningHours") or p.get("openingHours")
    if opening_hours:
        place["opening_hours"] = opening_hours
    return place
