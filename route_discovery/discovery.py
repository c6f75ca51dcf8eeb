"""Route discovery orchestration: search along route with center-point fallback."""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import requests

from . import config
from .filtering import apply_preference_filtering, deduplicate_results
from .geo import (
    center_point,
    encode_polyline,
    is_route_long_enough,
    require_valid_coordinates,
    route_distance_m,
)
from .http import HttpClient, ProviderRequestError, RequestMetrics
from .places_client import (
    SOURCE_CENTER_POINT,
    SOURCE_SAR,
    PlacesClient,
    field_mask_for,
    parse_places_response,
    utc_now_iso,
)
from .preferences import (
    CanonicalPreferences,
    create_preferences_from_discovery_screen,
    is_valid_min_rating,
    normalize_preferences,
)
from .result_cache import ResultCache, make_result_cache_key

logger = logging.getLogger(__name__)

FALLBACK_OPERATION = "SAR_FALLBACK_TO_CENTER_POINT"
FALLBACK_REASON_SAR_FAILURE = "SAR API failure"
FALLBACK_REASON_ROUTE_TOO_SHORT = "route too short"

STATE_TRY_SAR = "TRY_SAR"
STATE_FALLBACK = "FALLBACK"
STATE_DONE = "DONE"


@dataclass
class TypeSearchOutcome:
    place_type: str
    places: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def effective_preferences(raw_prefs: Any, min_rating: Any = None) -> CanonicalPreferences:
    """Canonical preferences with an optional min-rating override applied."""
    prefs = normalize_preferences(raw_prefs)
    if min_rating is None:
        return prefs
    if not is_valid_min_rating(min_rating):
        logger.warning("Ignoring invalid min_rating override %r", min_rating)
        return prefs
    return dataclasses.replace(prefs, min_rating=float(min_rating))


class RouteDiscoveryService:
    def __init__(
        self,
        places_client: PlacesClient,
        cache: Optional[ResultCache] = None,
        metrics: Optional[RequestMetrics] = None,
        min_route_length_m: Optional[float] = None,
        fallback_radius_m: Optional[float] = None,
    ) -> None:
        self.places_client = places_client
        self.cache = cache if cache is not None else ResultCache(ttl_seconds=config.RESULT_CACHE_TTL_SECONDS)
        self.metrics = metrics if metrics is not None else RequestMetrics()
        self.min_route_length_m = (
            config.MIN_ROUTE_LENGTH_M if min_route_length_m is None else min_route_length_m
        )
        self.fallback_radius_m = (
            config.FALLBACK_RADIUS_M if fallback_radius_m is None else fallback_radius_m
        )

    def _cached(self, key: str) -> Optional[List[Dict[str, Any]]]:
        cached = self.cache.get(key)
        if cached is not None:
            self.metrics.inc_cache_hit()
            logger.info("Result cache hit (%d places)", len(cached))
        return cached

    def search_along_route(
        self,
        coordinates: Sequence[Dict[str, float]],
        raw_prefs: Any = None,
        min_rating: Any = None,
    ) -> List[Dict[str, Any]]:
        """One search-along-route request for the whole route, filtered by preferences.

        Raises InvalidInputError for bad coordinates and ProviderRequestError
        when the provider call fails. A route shorter than the minimum length
        returns [] without calling the provider.
        """
        require_valid_coordinates(coordinates)
        prefs = effective_preferences(raw_prefs, min_rating)
        if not is_route_long_enough(coordinates, self.min_route_length_m):
            logger.info("Route shorter than %.0fm; skipping search along route", self.min_route_length_m)
            return []

        key = make_result_cache_key(coordinates, prefs, prefs.min_rating)
        cached = self._cached(key)
        if cached is not None:
            return cached

        response = self.places_client.search_along_route(
            encode_polyline(coordinates),
            prefs.search_types(),
            min_rating=prefs.min_rating,
            field_mask=field_mask_for(prefs),
        )
        places = parse_places_response(response, discovery_source=SOURCE_SAR)
        results = apply_preference_filtering(places, prefs)
        self.cache.set(key, results)
        return results

    def _center_point_search(
        self,
        coordinates: Sequence[Dict[str, float]],
        prefs: CanonicalPreferences,
        fallback_reason: str,
    ) -> Tuple[List[Dict[str, Any]], List[TypeSearchOutcome]]:
        center = center_point(coordinates)
        field_mask = field_mask_for(prefs)
        discovered_at = utc_now_iso()

        outcomes: List[TypeSearchOutcome] = []
        for place_type in prefs.search_types():
            try:
                response = self.places_client.search_nearby(
                    center,
                    [place_type],
                    radius_m=self.fallback_radius_m,
                    min_rating=prefs.min_rating,
                    field_mask=field_mask,
                )
            except (ProviderRequestError, requests.RequestException) as exc:
                logger.warning("Center-point search failed for type %s: %s", place_type, exc)
                self.metrics.inc_failed_nearby_type()
                outcomes.append(TypeSearchOutcome(place_type, error=exc))
                continue
            places = parse_places_response(
                response, discovery_source=SOURCE_CENTER_POINT, discovered_at=discovered_at
            )
            for place in places:
                place["fallback_reason"] = fallback_reason
            outcomes.append(TypeSearchOutcome(place_type, places=places))

        merged: List[Dict[str, Any]] = []
        for outcome in outcomes:
            merged.extend(outcome.places)
        failed = sum(1 for o in outcomes if not o.ok)
        results = deduplicate_results(merged)
        logger.info(
            "Center-point search: %d types (%d failed), %d places after dedup",
            len(outcomes),
            failed,
            len(results),
        )
        return results, outcomes

    def perform_center_point_search(
        self,
        coordinates: Sequence[Dict[str, float]],
        raw_prefs: Any = None,
        min_rating: Any = None,
        fallback_reason: str = FALLBACK_REASON_SAR_FAILURE,
    ) -> List[Dict[str, Any]]:
        """Per-type nearby searches around the route centroid, merged and deduplicated.

        A failing type is logged and skipped; the other types still run.
        """
        require_valid_coordinates(coordinates)
        prefs = effective_preferences(raw_prefs, min_rating)
        results, _ = self._center_point_search(coordinates, prefs, fallback_reason)
        return results

    def search_along_route_with_fallback(
        self,
        coordinates: Sequence[Dict[str, float]],
        raw_prefs: Any = None,
        min_rating: Any = None,
    ) -> List[Dict[str, Any]]:
        require_valid_coordinates(coordinates)
        prefs = effective_preferences(raw_prefs, min_rating)
        key = make_result_cache_key(coordinates, prefs, prefs.min_rating)
        cached = self._cached(key)
        if cached is not None:
            return cached

        results: List[Dict[str, Any]] = []
        fallback_reason = FALLBACK_REASON_SAR_FAILURE
        if is_route_long_enough(coordinates, self.min_route_length_m):
            state = STATE_TRY_SAR
        else:
            state = STATE_FALLBACK
            fallback_reason = FALLBACK_REASON_ROUTE_TOO_SHORT

        while state != STATE_DONE:
            if state == STATE_TRY_SAR:
                try:
                    results = self.search_along_route(coordinates, prefs)
                    state = STATE_DONE
                except Exception as exc:
                    logger.error("Search along route failed: %s", exc)
                    self.log_fallback_operation(coordinates, prefs, exc, fallback_reason)
                    state = STATE_FALLBACK
            elif state == STATE_FALLBACK:
                self.metrics.inc_fallback()
                if fallback_reason == FALLBACK_REASON_ROUTE_TOO_SHORT:
                    self.log_fallback_operation(coordinates, prefs, None, fallback_reason)
                places, outcomes = self._center_point_search(coordinates, prefs, fallback_reason)
                results = apply_preference_filtering(places, prefs)
                if any(o.ok for o in outcomes):
                    self.cache.set(key, results)
                state = STATE_DONE

        return results

    def search_with_discovery_preferences(
        self,
        coordinates: Sequence[Dict[str, float]],
        screen_preferences: Any,
        min_rating: Any = 0,
        options: Optional[Mapping[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        prefs = create_preferences_from_discovery_screen(screen_preferences, min_rating, options)
        return self.search_along_route_with_fallback(coordinates, prefs)

    def log_fallback_operation(
        self,
        coordinates: Sequence[Dict[str, float]],
        prefs: CanonicalPreferences,
        error: Optional[BaseException],
        fallback_reason: str,
    ) -> Dict[str, Any]:
        record = {
            "operation": FALLBACK_OPERATION,
            "timestamp": utc_now_iso(),
            "route": {
                "coordinate_count": len(coordinates),
                "distance_m": round(route_distance_m(coordinates), 1),
                "start": dict(coordinates[0]),
                "end": dict(coordinates[-1]),
            },
            "preferences": {
                "enabled_types": len(prefs.search_types()),
                "all_types": prefs.all_types,
                "min_rating": prefs.min_rating,
            },
            "error": {
                "type": type(error).__name__ if error is not None else None,
                "message": str(error) if error is not None else None,
            },
            "fallback_reason": fallback_reason,
            "fallback_method": f"center-point search with {self.fallback_radius_m:g}m radius",
        }
        logger.warning("Falling back to center-point search: %s", record)
        return record

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("Result cache cleared")


def build_service(
    api_key: Optional[str] = None,
    platform: Optional[str] = None,
    metrics: Optional[RequestMetrics] = None,
) -> RouteDiscoveryService:
    """Wire a service from config, resolving the API key from the environment when not given."""
    if not api_key:
        api_key = config.resolve_api_key(platform)
    metrics = metrics if metrics is not None else RequestMetrics()
    http_client = HttpClient(
        api_key,
        timeout=config.HTTP_TIMEOUT_SECONDS,
        retry_max=config.HTTP_RETRY_MAX,
        backoff_base=config.HTTP_BACKOFF_BASE,
        backoff_max=config.HTTP_BACKOFF_MAX,
    )
    places_client = PlacesClient(http_client, metrics=metrics)
    return RouteDiscoveryService(places_client, metrics=metrics)
