"""Preference filtering, category balancing and deduplication of discovered places.

Every stage is a pure function over lists of place dicts and returns a new
list; input lists and records are never mutated.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Set, Tuple

from . import config
from .place_types import category_of, classify_place
from .preferences import CanonicalPreferences, EnhancedDataPreferences, UserBehaviorPreferences

logger = logging.getLogger(__name__)


def _rating(place: Dict[str, Any]) -> Optional[float]:
    rating = place.get("rating")
    if isinstance(rating, bool) or not isinstance(rating, (int, float)):
        return None
    return float(rating)


def _category(place: Dict[str, Any]) -> str:
    return place.get("category") or classify_place(place)


def filter_by_rating(places: List[Dict[str, Any]], min_rating: float) -> List[Dict[str, Any]]:
    """Drop places rated below min_rating.

    Unrated places survive unless the threshold is very strict.
    """
    drop_unrated = min_rating >= config.UNRATED_CUTOFF_MIN_RATING
    kept = []
    for place in places:
        rating = _rating(place)
        if rating is None:
            if not drop_unrated:
                kept.append(place)
        elif rating >= min_rating:
            kept.append(place)
    return kept


def filter_by_type(places: List[Dict[str, Any]], prefs: CanonicalPreferences) -> List[Dict[str, Any]]:
    if prefs.all_types:
        return list(places)
    enabled = set(prefs.enabled_types())
    kept = []
    for place in places:
        types = place.get("types") or []
        if not types:
            primary = place.get("primary_type") or place.get("primaryType")
            types = [primary] if primary else []
        if any(t in enabled for t in types):
            kept.append(place)
    return kept


def _balancing_category(
    place: Dict[str, Any], groups: Dict[str, Any], enabled_types: Set[str]
) -> Optional[str]:
    """Bucket for balancing: the place's own category, else that of its first enabled type."""
    category = _category(place)
    if category in groups:
        return category
    types = place.get("types")
    for place_type in types if isinstance(types, list) else []:
        if place_type in enabled_types:
            return category_of(place_type)
    return None


def apply_category_balancing(
    places: List[Dict[str, Any]], prefs: CanonicalPreferences
) -> List[Dict[str, Any]]:
    """Cap each enabled category at an equal share of the result budget.

    The share is floor(budget / enabled categories), at least one. Within a
    category the highest rated places win; unrated places count as 0.
    A place outside the enabled categories is counted under the category of
    its first enabled type, and dropped only when it has none.
    """
    if not places:
        return []
    enabled_categories = prefs.enabled_categories()
    if not enabled_categories:
        return []
    max_per_category = max(1, config.CATEGORY_BALANCE_BUDGET // len(enabled_categories))

    enabled_types = set(prefs.search_types())
    groups: Dict[str, List[Dict[str, Any]]] = {c: [] for c in enabled_categories}
    for place in places:
        category = _balancing_category(place, groups, enabled_types)
        if category is not None:
            groups[category].append(place)

    balanced: List[Dict[str, Any]] = []
    for category in enabled_categories:
        ranked = sorted(groups[category], key=lambda p: _rating(p) or 0.0, reverse=True)
        balanced.extend(ranked[:max_per_category])
    return balanced


def apply_enhanced_data_filtering(
    places: List[Dict[str, Any]], enhanced: Optional[EnhancedDataPreferences]
) -> List[Dict[str, Any]]:
    if enhanced is None:
        return list(places)
    kept = list(places)
    if enhanced.include_photos:
        kept = [p for p in kept if isinstance(p.get("photos"), list) and p["photos"]]
    if enhanced.include_operating_hours:
        kept = [p for p in kept if p.get("opening_hours") or p.get("openingHours")]
    return kept


def apply_user_behavior_filtering(
    places: List[Dict[str, Any]], behavior: Optional[UserBehaviorPreferences]
) -> List[Dict[str, Any]]:
    if behavior is None:
        return list(places)
    kept = list(places)
    if behavior.dismissed_place_ids:
        kept = [p for p in kept if place_key(p) not in behavior.dismissed_place_ids]
    if behavior.preferred_categories:
        allowed = set(behavior.preferred_categories)
        kept = [p for p in kept if _category(p) in allowed]
    return kept


def apply_preference_filtering(
    places: Any, prefs: CanonicalPreferences
) -> List[Dict[str, Any]]:
    if not isinstance(places, list) or not places:
        return []
    places = [p for p in places if isinstance(p, dict)]

    filtered = filter_by_rating(places, prefs.min_rating)
    filtered = filter_by_type(filtered, prefs)
    if prefs.category_balancing:
        filtered = apply_category_balancing(filtered, prefs)
    if prefs.enhanced_data_preferences is not None:
        filtered = apply_enhanced_data_filtering(filtered, prefs.enhanced_data_preferences)
    if prefs.user_behavior_preferences is not None:
        filtered = apply_user_behavior_filtering(filtered, prefs.user_behavior_preferences)

    logger.info("Applied preference filtering: %d -> %d places", len(places), len(filtered))
    return filtered


def place_key(place: Dict[str, Any]) -> Optional[str]:
    key = place.get("place_id") or place.get("placeId") or place.get("id")
    return key if isinstance(key, str) and key else None


def deduplicate_results(
    places: Any, prefer_higher_rated: bool = False
) -> List[Dict[str, Any]]:
    """Drop repeated place IDs in one pass, keeping first-seen order.

    With prefer_higher_rated, a later duplicate with a strictly higher rating
    replaces the kept record in place.
    """
    if not isinstance(places, list):
        return []
    kept: List[Dict[str, Any]] = []
    index_by_key: Dict[str, int] = {}
    for place in places:
        if not isinstance(place, dict):
            continue
        key = place_key(place)
        if key is None:
            continue
        idx = index_by_key.get(key)
        if idx is None:
            index_by_key[key] = len(kept)
            kept.append(place)
        elif prefer_higher_rated and (_rating(place) or 0.0) > (_rating(kept[idx]) or 0.0):
            kept[idx] = place

    if len(kept) != len(places):
        logger.debug("Deduplicated %d -> %d places", len(places), len(kept))
    return kept


def deduplication_stats(original: Any, deduplicated: Any) -> Dict[str, Any]:
    if not isinstance(original, list) or not isinstance(deduplicated, list):
        return {
            "error": "Invalid input arrays",
            "original_count": 0,
            "deduplicated_count": 0,
            "duplicates_removed": 0,
            "deduplication_rate": 0.0,
            "unique_place_ids": 0,
            "duplicate_groups": [],
            "average_duplicates_per_place": 0.0,
        }

    occurrences: Dict[str, int] = {}
    for place in original:
        if not isinstance(place, dict):
            continue
        key = place_key(place)
        if key is not None:
            occurrences[key] = occurrences.get(key, 0) + 1

    groups: List[Tuple[str, int]] = sorted(
        ((k, n) for k, n in occurrences.items() if n > 1), key=lambda kv: -kv[1]
    )
    removed = len(original) - len(deduplicated)
    rate = round(100.0 * removed / len(original), 1) if original else 0.0
    average = round(sum(n for _, n in groups) / len(groups), 2) if groups else 0.0
    return {
        "original_count": len(original),
        "deduplicated_count": len(deduplicated),
        "duplicates_removed": removed,
        "deduplication_rate": rate,
        "unique_place_ids": len(occurrences),
        "duplicate_groups": groups,
        "average_duplicates_per_place": average,
    }
