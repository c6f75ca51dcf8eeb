"""Discovery preference normalization.

User preferences reach discovery in several shapes: the settings screen's
flat ``{place_type: bool}`` map, a structured ``{"placeTypes": {...},
"minRating": ...}`` object, or nothing usable at all. normalize_preferences
is the only function that reads those raw shapes; everything downstream
works on CanonicalPreferences.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from . import config
from .place_types import ALL_PLACE_TYPES, CATEGORIES, PLACE_TYPE_TO_CATEGORY, categories_for_types

logger = logging.getLogger(__name__)

# Raw keys accepted for each canonical field, in lookup order.
_PLACE_TYPES_KEYS = ("placeTypes", "place_types")
_MIN_RATING_KEYS = ("minRating", "min_rating", "minimumRating", "minimum_rating", "rating")
_CATEGORY_BALANCING_KEYS = ("categoryBalancing", "category_balancing")
_ENHANCED_KEYS = ("enhancedDataPreferences", "enhanced_data_preferences")
_BEHAVIOR_KEYS = ("userBehaviorPreferences", "user_behavior_preferences")


@dataclass(frozen=True)
class EnhancedDataPreferences:
    include_photos: bool = False
    include_operating_hours: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "include_photos": self.include_photos,
            "include_operating_hours": self.include_operating_hours,
        }


@dataclass(frozen=True)
class UserBehaviorPreferences:
    dismissed_place_ids: FrozenSet[str] = frozenset()
    preferred_categories: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dismissed_place_ids": sorted(self.dismissed_place_ids),
            "preferred_categories": list(self.preferred_categories),
        }


@dataclass(frozen=True)
class CanonicalPreferences:
    place_types: Dict[str, bool] = field(default_factory=lambda: {t: False for t in ALL_PLACE_TYPES})
    min_rating: float = 0.0
    all_types: bool = True
    category_balancing: bool = True
    enhanced_data_preferences: Optional[EnhancedDataPreferences] = None
    user_behavior_preferences: Optional[UserBehaviorPreferences] = None

    def enabled_types(self) -> List[str]:
        return [t for t in ALL_PLACE_TYPES if self.place_types.get(t) is True]

    def search_types(self) -> List[str]:
        """Types to request from the provider; the whole catalog when all types are on."""
        if self.all_types:
            return list(ALL_PLACE_TYPES)
        return self.enabled_types()

    def enabled_categories(self) -> List[str]:
        return categories_for_types(self.search_types())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "place_types": {t: bool(self.place_types.get(t, False)) for t in ALL_PLACE_TYPES},
            "min_rating": self.min_rating,
            "all_types": self.all_types,
            "category_balancing": self.category_balancing,
            "enhanced_data_preferences": (
                self.enhanced_data_preferences.to_dict() if self.enhanced_data_preferences else None
            ),
            "user_behavior_preferences": (
                self.user_behavior_preferences.to_dict() if self.user_behavior_preferences else None
            ),
        }


def _lookup(raw: Mapping[str, Any], keys: Tuple[str, ...]) -> Any:
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_valid_min_rating(value: Any) -> bool:
    return _is_number(value) and config.MIN_RATING_LOW <= value <= config.MIN_RATING_HIGH


def resolve_min_rating(raw: Any) -> float:
    """First numeric rating among minRating, minimumRating, rating; 0 when absent or out of range."""
    if not isinstance(raw, Mapping):
        return 0.0
    for key in _MIN_RATING_KEYS:
        value = raw.get(key)
        if not _is_number(value):
            continue
        if not is_valid_min_rating(value):
            logger.warning("Ignoring out-of-range minimum rating %s=%r", key, value)
            return 0.0
        return float(value)
    return 0.0


def _enhanced_from_raw(raw: Any) -> Optional[EnhancedDataPreferences]:
    if isinstance(raw, EnhancedDataPreferences):
        return raw
    if not isinstance(raw, Mapping):
        return None
    return EnhancedDataPreferences(
        include_photos=_lookup(raw, ("includePhotos", "include_photos")) is True,
        include_operating_hours=_lookup(raw, ("includeOperatingHours", "include_operating_hours")) is True,
    )


def _behavior_from_raw(raw: Any) -> Optional[UserBehaviorPreferences]:
    if isinstance(raw, UserBehaviorPreferences):
        return raw
    if not isinstance(raw, Mapping):
        return None
    dismissed = _lookup(raw, ("dismissedPlaceIds", "dismissed_place_ids")) or []
    preferred = _lookup(raw, ("preferredCategories", "preferred_categories")) or []
    if not isinstance(dismissed, (list, tuple, set, frozenset)):
        dismissed = []
    if not isinstance(preferred, (list, tuple)):
        preferred = []
    return UserBehaviorPreferences(
        dismissed_place_ids=frozenset(str(p) for p in dismissed if p),
        preferred_categories=tuple(c for c in preferred if c in CATEGORIES),
    )


def normalize_preferences(raw: Any) -> CanonicalPreferences:
    """Build canonical preferences from any raw preference input. Never raises."""
    if isinstance(raw, CanonicalPreferences):
        return raw
    if not isinstance(raw, Mapping):
        return CanonicalPreferences()

    source = _lookup(raw, _PLACE_TYPES_KEYS)
    if not isinstance(source, Mapping):
        source = raw

    place_types = {t: source.get(t) is True for t in ALL_PLACE_TYPES}
    enabled_count = sum(1 for enabled in place_types.values() if enabled)
    # An empty selection means "no preference", not "show nothing".
    all_types = enabled_count == len(ALL_PLACE_TYPES) or enabled_count == 0

    return CanonicalPreferences(
        place_types=place_types,
        min_rating=resolve_min_rating(raw),
        all_types=all_types,
        category_balancing=_lookup(raw, _CATEGORY_BALANCING_KEYS) is not False,
        enhanced_data_preferences=_enhanced_from_raw(_lookup(raw, _ENHANCED_KEYS)),
        user_behavior_preferences=_behavior_from_raw(_lookup(raw, _BEHAVIOR_KEYS)),
    )


def preference_stats(raw: Any) -> Dict[str, Any]:
    prefs = normalize_preferences(raw)
    enabled = prefs.search_types()
    enabled_by_category: Dict[str, int] = {}
    for place_type in enabled:
        category = PLACE_TYPE_TO_CATEGORY[place_type]
        enabled_by_category[category] = enabled_by_category.get(category, 0) + 1
    return {
        "total_place_types": len(ALL_PLACE_TYPES),
        "enabled_place_types": len(enabled),
        "min_rating": prefs.min_rating,
        "all_types_enabled": prefs.all_types,
        "has_enhanced_prefs": prefs.enhanced_data_preferences is not None,
        "enabled_by_category": enabled_by_category,
    }


def create_preferences_from_discovery_screen(
    screen_preferences: Any,
    min_rating: Any = 0,
    options: Optional[Mapping[str, Any]] = None,
) -> CanonicalPreferences:
    """Adapt the settings screen's flat type toggles and rating selector."""
    options = options or {}
    place_types = dict(screen_preferences) if isinstance(screen_preferences, Mapping) else {}
    structured: Dict[str, Any] = {
        "placeTypes": place_types,
        "minRating": min_rating if is_valid_min_rating(min_rating) else 0,
    }
    for keys in (_CATEGORY_BALANCING_KEYS, _ENHANCED_KEYS, _BEHAVIOR_KEYS):
        value = _lookup(options, keys)
        if value is not None:
            structured[keys[0]] = value
    return normalize_preferences(structured)


def validate_discovery_screen_compatibility(raw: Any) -> Dict[str, Any]:
    errors: List[str] = []
    warnings: List[str] = []
    suggestions: List[str] = []

    if not isinstance(raw, Mapping):
        errors.append("Preferences object is required")
        return {"is_valid": False, "errors": errors, "warnings": warnings, "suggestions": suggestions}

    source = _lookup(raw, _PLACE_TYPES_KEYS)
    if not isinstance(source, Mapping):
        source = {k: v for k, v in raw.items() if k in PLACE_TYPE_TO_CATEGORY}
    for place_type, value in source.items():
        if not isinstance(value, bool):
            errors.append(f"Place type '{place_type}' must be true or false")
        elif place_type not in PLACE_TYPE_TO_CATEGORY:
            warnings.append(f"Unknown place type '{place_type}' will be ignored")

    prefs = normalize_preferences(raw)
    if prefs.min_rating >= config.UNRATED_CUTOFF_MIN_RATING:
        warnings.append("Very high minimum rating may result in few discoveries")
    if not prefs.all_types and len(prefs.enabled_types()) < config.FEW_TYPES_SUGGESTION_THRESHOLD:
        suggestions.append("Consider enabling more place types for diverse discoveries")

    return {
        "is_valid": not errors,
        "errors": errors,
        "warnings": warnings,
        "suggestions": suggestions,
    }
