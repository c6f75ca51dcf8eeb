import pytest

from route_discovery.place_types import (
    ALL_PLACE_TYPES,
    ENTERTAINMENT_CULTURE,
    FOOD_DINING,
    SHOPPING_RETAIL,
)
from route_discovery.preferences import (
    CanonicalPreferences,
    EnhancedDataPreferences,
    create_preferences_from_discovery_screen,
    normalize_preferences,
    preference_stats,
    resolve_min_rating,
    validate_discovery_screen_compatibility,
)


@pytest.mark.parametrize(
    "raw",
    [None, {}, 42, "restaurant", [], {"restaurant": True}, {"placeTypes": {"cafe": True}, "minRating": 3}],
)
def test_normalized_place_types_are_total(raw):
    prefs = normalize_preferences(raw)
    assert set(prefs.place_types) == set(ALL_PLACE_TYPES)
    assert all(isinstance(v, bool) for v in prefs.place_types.values())


def test_non_object_input_means_all_types_and_zero_rating():
    prefs = normalize_preferences(None)
    assert prefs.all_types is True
    assert prefs.min_rating == 0.0
    assert prefs.category_balancing is True
    assert prefs.enhanced_data_preferences is None


def test_all_false_selection_means_all_types():
    raw = {t: False for t in ALL_PLACE_TYPES}
    assert normalize_preferences(raw).all_types is True


def test_every_type_enabled_means_all_types():
    raw = {"placeTypes": {t: True for t in ALL_PLACE_TYPES}}
    assert normalize_preferences(raw).all_types is True


def test_flat_legacy_map():
    prefs = normalize_preferences({"restaurant": True, "cafe": True, "bar": False, "laundromat": True})
    assert prefs.all_types is False
    assert prefs.enabled_types() == ["restaurant", "cafe"]
    assert prefs.search_types() == ["restaurant", "cafe"]
    assert prefs.enabled_categories() == [FOOD_DINING]


def test_structured_object():
    prefs = normalize_preferences(
        {"placeTypes": {"museum": True, "store": True}, "minRating": 4.0, "categoryBalancing": False}
    )
    assert prefs.enabled_types() == ["store", "museum"]
    assert prefs.min_rating == 4.0
    assert prefs.category_balancing is False
    assert prefs.enabled_categories() == [SHOPPING_RETAIL, ENTERTAINMENT_CULTURE]


def test_truthy_non_bool_flags_are_not_enabled():
    prefs = normalize_preferences({"restaurant": 1, "cafe": "yes", "bar": True})
    assert prefs.enabled_types() == ["bar"]


@pytest.mark.parametrize("value", [6, -1, 5.01])
def test_out_of_range_min_rating_is_zero(value):
    assert normalize_preferences({"minRating": value}).min_rating == 0.0


def test_min_rating_aliases():
    assert resolve_min_rating({"minimumRating": 3.5}) == 3.5
    assert resolve_min_rating({"rating": 2}) == 2.0
    assert resolve_min_rating({"minRating": "4"}) == 0.0
    assert resolve_min_rating({"minRating": True}) == 0.0
    assert resolve_min_rating(None) == 0.0


def test_canonical_preferences_pass_through():
    prefs = CanonicalPreferences(min_rating=3.0)
    assert normalize_preferences(prefs) is prefs


def test_enhanced_and_behavior_preferences():
    prefs = normalize_preferences(
        {
            "enhancedDataPreferences": {"includePhotos": True},
            "userBehaviorPreferences": {
                "dismissedPlaceIds": ["p1", "p2"],
                "preferredCategories": [FOOD_DINING, "Nonsense"],
            },
        }
    )
    assert prefs.enhanced_data_preferences == EnhancedDataPreferences(include_photos=True)
    assert prefs.user_behavior_preferences.dismissed_place_ids == frozenset({"p1", "p2"})
    assert prefs.user_behavior_preferences.preferred_categories == (FOOD_DINING,)


def test_to_dict_is_stable():
    a = normalize_preferences({"cafe": True, "restaurant": True})
    b = normalize_preferences({"restaurant": True, "cafe": True})
    assert a.to_dict() == b.to_dict()


def test_preference_stats():
    stats = preference_stats({"placeTypes": {"restaurant": True, "cafe": True, "park": True}, "minRating": 4})
    assert stats["total_place_types"] == 30
    assert stats["enabled_place_types"] == 3
    assert stats["min_rating"] == 4.0
    assert stats["all_types_enabled"] is False
    assert stats["has_enhanced_prefs"] is False
    assert stats["enabled_by_category"] == {FOOD_DINING: 2, ENTERTAINMENT_CULTURE: 1}


def test_preference_stats_all_types():
    stats = preference_stats(None)
    assert stats["enabled_place_types"] == 30
    assert stats["all_types_enabled"] is True


def test_create_preferences_from_discovery_screen():
    prefs = create_preferences_from_discovery_screen(
        {"museum": True, "park": True},
        4.2,
        {"categoryBalancing": False, "enhancedDataPreferences": {"includeOperatingHours": True}},
    )
    assert prefs.enabled_types() == ["park", "museum"]
    assert prefs.min_rating == 4.2
    assert prefs.category_balancing is False
    assert prefs.enhanced_data_preferences.include_operating_hours is True


def test_create_preferences_from_discovery_screen_invalid_rating():
    prefs = create_preferences_from_discovery_screen({"museum": True}, 9)
    assert prefs.min_rating == 0.0
    assert create_preferences_from_discovery_screen(None).all_types is True


def test_validation_requires_object():
    report = validate_discovery_screen_compatibility(None)
    assert report["is_valid"] is False
    assert report["errors"] == ["Preferences object is required"]


def test_validation_warnings_and_suggestions():
    report = validate_discovery_screen_compatibility({"placeTypes": {"museum": True}, "minRating": 4.7})
    assert report["is_valid"] is True
    assert "Very high minimum rating may result in few discoveries" in report["warnings"]
    assert "Consider enabling more place types for diverse discoveries" in report["suggestions"]


def test_validation_rejects_non_boolean_flags():
    report = validate_discovery_screen_compatibility({"placeTypes": {"museum": "yes", "laundromat": True}})
    assert report["is_valid"] is False
    assert len(report["errors"]) == 1
    assert any("laundromat" in w for w in report["warnings"])
