from route_discovery.place_types import (
    ALL_PLACE_TYPES,
    CATEGORIES,
    DEFAULT_CATEGORY,
    ENTERTAINMENT_CULTURE,
    FOOD_DINING,
    HEALTH_WELLNESS,
    OUTDOORS_RECREATION,
    SERVICES_UTILITIES,
    category_for_types,
    category_of,
    category_statistics,
    categories_for_types,
    classify_place,
    map_types_to_categories,
    types_in_category,
)


def test_every_catalog_type_maps_to_exactly_one_category():
    assert len(ALL_PLACE_TYPES) == 30
    assert len(CATEGORIES) == 6
    seen = []
    for category in CATEGORIES:
        seen.extend(types_in_category(category))
    assert sorted(seen) == sorted(ALL_PLACE_TYPES)
    for place_type in ALL_PLACE_TYPES:
        assert category_of(place_type) in CATEGORIES


def test_unknown_types_have_no_category():
    assert category_of("laundromat") is None
    assert category_of(None) is None


def test_primary_type_wins_over_types():
    place = {"primaryType": "museum", "types": ["restaurant"]}
    assert classify_place(place) == ENTERTAINMENT_CULTURE
    assert classify_place({"primary_type": "museum", "types": ["restaurant"]}) == ENTERTAINMENT_CULTURE


def test_classification_falls_back_to_first_catalogued_type():
    place = {"primaryType": "point_of_interest", "types": ["establishment", "gym", "cafe"]}
    assert classify_place(place) == HEALTH_WELLNESS


def test_classification_defaults_when_nothing_matches():
    assert classify_place({"types": ["establishment"]}) == DEFAULT_CATEGORY
    assert classify_place({}) == SERVICES_UTILITIES
    assert classify_place(None) == SERVICES_UTILITIES
    assert category_for_types("cafe") == DEFAULT_CATEGORY
    assert category_for_types(["bakery"]) == FOOD_DINING


def test_categories_for_types_in_catalog_order():
    assert categories_for_types(["campground", "bank", "cafe"]) == [
        FOOD_DINING,
        SERVICES_UTILITIES,
        OUTDOORS_RECREATION,
    ]


def test_map_types_to_categories():
    mapping = map_types_to_categories(["park", "establishment", "restaurant", "zoo"])
    assert mapping["primary_category"] == ENTERTAINMENT_CULTURE
    assert mapping["all_categories"] == [ENTERTAINMENT_CULTURE, FOOD_DINING]
    assert mapping["mapped_types"] == ["park", "restaurant", "zoo"]
    assert mapping["unmapped_types"] == ["establishment"]


def test_map_types_to_categories_empty_input():
    for value in ([], None, "park"):
        mapping = map_types_to_categories(value)
        assert mapping["primary_category"] == DEFAULT_CATEGORY
        assert mapping["all_categories"] == [DEFAULT_CATEGORY]


def test_category_statistics():
    places = [
        {"category": FOOD_DINING},
        {"category": FOOD_DINING},
        {"types": ["gym"]},
        {"category": OUTDOORS_RECREATION},
        "not-a-place",
    ]
    stats = category_statistics(places)
    assert stats["total"] == 4
    assert stats["counts"][FOOD_DINING] == 2
    assert stats["counts"][HEALTH_WELLNESS] == 1
    assert stats["percentages"][FOOD_DINING] == 50.0
    assert stats["percentages"][HEALTH_WELLNESS] == 25.0
    assert stats["most_common"] == FOOD_DINING
    # Ties go to the earlier catalog category.
    assert stats["least_common"] == HEALTH_WELLNESS
    assert stats["categories_represented"] == 3


def test_category_statistics_empty():
    stats = category_statistics(None)
    assert stats["total"] == 0
    assert stats["most_common"] is None
    assert all(v == 0.0 for v in stats["percentages"].values())
