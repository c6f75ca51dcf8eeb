"""Place-type catalog and category classification.

Every supported Places API type maps to exactly one of six discovery
categories. Lookups are pure; places are plain dicts as returned by the
Places API or by places_client.parse_places_response.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

FOOD_DINING = "Food & Dining"
SHOPPING_RETAIL = "Shopping & Retail"
ENTERTAINMENT_CULTURE = "Entertainment & Culture"
HEALTH_WELLNESS = "Health & Wellness"
SERVICES_UTILITIES = "Services & Utilities"
OUTDOORS_RECREATION = "Outdoors & Recreation"

# Catalog order; statistics and balancing iterate categories in this order.
CATEGORIES: List[str] = [
    FOOD_DINING,
    SHOPPING_RETAIL,
    ENTERTAINMENT_CULTURE,
    HEALTH_WELLNESS,
    SERVICES_UTILITIES,
    OUTDOORS_RECREATION,
]

DEFAULT_CATEGORY = SERVICES_UTILITIES

PLACE_TYPES: Dict[str, str] = {
    "restaurant": "Restaurant",
    "cafe": "Cafe",
    "bar": "Bar",
    "bakery": "Bakery",
    "meal_takeaway": "Takeaway",
    "meal_delivery": "Food Delivery",
    "store": "Store",
    "shopping_mall": "Shopping Mall",
    "supermarket": "Supermarket",
    "convenience_store": "Convenience Store",
    "clothing_store": "Clothing Store",
    "book_store": "Book Store",
    "park": "Park",
    "amusement_park": "Amusement Park",
    "zoo": "Zoo",
    "museum": "Museum",
    "art_gallery": "Art Gallery",
    "movie_theater": "Movie Theater",
    "night_club": "Night Club",
    "hospital": "Hospital",
    "pharmacy": "Pharmacy",
    "gym": "Gym",
    "spa": "Spa",
    "gas_station": "Gas Station",
    "bank": "Bank",
    "atm": "ATM",
    "post_office": "Post Office",
    "tourist_attraction": "Tourist Attraction",
    "campground": "Campground",
    "rv_park": "RV Park",
}

PLACE_TYPE_TO_CATEGORY: Dict[str, str] = {
    "restaurant": FOOD_DINING,
    "cafe": FOOD_DINING,
    "bar": FOOD_DINING,
    "bakery": FOOD_DINING,
    "meal_takeaway": FOOD_DINING,
    "meal_delivery": FOOD_DINING,
    "store": SHOPPING_RETAIL,
    "shopping_mall": SHOPPING_RETAIL,
    "supermarket": SHOPPING_RETAIL,
    "convenience_store": SHOPPING_RETAIL,
    "clothing_store": SHOPPING_RETAIL,
    "book_store": SHOPPING_RETAIL,
    "park": ENTERTAINMENT_CULTURE,
    "amusement_park": ENTERTAINMENT_CULTURE,
    "zoo": ENTERTAINMENT_CULTURE,
    "museum": ENTERTAINMENT_CULTURE,
    "art_gallery": ENTERTAINMENT_CULTURE,
    "movie_theater": ENTERTAINMENT_CULTURE,
    "night_club": ENTERTAINMENT_CULTURE,
    "hospital": HEALTH_WELLNESS,
    "pharmacy": HEALTH_WELLNESS,
    "gym": HEALTH_WELLNESS,
    "spa": HEALTH_WELLNESS,
    "gas_station": SERVICES_UTILITIES,
    "bank": SERVICES_UTILITIES,
    "atm": SERVICES_UTILITIES,
    "post_office": SERVICES_UTILITIES,
    "tourist_attraction": OUTDOORS_RECREATION,
    "campground": OUTDOORS_RECREATION,
    "rv_park": OUTDOORS_RECREATION,
}

ALL_PLACE_TYPES: List[str] = list(PLACE_TYPES)


def category_of(place_type: Any) -> Optional[str]:
    if not isinstance(place_type, str):
        return None
    return PLACE_TYPE_TO_CATEGORY.get(place_type)


def types_in_category(category: str) -> List[str]:
    return [t for t in ALL_PLACE_TYPES if PLACE_TYPE_TO_CATEGORY[t] == category]


def categories_for_types(place_types: Iterable[str]) -> List[str]:
    """Distinct categories covered by the given types, in catalog order."""
    covered = {category_of(t) for t in place_types}
    return [c for c in CATEGORIES if c in covered]


def _place_types(place: Dict[str, Any]) -> List[str]:
    types = place.get("types")
    if not isinstance(types, list):
        return []
    return [t for t in types if isinstance(t, str)]


def classify_place(place: Any) -> str:
    """Category of a place: primary type first, then the first catalogued type."""
    if not isinstance(place, dict):
        return DEFAULT_CATEGORY
    primary = place.get("primaryType") or place.get("primary_type")
    category = category_of(primary)
    if category:
        return category
    for place_type in _place_types(place):
        category = category_of(place_type)
        if category:
            return category
    return DEFAULT_CATEGORY


def category_for_types(types: Any) -> str:
    if not isinstance(types, list):
        return DEFAULT_CATEGORY
    return classify_place({"types": types})


def map_types_to_categories(types: Any) -> Dict[str, Any]:
    if not isinstance(types, list) or not types:
        return {
            "primary_category": DEFAULT_CATEGORY,
            "all_categories": [DEFAULT_CATEGORY],
            "mapped_types": [],
            "unmapped_types": [],
        }

    mapped: List[str] = []
    unmapped: List[str] = []
    categories: List[str] = []
    for place_type in types:
        category = category_of(place_type)
        if category is None:
            unmapped.append(place_type)
            continue
        mapped.append(place_type)
        if category not in categories:
            categories.append(category)

    if not categories:
        categories = [DEFAULT_CATEGORY]
    return {
        "primary_category": categories[0],
        "all_categories": categories,
        "mapped_types": mapped,
        "unmapped_types": unmapped,
    }


def category_statistics(places: Any) -> Dict[str, Any]:
    if not isinstance(places, list):
        places = []
    counts: Dict[str, int] = {c: 0 for c in CATEGORIES}
    total = 0
    for place in places:
        if not isinstance(place, dict):
            continue
        category = place.get("category")
        if category not in counts:
            category = classify_place(place)
        counts[category] += 1
        total += 1

    percentages = {
        c: (round(100.0 * n / total, 1) if total else 0.0) for c, n in counts.items()
    }
    present = [c for c in CATEGORIES if counts[c] > 0]
    most_common = max(present, key=lambda c: counts[c]) if present else None
    least_common = min(present, key=lambda c: counts[c]) if present else None
    return {
        "total": total,
        "counts": counts,
        "percentages": percentages,
        "most_common": most_common,
        "least_common": least_common,
        "categories_represented": len(present),
    }
