"""Geospatial helpers for route coordinates."""
from __future__ import annotations

import math
from typing import Any, Dict, List, Sequence

from . import config

EARTH_RADIUS_M = 6371000.0
METERS_PER_DEGREE = 111000.0


class InvalidInputError(ValueError):
    pass


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_valid_coordinate(coord: Any) -> bool:
    if not isinstance(coord, dict):
        return False
    lat = coord.get("latitude")
    lon = coord.get("longitude")
    if not _is_number(lat) or not _is_number(lon):
        return False
    if not math.isfinite(lat) or not math.isfinite(lon):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


def validate_coordinates(coordinates: Any) -> bool:
    if not isinstance(coordinates, (list, tuple)) or not coordinates:
        return False
    return all(is_valid_coordinate(c) for c in coordinates)


def require_valid_coordinates(coordinates: Any) -> None:
    if not validate_coordinates(coordinates):
        raise InvalidInputError(
            "Invalid coordinates provided for route discovery: expected a non-empty list of "
            "{latitude, longitude} with latitude in [-90, 90] and longitude in [-180, 180]"
        )


def haversine_m(a: Dict[str, float], b: Dict[str, float]) -> float:
    phi1 = math.radians(a["latitude"])
    phi2 = math.radians(b["latitude"])
    dphi = math.radians(b["latitude"] - a["latitude"])
    dlambda = math.radians(b["longitude"] - a["longitude"])

    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_M * c


def route_distance_m(coordinates: Sequence[Dict[str, float]]) -> float:
    if not validate_coordinates(coordinates) or len(coordinates) < 2:
        return 0.0
    total = 0.0
    for prev, curr in zip(coordinates, coordinates[1:]):
        total += haversine_m(prev, curr)
    return total


def is_route_long_enough(
    coordinates: Sequence[Dict[str, float]],
    min_length_m: float = config.MIN_ROUTE_LENGTH_M,
) -> bool:
    return route_distance_m(coordinates) >= min_length_m


def center_point(coordinates: Sequence[Dict[str, float]]) -> Dict[str, float]:
    """Arithmetic mean of the route points.

    Good enough at city-block scale; not a geodesic centroid.
    """
    require_valid_coordinates(coordinates)
    n = len(coordinates)
    return {
        "latitude": sum(c["latitude"] for c in coordinates) / n,
        "longitude": sum(c["longitude"] for c in coordinates) / n,
    }


def _round_e5(value: float) -> int:
    scaled = int(math.floor(abs(value) * 1e5 + 0.5))
    return scaled if value >= 0 else -scaled


def _encode_signed(value: int) -> str:
    value = ~(value << 1) if value < 0 else value << 1
    chunks = []
    while value >= 0x20:
        chunks.append(chr((0x20 | (value & 0x1F)) + 63))
        value >>= 5
    chunks.append(chr(value + 63))
    return "".join(chunks)


def encode_polyline(coordinates: Sequence[Dict[str, float]]) -> str:
    """Encode coordinates with Google's encoded polyline algorithm (precision 5)."""
    require_valid_coordinates(coordinates)
    encoded: List[str] = []
    prev_lat = 0
    prev_lon = 0
    for coord in coordinates:
        lat = _round_e5(coord["latitude"])
        lon = _round_e5(coord["longitude"])
        encoded.append(_encode_signed(lat - prev_lat))
        encoded.append(_encode_signed(lon - prev_lon))
        prev_lat = lat
        prev_lon = lon
    return "".join(encoded)


def _perpendicular_distance(
    point: Dict[str, float], start: Dict[str, float], end: Dict[str, float]
) -> float:
    a = point["latitude"] - start["latitude"]
    b = point["longitude"] - start["longitude"]
    c = end["latitude"] - start["latitude"]
    d = end["longitude"] - start["longitude"]

    len_sq = c * c + d * d
    if len_sq == 0:
        return math.sqrt(a * a + b * b)

    t = (a * c + b * d) / len_sq
    if t < 0:
        xx, yy = start["latitude"], start["longitude"]
    elif t > 1:
        xx, yy = end["latitude"], end["longitude"]
    else:
        xx, yy = start["latitude"] + t * c, start["longitude"] + t * d
    dx = point["latitude"] - xx
    dy = point["longitude"] - yy
    return math.sqrt(dx * dx + dy * dy)


def _douglas_peucker(points: List[Dict[str, float]], tolerance: float) -> List[Dict[str, float]]:
    if len(points) <= 2:
        return points

    first, last = points[0], points[-1]
    max_distance = 0.0
    max_index = 0
    for idx in range(1, len(points) - 1):
        distance = _perpendicular_distance(points[idx], first, last)
        if distance > max_distance:
            max_distance = distance
            max_index = idx

    if max_distance > tolerance:
        left = _douglas_peucker(points[: max_index + 1], tolerance)
        right = _douglas_peucker(points[max_index:], tolerance)
        return left[:-1] + right
    return [first, last]


def simplify_route(
    coordinates: Sequence[Dict[str, float]], tolerance_m: float = 5.0
) -> List[Dict[str, float]]:
    if not validate_coordinates(coordinates):
        return []
    points = list(coordinates)
    if len(points) <= 2:
        return points
    return _douglas_peucker(points, tolerance_m / METERS_PER_DEGREE)
