import pytest

from route_discovery.geo import (
    InvalidInputError,
    center_point,
    encode_polyline,
    haversine_m,
    is_route_long_enough,
    require_valid_coordinates,
    route_distance_m,
    simplify_route,
    validate_coordinates,
)


def pt(lat, lon):
    return {"latitude": lat, "longitude": lon}


def test_encode_polyline_matches_reference_example():
    coords = [pt(38.5, -120.2), pt(40.7, -120.95), pt(43.252, -126.453)]
    assert encode_polyline(coords) == "_p~iF~ps|U_ulLnnqC_mqNvxq`@"


def test_encode_polyline_single_point_and_origin():
    assert encode_polyline([pt(0.0, 0.0)]) == "??"
    assert encode_polyline([pt(38.5, -120.2)]) == "_p~iF~ps|U"


def test_encode_polyline_rejects_invalid_coordinates():
    with pytest.raises(InvalidInputError):
        encode_polyline([])
    with pytest.raises(InvalidInputError):
        encode_polyline([pt(91.0, 0.0)])


@pytest.mark.parametrize(
    "coords",
    [
        None,
        [],
        [pt(95.0, 10.0)],
        [pt(10.0, -181.0)],
        [{"latitude": "52.2", "longitude": 21.0}],
        [{"latitude": True, "longitude": 21.0}],
        [pt(float("nan"), 21.0)],
        [{"lat": 52.2, "lng": 21.0}],
    ],
)
def test_invalid_coordinates_are_rejected(coords):
    assert validate_coordinates(coords) is False
    with pytest.raises(InvalidInputError):
        require_valid_coordinates(coords)


def test_invalid_input_error_is_value_error():
    assert issubclass(InvalidInputError, ValueError)


def test_haversine_one_degree_latitude():
    d = haversine_m(pt(0.0, 0.0), pt(1.0, 0.0))
    assert d == pytest.approx(111195, rel=1e-3)
    assert haversine_m(pt(52.2, 21.0), pt(52.2, 21.0)) == 0.0


def test_route_distance_sums_segments():
    coords = [pt(0.0, 0.0), pt(0.0, 0.01), pt(0.0, 0.02)]
    single = haversine_m(coords[0], coords[1])
    assert route_distance_m(coords) == pytest.approx(2 * single)
    assert route_distance_m([pt(0.0, 0.0)]) == 0.0


def test_route_length_threshold():
    short = [pt(52.2297, 21.0122), pt(52.22975, 21.01225), pt(52.2298, 21.0123)]
    assert route_distance_m(short) < 50
    assert is_route_long_enough(short, 50.0) is False

    two_km = [pt(52.2297, 21.0122), pt(52.2477, 21.0122)]
    assert route_distance_m(two_km) == pytest.approx(2000, rel=0.01)
    assert is_route_long_enough(two_km, 50.0) is True


def test_center_point_is_arithmetic_mean():
    center = center_point([pt(10.0, 20.0), pt(12.0, 24.0), pt(14.0, 26.0)])
    assert center["latitude"] == pytest.approx(12.0)
    assert center["longitude"] == pytest.approx(70.0 / 3)


def test_simplify_route_drops_collinear_points():
    coords = [pt(0.0, 0.0), pt(0.0, 0.001), pt(0.0, 0.002), pt(0.0, 0.003)]
    assert simplify_route(coords, tolerance_m=5) == [coords[0], coords[-1]]


def test_simplify_route_keeps_corners():
    coords = [pt(0.0, 0.0), pt(0.0, 0.01), pt(0.01, 0.01)]
    assert simplify_route(coords, tolerance_m=5) == coords


def test_simplify_route_short_and_invalid_inputs():
    two = [pt(0.0, 0.0), pt(1.0, 1.0)]
    simplified = simplify_route(two)
    assert simplified == two
    assert simplified is not two
    assert simplify_route([]) == []
    assert simplify_route("nope") == []
