import pytest

from restroom_nav import geo
from restroom_nav.models import Coordinate, RouteEstimate, RouteSource

from conftest import CENTER, make_poi


def test_distance_zero_for_same_point():
    assert geo.distance(CENTER, CENTER) == 0.0


def test_distance_is_symmetric():
    other = Coordinate(latitude=31.2396, longitude=121.4906)
    assert geo.distance(CENTER, other) == pytest.approx(geo.distance(other, CENTER))


def test_distance_to_nearby_seed_point():
    # People's Square, a couple of blocks from the city center point
    seed = Coordinate(latitude=31.2317, longitude=121.4750)
    meters = geo.distance(CENTER, seed)
    assert 150 < meters < 210
    assert geo.within_radius(CENTER, seed, 1500)
    assert not geo.within_radius(CENTER, seed, 100)


def test_distance_antipodal_points_does_not_blow_up():
    a = Coordinate(latitude=0.0, longitude=0.0)
    b = Coordinate(latitude=0.0, longitude=180.0)
    assert geo.distance(a, b) == pytest.approx(geo.EARTH_RADIUS_M * 3.141592653589793, rel=1e-9)


def test_sort_by_distance_is_stable():
    near = make_poi("a", 31.2317, 121.4750)
    twin = make_poi("b", 31.2317, 121.4750)
    far = make_poi("c", 31.2396, 121.4906)
    ordered = geo.sort_by_distance([far, near, twin], CENTER)
    assert [poi.id for poi in ordered] == ["a", "b", "c"]


def test_format_helpers():
    assert geo.format_distance(849.6) == "850m"
    assert geo.format_distance(1234) == "1.2km"
    estimate = RouteEstimate(distance_meters=1200, duration_seconds=863, source=RouteSource.ESTIMATED)
    assert geo.format_route(estimate) == "1.2km, ~15 min (estimated)"
