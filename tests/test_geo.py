import pytest

from gremind.geo import distance, format_latlng, parse_latlng
from gremind.models import Coordinate


PAIRS = [
    (Coordinate(37.4220, -122.0840), Coordinate(37.4300, -122.0900)),
    (Coordinate(51.5074, -0.1278), Coordinate(48.8566, 2.3522)),
    (Coordinate(-33.8688, 151.2093), Coordinate(35.6762, 139.6503)),
    (Coordinate(0.0, 179.9), Coordinate(0.0, -179.9)),
]


@pytest.mark.parametrize("first,second", PAIRS)
def test_distance_is_symmetric(first, second):
    assert distance(first, second) == pytest.approx(distance(second, first))


def test_distance_to_self_is_zero():
    point = Coordinate(37.4220, -122.0840)
    assert distance(point, point) == 0.0


def test_distance_london_paris():
    london = Coordinate(51.5074, -0.1278)
    paris = Coordinate(48.8566, 2.3522)
    assert distance(london, paris) == pytest.approx(343_500, rel=0.01)


def test_distance_across_antimeridian_is_short():
    east = Coordinate(0.0, 179.9)
    west = Coordinate(0.0, -179.9)
    assert distance(east, west) < 25_000


def test_antipodal_points_do_not_fail():
    assert distance(Coordinate(0.0, 0.0), Coordinate(0.0, 180.0)) == pytest.approx(
        20_015_087, rel=0.001
    )


def test_parse_and_format_latlng():
    point = parse_latlng(" 37.422, -122.084 ")
    assert point == Coordinate(37.422, -122.084)
    assert format_latlng(point) == "37.422,-122.084"


@pytest.mark.parametrize("text", ["", "37.4", "a,b", "1,2,3"])
def test_parse_latlng_rejects_malformed(text):
    with pytest.raises(ValueError):
        parse_latlng(text)


@pytest.mark.parametrize("lat,lng", [(91.0, 0.0), (-90.5, 0.0), (0.0, 180.5)])
def test_coordinate_rejects_out_of_range(lat, lng):
    with pytest.raises(ValueError):
        Coordinate(lat, lng)
