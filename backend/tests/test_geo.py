"""Unit tests for the geometry helpers."""
from datetime import datetime, timedelta

import pytest

from lifeline.services import geo


class TestDistance:
    def test_same_point_is_zero(self):
        assert geo.distance_to([77.209, 28.6139], [77.209, 28.6139]) == 0

    def test_symmetric(self):
        a = [77.209, 28.6139]
        b = [72.8777, 19.076]
        assert geo.distance_to(a, b) == pytest.approx(geo.distance_to(b, a))

    def test_one_degree_latitude_at_equator(self):
        """One degree of latitude is about 111,195 m on the sphere."""
        assert geo.distance_to([0, 0], [0, 1]) == pytest.approx(111_195, rel=0.01)

    def test_delhi_to_mumbai(self):
        assert geo.distance_to([77.209, 28.6139], [72.8777, 19.076]) == pytest.approx(1_150_000, rel=0.02)

    def test_antipodes(self):
        assert geo.distance_to([0, 0], [180, 0]) == pytest.approx(geo.EARTH_RADIUS_M * 3.141592653589793)


class TestIsStale:
    now = datetime(2026, 1, 1, 12, 0, 0)

    def test_fresh(self):
        assert geo.is_stale(self.now, 5, now=self.now) is False

    def test_six_minutes_old(self):
        assert geo.is_stale(self.now - timedelta(minutes=6), 5, now=self.now) is True

    def test_exactly_at_threshold_is_not_stale(self):
        assert geo.is_stale(self.now - timedelta(minutes=5), 5, now=self.now) is False

    def test_custom_threshold(self):
        last = self.now - timedelta(minutes=20)
        assert geo.is_stale(last, 30, now=self.now) is False
        assert geo.is_stale(last, 10, now=self.now) is True


class TestBoundingBox:
    def test_contains_circle(self):
        lon, lat, radius = 77.209, 28.6139, 5000
        box = geo.bounding_box(lon, lat, radius)
        assert box.bounds_longitude
        assert box.min_lat < lat < box.max_lat
        assert box.min_lon < lon < box.max_lon
        # Points on the circle's edge stay inside the box
        assert geo.distance_to([lon, lat], [lon, box.max_lat]) == pytest.approx(radius, rel=1e-6)
        assert geo.distance_to([lon, lat], [box.max_lon, lat]) >= radius * 0.999

    def test_near_pole_drops_longitude_bound(self):
        box = geo.bounding_box(10.0, 89.99, 5000)
        assert box.bounds_longitude is False
        assert box.max_lat == 90.0

    def test_antimeridian_drops_longitude_bound(self):
        box = geo.bounding_box(179.99, 0, 5000)
        assert box.bounds_longitude is False


class TestFormatDistance:
    @pytest.mark.parametrize(
        "meters,expected",
        [(0, "0.0 km"), (98.2, "0.1 km"), (999.7, "1.0 km"), (2400, "2.4 km"), (19_460, "19.5 km")],
    )
    def test_format(self, meters, expected):
        assert geo.format_distance(meters) == expected
