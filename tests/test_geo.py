"""Tests de distancia haversine."""

import math

import pytest

from device_monitor.core.geo import EARTH_RADIUS_M, haversine_m


class TestHaversine:
    def test_identical_points_is_exactly_zero(self):
        assert haversine_m(40.7128, -74.0060, 40.7128, -74.0060) == 0.0

    def test_small_latitude_step(self):
        # 0.0001 degrees of latitude is about 11.1 m
        d = haversine_m(40.0, -74.0, 40.0001, -74.0)
        assert d == pytest.approx(11.12, abs=0.05)

    def test_symmetric(self):
        a = haversine_m(40.7128, -74.0060, 40.7589, -73.9851)
        b = haversine_m(40.7589, -73.9851, 40.7128, -74.0060)
        assert a == pytest.approx(b)

    def test_antipodal_points_do_not_nan(self):
        d = haversine_m(0.0, 0.0, 0.0, 180.0)
        assert not math.isnan(d)
        assert d == pytest.approx(math.pi * EARTH_RADIUS_M, rel=1e-9)

    def test_known_city_distance(self):
        # Manhattan -> Times Square area, roughly 5.4 km
        d = haversine_m(40.7128, -74.0060, 40.7589, -73.9851)
        assert 5000 < d < 5600
