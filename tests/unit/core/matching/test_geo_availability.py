"""Tests for haversine distance, proximity scoring and availability windows."""

import unittest
from datetime import date, datetime, timezone

from core.matching.availability import day_of_week, is_available
from core.matching.geo import haversine_km, proximity_score
from database.models import AvailabilityWindow, DayOfWeek
from tests.fixtures.dispatch_fixtures import JOB_LAT, JOB_LON, point_km_north


class TestHaversine(unittest.TestCase):

    def test_same_point_is_zero(self):
        self.assertEqual(haversine_km(JOB_LAT, JOB_LON, JOB_LAT, JOB_LON), 0.0)

    def test_distance_along_meridian(self):
        lat, lon = point_km_north(JOB_LAT, JOB_LON, 2.0)
        self.assertAlmostEqual(haversine_km(JOB_LAT, JOB_LON, lat, lon), 2.0, places=9)

    def test_new_york_to_los_angeles(self):
        distance = haversine_km(40.7128, -74.0060, 34.0522, -118.2437)
        self.assertAlmostEqual(distance, 3936, delta=5)

    def test_symmetric(self):
        a = haversine_km(51.5074, -0.1278, 48.8566, 2.3522)
        b = haversine_km(48.8566, 2.3522, 51.5074, -0.1278)
        self.assertAlmostEqual(a, b, places=9)


class TestProximityScore(unittest.TestCase):

    def test_zero_distance_is_full_score(self):
        self.assertEqual(proximity_score(0.0), 1.0)

    def test_linear_decay(self):
        self.assertAlmostEqual(proximity_score(2.0), 0.96)
        self.assertAlmostEqual(proximity_score(25.0), 0.5)

    def test_clamped_at_max_distance(self):
        self.assertEqual(proximity_score(50.0), 0.0)
        self.assertEqual(proximity_score(80.0), 0.0)

    def test_custom_max_distance(self):
        self.assertAlmostEqual(proximity_score(5.0, max_distance_km=10.0), 0.5)


class TestAvailability(unittest.TestCase):

    def _window(self, day, active=True):
        return AvailabilityWindow(day_of_week=day, start_time="09:00", end_time="17:00", is_active=active)

    def test_day_of_week_from_datetime(self):
        self.assertEqual(day_of_week(datetime(2026, 1, 5, 10, 0, tzinfo=timezone.utc)), DayOfWeek.MONDAY)
        self.assertEqual(day_of_week(datetime(2026, 1, 11, 23, 59)), DayOfWeek.SUNDAY)

    def test_day_of_week_from_date(self):
        self.assertEqual(day_of_week(date(2026, 1, 9)), DayOfWeek.FRIDAY)

    def test_available_on_matching_day(self):
        windows = [self._window(DayOfWeek.MONDAY)]
        self.assertTrue(is_available(windows, date(2026, 1, 5)))

    def test_not_available_on_other_day(self):
        windows = [self._window(DayOfWeek.TUESDAY)]
        self.assertFalse(is_available(windows, date(2026, 1, 5)))

    def test_inactive_window_ignored(self):
        windows = [self._window(DayOfWeek.MONDAY, active=False)]
        self.assertFalse(is_available(windows, date(2026, 1, 5)))

    def test_no_windows(self):
        self.assertFalse(is_available([], date(2026, 1, 5)))

    def test_time_of_day_not_enforced(self):
        # Window is 09:00-17:00, job is at 20:00
        windows = [self._window(DayOfWeek.MONDAY)]
        self.assertTrue(is_available(windows, datetime(2026, 1, 5, 20, 0, tzinfo=timezone.utc)))


if __name__ == '__main__':
    unittest.main()
