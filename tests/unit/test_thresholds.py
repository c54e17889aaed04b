"""
Unit tests for contour level planning and major/minor classification.
"""

import sys
import unittest
from pathlib import Path

sys.path.append(str(Path(__file__).parent.parent.parent / "src"))

from dem_contours.errors import ConfigurationError
from dem_contours.processing.thresholds import is_major_level, plan_thresholds


class TestPlanThresholds(unittest.TestCase):
    """Test suite for the threshold planner."""

    def test_basic_range(self):
        """Multiples of the interval within the range are planned."""
        self.assertEqual(plan_thresholds(3.2, 41.0, 10), [10.0, 20.0, 30.0, 40.0])

    def test_inclusive_bounds(self):
        """Exact multiples at both ends are included."""
        self.assertEqual(plan_thresholds(0.0, 100.0, 10), [float(v) for v in range(0, 101, 10)])

    def test_negative_elevations(self):
        """Planning works below sea level."""
        self.assertEqual(plan_thresholds(-25.0, 5.0, 10), [-20.0, -10.0, 0.0])

    def test_flat_on_multiple(self):
        """A flat grid on a multiple plans exactly that level."""
        self.assertEqual(plan_thresholds(100.0, 100.0, 10), [100.0])

    def test_min_greater_than_max(self):
        """A degenerate range plans nothing."""
        self.assertEqual(plan_thresholds(5.0, 4.0, 10), [])

    def test_properties(self):
        """Levels are strictly increasing and bounded by the range."""
        cases = [
            (-431.7, 2875.2, 10.0),
            (0.25, 0.75, 0.1),
            (128.5, 832150.4, 250.0),
            (12.0, 13.0, 0.5),
        ]
        for minimum, maximum, interval in cases:
            with self.subTest(minimum=minimum, maximum=maximum, interval=interval):
                levels = plan_thresholds(minimum, maximum, interval)
                self.assertTrue(levels)
                self.assertTrue(all(a < b for a, b in zip(levels, levels[1:])))
                self.assertGreaterEqual(levels[0], minimum)
                self.assertLessEqual(levels[0], minimum + interval)
                self.assertLessEqual(levels[-1], maximum)

    def test_no_accumulated_drift(self):
        """Fractional intervals stay on exact multiples."""
        levels = plan_thresholds(0.0, 1000.0, 0.1)
        self.assertEqual(len(levels), 10001)
        self.assertEqual(levels[-1], 10000 * 0.1)

    def test_invalid_interval(self):
        """Non-positive intervals are configuration errors."""
        with self.assertRaises(ConfigurationError):
            plan_thresholds(0.0, 10.0, 0)
        with self.assertRaises(ConfigurationError):
            plan_thresholds(0.0, 10.0, -5)


class TestMajorClassification(unittest.TestCase):
    """Test suite for major/minor classification."""

    def test_exact_multiples_are_major(self):
        """Exact multiples of the major interval are major."""
        for value in (-100.0, -50.0, 0.0, 50.0, 100.0, 4250.0):
            with self.subTest(value=value):
                self.assertTrue(is_major_level(value, 50))

    def test_half_interval_is_minor(self):
        """Values half an interval from a multiple are minor."""
        for value in (-75.0, -25.0, 25.0, 75.0, 125.0):
            with self.subTest(value=value):
                self.assertFalse(is_major_level(value, 50))

    def test_minor_levels(self):
        """Ordinary minor levels stay minor."""
        self.assertFalse(is_major_level(10.0, 50))
        self.assertFalse(is_major_level(40.0, 50))

    def test_tolerance(self):
        """Tiny drift above a multiple still counts as major."""
        self.assertTrue(is_major_level(50.005, 50))
        self.assertTrue(is_major_level(0.1 * 3 * 1000, 100))
        self.assertFalse(is_major_level(50.02, 50))


if __name__ == "__main__":
    unittest.main()
