"""
Test cases for landmark geometry analysis with synthetic hands.
"""
import math
import unittest

import numpy as np

from HandParticleSculpture.config import AnalyzerThresholds
from HandParticleSculpture.gesture_analyzer import (
    PalmRotation,
    analyze,
    compute_openness,
    compute_palm_distance,
    compute_palm_orientation,
    detect_heart_gesture,
)
from HandParticleSculpture.landmarks import HandLandmarks

from synthetic_hands import (
    fist_hand,
    heart_hand,
    make_hand,
    make_points,
    open_hand,
    tilted_open_hand,
)


class TestOpenness(unittest.TestCase):
    """Test openness strength estimation."""

    def test_open_hand_is_fully_open(self):
        """Spread fingers saturate every openness measure."""
        metrics = analyze(open_hand())
        self.assertAlmostEqual(metrics.openness_raw, 1.0, places=6)

    def test_fist_is_nearly_closed(self):
        """Curled fingers give a low openness."""
        metrics = analyze(fist_hand())
        self.assertLess(metrics.openness_raw, 0.2)

    def test_openness_within_unit_range(self):
        """Openness stays in [0, 1] for extreme poses."""
        collapsed = np.tile([0.5, 0.5, 0.0], (21, 1))
        self.assertEqual(compute_openness(collapsed), 0.0)

        scattered = np.array(make_points({4: (-2.0, -2.0), 20: (3.0, 3.0)}))
        value = compute_openness(scattered)
        self.assertGreaterEqual(value, 0.0)
        self.assertLessEqual(value, 1.0)

    def test_open_exceeds_fist(self):
        self.assertGreater(analyze(open_hand()).openness_raw, analyze(fist_hand()).openness_raw)


class TestPalmOrientation(unittest.TestCase):
    """Test palm normal, rotation and facing detection."""

    def test_flat_palm_faces_camera(self):
        """A palm in the image plane faces the camera with zero rotation."""
        metrics = analyze(open_hand())
        self.assertTrue(metrics.is_facing_camera)
        self.assertEqual(metrics.rotation, PalmRotation())
        self.assertAlmostEqual(metrics.palm_normal[2], 1.0)

    def test_tilted_palm_reports_rotation(self):
        """A tilted palm is not facing and has non-zero yaw."""
        metrics = analyze(tilted_open_hand())
        self.assertFalse(metrics.is_facing_camera)
        self.assertLess(metrics.palm_normal[2], 0.92)
        self.assertLess(metrics.rotation.yaw, -10.0)
        self.assertNotEqual(metrics.rotation.pitch, 0.0)

    def test_rotation_matches_normal(self):
        """Pitch and yaw follow the documented atan2 formulas."""
        points = np.array(make_points({5: (0.40, 0.60, 0.1), 17: (0.62, 0.63, -0.1)}))
        rotation, facing, normal = compute_palm_orientation(points)
        nx, ny, nz = normal
        self.assertFalse(facing)
        self.assertAlmostEqual(rotation.pitch, math.degrees(math.atan2(ny, nz)))
        self.assertAlmostEqual(rotation.yaw, math.degrees(math.atan2(-nx, math.hypot(ny, nz))))
        self.assertAlmostEqual(rotation.roll, math.degrees(math.atan2(-0.2, -0.1)))

    def test_facing_threshold_is_tunable(self):
        """Raising the threshold above 1 disables facing detection."""
        thresholds = AnalyzerThresholds(facing_camera=1.5)
        metrics = analyze(open_hand(), thresholds)
        self.assertFalse(metrics.is_facing_camera)

    def test_degenerate_palm_does_not_fail(self):
        """Coincident palm points produce finite metrics."""
        hand = make_hand({5: (0.5, 0.8), 17: (0.5, 0.8)})
        metrics = analyze(hand)
        self.assertTrue(all(math.isfinite(c) for c in metrics.palm_normal))


class TestPalmDistance(unittest.TestCase):
    """Test palm width to distance mapping."""

    def _points_with_width(self, width):
        return np.array(make_points({5: (0.5 - width / 2, 0.55), 17: (0.5 + width / 2, 0.55)}))

    def test_wide_palm_is_near(self):
        self.assertEqual(compute_palm_distance(self._points_with_width(0.30)), 0.0)

    def test_narrow_palm_is_far(self):
        self.assertEqual(compute_palm_distance(self._points_with_width(0.05)), 1.0)

    def test_midpoint_width(self):
        """Width halfway between near and far maps to 0.5."""
        self.assertAlmostEqual(compute_palm_distance(self._points_with_width(0.165)), 0.5)

    def test_base_hand_distance(self):
        metrics = analyze(open_hand())
        expected = (0.25 - math.hypot(0.20, 0.05)) / 0.17
        self.assertAlmostEqual(metrics.distance_raw, expected, places=6)


class TestHeartGesture(unittest.TestCase):
    """Test the one-hand heart gesture."""

    def test_heart_pose_detected(self):
        metrics = analyze(heart_hand())
        self.assertTrue(metrics.is_heart_gesture)
        self.assertAlmostEqual(metrics.tip_distance, 0.02, places=6)
        self.assertAlmostEqual(metrics.finger_angle, 60.0, delta=0.1)
        self.assertEqual(metrics.bent_finger_count, 3)

    def test_open_hand_is_not_heart(self):
        self.assertFalse(analyze(open_hand()).is_heart_gesture)

    def test_fist_is_not_heart(self):
        """Curled fingers with the thumb tip away from the index tip."""
        self.assertFalse(analyze(fist_hand()).is_heart_gesture)

    def test_separated_tips_break_heart(self):
        points = np.array(make_points({
            2: (0.40, 0.70), 4: (0.50, 0.70), 5: (0.45, 0.6334), 8: (0.55, 0.80),
            12: (0.55, 0.75), 16: (0.58, 0.76), 20: (0.60, 0.78),
        }))
        self.assertFalse(detect_heart_gesture(points).is_heart)

    def test_extended_fingers_break_heart(self):
        """Only one curled finger is below the required two."""
        hand = make_hand({
            2: (0.40, 0.70), 4: (0.50, 0.70), 5: (0.45, 0.6334), 8: (0.50, 0.72),
            12: (0.55, 0.75), 16: (0.65, 0.30), 20: (0.80, 0.45),
        })
        metrics = analyze(hand)
        self.assertEqual(metrics.bent_finger_count, 1)
        self.assertFalse(metrics.is_heart_gesture)

    def test_angle_window_is_exclusive(self):
        """An angle outside (30, 90) rejects the gesture."""
        thresholds = AnalyzerThresholds(heart_min_angle=60.5)
        self.assertFalse(analyze(heart_hand(), thresholds).is_heart_gesture)

    def test_zero_length_finger_vector(self):
        """Degenerate thumb vector never counts as a heart."""
        points = np.array(make_points({2: (0.5, 0.7), 4: (0.5, 0.7), 8: (0.5, 0.71)}))
        result = detect_heart_gesture(points)
        self.assertFalse(result.is_heart)


class TestAnalyzeInput(unittest.TestCase):
    """Test input validation."""

    def test_wrong_landmark_count_raises(self):
        hand = HandLandmarks.from_points([(0.5, 0.5)] * 20)
        with self.assertRaises(ValueError):
            analyze(hand)

    def test_accepts_2d_array(self):
        """A (21, 2) array is treated as z = 0."""
        points = np.array(make_points())[:, :2]
        metrics = analyze(points)
        self.assertTrue(metrics.is_facing_camera)

    def test_analyze_is_pure(self):
        """The same landmarks always give the same metrics."""
        hand = tilted_open_hand()
        self.assertEqual(analyze(hand), analyze(hand))


if __name__ == "__main__":
    unittest.main()
