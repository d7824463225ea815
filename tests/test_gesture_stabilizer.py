"""
Test cases for temporal stabilization of gesture metrics.
"""
import unittest

from HandParticleSculpture.device_profile import DeviceClass, DeviceProfile, SmoothingFactors
from HandParticleSculpture.gesture_analyzer import PalmRotation, analyze
from HandParticleSculpture.gesture_stabilizer import GestureStabilizer, StableGestureSignal, smooth
from HandParticleSculpture.landmarks import HandLandmarks

from synthetic_hands import fist_hand, heart_hand, open_hand, tilted_open_hand


class TestSmooth(unittest.TestCase):
    """Test the exponential smoothing step."""

    def test_factor_one_tracks_target(self):
        self.assertAlmostEqual(smooth(0.2, 0.9, 1.0), 0.9)

    def test_partial_step(self):
        self.assertAlmostEqual(smooth(0.0, 1.0, 0.25), 0.25)


class TestGestureStabilizer(unittest.TestCase):
    """Test stable signal updates on the desktop profile."""

    def setUp(self):
        """Set up a desktop stabilizer (decimation 1, strength factor 0.25)."""
        self.profile = DeviceProfile.for_class(DeviceClass.DESKTOP)
        self.stabilizer = GestureStabilizer(self.profile)
        self.frame_id = 0

    def feed(self, hands, frames=1):
        for _ in range(frames):
            self.frame_id += 1
            self.stabilizer.process_frame(self.frame_id, lambda: hands)
        return self.stabilizer.snapshot()

    def test_initial_signal(self):
        signal = self.stabilizer.snapshot()
        self.assertEqual(signal, StableGestureSignal())
        self.assertFalse(signal.hand_detected)

    def test_strength_converges_to_openness(self):
        """Constant input converges geometrically to the raw value."""
        signal = self.feed([open_hand()], frames=20)
        self.assertAlmostEqual(signal.strength, 1.0, delta=0.01)
        self.assertTrue(signal.hand_detected)
        self.assertIsNotNone(signal.landmarks)

    def test_strength_is_monotonic_for_constant_input(self):
        previous = 0.0
        for _ in range(30):
            signal = self.feed([open_hand()])
            self.assertGreaterEqual(signal.strength, previous)
            self.assertLessEqual(signal.strength, 1.0)
            previous = signal.strength

    def test_first_update_uses_strength_factor(self):
        signal = self.feed([open_hand()])
        self.assertAlmostEqual(signal.strength, 0.25)

    def test_no_hand_decays_strength_only(self):
        """Without a hand strength decays while rotation and distance hold."""
        self.feed([tilted_open_hand()], frames=40)
        before = self.stabilizer.snapshot()
        self.assertNotEqual(before.rotation.yaw, 0.0)

        after = self.feed([], frames=100)
        self.assertLess(after.strength, 0.01)
        self.assertEqual(after.rotation, before.rotation)
        self.assertEqual(after.distance, before.distance)
        self.assertFalse(after.hand_detected)
        self.assertFalse(after.is_facing_camera)
        self.assertFalse(after.is_heart_gesture)
        self.assertIsNone(after.landmarks)

    def test_facing_camera_resets_rotation(self):
        """Facing the camera pulls rotation back to zero."""
        self.feed([tilted_open_hand()], frames=40)
        signal = self.feed([open_hand()], frames=40)
        self.assertTrue(signal.is_facing_camera)
        self.assertAlmostEqual(signal.rotation.yaw, 0.0, places=3)
        self.assertAlmostEqual(signal.rotation.pitch, 0.0, places=3)

    def test_rotation_uses_facing_reset_factor(self):
        self.feed([tilted_open_hand()], frames=60)
        yaw_before = self.stabilizer.snapshot().rotation.yaw
        signal = self.feed([open_hand()])
        expected = yaw_before * (1.0 - self.profile.smoothing.facing_reset)
        self.assertAlmostEqual(signal.rotation.yaw, expected)

    def test_heart_flag_follows_latest_frame(self):
        signal = self.feed([heart_hand()])
        self.assertTrue(signal.is_heart_gesture)
        signal = self.feed([fist_hand()])
        self.assertFalse(signal.is_heart_gesture)

    def test_only_first_hand_is_used(self):
        signal = self.feed([fist_hand(), open_hand()], frames=20)
        self.assertLess(signal.strength, 0.2)

    def test_malformed_hand_counts_as_no_hand(self):
        self.feed([open_hand()], frames=10)
        strength = self.stabilizer.snapshot().strength
        partial = HandLandmarks.from_points([(0.5, 0.5)] * 12)
        signal = self.feed([partial])
        self.assertFalse(signal.hand_detected)
        self.assertLess(signal.strength, strength)

    def test_last_raw_exposes_metrics(self):
        self.feed([tilted_open_hand()])
        self.assertEqual(self.stabilizer.last_raw, analyze(tilted_open_hand()))

    def test_snapshot_is_a_copy(self):
        signal = self.feed([open_hand()])
        signal.strength = 42.0
        self.assertNotEqual(self.stabilizer.snapshot().strength, 42.0)

    def test_reset(self):
        self.feed([open_hand()], frames=5)
        self.stabilizer.reset()
        self.assertEqual(self.stabilizer.snapshot(), StableGestureSignal())
        self.assertEqual(self.stabilizer.frame_counter, 0)
        self.assertIsNone(self.stabilizer.last_raw)


class TestFrameGating(unittest.TestCase):
    """Test frame identity and decimation."""

    def test_repeated_frame_is_skipped(self):
        """Detection never runs twice for the same frame."""
        stabilizer = GestureStabilizer(DeviceProfile.for_class(DeviceClass.DESKTOP))
        calls = []

        def detect():
            calls.append(1)
            return [open_hand()]

        self.assertTrue(stabilizer.process_frame(7, detect))
        self.assertFalse(stabilizer.process_frame(7, detect))
        self.assertEqual(len(calls), 1)
        self.assertEqual(stabilizer.frame_counter, 1)

    def test_mobile_processes_every_second_frame(self):
        stabilizer = GestureStabilizer(DeviceProfile.for_class(DeviceClass.MOBILE))
        processed = [stabilizer.process_frame(i, lambda: []) for i in range(1, 11)]
        self.assertEqual(sum(processed), 5)
        self.assertEqual(stabilizer.processed_count, 5)
        self.assertEqual(processed[:4], [False, True, False, True])

    def test_constrained_processes_every_third_frame(self):
        stabilizer = GestureStabilizer(DeviceProfile.for_class(DeviceClass.CONSTRAINED))
        processed = [stabilizer.process_frame(i, lambda: []) for i in range(1, 10)]
        self.assertEqual(sum(processed), 3)

    def test_skipped_frames_leave_signal_untouched(self):
        stabilizer = GestureStabilizer(DeviceProfile.for_class(DeviceClass.MOBILE))
        stabilizer.process_frame(1, lambda: [open_hand()])
        self.assertEqual(stabilizer.snapshot(), StableGestureSignal())

    def test_configure_clamps_decimation(self):
        stabilizer = GestureStabilizer(DeviceProfile.for_class(DeviceClass.MOBILE))
        stabilizer.configure(decimation=0)
        self.assertEqual(stabilizer.decimation, 1)

    def test_configure_smoothing(self):
        stabilizer = GestureStabilizer(DeviceProfile.for_class(DeviceClass.DESKTOP))
        stabilizer.configure(smoothing=SmoothingFactors(strength=1.0))
        stabilizer.process_frame(1, lambda: [open_hand()])
        self.assertAlmostEqual(stabilizer.snapshot().strength, 1.0)


class TestEndToEnd(unittest.TestCase):
    """Open hand then fist through the full analysis and smoothing path."""

    def test_open_then_fist(self):
        stabilizer = GestureStabilizer(DeviceProfile.for_class(DeviceClass.DESKTOP))
        frame_id = 0

        for _ in range(60):
            frame_id += 1
            stabilizer.process_frame(frame_id, lambda: [open_hand()])
        self.assertGreater(stabilizer.snapshot().strength, 0.8)

        for _ in range(60):
            frame_id += 1
            stabilizer.process_frame(frame_id, lambda: [fist_hand()])
        signal = stabilizer.snapshot()
        self.assertLess(signal.strength, 0.2)
        self.assertTrue(signal.is_facing_camera)
        self.assertEqual(signal.rotation, PalmRotation(0.0, 0.0, 0.0))


if __name__ == "__main__":
    unittest.main()
