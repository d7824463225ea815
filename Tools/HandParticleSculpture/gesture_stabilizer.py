"""
Temporal stabilizer for HandParticleSculpture.

Owns the session-wide StableGestureSignal. Raw per-frame metrics are
folded in with per-channel exponential smoothing; frames are gated by
identity and decimated according to the device profile.
"""

from dataclasses import dataclass, field, replace
from typing import Callable, Optional, Sequence

from .config import AnalyzerThresholds
from .device_profile import DeviceProfile, SmoothingFactors
from .gesture_analyzer import PalmRotation, RawGestureMetrics, analyze
from .landmarks import HandLandmarks
from .logger import get_logger

logger = get_logger("GestureStabilizer")

NO_HAND_LOG_INTERVAL_FRAMES = 300  # ~5 s at 60 FPS


@dataclass
class StableGestureSignal:
    """
    Smoothed gesture state read by the animator and the HUD.

    Attributes:
        strength: Smoothed openness in [0, 1].
        rotation: Smoothed palm rotation in degrees.
        distance: Smoothed palm distance in [0, 1].
        is_facing_camera: Latest facing state.
        is_heart_gesture: Latest heart gesture state.
        landmarks: First detected hand, for skeleton overlays.
        hand_detected: Whether the last processed frame had a hand.
    """

    strength: float = 0.0
    rotation: PalmRotation = field(default_factory=PalmRotation)
    distance: float = 0.0
    is_facing_camera: bool = False
    is_heart_gesture: bool = False
    landmarks: Optional[HandLandmarks] = None
    hand_detected: bool = False

    @property
    def strength_percent(self) -> int:
        """Strength as a whole percentage for display."""
        return int(round(self.strength * 100))


def smooth(current: float, target: float, factor: float) -> float:
    """One exponential smoothing step toward target."""
    return current + (target - current) * factor


class GestureStabilizer:
    """
    Converts raw per-frame metrics into a stable gesture signal.

    Call process_frame() once per video frame. Only frames that pass
    the identity check and the decimation counter run detection and
    analysis; everything else leaves the signal untouched.
    """

    def __init__(
        self,
        profile: DeviceProfile,
        thresholds: Optional[AnalyzerThresholds] = None
    ):
        """
        Initialize stabilizer.

        Args:
            profile: Device profile providing smoothing factors and decimation.
            thresholds: Analyzer thresholds. Uses defaults if None.
        """
        self.smoothing: SmoothingFactors = profile.smoothing
        self.decimation: int = max(1, profile.decimation)
        self.thresholds = thresholds or AnalyzerThresholds()

        self._signal = StableGestureSignal()
        self._last_frame_id: Optional[object] = None
        self._frame_counter = 0
        self._processed_count = 0
        self._no_hand_frames = 0
        self._last_raw: Optional[RawGestureMetrics] = None

        logger.info(
            f"GestureStabilizer initialized (decimation={self.decimation}, "
            f"strength={self.smoothing.strength}, rotation={self.smoothing.rotation}, "
            f"distance={self.smoothing.distance})"
        )

    @property
    def frame_counter(self) -> int:
        """Number of distinct video frames seen."""
        return self._frame_counter

    @property
    def processed_count(self) -> int:
        """Number of frames that ran analysis."""
        return self._processed_count

    @property
    def last_raw(self) -> Optional[RawGestureMetrics]:
        """Raw metrics from the most recent analyzed hand."""
        return self._last_raw

    def snapshot(self) -> StableGestureSignal:
        """Get a copy of the current signal."""
        return replace(self._signal)

    def accept_frame(self, frame_id: object) -> bool:
        """
        Decide whether a video frame should be processed.

        Args:
            frame_id: Monotonic frame identity (timestamp or counter).

        Returns:
            True if the frame is new and falls on the decimation stride.
        """
        if frame_id == self._last_frame_id:
            return False
        self._last_frame_id = frame_id
        self._frame_counter += 1
        return self._frame_counter % self.decimation == 0

    def update(self, hands: Sequence[HandLandmarks]) -> StableGestureSignal:
        """
        Fold one processed frame into the stable signal.

        Args:
            hands: Detected hands for this frame. Only the first is used.

        Returns:
            Snapshot of the updated signal.
        """
        self._processed_count += 1

        raw: Optional[RawGestureMetrics] = None
        hand = hands[0] if hands else None
        if hand is not None:
            try:
                raw = analyze(hand, self.thresholds)
            except ValueError as e:
                logger.warning(f"Ignoring malformed hand: {e}")
                hand = None

        if raw is None:
            self._apply_no_hand()
        else:
            self._apply_metrics(raw, hand)

        return self.snapshot()

    def process_frame(
        self,
        frame_id: object,
        detect: Callable[[], Sequence[HandLandmarks]]
    ) -> bool:
        """
        Gate, detect and update for one video frame.

        Args:
            frame_id: Monotonic frame identity.
            detect: Called only for accepted frames; returns detected hands.

        Returns:
            True if the signal was updated.
        """
        if not self.accept_frame(frame_id):
            return False
        self.update(detect())
        return True

    def _apply_metrics(self, raw: RawGestureMetrics, hand: HandLandmarks) -> None:
        signal = self._signal
        factors = self.smoothing

        if self._no_hand_frames:
            logger.debug(f"Hand reacquired after {self._no_hand_frames} empty frames")
        self._no_hand_frames = 0
        self._last_raw = raw

        rotation_factor = factors.facing_reset if raw.is_facing_camera else factors.rotation

        signal.strength = smooth(signal.strength, raw.openness_raw, factors.strength)
        signal.rotation = PalmRotation(
            pitch=smooth(signal.rotation.pitch, raw.rotation.pitch, rotation_factor),
            yaw=smooth(signal.rotation.yaw, raw.rotation.yaw, rotation_factor),
            roll=smooth(signal.rotation.roll, raw.rotation.roll, rotation_factor),
        )
        signal.distance = smooth(signal.distance, raw.distance_raw, factors.distance)

        if raw.is_heart_gesture != signal.is_heart_gesture:
            logger.debug(
                f"Heart gesture {'on' if raw.is_heart_gesture else 'off'} "
                f"(tip={raw.tip_distance:.3f}, angle={raw.finger_angle:.1f}, "
                f"bent={raw.bent_finger_count})"
            )
        signal.is_facing_camera = raw.is_facing_camera
        signal.is_heart_gesture = raw.is_heart_gesture
        signal.landmarks = hand
        signal.hand_detected = True

    def _apply_no_hand(self) -> None:
        signal = self._signal

        # Rotation and distance hold their last values
        signal.strength = smooth(signal.strength, 0.0, self.smoothing.no_hand_decay)
        signal.is_facing_camera = False
        signal.is_heart_gesture = False
        signal.landmarks = None
        signal.hand_detected = False

        self._no_hand_frames += 1
        if self._no_hand_frames % NO_HAND_LOG_INTERVAL_FRAMES == 0:
            logger.info("No hand detected, place a hand in front of the camera")

    def configure(
        self,
        smoothing: Optional[SmoothingFactors] = None,
        decimation: Optional[int] = None,
        thresholds: Optional[AnalyzerThresholds] = None
    ) -> None:
        """
        Update tuning between frames.

        Args:
            smoothing: New smoothing factors.
            decimation: New decimation stride (minimum 1).
            thresholds: New analyzer thresholds.
        """
        if smoothing is not None:
            self.smoothing = smoothing
        if decimation is not None:
            if decimation < 1:
                logger.warning(f"Invalid decimation {decimation}, using 1")
            self.decimation = max(1, int(decimation))
        if thresholds is not None:
            self.thresholds = thresholds
        logger.debug(f"Stabilizer reconfigured (decimation={self.decimation})")

    def reset(self) -> None:
        """Clear the signal and frame counters."""
        self._signal = StableGestureSignal()
        self._last_frame_id = None
        self._frame_counter = 0
        self._processed_count = 0
        self._no_hand_frames = 0
        self._last_raw = None
        logger.debug("Stabilizer reset")
