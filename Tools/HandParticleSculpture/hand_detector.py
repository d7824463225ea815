"""
MediaPipe landmark source for the sculpture.

Turns an RGB camera frame into a list of HandLandmarks. MediaPipe builds
that still ship mp.solutions run the legacy Hands graph; newer builds
only have the Tasks HandLandmarker, which needs a hand_landmarker.task
model file on disk.
"""

from pathlib import Path
from typing import Optional

import mediapipe as mp
import numpy as np

from .logger import get_logger
from .config import (
    MEDIAPIPE_MODEL_COMPLEXITY,
    MEDIAPIPE_MAX_NUM_HANDS,
    MEDIAPIPE_MIN_DETECTION_CONFIDENCE,
    MEDIAPIPE_MIN_TRACKING_CONFIDENCE,
)
from .landmarks import HandLandmarks

logger = get_logger("HandDetector")

HAS_SOLUTIONS_API = hasattr(mp, "solutions") and hasattr(mp.solutions, "hands")

# Tasks VIDEO mode only checks that timestamps increase
_FRAME_STEP_MS = 33


class HandDetectorError(Exception):
    """Raised when no MediaPipe hand model can be loaded."""
    pass


class HandDetector:
    """
    Detects up to max_num_hands hands per frame.

    detect() loads the model lazily; call initialize() up front to get
    model errors at startup instead of on the first frame.
    """

    def __init__(
        self,
        max_num_hands: int = MEDIAPIPE_MAX_NUM_HANDS,
        model_complexity: int = MEDIAPIPE_MODEL_COMPLEXITY,
        min_detection_confidence: float = MEDIAPIPE_MIN_DETECTION_CONFIDENCE,
        min_tracking_confidence: float = MEDIAPIPE_MIN_TRACKING_CONFIDENCE,
        model_path: Optional[str | Path] = None
    ):
        """
        Args:
            max_num_hands: Upper bound on hands reported per frame.
            model_complexity: 0 (lite) or 1 (full), legacy graph only.
            min_detection_confidence: Palm detection threshold.
            min_tracking_confidence: Landmark tracking threshold.
            model_path: hand_landmarker.task file. Setting it selects the
                Tasks backend even when the legacy graph is available.
        """
        self.max_num_hands = max_num_hands
        self.model_complexity = model_complexity
        self.min_detection_confidence = min_detection_confidence
        self.min_tracking_confidence = min_tracking_confidence
        self.model_path = Path(model_path) if model_path else None

        self.backend = "tasks" if (self.model_path is not None or not HAS_SOLUTIONS_API) else "solutions"
        self._model = None
        self._clock_ms = 0

    def initialize(self) -> None:
        """
        Load the model for the selected backend. No-op when loaded.

        Raises:
            HandDetectorError: If the Tasks backend has no usable model file.
        """
        if self._model is not None:
            return

        if self.backend == "tasks":
            self._model = self._load_landmarker()
        else:
            self._model = mp.solutions.hands.Hands(
                static_image_mode=False,
                model_complexity=self.model_complexity,
                max_num_hands=self.max_num_hands,
                min_detection_confidence=self.min_detection_confidence,
                min_tracking_confidence=self.min_tracking_confidence
            )
        logger.info(f"Hand model loaded ({self.backend} backend, up to {self.max_num_hands} hands)")

    def _load_landmarker(self):
        if self.model_path is None:
            raise HandDetectorError(
                "Installed MediaPipe lacks mp.solutions; supply a hand_landmarker.task file with --model"
            )
        if not self.model_path.is_file():
            raise HandDetectorError(f"Model file not found: {self.model_path}")

        from mediapipe.tasks import python as mp_python
        from mediapipe.tasks.python import vision as mp_vision

        self._clock_ms = 0
        return mp_vision.HandLandmarker.create_from_options(
            mp_vision.HandLandmarkerOptions(
                base_options=mp_python.BaseOptions(model_asset_path=str(self.model_path)),
                running_mode=mp_vision.RunningMode.VIDEO,
                num_hands=self.max_num_hands,
                min_hand_detection_confidence=self.min_detection_confidence,
                min_hand_presence_confidence=self.min_detection_confidence,
                min_tracking_confidence=self.min_tracking_confidence
            )
        )

    def close(self) -> None:
        """Free the model. The detector reloads it on the next detect()."""
        if self._model is None:
            return
        self._model.close()
        self._model = None
        logger.debug("Hand model released")

    def detect(self, rgb_image: np.ndarray) -> list[HandLandmarks]:
        """
        Find hands in one frame.

        Args:
            rgb_image: (H, W, 3) uint8 RGB frame.

        Returns:
            One HandLandmarks per detected hand, empty when none.
        """
        self.initialize()

        if self.backend == "tasks":
            frame = mp.Image(image_format=mp.ImageFormat.SRGB, data=np.ascontiguousarray(rgb_image))
            self._clock_ms += _FRAME_STEP_MS
            result = self._model.detect_for_video(frame, self._clock_ms)
            labels = [entry[0] for entry in (result.handedness or [])]
            return [
                HandLandmarks.from_detection(points, *self._label_of(labels, i, "category_name"))
                for i, points in enumerate(result.hand_landmarks)
            ]

        result = self._model.process(rgb_image)
        if not result.multi_hand_landmarks:
            return []
        labels = [entry.classification[0] for entry in (result.multi_handedness or [])]
        return [
            HandLandmarks.from_detection(hand.landmark, *self._label_of(labels, i, "label"))
            for i, hand in enumerate(result.multi_hand_landmarks)
        ]

    @staticmethod
    def _label_of(labels: list, index: int, name_attr: str) -> tuple[str, float]:
        if index < len(labels):
            return getattr(labels[index], name_attr), labels[index].score
        return "Right", 1.0
