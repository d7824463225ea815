"""
Webcam capture for HandParticleSculpture.

Every frame that comes off the device gets the next value of a
monotonic frame id. The stabilizer compares ids to avoid analyzing the
same image twice when the render loop outpaces the camera.
"""

import sys
from typing import Optional

import cv2
import numpy as np

from .logger import get_logger
from .config import CAMERA_WIDTH, CAMERA_HEIGHT, CAMERA_FPS, DEFAULT_CAMERA_INDEX
from .device_profile import DeviceProfile

logger = get_logger("CameraManager")

# Consecutive failed reads before the device is considered lost
MAX_CONSECUTIVE_READ_FAILURES = 30


class CameraError(Exception):
    """Raised when the webcam cannot be opened or stops delivering frames."""
    pass


def _open_capture(index: int) -> cv2.VideoCapture:
    if sys.platform == "win32":
        # DirectShow opens much faster than MSMF on Windows
        capture = cv2.VideoCapture(index, cv2.CAP_DSHOW)
        if capture.isOpened():
            return capture
        capture.release()
        logger.debug(f"DirectShow could not open camera {index}, using default backend")
    return cv2.VideoCapture(index)


class CameraManager:
    """
    OpenCV webcam that stamps frames with ids.

    Attributes:
        camera_index: Device index passed to VideoCapture.
        width: Requested frame width.
        height: Requested frame height.
        fps: Requested capture rate.
    """

    def __init__(
        self,
        camera_index: int = DEFAULT_CAMERA_INDEX,
        width: int = CAMERA_WIDTH,
        height: int = CAMERA_HEIGHT,
        fps: int = CAMERA_FPS
    ):
        self.camera_index = camera_index
        self.width = width
        self.height = height
        self.fps = fps

        self._capture: Optional[cv2.VideoCapture] = None
        self._frame_id = 0
        self._failed_reads = 0

    @classmethod
    def from_profile(cls, profile: DeviceProfile, camera_index: int = DEFAULT_CAMERA_INDEX) -> "CameraManager":
        """Create a camera using the capture mode of a device profile."""
        return cls(
            camera_index=camera_index,
            width=profile.camera_width,
            height=profile.camera_height,
            fps=profile.camera_fps
        )

    def open(self) -> None:
        """
        Open the device and request the configured capture mode.

        Raises:
            CameraError: If the device cannot be opened.
        """
        if self._capture is not None:
            logger.debug("Reopening camera")
            self.close()

        logger.info(f"Opening camera {self.camera_index} ({self.width}x{self.height} @ {self.fps} FPS)")
        capture = _open_capture(self.camera_index)
        if not capture.isOpened():
            capture.release()
            raise CameraError(f"Cannot open camera {self.camera_index}")

        for prop, value in (
            (cv2.CAP_PROP_FRAME_WIDTH, self.width),
            (cv2.CAP_PROP_FRAME_HEIGHT, self.height),
            (cv2.CAP_PROP_FPS, self.fps),
            (cv2.CAP_PROP_BUFFERSIZE, 1),  # Keep only the newest frame
        ):
            capture.set(prop, value)

        got_w = int(capture.get(cv2.CAP_PROP_FRAME_WIDTH))
        got_h = int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
        got_fps = capture.get(cv2.CAP_PROP_FPS)
        if (got_w, got_h) != (self.width, self.height):
            logger.warning(f"Camera delivers {got_w}x{got_h} instead of {self.width}x{self.height}")
        logger.info(f"Camera {self.camera_index} ready: {got_w}x{got_h} @ {got_fps:.1f} FPS")

        self._capture = capture
        self._frame_id = 0
        self._failed_reads = 0

    def close(self) -> None:
        """Release the device. Safe to call when already closed."""
        if self._capture is None:
            return
        self._capture.release()
        self._capture = None
        logger.info(f"Camera {self.camera_index} released after {self._frame_id} frames")

    def read_frame(self) -> Optional[tuple[int, np.ndarray]]:
        """
        Grab the next frame.

        Returns:
            (frame_id, BGR image), or None when this read failed.

        Raises:
            CameraError: If the camera is closed or has stopped
                delivering frames.
        """
        if self._capture is None:
            raise CameraError("Camera is not open")

        ok, image = self._capture.read()
        if not ok or image is None:
            self._failed_reads += 1
            if self._failed_reads >= MAX_CONSECUTIVE_READ_FAILURES:
                raise CameraError(
                    f"Camera {self.camera_index} returned no frames {self._failed_reads} times in a row"
                )
            logger.debug(f"Frame read failed ({self._failed_reads} in a row)")
            return None

        self._failed_reads = 0
        self._frame_id += 1
        return self._frame_id, image


def select_camera(preferred_index: int = -1, max_index: int = 10) -> int:
    """
    Pick a camera index by probing devices 0..max_index-1.

    Args:
        preferred_index: Index to use if it opens (-1 for the first working one).
        max_index: Number of indices to probe.

    Returns:
        A camera index that opened successfully.

    Raises:
        CameraError: If no device opens.
    """
    working = []
    for index in range(max_index):
        capture = _open_capture(index)
        if capture.isOpened():
            working.append(index)
        capture.release()

    if not working:
        raise CameraError(f"No camera found (probed indices 0-{max_index - 1})")
    logger.debug(f"Working camera indices: {working}")

    if preferred_index in working:
        return preferred_index
    if preferred_index >= 0:
        logger.warning(f"Camera {preferred_index} unavailable, falling back to {working[0]}")
    logger.info(f"Using camera {working[0]}")
    return working[0]
