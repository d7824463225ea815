#!/usr/bin/env python3
"""
Hand Particle Sculpture

Main entry point. Tracks a hand through the webcam and drives a
particle sculpture that follows hand openness, rotation and distance,
switching to a text glyph while a heart gesture is held.

Usage:
    python -m HandParticleSculpture.sculpture_app [--config <path>] [--camera <index>] [--debug]

Exit Codes:
    0 - Success
    1 - Configuration error
    2 - Camera error
    3 - Runtime error
    4 - Shape generation error
"""

import argparse
import signal
import sys
import time
from dataclasses import replace
from typing import Optional

import cv2

from .config import (
    EXIT_SUCCESS,
    EXIT_CONFIG_ERROR,
    EXIT_CAMERA_ERROR,
    EXIT_RUNTIME_ERROR,
    EXIT_SHAPE_ERROR,
    TARGET_FPS,
    STATUS_LOG_INTERVAL_SEC,
    PREVIEW_WINDOW_NAME,
)
from .logger import setup_logging, get_logger
from .animation_loop import AnimationLoop
from .camera_manager import CameraManager, CameraError, select_camera
from .device_profile import DeviceProfile, DeviceClass, build_profile
from .gesture_stabilizer import GestureStabilizer
from .hand_detector import HandDetector, HandDetectorError
from .particle_animator import ParticleFieldAnimator, RenderFrame
from .preview_renderer import HudInfo, PreviewRenderer
from .scene_config import SceneConfig, SceneConfigError, load_scene_config
from .shape_library import GLYPH_SHAPE, SHAPE_NAMES, ShapeGenerationError


class SculptureApp:
    """
    Main application.

    Wires camera capture, hand detection, gesture stabilization,
    particle animation and the preview window into one cooperative
    loop. Every tick reads a frame, updates the gesture signal when the
    frame passes the stabilizer's gate, advances the particles and
    draws the preview.
    """

    def __init__(
        self,
        scene: SceneConfig,
        profile: DeviceProfile,
        camera_index: int = 0,
        model_path: Optional[str] = None,
        show_preview: bool = True
    ):
        """
        Initialize application.

        Args:
            scene: Sanitized scene configuration.
            profile: Device profile for quality settings.
            camera_index: Camera device index.
            model_path: Optional hand_landmarker.task file (Tasks API).
            show_preview: Open the OpenCV preview window.
        """
        self.scene = scene
        self.profile = profile
        self.camera_index = camera_index
        self.model_path = model_path
        self.show_preview = show_preview

        self._logger = get_logger("App")
        self._stopped = False

        self._camera: Optional[CameraManager] = None
        self._detector: Optional[HandDetector] = None
        self._stabilizer: Optional[GestureStabilizer] = None
        self._animator: Optional[ParticleFieldAnimator] = None
        self._renderer: Optional[PreviewRenderer] = None
        self._loop: Optional[AnimationLoop] = None
        self._last_camera_frame = None

        # Stats
        self._frame_count = 0
        self._start_time = 0.0
        self._fps_window_start = 0.0
        self._fps_window_frames = 0
        self._fps = 0.0
        self._last_status_time = 0.0

    @property
    def fps(self) -> float:
        return self._fps

    def initialize(self) -> None:
        """
        Initialize all components.

        Raises:
            ShapeGenerationError: If the particle shapes cannot be generated.
            CameraError: If the camera cannot be opened.
            HandDetectorError: If the detector model cannot be loaded.
        """
        self._logger.info("Initializing particle sculpture...")

        # Shapes first: a bad configuration fails before touching hardware
        self._animator = ParticleFieldAnimator(self.scene, self.profile)
        self._stabilizer = GestureStabilizer(self.profile)

        self._camera = CameraManager.from_profile(self.profile, self.camera_index)
        self._camera.open()

        self._detector = HandDetector(
            max_num_hands=self.profile.max_hands,
            model_path=self.model_path
        )
        self._detector.initialize()

        if self.show_preview:
            self._renderer = PreviewRenderer(self.profile)

        self._loop = AnimationLoop(self._on_tick, target_fps=TARGET_FPS)
        self._logger.info(
            f"Particle sculpture initialized ({self.profile.device_class.value}, "
            f"decimation={self.profile.decimation})"
        )

    def run(self) -> None:
        """Run the main loop until stopped."""
        if self._loop is None:
            raise RuntimeError("SculptureApp.run() called before initialize()")

        self._start_time = time.perf_counter()
        self._fps_window_start = self._start_time
        self._last_status_time = self._start_time
        self._logger.info("Starting animation loop...")

        try:
            self._loop.run()
        finally:
            self.stop()

    def _on_tick(self, elapsed: float, dt: float) -> None:
        """Process one frame: capture, detect, stabilize, animate, draw."""
        captured = self._camera.read_frame()
        if captured is not None:
            frame_id, bgr = captured
            self._last_camera_frame = bgr
            self._stabilizer.process_frame(
                frame_id,
                lambda: self._detector.detect(cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB))
            )

        signal_snapshot = self._stabilizer.snapshot()
        render_frame = self._animator.tick(signal_snapshot, elapsed)

        self._frame_count += 1
        self._update_fps()
        self._log_status()

        if self._renderer is not None:
            self._show_preview(render_frame, signal_snapshot)

    def _show_preview(self, render_frame: RenderFrame, signal_snapshot) -> None:
        info = HudInfo(
            fps=self._fps,
            device_label=self.profile.device_class.value,
            shape=self._animator.scene.shape
        )
        image = self._renderer.render(render_frame, signal_snapshot, info, self._last_camera_frame)
        cv2.imshow(PREVIEW_WINDOW_NAME, image)

        key = cv2.waitKey(1) & 0xFF
        if key == ord('q') or key == 27:  # q or ESC
            self._logger.info("Quit key pressed")
            self._loop.stop()
        elif key == ord('s'):
            self._cycle_shape()

    def _cycle_shape(self) -> None:
        shapes = [name for name in SHAPE_NAMES if name != GLYPH_SHAPE]
        current = self._animator.scene.shape
        next_shape = shapes[(shapes.index(current) + 1) % len(shapes)] if current in shapes else shapes[0]
        self._animator.configure(shape=next_shape)

    def _update_fps(self) -> None:
        """Update FPS over one-second windows."""
        self._fps_window_frames += 1
        now = time.perf_counter()
        window = now - self._fps_window_start
        if window >= 1.0:
            self._fps = self._fps_window_frames / window
            self._fps_window_frames = 0
            self._fps_window_start = now

    def _log_status(self) -> None:
        now = time.perf_counter()
        if now - self._last_status_time < STATUS_LOG_INTERVAL_SEC:
            return
        self._last_status_time = now

        snapshot = self._stabilizer.snapshot()
        raw = self._stabilizer.last_raw
        normal_z = f"{raw.palm_normal[2]:.2f}" if raw is not None else "-"
        self._logger.debug(
            f"{self._fps:.0f} FPS | {self.profile.device_class.value} | "
            f"strength {snapshot.strength:.2f} | "
            f"{'facing' if snapshot.is_facing_camera else 'side'} | "
            f"normal.z {normal_z} | distance {snapshot.distance:.2f}"
        )

    def request_stop(self) -> None:
        """Ask the loop to finish after the current tick."""
        if self._loop is not None:
            self._loop.stop()

    def stop(self) -> None:
        """Stop the loop and release resources. Safe to call repeatedly."""
        self.request_stop()
        if self._stopped:
            return
        self._stopped = True
        self._logger.info("Stopping particle sculpture...")

        if self._detector:
            self._detector.close()

        if self._camera:
            self._camera.close()

        if self._renderer is not None:
            cv2.destroyAllWindows()

        if self._frame_count > 0:
            elapsed = time.perf_counter() - self._start_time
            avg_fps = self._frame_count / elapsed if elapsed > 0 else 0
            self._logger.info(
                f"Stopped. Rendered {self._frame_count} frames "
                f"in {elapsed:.1f}s ({avg_fps:.1f} FPS average)"
            )


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Hand Particle Sculpture - gesture-driven particle visualization",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exit Codes:
  0  Success
  1  Configuration error (file not found, invalid JSON)
  2  Camera error (camera not available)
  3  Runtime error (unexpected error)
  4  Shape generation error

Keys (preview window):
  s       Cycle shape
  q, ESC  Quit

Examples:
  hand-particle-sculpture
  hand-particle-sculpture --config scene.json --camera 1
  hand-particle-sculpture --shape Knot --particles 8000 --device-class mobile
"""
    )

    parser.add_argument(
        "--config", "-p",
        default=None,
        help="Path to JSON scene configuration file"
    )

    parser.add_argument(
        "--camera", "-c",
        type=int,
        default=-1,
        help="Camera index (default: auto-detect)"
    )

    parser.add_argument(
        "--device-class",
        choices=[c.value for c in DeviceClass],
        default=None,
        help="Override device class detection"
    )

    parser.add_argument(
        "--shape",
        choices=SHAPE_NAMES,
        default=None,
        help="Initial shape (overrides config)"
    )

    parser.add_argument(
        "--particles",
        type=int,
        default=None,
        help="Particle count (overrides config and device default)"
    )

    parser.add_argument(
        "--model",
        default=None,
        help="hand_landmarker.task file for the MediaPipe Tasks API"
    )

    parser.add_argument(
        "--no-preview",
        action="store_true",
        help="Run without the preview window"
    )

    parser.add_argument(
        "--no-file-log",
        action="store_true",
        help="Log to console only"
    )

    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging"
    )

    return parser.parse_args(argv)


def build_scene(args: argparse.Namespace) -> SceneConfig:
    """
    Load the scene file (if any) and apply command line overrides.

    Raises:
        SceneConfigError: If the scene file cannot be loaded.
    """
    scene = load_scene_config(args.config) if args.config else SceneConfig()

    overrides = {}
    if args.shape is not None:
        overrides["shape"] = args.shape
    if args.particles is not None:
        overrides["particle_count"] = args.particles
    if args.device_class is not None:
        overrides["device_class"] = args.device_class

    return replace(scene, **overrides).sanitized() if overrides else scene


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code.
    """
    args = parse_args(argv)

    logger = setup_logging(debug=args.debug, log_to_file=not args.no_file_log)
    logger.info("Hand Particle Sculpture starting...")

    try:
        scene = build_scene(args)
    except SceneConfigError as e:
        logger.error(f"Failed to load scene config: {e}")
        return EXIT_CONFIG_ERROR

    profile = build_profile(override=scene.device_class)

    try:
        camera_index = args.camera if args.camera >= 0 else select_camera()
    except CameraError as e:
        logger.error(f"Camera selection failed: {e}")
        return EXIT_CAMERA_ERROR

    app: Optional[SculptureApp] = None

    try:
        app = SculptureApp(
            scene=scene,
            profile=profile,
            camera_index=camera_index,
            model_path=args.model,
            show_preview=not args.no_preview
        )

        def signal_handler(sig, frame):
            logger.info("Received shutdown signal")
            if app:
                app.request_stop()

        signal.signal(signal.SIGINT, signal_handler)
        # SIGTERM is not available on Windows
        if sys.platform != 'win32':
            signal.signal(signal.SIGTERM, signal_handler)

        app.initialize()
        app.run()

        return EXIT_SUCCESS

    except ShapeGenerationError as e:
        logger.error(f"Shape generation failed: {e}")
        return EXIT_SHAPE_ERROR
    except CameraError as e:
        logger.error(f"Camera error: {e}")
        return EXIT_CAMERA_ERROR
    except HandDetectorError as e:
        logger.error(f"Hand detector error: {e}")
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        logger.exception(f"Runtime error: {e}")
        return EXIT_RUNTIME_ERROR
    finally:
        if app:
            app.stop()


if __name__ == "__main__":
    sys.exit(main())
