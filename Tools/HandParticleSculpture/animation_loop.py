"""
Cooperative animation loop for HandParticleSculpture.

A single-threaded tick scheduler. Each tick calls on_tick(elapsed, dt)
where elapsed is animation time that only advances while running, so
stopping and starting resumes from the same point in the animation.
"""

import time
from typing import Callable, Optional

from .logger import get_logger

logger = get_logger("AnimationLoop")


class AnimationLoop:
    """
    Runs a tick callback at a target frame rate.

    start() and stop() are idempotent. Stopping only cancels future
    ticks; whatever state the callback owns is left untouched.
    """

    def __init__(
        self,
        on_tick: Callable[[float, float], None],
        target_fps: Optional[float] = None,
        clock: Callable[[], float] = time.perf_counter,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize loop.

        Args:
            on_tick: Called with (elapsed, dt) seconds for each tick.
            target_fps: Frame rate cap. None runs ticks back to back.
            clock: Monotonic time source.
            sleep: Sleep function used for pacing.
        """
        self._on_tick = on_tick
        self.target_fps = target_fps
        self._clock = clock
        self._sleep = sleep

        self._running = False
        self._elapsed = 0.0
        self._last_time: Optional[float] = None
        self._tick_count = 0

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def elapsed(self) -> float:
        """Animation time in seconds, excluding stopped periods."""
        return self._elapsed

    @property
    def tick_count(self) -> int:
        return self._tick_count

    def start(self) -> None:
        """Start or resume ticking."""
        if self._running:
            return
        self._running = True
        self._last_time = self._clock()
        logger.debug(f"Animation loop started (elapsed={self._elapsed:.2f}s)")

    def stop(self) -> None:
        """Cancel future ticks."""
        if not self._running:
            return
        self._running = False
        self._last_time = None
        logger.debug(f"Animation loop stopped after {self._tick_count} ticks")

    def step(self) -> bool:
        """
        Run a single tick if the loop is running.

        Returns:
            True if a tick ran.
        """
        if not self._running:
            return False

        now = self._clock()
        dt = max(0.0, now - self._last_time) if self._last_time is not None else 0.0
        self._last_time = now
        self._elapsed += dt
        self._tick_count += 1

        self._on_tick(self._elapsed, dt)
        return True

    def run(self, max_ticks: Optional[int] = None) -> None:
        """
        Tick until stopped, interrupted or max_ticks is reached.

        Args:
            max_ticks: Stop after this many ticks (None = unbounded).
        """
        self.start()
        frame_budget = 1.0 / self.target_fps if self.target_fps else 0.0
        ticks = 0

        try:
            while self._running:
                if max_ticks is not None and ticks >= max_ticks:
                    break

                tick_start = self._clock()
                if not self.step():
                    break
                ticks += 1

                if frame_budget > 0.0:
                    remaining = frame_budget - (self._clock() - tick_start)
                    if remaining > 0.0:
                        self._sleep(remaining)
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
        finally:
            self.stop()
