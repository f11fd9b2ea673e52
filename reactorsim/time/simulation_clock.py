# reactorsim/time/simulation_clock.py
"""
Wall-clock measurement for the simulation loop.

The loop sleeps a nominal tick and then asks the clock how much simulation
time actually passed, so scheduling jitter is fed into the physics rather
than assumed away. The clock supports pause/resume and a speed multiplier.
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------
# Time modes
# ----------------------------------------------------------------
class TimeMode(Enum):
    """Simulation clock operation modes."""

    REALTIME = "realtime"
    ACCELERATED = "accelerated"
    PAUSED = "paused"


@dataclass
class TimeState:
    """State container for simulation clock tracking."""

    simulation_time: float = 0.0
    wall_time_start: float = 0.0
    wall_time_elapsed: float = 0.0
    speed_multiplier: float = 1.0
    paused: bool = False
    total_pause_duration: float = 0.0
    pause_start: Optional[float] = None
    last_mark: float = 0.0


# ----------------------------------------------------------------
# Simulation clock
# ----------------------------------------------------------------
class SimulationClock:
    """Monotonic simulation clock owned by one simulation loop.

    Example:
        >>> clock = SimulationClock(time_acceleration=10.0)
        >>> clock.start()
        >>> time.sleep(0.1)
        >>> dt = clock.mark()  # ~1.0 simulated seconds
    """

    MAX_SPEED_MULTIPLIER = 1000.0

    def __init__(
        self,
        time_acceleration: float = 1.0,
        time_source: Callable[[], float] = time.monotonic,
    ):
        """Initialise clock.

        Args:
            time_acceleration: Simulated seconds per wall second
            time_source: Monotonic seconds source

        Raises:
            ValueError: If time_acceleration is outside (0, MAX_SPEED_MULTIPLIER]
        """
        _validate_speed(time_acceleration, self.MAX_SPEED_MULTIPLIER)

        self._lock = threading.Lock()
        self._time_source = time_source
        self.state = TimeState(speed_multiplier=float(time_acceleration))

    # ----------------------------------------------------------------
    # Lifecycle
    # ----------------------------------------------------------------
    def start(self) -> None:
        """Start (or restart) wall-clock tracking from zero."""
        with self._lock:
            now = self._time_source()
            self.state.simulation_time = 0.0
            self.state.wall_time_start = now
            self.state.wall_time_elapsed = 0.0
            self.state.total_pause_duration = 0.0
            self.state.pause_start = None
            self.state.paused = False
            self.state.last_mark = now

        logger.info(
            f"SimulationClock started at {self.state.speed_multiplier}x speed"
        )

    def mark(self) -> float:
        """Measure simulated time since the previous mark.

        Returns:
            Simulated seconds since the last mark; 0.0 while paused
        """
        with self._lock:
            now = self._time_source()
            wall_delta = max(0.0, now - self.state.last_mark)
            self.state.last_mark = now
            self.state.wall_time_elapsed = (
                now - self.state.wall_time_start - self.state.total_pause_duration
            )

            if self.state.paused:
                return 0.0

            sim_delta = wall_delta * self.state.speed_multiplier
            self.state.simulation_time += sim_delta
            return sim_delta

    # ----------------------------------------------------------------
    # Time queries
    # ----------------------------------------------------------------
    def now(self) -> float:
        """Current simulation time in seconds."""
        with self._lock:
            return self.state.simulation_time

    def wall_elapsed(self) -> float:
        with self._lock:
            return self.state.wall_time_elapsed

    def speed(self) -> float:
        with self._lock:
            return self.state.speed_multiplier

    def is_paused(self) -> bool:
        with self._lock:
            return self.state.paused

    @property
    def mode(self) -> TimeMode:
        with self._lock:
            if self.state.paused:
                return TimeMode.PAUSED
            if self.state.speed_multiplier == 1.0:
                return TimeMode.REALTIME
            return TimeMode.ACCELERATED

    # ----------------------------------------------------------------
    # Time control
    # ----------------------------------------------------------------
    def pause(self) -> None:
        """Stop simulated time from advancing. Ticks see dt = 0 until resumed."""
        with self._lock:
            if self.state.paused:
                logger.warning("SimulationClock already paused")
                return

            self.state.paused = True
            self.state.pause_start = self._time_source()

        logger.info("SimulationClock paused")

    def resume(self) -> None:
        with self._lock:
            if not self.state.paused:
                logger.warning("SimulationClock not paused")
                return

            now = self._time_source()
            self.state.paused = False
            if self.state.pause_start is not None:
                self.state.total_pause_duration += now - self.state.pause_start
                self.state.pause_start = None

            # Time spent paused is not replayed into the next tick
            self.state.last_mark = now

        logger.info("SimulationClock resumed")

    def set_speed(self, multiplier: float) -> None:
        """Set simulation speed multiplier.

        Args:
            multiplier: Speed multiplier (1.0 = realtime, 2.0 = 2x faster)

        Raises:
            ValueError: If multiplier is <= 0 or exceeds maximum
        """
        _validate_speed(multiplier, self.MAX_SPEED_MULTIPLIER)

        with self._lock:
            old_speed = self.state.speed_multiplier
            self.state.speed_multiplier = float(multiplier)

        logger.info(f"SimulationClock speed changed: {old_speed}x -> {multiplier}x")

    # ----------------------------------------------------------------
    # Status
    # ----------------------------------------------------------------
    def get_status(self) -> dict[str, Any]:
        """Get clock status.

        Returns:
            Dictionary containing current time state and metrics
        """
        mode = self.mode
        with self._lock:
            return {
                "simulation_time": self.state.simulation_time,
                "wall_time_elapsed": self.state.wall_time_elapsed,
                "mode": mode.value,
                "speed_multiplier": self.state.speed_multiplier,
                "paused": self.state.paused,
                "total_pause_duration": self.state.total_pause_duration,
            }


def _validate_speed(multiplier: float, maximum: float) -> None:
    if multiplier <= 0:
        raise ValueError(f"Speed multiplier must be > 0, got {multiplier}")
    if multiplier > maximum:
        raise ValueError(f"Speed multiplier {multiplier} exceeds maximum {maximum}")
