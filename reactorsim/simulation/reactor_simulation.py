# reactorsim/simulation/reactor_simulation.py
"""
Reactor simulation: shared state, controllers, engine and tick loop.

ReactorSimulation is the process-boundary object. It owns the ReactorState
shared with the monitor thread, the three controllers (private to the loop)
and the physics engine. run() is the fixed-tick loop: it sleeps one nominal
tick, measures the real elapsed time and feeds that into tick().
"""

import logging
import time
from typing import Any

from config.config_loader import ReactorConfig, build_environment
from reactorsim.controllers.base_controller import (
    BaseTemperatureController,
    SensorRange,
)
from reactorsim.controllers.humidity_controller import HumidityController
from reactorsim.controllers.physical_temperature_controller import (
    PhysicalTemperatureController,
)
from reactorsim.controllers.pressure_controller import PressureController
from reactorsim.controllers.temperature_controller import PIDTemperatureController
from reactorsim.physics.reactor_physics import ReactorPhysics
from reactorsim.state.reactor_state import ControlMode, Environment, ReactorState
from reactorsim.time.simulation_clock import SimulationClock

logger = logging.getLogger(__name__)

DEFAULT_TICK_MS = 100
STATUS_LOG_INTERVAL = 100  # ticks


class ReactorSimulation:
    """
    Fixed-tick reactor simulation.

    The loop is the only writer during a tick; other threads read through
    state and may write operator values, the control mode and the running
    flag under the same lock.

    Example:
        >>> sim = ReactorSimulation.from_config(config)
        >>> sim.start()
        >>> threading.Thread(target=sim.run, name="reactor-simulation").start()
        >>> sim.stop()  # loop exits within one tick
    """

    def __init__(
        self,
        environment: Environment,
        temperature_range: SensorRange,
        pressure_range: SensorRange,
        humidity_range: SensorRange,
        temperature_controller: BaseTemperatureController | None = None,
        control_mode: ControlMode = ControlMode.AUTOMATIC,
        tick_ms: int = DEFAULT_TICK_MS,
        clock: SimulationClock | None = None,
    ):
        """Initialise simulation.

        Args:
            environment: Initial physical state
            temperature_range: Temperature controller range (K)
            pressure_range: Pressure controller range (Pa)
            humidity_range: Humidity controller range (%)
            temperature_controller: Temperature strategy (PID if None)
            control_mode: Initial control mode
            tick_ms: Nominal tick length in milliseconds
            clock: Clock measuring elapsed time per tick

        Raises:
            ValueError: If tick_ms is not positive
        """
        if tick_ms <= 0:
            raise ValueError(f"tick_ms must be positive, got {tick_ms}")

        self.state = ReactorState(environment, control_mode)
        self.temperature_controller = (
            temperature_controller or PIDTemperatureController(temperature_range)
        )
        self.pressure_controller = PressureController(pressure_range)
        self.humidity_controller = HumidityController(humidity_range)
        self.physics = ReactorPhysics(
            self.state,
            self.temperature_controller,
            self.pressure_controller,
            self.humidity_controller,
        )

        self.tick_ms = tick_ms
        self.clock = clock or SimulationClock()
        self._tick_count = 0
        self._simulated_seconds = 0.0

    @classmethod
    def from_config(
        cls, config: ReactorConfig, clock: SimulationClock | None = None
    ) -> "ReactorSimulation":
        """Build a simulation from a loaded configuration."""
        temperature_range = config.temperature_range()
        controller_cfg = config.temperature_controller

        if controller_cfg.strategy == "physical":
            temperature_controller = PhysicalTemperatureController(temperature_range)
        else:
            temperature_controller = PIDTemperatureController(
                temperature_range,
                kp=controller_cfg.kp,
                ki=controller_cfg.ki,
                kd=controller_cfg.kd,
                parallel_mode=controller_cfg.parallel_mode,
                parallel_threshold=controller_cfg.parallel_threshold,
            )

        if clock is None:
            clock = SimulationClock(config.simulation.time_acceleration)

        return cls(
            build_environment(config),
            temperature_range,
            config.pressure_range(),
            config.humidity_range(),
            temperature_controller=temperature_controller,
            control_mode=config.simulation.control_mode,
            tick_ms=config.simulation.tick_ms,
            clock=clock,
        )

    # ----------------------------------------------------------------
    # Lifecycle
    # ----------------------------------------------------------------

    def start(self) -> None:
        """Set the running flag. run() loops while it stays set."""
        self.state.set_running(True)
        logger.info("Reactor simulation started")

    def stop(self) -> None:
        self.state.set_running(False)
        logger.info("Reactor simulation stop requested")

    def is_running(self) -> bool:
        return self.state.is_running()

    # ----------------------------------------------------------------
    # Tick
    # ----------------------------------------------------------------

    def tick(self, elapsed_ms: float) -> bool:
        """Advance the simulation by the measured elapsed time.

        No-op when the simulation is not running or elapsed_ms <= 0.

        Args:
            elapsed_ms: Elapsed time in milliseconds

        Returns:
            True if the physics engine advanced the state
        """
        if not self.state.is_running():
            return False

        dt = elapsed_ms / 1000.0
        if dt <= 0.0:
            return False

        advanced = self.physics.update(dt)
        if advanced:
            self._tick_count += 1
            self._simulated_seconds += dt
        return advanced

    def run(self) -> None:
        """Blocking tick loop. Returns once the running flag is cleared.

        An exception inside a tick is logged and clears the running flag.
        """
        interval = self.tick_ms / 1000.0
        self.clock.start()
        logger.info(f"Simulation loop started with {self.tick_ms}ms tick")

        iterations = 0
        while self.state.is_running():
            time.sleep(interval)
            elapsed_ms = self.clock.mark() * 1000.0

            try:
                self.tick(elapsed_ms)
            except Exception:
                logger.exception("Simulation tick failed, stopping loop")
                self.state.set_running(False)
                break

            iterations += 1
            if iterations % STATUS_LOG_INTERVAL == 0:
                env = self.state.snapshot()
                logger.info(
                    f"Simulation: {iterations} ticks, "
                    f"sim_time={self.clock.now():.1f}s, "
                    f"T={env.temperature:.2f}K, P={env.pressure:.0f}Pa, "
                    f"H={env.humidity:.1f}%"
                )

        logger.info(f"Simulation loop stopped after {iterations} ticks")

    # ----------------------------------------------------------------
    # Status
    # ----------------------------------------------------------------

    @property
    def tick_count(self) -> int:
        return self._tick_count

    def get_status(self) -> dict[str, Any]:
        return {
            "running": self.state.is_running(),
            "control_mode": self.state.control_mode.value,
            "tick_ms": self.tick_ms,
            "tick_count": self._tick_count,
            "simulated_seconds": self._simulated_seconds,
            "clock": self.clock.get_status(),
            "physics": self.physics.get_telemetry(),
        }
