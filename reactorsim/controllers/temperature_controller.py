# reactorsim/controllers/temperature_controller.py
"""
PID temperature controller for the reactor vessel.

Produces a bounded heater/cooler command from the temperature error:
- Startup ramp scales output from 0 to 1 over the first STARTUP_DURATION
  seconds of operation
- Saturating integral accumulator with back-calculation anti-windup
- Derivative on the negated backward difference kd * (previous - error) / dt
- Optional parallel mode: near the set-point both actuators run, with a
  small opposing nudge that damps oscillation

Sign convention: heating_power >= 0, cooling_power <= 0.
"""

import logging
import math

from reactorsim.controllers.base_controller import (
    BaseTemperatureController,
    SensorRange,
)
from reactorsim.state.reactor_state import Environment

logger = logging.getLogger(__name__)

STARTUP_DURATION = 5.0  # seconds
INTEGRAL_WINDUP_LIMIT = 1000.0  # K·s
COOLING_EFFICIENCY = 0.5  # cooler capacity as a fraction of max heater power

# Parallel-mode stabiliser
COUNTER_ACTUATION_RATIO = 0.1
ERROR_NUDGE_GAIN = 0.5
MAX_NUDGE_FRACTION = 0.05

DEFAULT_KP = 500.0
DEFAULT_KI = 5.0
DEFAULT_KD = 100.0
DEFAULT_PARALLEL_THRESHOLD = 2.0  # K


class PIDTemperatureController(BaseTemperatureController):
    """
    PID heater/cooler controller with anti-windup and parallel mode.

    Accumulators (integral_error, previous_error) and the startup timer
    are owned by the controller and advance on every call with dt > 0,
    including calls whose output ends up saturated.

    Example:
        >>> controller = PIDTemperatureController(SensorRange(273.0, 500.0))
        >>> heating, cooling = controller.compute_actuation(env, dt=0.1)
    """

    def __init__(
        self,
        sensor_range: SensorRange,
        kp: float = DEFAULT_KP,
        ki: float = DEFAULT_KI,
        kd: float = DEFAULT_KD,
        parallel_mode: bool = True,
        parallel_threshold: float = DEFAULT_PARALLEL_THRESHOLD,
        has_control: bool = True,
    ):
        """Initialise PID controller.

        Args:
            sensor_range: Controllable temperature range (K)
            kp: Proportional gain (W/K)
            ki: Integral gain (W/(K·s))
            kd: Derivative gain (W·s/K)
            parallel_mode: Split effort across both actuators near set-point
            parallel_threshold: Error band (K) in which parallel mode applies
            has_control: Whether the controller actuates at all

        Raises:
            ValueError: If a gain is not finite or the threshold is not positive
        """
        super().__init__(sensor_range, has_control)

        if parallel_threshold <= 0.0:
            raise ValueError(
                f"parallel_threshold must be positive, got {parallel_threshold}"
            )

        self.set_gains(kp, ki, kd)
        self.parallel_mode = parallel_mode
        self.parallel_threshold = parallel_threshold

        self.integral_error = 0.0
        self.previous_error = 0.0
        self.elapsed_since_start = 0.0

    def set_gains(self, kp: float, ki: float, kd: float) -> None:
        """Retune the controller at runtime.

        Raises:
            ValueError: If any gain is not finite
        """
        for name, value in (("kp", kp), ("ki", ki), ("kd", kd)):
            if not math.isfinite(value):
                raise ValueError(f"Gain {name} must be finite, got {value}")

        self.kp = float(kp)
        self.ki = float(ki)
        self.kd = float(kd)
        logger.debug(f"PID gains set: kp={self.kp}, ki={self.ki}, kd={self.kd}")

    def reset(self) -> None:
        """Clear accumulators and restart the startup ramp."""
        self.integral_error = 0.0
        self.previous_error = 0.0
        self.elapsed_since_start = 0.0

    # ----------------------------------------------------------------
    # Control law
    # ----------------------------------------------------------------

    def compute(self, env: Environment, dt: float) -> float:
        """Compute a single saturated control effort.

        Args:
            env: Environment snapshot
            dt: Elapsed time in seconds

        Returns:
            Control power in [max_cool, max_heat] (W); 0.0 when dt <= 0
        """
        if dt <= 0.0:
            return 0.0

        _, control_power = self._advance(env, dt)
        return self._saturate(env, control_power, dt)

    def compute_parallel(self, env: Environment, dt: float) -> tuple[float, float]:
        """Compute separate heater and cooler commands.

        Within parallel_threshold of the set-point both actuators may be
        active; outside it the saturated effort goes to one actuator.

        Args:
            env: Environment snapshot
            dt: Elapsed time in seconds

        Returns:
            Tuple of (heating_power >= 0, cooling_power <= 0) in watts
        """
        if dt <= 0.0:
            return 0.0, 0.0

        error, control_power = self._advance(env, dt)
        abs_error = abs(error)

        if not self.parallel_mode or abs_error > self.parallel_threshold:
            limited = self._saturate(env, control_power, dt)
            if limited >= 0.0:
                return limited, 0.0
            return 0.0, limited

        max_heat = env.max_energy_consumption
        max_cool = -max_heat * COOLING_EFFICIENCY
        stabilization_factor = 1.0 - abs_error / self.parallel_threshold
        nudge_limit = max_heat * MAX_NUDGE_FRACTION
        error_nudge = abs_error * self.kp * ERROR_NUDGE_GAIN

        if control_power >= 0.0:
            heating = min(control_power, max_heat)
            nudge = min(
                heating * COUNTER_ACTUATION_RATIO * stabilization_factor,
                error_nudge,
                nudge_limit,
            )
            return heating, -nudge

        cooling = max(control_power, max_cool)
        nudge = min(
            abs(cooling) * COUNTER_ACTUATION_RATIO * stabilization_factor,
            error_nudge,
            nudge_limit,
        )
        return nudge, cooling

    def compute_actuation(self, env: Environment, dt: float) -> tuple[float, float]:
        """Strategy entry point used by the physics engine."""
        if not self._has_control or dt <= 0.0:
            return 0.0, 0.0

        return self.compute_parallel(env, dt)

    def _advance(self, env: Environment, dt: float) -> tuple[float, float]:
        """Update accumulators and return (error, unsaturated control power)."""
        setpoint = self._range.clamp(env.needed_temperature)
        error = setpoint - env.temperature

        self.elapsed_since_start += dt
        startup_factor = min(1.0, self.elapsed_since_start / STARTUP_DURATION)

        proportional = self.kp * error

        self.integral_error = _clamp_integral(self.integral_error + error * dt)
        integral = self.ki * self.integral_error

        derivative = self.kd * (self.previous_error - error) / dt
        self.previous_error = error

        control_power = (proportional + integral + derivative) * startup_factor
        return error, control_power

    def _saturate(self, env: Environment, control_power: float, dt: float) -> float:
        """Clamp to actuator limits, back-calculating excess out of the integral."""
        max_heat = env.max_energy_consumption
        max_cool = -max_heat * COOLING_EFFICIENCY
        limited = max(max_cool, min(max_heat, control_power))

        if limited != control_power and self.kp != 0.0:
            self.integral_error = _clamp_integral(
                self.integral_error + (limited - control_power) / self.kp * dt
            )

        return limited

    def get_status(self) -> dict[str, float]:
        return {
            "kp": self.kp,
            "ki": self.ki,
            "kd": self.kd,
            "integral_error": self.integral_error,
            "previous_error": self.previous_error,
            "elapsed_since_start": self.elapsed_since_start,
        }


def _clamp_integral(value: float) -> float:
    return max(-INTEGRAL_WINDUP_LIMIT, min(INTEGRAL_WINDUP_LIMIT, value))
