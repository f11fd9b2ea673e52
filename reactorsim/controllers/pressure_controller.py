# reactorsim/controllers/pressure_controller.py
"""
Pressure controller driving vessel mass flow.

Converts the pressure error into a mass injection (positive) or extraction
(negative) through the ideal-gas relation, rate-limited to a fraction of
the current mass per second. A single call never extracts more than half
of the current mass, however long dt is.
"""

from reactorsim.controllers.base_controller import BaseController, SensorRange
from reactorsim.state.reactor_state import Environment

PRESSURE_GAIN = 0.002
MAX_FRACTION_PER_SEC = 0.05
MAX_EXTRACTION_FRACTION = 0.5  # of the current mass, per call


class PressureController(BaseController):
    """Proportional mass-flow controller for vessel pressure."""

    def __init__(self, sensor_range: SensorRange, has_control: bool = True):
        super().__init__(sensor_range, has_control)

    def compute(self, env: Environment, dt: float) -> float:
        """Compute the mass change for one tick.

        mass_flow = Kp * (P_needed - P) * V / (R_specific * T)

        Args:
            env: Environment snapshot
            dt: Elapsed time in seconds

        Returns:
            Mass change in kg, bounded by +/- mass * MAX_FRACTION_PER_SEC * dt
            and never below -mass * MAX_EXTRACTION_FRACTION.
            0.0 when R, V, T or dt is non-positive or control is disabled.
        """
        if not self._has_control:
            return 0.0
        if (
            env.specific_gas_constant <= 0.0
            or env.volume <= 0.0
            or env.temperature <= 0.0
            or dt <= 0.0
        ):
            return 0.0

        setpoint = self._range.clamp(env.needed_pressure)
        pressure_error = setpoint - env.pressure

        mass_flow_rate = (
            PRESSURE_GAIN
            * pressure_error
            * env.volume
            / (env.specific_gas_constant * env.temperature)
        )
        mass_change = mass_flow_rate * dt

        max_change = env.mass * MAX_FRACTION_PER_SEC * dt
        max_extraction = min(max_change, env.mass * MAX_EXTRACTION_FRACTION)
        return max(-max_extraction, min(max_change, mass_change))
