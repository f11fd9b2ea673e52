# reactorsim/controllers/humidity_controller.py
"""
Humidity controller driving water-vapour injection.

The proportional humidity error is turned into a desired change speed in
%/s, then scaled to a physical mass flow using the vapour capacity of the
vessel at the current temperature.
"""

from reactorsim.controllers.base_controller import BaseController, SensorRange
from reactorsim.state.reactor_state import Environment

HUMIDITY_GAIN = 0.5  # (%/s) per % of error
MAX_PHYSICAL_FLOW = 0.05  # kg/s


class HumidityController(BaseController):
    """Proportional water-vapour flow controller."""

    def __init__(self, sensor_range: SensorRange, has_control: bool = True):
        super().__init__(sensor_range, has_control)

    def desired_flow_rate(self, env: Environment, max_possible_water_mass: float) -> float:
        """Flow the proportional law asks for, before the physical clamp (kg/s)."""
        setpoint = self._range.clamp(env.needed_humidity)
        error = setpoint - env.humidity
        desired_change_speed = HUMIDITY_GAIN * error
        return desired_change_speed / 100.0 * max_possible_water_mass

    def compute(
        self, env: Environment, dt: float, max_possible_water_mass: float
    ) -> float:
        """Compute water-vapour flow for one tick.

        Args:
            env: Environment snapshot
            dt: Elapsed time in seconds
            max_possible_water_mass: Vapour capacity of the vessel (kg)

        Returns:
            Flow rate in kg/s, clamped to +/- MAX_PHYSICAL_FLOW.
            0.0 when dt or capacity is non-positive or control is disabled.
        """
        if not self._has_control or dt <= 0.0 or max_possible_water_mass <= 0.0:
            return 0.0

        flow_rate = self.desired_flow_rate(env, max_possible_water_mass)
        return max(-MAX_PHYSICAL_FLOW, min(MAX_PHYSICAL_FLOW, flow_rate))
