# reactorsim/controllers/physical_temperature_controller.py
"""
Physically-derived temperature actuator.

Alternate temperature strategy: rather than integrating error, it asks how
much power the vessel needs to hold the set-point. Heat losses and Arrhenius
reaction heat are evaluated at the target temperature, and a proportional
term on the live error is added on top of whichever requirement is active.

Stateless; only one actuator is non-zero per call. Cooling is returned as a
non-negative magnitude.
"""

import logging

from reactorsim.controllers.base_controller import (
    BaseTemperatureController,
    SensorRange,
)
from reactorsim.physics import thermodynamics
from reactorsim.state.reactor_state import Environment

logger = logging.getLogger(__name__)

# Proportional gain as a fraction of the actuator power limit (W/K per W)
PROPORTIONAL_DIVISOR = 50.0


class PhysicalTemperatureController(BaseTemperatureController):
    """
    Heater/cooler command from the steady-state heat balance at set-point.

    Example:
        >>> controller = PhysicalTemperatureController(SensorRange(273.0, 500.0))
        >>> heating, cooling = controller.compute(env)
    """

    def __init__(self, sensor_range: SensorRange, has_control: bool = True):
        super().__init__(sensor_range, has_control)

    def compute(self, env: Environment) -> tuple[float, float]:
        """Compute heater and cooler power.

        Args:
            env: Environment snapshot

        Returns:
            Tuple of (heating_power, cooling_power), both >= 0 (W)
        """
        setpoint = self._range.clamp(env.needed_temperature)
        max_power = max(env.max_energy_consumption, 0.0)

        loss_needed = thermodynamics.total_heat_loss(env, temperature=setpoint)
        reaction_needed = thermodynamics.reaction_heat_rate(env, temperature=setpoint)

        required_heating = max(0.0, loss_needed - reaction_needed)
        required_cooling = max(0.0, reaction_needed - loss_needed)

        kp = max_power / PROPORTIONAL_DIVISOR
        error = setpoint - env.temperature

        if error >= 0.0:
            heating = _clamp(required_heating + kp * error, 0.0, max_power)
            return heating, 0.0

        cooling = _clamp(required_cooling + kp * abs(error), 0.0, max_power)
        return 0.0, cooling

    def compute_actuation(self, env: Environment, dt: float) -> tuple[float, float]:
        if not self._has_control or dt <= 0.0:
            return 0.0, 0.0

        return self.compute(env)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
