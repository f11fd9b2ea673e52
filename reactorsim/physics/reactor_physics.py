# reactorsim/physics/reactor_physics.py
"""
Reactor vessel physics engine.

Advances the shared ReactorState by one tick. Each sub-step runs a fixed
order where later steps observe earlier steps' results:
1. Material properties (mixture heat capacity, Arrhenius reaction heat,
   Dittus-Boelter heat-transfer coefficient)
2. Temperature strategy -> heater/cooler power
3. Heat balance -> temperature
4. Humidity controller -> water vapour mass, humidity, latent heat
5. Pressure controller -> mass flow, ideal-gas pressure

A tick longer than MAX_STEP_SECONDS (a stalled loop, or a high
time_acceleration) is integrated as several sub-steps. All sub-steps work
on one snapshot and the result is committed through a single
ReactorState.update(), so readers never observe a partial tick and a switch
to MANUAL part-way through discards the whole tick.

Integrates with:
- ReactorState for all reads and writes
- The three controllers, which are private to the engine owner
"""

import logging
import math
from dataclasses import replace
from typing import Any

from reactorsim.controllers.base_controller import BaseTemperatureController
from reactorsim.controllers.humidity_controller import HumidityController
from reactorsim.controllers.pressure_controller import PressureController
from reactorsim.physics import thermodynamics
from reactorsim.state.reactor_state import MIN_MASS, Environment, ReactorState

logger = logging.getLogger(__name__)

MAX_STEP_SECONDS = 0.1
MAX_SUBSTEPS = 1000

# Physical limits for the explicit integration
MAX_TEMPERATURE_STEP = 5.0  # K per sub-step
MIN_TEMPERATURE = 1.0  # K

# Fields the engine owns; operator targets are never written back
ENGINE_FIELDS = (
    "heat_capacity",
    "reaction_heat_rate",
    "heat_transfer_coefficient",
    "heating_rate",
    "cooling_rate",
    "energy_consumption",
    "temperature",
    "humidity",
    "mass",
    "pressure",
)


class ReactorPhysics:
    """
    Per-tick orchestrator for the reactor thermodynamics.

    The engine is stateless between ticks apart from the values it writes
    into ReactorState and the accumulators inside its controllers.

    Example:
        >>> physics = ReactorPhysics(state, pid, pressure, humidity)
        >>> physics.update(0.1)  # Called each simulation tick
    """

    def __init__(
        self,
        state: ReactorState,
        temperature_controller: BaseTemperatureController,
        pressure_controller: PressureController,
        humidity_controller: HumidityController,
        max_step: float = MAX_STEP_SECONDS,
    ):
        """Initialise reactor physics engine.

        Args:
            state: Shared reactor state
            temperature_controller: Active temperature strategy
            pressure_controller: Mass-flow controller
            humidity_controller: Water-vapour controller
            max_step: Longest sub-step integrated in one go (seconds)

        Raises:
            ValueError: If max_step is not positive
        """
        if max_step <= 0.0:
            raise ValueError(f"max_step must be positive, got {max_step}")

        self.state = state
        self.temperature_controller = temperature_controller
        self.pressure_controller = pressure_controller
        self.humidity_controller = humidity_controller
        self.max_step = max_step

        self._update_count = 0
        self._last_actuation: dict[str, float] = {
            "heating_power": 0.0,
            "cooling_power": 0.0,
            "water_flow_rate": 0.0,
            "mass_delta": 0.0,
        }

        logger.info(
            f"Reactor physics created with "
            f"{type(temperature_controller).__name__} temperature strategy"
        )

    # ----------------------------------------------------------------
    # Physics simulation
    # ----------------------------------------------------------------

    def update(self, dt: float) -> bool:
        """Advance the reactor by one tick.

        Args:
            dt: Time delta in seconds

        Returns:
            True if the tick was committed, False if skipped (dt <= 0,
            MANUAL mode, or the mode switched to MANUAL part-way through)
        """
        if dt <= 0:
            if dt < 0:
                logger.warning(f"Invalid time delta {dt}, skipping update")
            return False

        if not self.state.is_automatic():
            logger.debug("Manual control mode, physics update skipped")
            return False

        steps = math.ceil(dt / self.max_step)
        if steps > MAX_SUBSTEPS:
            logger.warning(
                f"Time delta {dt:.1f}s exceeds {MAX_SUBSTEPS} sub-steps, "
                f"integrating {MAX_SUBSTEPS * self.max_step:.1f}s"
            )
            steps = MAX_SUBSTEPS
            step = self.max_step
        else:
            step = dt / steps

        env = self.state.snapshot()
        actuation = dict(self._last_actuation)
        for _ in range(steps):
            env = self._step(env, step, actuation)

        committed = self.state.update(
            **{name: getattr(env, name) for name in ENGINE_FIELDS}
        )
        if not committed:
            logger.debug("Control mode switched to manual mid-tick, tick discarded")
            return False

        self._last_actuation = actuation
        self._update_count += 1
        logger.debug(
            f"T={env.temperature:.2f}K, P={env.pressure:.0f}Pa, "
            f"H={env.humidity:.1f}%, m={env.mass:.4f}kg, "
            f"heat={env.heating_rate:.0f}W, cool={env.cooling_rate:.0f}W"
        )
        return True

    def _step(
        self, env: Environment, dt: float, actuation: dict[str, float]
    ) -> Environment:
        env = self._update_material_properties(env)
        env = self._update_actuators(env, dt, actuation)
        env = self._update_temperature(env, dt)
        env = self._update_humidity(env, dt, actuation)
        return self._update_pressure(env, dt, actuation)

    def _update_material_properties(self, env: Environment) -> Environment:
        env = replace(env, heat_capacity=thermodynamics.mixture_heat_capacity())
        return replace(
            env,
            reaction_heat_rate=thermodynamics.reaction_heat_rate(env),
            heat_transfer_coefficient=thermodynamics.heat_transfer_coefficient(env),
        )

    def _update_actuators(
        self, env: Environment, dt: float, actuation: dict[str, float]
    ) -> Environment:
        heating, cooling = self.temperature_controller.compute_actuation(env, dt)

        # Strategies disagree on the cooler sign; state stores a magnitude
        cooling = abs(cooling)
        actuation["heating_power"] = heating
        actuation["cooling_power"] = cooling

        return replace(
            env,
            heating_rate=heating,
            cooling_rate=cooling,
            energy_consumption=heating + cooling,
        )

    def _update_temperature(self, env: Environment, dt: float) -> Environment:
        if env.mass <= 0.0 or env.heat_capacity <= 0.0:
            logger.warning(
                f"Non-positive mass ({env.mass}) or heat capacity "
                f"({env.heat_capacity}), temperature unchanged"
            )
            return env

        delta_t = thermodynamics.temperature_change(env, dt)
        return replace(env, temperature=_shift_temperature(env.temperature, delta_t))

    def _update_humidity(
        self, env: Environment, dt: float, actuation: dict[str, float]
    ) -> Environment:
        """Apply water-vapour flow, clamp to vessel capacity, correct for latent heat."""
        if env.temperature <= 0.0 or env.volume <= 0.0:
            logger.warning(
                f"Non-positive temperature ({env.temperature}) or volume "
                f"({env.volume}), humidity unchanged"
            )
            actuation["water_flow_rate"] = 0.0
            return env

        max_water = thermodynamics.max_water_vapor_mass(env.temperature, env.volume)
        current_water = env.humidity / 100.0 * max_water

        flow_rate = self.humidity_controller.compute(env, dt, max_water)
        actuation["water_flow_rate"] = flow_rate

        new_water = current_water + flow_rate * dt
        new_water = max(0.0, min(max_water, new_water))
        water_delta = new_water - current_water

        new_mass = max(env.mass + water_delta, MIN_MASS)
        temperature_shift = thermodynamics.latent_heat_correction(
            water_delta, new_mass, env.heat_capacity
        )

        return replace(
            env,
            mass=new_mass,
            humidity=new_water / max_water * 100.0,
            temperature=_shift_temperature(env.temperature, temperature_shift),
        )

    def _update_pressure(
        self, env: Environment, dt: float, actuation: dict[str, float]
    ) -> Environment:
        mass_delta = self.pressure_controller.compute(env, dt)
        actuation["mass_delta"] = mass_delta

        env = replace(env, mass=max(env.mass + mass_delta, MIN_MASS))
        return replace(env, pressure=thermodynamics.ideal_gas_pressure(env))

    # ----------------------------------------------------------------
    # Status
    # ----------------------------------------------------------------

    @property
    def update_count(self) -> int:
        return self._update_count

    def get_telemetry(self) -> dict[str, Any]:
        """Actuator commands from the last sub-step of the last committed tick."""
        return {
            "update_count": self._update_count,
            "temperature_strategy": type(self.temperature_controller).__name__,
            "max_step": self.max_step,
            **{key: round(value, 6) for key, value in self._last_actuation.items()},
        }


def _shift_temperature(temperature: float, delta_t: float) -> float:
    delta_t = max(-MAX_TEMPERATURE_STEP, min(MAX_TEMPERATURE_STEP, delta_t))
    return max(MIN_TEMPERATURE, temperature + delta_t)
