# tests/unit/controllers/test_physical_temperature_controller.py
"""Tests for PhysicalTemperatureController.

Test Coverage:
- Heat-balance requirement at the set-point
- Proportional term scaled from the actuator limit
- Single active actuator per call
- Clamping and guard conditions
"""

import pytest

from reactorsim.controllers.physical_temperature_controller import (
    PROPORTIONAL_DIVISOR,
    PhysicalTemperatureController,
)
from reactorsim.physics import thermodynamics


@pytest.fixture
def controller(temperature_range):
    return PhysicalTemperatureController(temperature_range)


# ================================================================
# HEATING TESTS
# ================================================================
class TestPhysicalHeating:
    """Test heater output below the set-point."""

    def test_heating_covers_losses_plus_proportional(self, controller, make_environment):
        """Test heating = (loss - reaction) at set-point + kp * error."""
        env = make_environment(temperature=293.0, needed_temperature=300.0)
        kp = env.max_energy_consumption / PROPORTIONAL_DIVISOR
        expected = (
            thermodynamics.total_heat_loss(env, temperature=300.0)
            - thermodynamics.reaction_heat_rate(env, temperature=300.0)
            + kp * 7.0
        )

        heating, cooling = controller.compute(env)

        assert heating == pytest.approx(expected)
        assert cooling == 0.0

    def test_heating_clamped_to_max(self, controller, make_environment):
        env = make_environment(temperature=273.0, needed_temperature=500.0)

        heating, cooling = controller.compute(env)

        assert heating == env.max_energy_consumption
        assert cooling == 0.0

    def test_at_ambient_setpoint_no_effort(self, controller, make_environment):
        """Test no effort when at a set-point equal to ambient.

        WHY: Losses vanish at ambient and reaction heat at 293 K is
        negligible, so nothing is required to hold temperature.
        """
        env = make_environment(temperature=293.0, needed_temperature=293.0)

        heating, cooling = controller.compute(env)

        assert heating == pytest.approx(0.0, abs=1e-3)
        assert cooling == 0.0


# ================================================================
# COOLING TESTS
# ================================================================
class TestPhysicalCooling:
    """Test cooler output above the set-point."""

    def test_cooling_is_positive_magnitude(self, controller, make_environment):
        env = make_environment(temperature=310.0, needed_temperature=300.0)
        kp = env.max_energy_consumption / PROPORTIONAL_DIVISOR

        heating, cooling = controller.compute(env)

        # Losses exceed reaction heat here, so only the proportional term cools
        assert heating == 0.0
        assert cooling == pytest.approx(kp * 10.0)

    def test_cooling_includes_excess_reaction_heat(self, controller, make_environment):
        """Test an exothermic excess at set-point adds to cooling."""
        env = make_environment(
            mass=1.0e9,
            temperature=401.0,
            needed_temperature=400.0,
            max_energy_consumption=100000.0,
        )
        kp = env.max_energy_consumption / PROPORTIONAL_DIVISOR
        excess = thermodynamics.reaction_heat_rate(
            env, temperature=400.0
        ) - thermodynamics.total_heat_loss(env, temperature=400.0)

        heating, cooling = controller.compute(env)

        assert excess > 0.0
        assert heating == 0.0
        assert cooling == pytest.approx(min(excess + kp, env.max_energy_consumption))

    def test_cooling_clamped_to_max(self, controller, make_environment):
        env = make_environment(temperature=500.0, needed_temperature=273.0)

        heating, cooling = controller.compute(env)

        assert heating == 0.0
        assert cooling == env.max_energy_consumption


# ================================================================
# STRATEGY ENTRY POINT TESTS
# ================================================================
class TestPhysicalActuation:
    """Test compute_actuation guards."""

    @pytest.mark.parametrize("temperature", [273.0, 299.0, 300.0, 301.0, 500.0])
    def test_only_one_actuator_active(self, controller, make_environment, temperature):
        env = make_environment(temperature=temperature, needed_temperature=300.0)

        heating, cooling = controller.compute_actuation(env, 0.1)

        assert heating >= 0.0 and cooling >= 0.0
        assert heating == 0.0 or cooling == 0.0

    @pytest.mark.parametrize("dt", [0.0, -1.0])
    def test_non_positive_dt(self, controller, make_environment, dt):
        assert controller.compute_actuation(make_environment(), dt) == (0.0, 0.0)

    def test_no_control(self, temperature_range, make_environment):
        controller = PhysicalTemperatureController(temperature_range, has_control=False)

        assert controller.compute_actuation(make_environment(), 1.0) == (0.0, 0.0)

    def test_setpoint_clamped(self, controller, make_environment):
        """Test the requirement is evaluated at the clamped set-point."""
        env = make_environment(temperature=500.0, needed_temperature=900.0)

        heating, cooling = controller.compute(env)

        assert heating == pytest.approx(
            thermodynamics.total_heat_loss(env, temperature=500.0)
            - thermodynamics.reaction_heat_rate(env, temperature=500.0)
        )
        assert cooling == 0.0
