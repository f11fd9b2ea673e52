# tests/unit/controllers/test_pressure_controller.py
"""Tests for PressureController.

Test Coverage:
- Ideal-gas mass-flow law
- Rate limit relative to current mass
- Set-point clamping
- Guard conditions and the control flag
"""

import pytest

from reactorsim.controllers.pressure_controller import (
    MAX_EXTRACTION_FRACTION,
    MAX_FRACTION_PER_SEC,
    PRESSURE_GAIN,
    PressureController,
)


@pytest.fixture
def controller(pressure_range):
    return PressureController(pressure_range)


# ================================================================
# FLOW LAW TESTS
# ================================================================
class TestPressureFlow:
    """Test mass change from the pressure error."""

    def test_positive_error_injects_mass(self, controller, make_environment):
        """Test a +50 kPa error injects a small, bounded mass.

        flow = 0.002 * 50000 * 1 / (287 * 300) kg/s, limit = 10 * 0.05 * 1 kg
        """
        env = make_environment(
            mass=10.0,
            temperature=300.0,
            pressure=101325.0,
            needed_pressure=151325.0,
        )

        delta = controller.compute(env, 1.0)

        assert delta == pytest.approx(PRESSURE_GAIN * 50000.0 / (287.0 * 300.0))
        assert 0.0 < delta <= 10.0 * MAX_FRACTION_PER_SEC

    def test_negative_error_extracts_mass(self, controller, make_environment):
        env = make_environment(mass=10.0, pressure=151325.0, needed_pressure=101325.0)

        delta = controller.compute(env, 1.0)

        assert delta < 0.0
        assert delta >= -10.0 * MAX_FRACTION_PER_SEC

    def test_zero_error_no_flow(self, controller, make_environment):
        env = make_environment(pressure=101325.0, needed_pressure=101325.0)

        assert controller.compute(env, 1.0) == 0.0

    def test_scales_with_dt(self, controller, make_environment):
        env = make_environment(mass=10.0, needed_pressure=111325.0)

        assert controller.compute(env, 0.5) == pytest.approx(
            controller.compute(env, 1.0) / 2.0
        )


# ================================================================
# LIMIT TESTS
# ================================================================
class TestPressureLimits:
    """Test rate limiting and set-point clamping."""

    def test_rate_limited_by_mass(self, controller, make_environment):
        """Test the change never exceeds mass * MAX_FRACTION_PER_SEC * dt."""
        env = make_environment(mass=0.001, needed_pressure=1000000.0)

        delta = controller.compute(env, 1.0)

        assert delta == pytest.approx(0.001 * MAX_FRACTION_PER_SEC)

    def test_rate_limited_extraction(self, controller, make_environment):
        env = make_environment(mass=0.001, pressure=1000000.0, needed_pressure=0.0)

        delta = controller.compute(env, 2.0)

        assert delta == pytest.approx(-0.001 * MAX_FRACTION_PER_SEC * 2.0)

    def test_long_dt_extracts_at_most_half_the_mass(self, controller, make_environment):
        """Test a long dt cannot remove more mass than the vessel holds.

        WHY: At dt=100 the per-second limit alone would allow removing
        five times the current mass.
        """
        env = make_environment(mass=0.001, pressure=1000000.0, needed_pressure=0.0)

        delta = controller.compute(env, 100.0)

        assert delta == pytest.approx(-0.001 * MAX_EXTRACTION_FRACTION)

    def test_long_dt_injection_not_capped_by_extraction_limit(
        self, controller, make_environment
    ):
        env = make_environment(mass=0.001, needed_pressure=1000000.0)

        delta = controller.compute(env, 100.0)

        assert delta == pytest.approx(0.001 * MAX_FRACTION_PER_SEC * 100.0)

    def test_setpoint_clamped_to_range(self, controller, make_environment):
        env = make_environment(mass=1000.0, pressure=900000.0, needed_pressure=5000000.0)
        clamped = make_environment(mass=1000.0, pressure=900000.0, needed_pressure=1000000.0)

        assert controller.compute(env, 1.0) == controller.compute(clamped, 1.0)


# ================================================================
# GUARD TESTS
# ================================================================
class TestPressureGuards:
    """Test non-physical inputs return zero."""

    @pytest.mark.parametrize(
        "overrides",
        [
            {"specific_gas_constant": 0.0},
            {"volume": 0.0},
            {"temperature": 0.0},
            {"temperature": -5.0},
        ],
    )
    def test_non_physical_inputs(self, controller, make_environment, overrides):
        env = make_environment(needed_pressure=200000.0, **overrides)

        assert controller.compute(env, 1.0) == 0.0

    @pytest.mark.parametrize("dt", [0.0, -0.5])
    def test_non_positive_dt(self, controller, make_environment, dt):
        env = make_environment(needed_pressure=200000.0)

        assert controller.compute(env, dt) == 0.0

    def test_no_control(self, pressure_range, make_environment):
        controller = PressureController(pressure_range, has_control=False)
        env = make_environment(needed_pressure=200000.0)

        assert controller.compute(env, 1.0) == 0.0
