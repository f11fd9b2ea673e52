# tests/conftest.py
"""Shared pytest fixtures for reactor simulator tests.

This file provides common fixtures used across all test modules,
following the bottom-up testing strategy where foundation components
are tested with real dependencies wherever possible.
"""

import asyncio
import copy
import tempfile
from pathlib import Path
from typing import Generator

import pytest
import yaml

from reactorsim.controllers.base_controller import SensorRange
from reactorsim.state.reactor_state import Environment, ReactorState


# ----------------------------------------------------------------
# Configuration fixtures
# ----------------------------------------------------------------
@pytest.fixture
def temp_config_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test configuration files.

    Yields:
        Path to temporary configuration directory
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def default_reactor_config() -> dict:
    """Provide a complete, valid reactor configuration for testing.

    Returns:
        Dictionary matching the reactor.yml layout (fresh copy per test)
    """
    return copy.deepcopy(
        {
            "reactor": {
                "surface_area": 1.0,
                "wall_thickness": 0.1,
                "wall_thermal_conductivity": 0.005,
            },
            "mass": {"input": 1.0, "output": 1.0},
            "reaction": {
                "needed_temp": 300.0,
                "needed_humidity": 30.0,
                "needed_pressure": 101325.0,
                "volume": 1.0,
                "heat_capacity": 4180.0,
                "thermal_conductivity": 0.6,
                "min_temp": 273.0,
                "max_temp": 500.0,
                "max_pressure": 1000000.0,
                "max_humidity": 100.0,
                "pressure": 101325.0,
                "humidity": 50.0,
                "temperature": 293.0,
                "energy": {"consumption": 1000.0, "max_consumption": 20000.0},
            },
            "simulation": {
                "tick_ms": 10,
                "time_acceleration": 1.0,
                "control_mode": "automatic",
            },
        }
    )


@pytest.fixture
def write_config_file(temp_config_dir):
    """Factory fixture for writing YAML configuration files.

    Args:
        temp_config_dir: Temporary directory for config files

    Returns:
        Function that writes config dict to YAML file
    """

    def _write_config(config: dict, filename: str = "reactor.yml") -> Path:
        config_file = temp_config_dir / filename
        with open(config_file, "w") as f:
            yaml.dump(config, f)
        return config_file

    return _write_config


# ----------------------------------------------------------------
# Reactor state fixtures
# ----------------------------------------------------------------
@pytest.fixture
def make_environment():
    """Factory for Environment instances with overridable fields.

    Returns:
        Function taking keyword overrides and returning an Environment
    """

    def _create(**overrides) -> Environment:
        values = {
            "mass": 1.0,
            "volume": 1.0,
            "temperature": 293.0,
            "needed_temperature": 300.0,
            "pressure": 101325.0,
            "needed_pressure": 101325.0,
            "humidity": 50.0,
            "needed_humidity": 30.0,
            "energy_consumption": 1000.0,
            "max_energy_consumption": 20000.0,
            "heat_capacity": 4180.0,
            "thermal_conductivity": 0.6,
            "surface_area": 1.0,
            "wall_thickness": 0.1,
        }
        values.update(overrides)
        return Environment(**values)

    return _create


@pytest.fixture
def reactor_state(make_environment) -> ReactorState:
    """Reactor state built from the default test environment."""
    return ReactorState(make_environment())


@pytest.fixture
def temperature_range() -> SensorRange:
    return SensorRange(273.0, 500.0)


@pytest.fixture
def pressure_range() -> SensorRange:
    return SensorRange(0.0, 1000000.0)


@pytest.fixture
def humidity_range() -> SensorRange:
    return SensorRange(0.0, 100.0)


# ----------------------------------------------------------------
# Async utilities
# ----------------------------------------------------------------
@pytest.fixture
def wait_for_condition():
    """Provide utility for waiting on async conditions.

    Returns:
        Async function that polls a condition until true or timeout
    """

    async def _wait(
        condition_fn,
        timeout: float = 2.0,
        poll_interval: float = 0.01,
        error_msg: str = "Condition not met within timeout",
    ):
        """Wait for a condition to become true.

        Raises:
            AssertionError: If condition not met within timeout
        """
        loop = asyncio.get_running_loop()
        start = loop.time()
        while loop.time() - start < timeout:
            if condition_fn():
                return
            await asyncio.sleep(poll_interval)

        raise AssertionError(error_msg)

    return _wait
