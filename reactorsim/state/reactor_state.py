# reactorsim/state/reactor_state.py
"""
Centralised physical state for the reactor simulation.

Holds the reactor Environment (physical quantities and operator targets),
the control mode and the derived status mode. This is the single source of
truth shared between the simulation thread and the monitor/display thread.

Every read and write of a field goes through one threading.Lock:
- attribute reads (state.temperature) take the lock per field; attribute
  assignment raises AttributeError
- snapshot() copies the whole Environment under the lock, so a reader sees
  temperature and pressure as a consistent pair
- update() is the engine write path and is a no-op in MANUAL mode
- set_targets() / inject() are operator writes and are always permitted
"""

import logging
import math
import threading
from dataclasses import asdict, dataclass, fields, replace
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

# Mass floor applied after every mass update (kg)
MIN_MASS = 1e-6

# Defaults for the optional physical constants
DEFAULT_WALL_THERMAL_CONDUCTIVITY = 0.005  # W/(m·K)
DEFAULT_AMBIENT_TEMPERATURE = 293.0  # K
DEFAULT_HEAT_TRANSFER_COEFFICIENT = 0.05  # W/(m²·K)
DEFAULT_REACTION_HEAT_RATE = 0.0  # W
DEFAULT_COOLING_RATE = 0.0  # W
DEFAULT_HEATING_RATE = 15000.0  # W
DEFAULT_SPECIFIC_GAS_CONSTANT = 287.0  # J/(kg·K), dry air


class ControlMode(Enum):
    """Who is allowed to drive the physical state."""

    AUTOMATIC = "automatic"  # Engine mutates the environment every tick
    MANUAL = "manual"  # Engine writes frozen, operator writes only


class StatusMode(Enum):
    """Observable health indicator, derived by the monitor."""

    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass
class Environment:
    """Physical quantities of the reactor vessel and the operator targets.

    Attributes:
        mass: Total mass of the vessel contents (kg)
        volume: Vessel volume (m³)
        temperature: Current temperature (K)
        needed_temperature: Temperature set-point (K)
        pressure: Current pressure (Pa)
        needed_pressure: Pressure set-point (Pa)
        humidity: Current relative humidity (%, 0-100)
        needed_humidity: Humidity set-point (%)
        energy_consumption: Current actuator power draw (W)
        max_energy_consumption: Actuator power limit (W)
        heat_capacity: Specific heat of the mixture (J/(kg·K))
        thermal_conductivity: Thermal conductivity of the mixture (W/(m·K))
        surface_area: Outer surface area of the vessel (m²)
        wall_thickness: Vessel wall thickness (m)
        wall_thermal_conductivity: Wall thermal conductivity (W/(m·K))
        ambient_temperature: Surrounding temperature (K)
        heat_transfer_coefficient: Convective coefficient (W/(m²·K))
        reaction_heat_rate: Heat released by the reaction (W)
        cooling_rate: Heat removed by the cooler, as a magnitude (W)
        heating_rate: Heat supplied by the heater (W)
        specific_gas_constant: Specific gas constant of the gas phase (J/(kg·K))
    """

    mass: float
    volume: float
    temperature: float
    needed_temperature: float
    pressure: float
    needed_pressure: float
    humidity: float
    needed_humidity: float
    energy_consumption: float
    max_energy_consumption: float
    heat_capacity: float
    thermal_conductivity: float
    surface_area: float
    wall_thickness: float
    wall_thermal_conductivity: float = DEFAULT_WALL_THERMAL_CONDUCTIVITY
    ambient_temperature: float = DEFAULT_AMBIENT_TEMPERATURE
    heat_transfer_coefficient: float = DEFAULT_HEAT_TRANSFER_COEFFICIENT
    reaction_heat_rate: float = DEFAULT_REACTION_HEAT_RATE
    cooling_rate: float = DEFAULT_COOLING_RATE
    heating_rate: float = DEFAULT_HEATING_RATE
    specific_gas_constant: float = DEFAULT_SPECIFIC_GAS_CONSTANT


ENVIRONMENT_FIELDS = frozenset(f.name for f in fields(Environment))


class _EnvironmentField:
    """Read-only accessor for one Environment field, taken under the state lock."""

    def __set_name__(self, owner, name):
        self.name = name

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        with instance._lock:
            return getattr(instance._environment, self.name)

    def __set__(self, instance, value):
        raise AttributeError(
            f"{self.name} is read-only, use set_targets() or inject() to change it"
        )


class ReactorState:
    """
    Lock-guarded reactor state shared between threads.

    The Environment is private; callers read fields through attribute
    accessors or snapshot(), and write through update() (engine),
    set_targets() or inject() (operator).

    Example:
        >>> state = ReactorState(environment)
        >>> state.set_running(True)
        >>> state.update(temperature=351.2, heating_rate=12000.0)
        >>> env = state.snapshot()  # consistent copy for rendering
    """

    mass = _EnvironmentField()
    volume = _EnvironmentField()
    temperature = _EnvironmentField()
    needed_temperature = _EnvironmentField()
    pressure = _EnvironmentField()
    needed_pressure = _EnvironmentField()
    humidity = _EnvironmentField()
    needed_humidity = _EnvironmentField()
    energy_consumption = _EnvironmentField()
    max_energy_consumption = _EnvironmentField()
    heat_capacity = _EnvironmentField()
    thermal_conductivity = _EnvironmentField()
    surface_area = _EnvironmentField()
    wall_thickness = _EnvironmentField()
    wall_thermal_conductivity = _EnvironmentField()
    ambient_temperature = _EnvironmentField()
    heat_transfer_coefficient = _EnvironmentField()
    reaction_heat_rate = _EnvironmentField()
    cooling_rate = _EnvironmentField()
    heating_rate = _EnvironmentField()
    specific_gas_constant = _EnvironmentField()

    def __init__(
        self,
        environment: Environment,
        control_mode: ControlMode = ControlMode.AUTOMATIC,
    ):
        """Initialise reactor state.

        Args:
            environment: Initial physical state (copied, not shared)
            control_mode: Initial control mode
        """
        self._lock = threading.Lock()
        self._environment = replace(environment)
        self._control_mode = control_mode
        self._status_mode = StatusMode.NORMAL
        self._running = False

        if self._environment.mass < MIN_MASS:
            logger.warning(
                f"Initial mass {self._environment.mass} kg below floor, "
                f"clamped to {MIN_MASS} kg"
            )
            self._environment.mass = MIN_MASS

    # ----------------------------------------------------------------
    # Reads
    # ----------------------------------------------------------------

    def snapshot(self) -> Environment:
        """Copy the whole environment under the lock.

        Returns:
            Detached Environment; mutating it does not touch shared state
        """
        with self._lock:
            return replace(self._environment)

    def get(self, name: str) -> float:
        """Read a single environment field by name.

        Raises:
            ValueError: If name is not an Environment field
        """
        _validate_field_names([name])
        with self._lock:
            return getattr(self._environment, name)

    def get_summary(self) -> dict[str, Any]:
        """Consistent view of environment, modes and running flag."""
        with self._lock:
            summary = asdict(self._environment)
            summary["control_mode"] = self._control_mode.value
            summary["status_mode"] = self._status_mode.value
            summary["running"] = self._running
        return summary

    # ----------------------------------------------------------------
    # Engine writes
    # ----------------------------------------------------------------

    def update(self, **changes: float) -> bool:
        """Apply engine-computed values.

        No-op while the control mode is MANUAL. Mass is floored at MIN_MASS.

        Args:
            **changes: Environment field names and new values

        Returns:
            True if applied, False if frozen by MANUAL mode

        Raises:
            ValueError: On unknown field names or non-finite values
        """
        _validate_field_names(changes)
        _validate_finite(changes)

        with self._lock:
            if self._control_mode is ControlMode.MANUAL:
                return False
            self._apply(changes)
            return True

    # ----------------------------------------------------------------
    # Operator writes
    # ----------------------------------------------------------------

    def set_targets(
        self,
        temperature: float | None = None,
        pressure: float | None = None,
        humidity: float | None = None,
    ) -> None:
        """Set operator set-points. Permitted in any control mode."""
        changes = {}
        if temperature is not None:
            changes["needed_temperature"] = temperature
        if pressure is not None:
            changes["needed_pressure"] = pressure
        if humidity is not None:
            changes["needed_humidity"] = humidity

        _validate_finite(changes)

        with self._lock:
            self._apply(changes)

        if changes:
            logger.info(f"Operator targets updated: {changes}")

    def inject(self, **changes: float) -> None:
        """Overwrite physical values directly (operator injection).

        Raises:
            ValueError: On unknown field names or non-finite values
        """
        _validate_field_names(changes)
        _validate_finite(changes)

        with self._lock:
            self._apply(changes)

        logger.info(f"Operator injected values: {changes}")

    # ----------------------------------------------------------------
    # Modes and lifecycle flag
    # ----------------------------------------------------------------

    @property
    def control_mode(self) -> ControlMode:
        with self._lock:
            return self._control_mode

    def set_control_mode(self, mode: ControlMode) -> None:
        with self._lock:
            old_mode = self._control_mode
            self._control_mode = mode

        if old_mode is not mode:
            logger.info(f"Control mode changed: {old_mode.value} -> {mode.value}")

    def is_automatic(self) -> bool:
        with self._lock:
            return self._control_mode is ControlMode.AUTOMATIC

    @property
    def status_mode(self) -> StatusMode:
        with self._lock:
            return self._status_mode

    def set_status_mode(self, status: StatusMode) -> None:
        with self._lock:
            self._status_mode = status

    def is_running(self) -> bool:
        with self._lock:
            return self._running

    def set_running(self, running: bool) -> None:
        with self._lock:
            self._running = running

    def _apply(self, changes: dict[str, float]) -> None:
        """Write values into the environment.

        Note: Should only be called while holding self._lock
        """
        for name, value in changes.items():
            setattr(self._environment, name, float(value))
        if self._environment.mass < MIN_MASS:
            self._environment.mass = MIN_MASS


def _validate_field_names(names) -> None:
    unknown = sorted(set(names) - ENVIRONMENT_FIELDS)
    if unknown:
        raise ValueError(f"Unknown environment field(s): {', '.join(unknown)}")


def _validate_finite(changes: dict[str, float]) -> None:
    for name, value in changes.items():
        if not math.isfinite(value):
            raise ValueError(f"Non-finite value for '{name}': {value}")
