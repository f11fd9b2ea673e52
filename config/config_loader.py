# config/config_loader.py
"""
Config loader for the reactor YAML configuration.

Reads config/reactor.yml into a frozen ReactorConfig. A documented default
file is written when none exists. Required fields must be present and
numeric; the optional physical constants fall back to defaults.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from reactorsim.controllers.base_controller import SensorRange
from reactorsim.state.reactor_state import (
    DEFAULT_AMBIENT_TEMPERATURE,
    DEFAULT_COOLING_RATE,
    DEFAULT_HEAT_TRANSFER_COEFFICIENT,
    DEFAULT_HEATING_RATE,
    DEFAULT_REACTION_HEAT_RATE,
    DEFAULT_SPECIFIC_GAS_CONSTANT,
    DEFAULT_WALL_THERMAL_CONDUCTIVITY,
    ControlMode,
    Environment,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "reactor.yml"
TEMPERATURE_STRATEGIES = ("pid", "physical")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULT_CONFIG: dict[str, Any] = {
    "reactor": {
        "surface_area": 1.0,
        "wall_thickness": 0.1,
        "wall_thermal_conductivity": DEFAULT_WALL_THERMAL_CONDUCTIVITY,
    },
    "mass": {
        "input": 1.0,
        "output": 1.0,
    },
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
        "energy": {
            "consumption": 1000.0,
            "max_consumption": 20000.0,
        },
    },
    "simulation": {
        "tick_ms": 100,
        "time_acceleration": 1.0,
        "control_mode": "automatic",
    },
    "controllers": {
        "temperature": {
            "strategy": "pid",
            "kp": 500.0,
            "ki": 5.0,
            "kd": 100.0,
            "parallel_mode": True,
            "parallel_threshold": 2.0,
        },
    },
    "logging": {
        "level": "INFO",
        "log_dir": None,
        "json": False,
    },
}

DEFAULT_CONFIG_HEADER = """\
# Reactor simulator configuration
#
# Optional [reaction] values and their defaults:
#   ambient_temperature: 293.0
#   specific_gas_constant: 287.0
#   heat_transfer_coefficient: 0.05
#   cooling_rate: 0.0
#   heating_rate: 15000.0
"""


class ConfigError(Exception):
    """Raised when the configuration file is missing fields or malformed."""


# ----------------------------------------------------------------
# Configuration sections
# ----------------------------------------------------------------


@dataclass(frozen=True)
class ReactorSection:
    surface_area: float
    wall_thickness: float
    wall_thermal_conductivity: float = DEFAULT_WALL_THERMAL_CONDUCTIVITY


@dataclass(frozen=True)
class MassSection:
    """Vessel charge.

    Attributes:
        input: Initial mass of the vessel contents (kg)
        output: Expected product mass (kg), informational
    """

    input: float
    output: float


@dataclass(frozen=True)
class EnergySection:
    consumption: float
    max_consumption: float


@dataclass(frozen=True)
class ReactionSection:
    needed_temp: float
    needed_humidity: float
    needed_pressure: float
    volume: float
    pressure: float
    humidity: float
    temperature: float
    heat_capacity: float
    thermal_conductivity: float
    min_temp: float
    max_temp: float
    max_pressure: float
    max_humidity: float
    energy: EnergySection
    ambient_temperature: float = DEFAULT_AMBIENT_TEMPERATURE
    specific_gas_constant: float = DEFAULT_SPECIFIC_GAS_CONSTANT
    heat_transfer_coefficient: float = DEFAULT_HEAT_TRANSFER_COEFFICIENT
    cooling_rate: float = DEFAULT_COOLING_RATE
    heating_rate: float = DEFAULT_HEATING_RATE


@dataclass(frozen=True)
class SimulationSection:
    tick_ms: int = 100
    time_acceleration: float = 1.0
    control_mode: ControlMode = ControlMode.AUTOMATIC


@dataclass(frozen=True)
class TemperatureControllerSection:
    strategy: str = "pid"
    kp: float = 500.0
    ki: float = 5.0
    kd: float = 100.0
    parallel_mode: bool = True
    parallel_threshold: float = 2.0


@dataclass(frozen=True)
class LoggingSection:
    level: str = "INFO"
    log_dir: Optional[str] = None
    json: bool = False


@dataclass(frozen=True)
class ReactorConfig:
    """Complete startup configuration, built once and passed explicitly."""

    reactor: ReactorSection
    mass: MassSection
    reaction: ReactionSection
    simulation: SimulationSection = field(default_factory=SimulationSection)
    temperature_controller: TemperatureControllerSection = field(
        default_factory=TemperatureControllerSection
    )
    logging: LoggingSection = field(default_factory=LoggingSection)

    def temperature_range(self) -> SensorRange:
        return SensorRange(self.reaction.min_temp, self.reaction.max_temp)

    def pressure_range(self) -> SensorRange:
        return SensorRange(0.0, self.reaction.max_pressure)

    def humidity_range(self) -> SensorRange:
        return SensorRange(0.0, self.reaction.max_humidity)


def build_environment(config: ReactorConfig) -> Environment:
    """Build the initial reactor Environment from configuration."""
    reaction = config.reaction
    reactor = config.reactor

    return Environment(
        mass=config.mass.input,
        volume=reaction.volume,
        temperature=reaction.temperature,
        needed_temperature=reaction.needed_temp,
        pressure=reaction.pressure,
        needed_pressure=reaction.needed_pressure,
        humidity=reaction.humidity,
        needed_humidity=reaction.needed_humidity,
        energy_consumption=reaction.energy.consumption,
        max_energy_consumption=reaction.energy.max_consumption,
        heat_capacity=reaction.heat_capacity,
        thermal_conductivity=reaction.thermal_conductivity,
        surface_area=reactor.surface_area,
        wall_thickness=reactor.wall_thickness,
        wall_thermal_conductivity=reactor.wall_thermal_conductivity,
        ambient_temperature=reaction.ambient_temperature,
        heat_transfer_coefficient=reaction.heat_transfer_coefficient,
        reaction_heat_rate=DEFAULT_REACTION_HEAT_RATE,
        cooling_rate=reaction.cooling_rate,
        heating_rate=reaction.heating_rate,
        specific_gas_constant=reaction.specific_gas_constant,
    )


# ----------------------------------------------------------------
# Loader
# ----------------------------------------------------------------


class ConfigLoader:
    """Loads the reactor configuration file, creating a default if missing."""

    def __init__(self, config_dir="config", filename=DEFAULT_CONFIG_FILENAME):
        self.config_dir = Path(config_dir)
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.config_path = self.config_dir / filename

    def load(self) -> ReactorConfig:
        """Load and validate the configuration file.

        Raises:
            ConfigError: On unparsable YAML, missing sections or fields,
                or values of the wrong type
        """
        if not self.config_path.exists():
            self._save_default()

        data = self.load_raw()
        config = ReactorConfig(
            reactor=_load_reactor(data),
            mass=_load_mass(data),
            reaction=_load_reaction(data),
            simulation=_load_simulation(data),
            temperature_controller=_load_temperature_controller(data),
            logging=_load_logging(data),
        )

        logger.info(f"Loaded reactor configuration from {self.config_path}")
        return config

    def load_raw(self) -> dict[str, Any]:
        """Parse the YAML file into a mapping without validating fields."""
        try:
            with open(self.config_path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"YAML parse error in {self.config_path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(
                f"{self.config_path} must contain a mapping at the top level"
            )
        return data

    def _save_default(self) -> None:
        """Write the default configuration file."""
        with open(self.config_path, "w") as f:
            f.write(DEFAULT_CONFIG_HEADER)
            yaml.dump(DEFAULT_CONFIG, f, default_flow_style=False, sort_keys=False)
        logger.info(f"Created default reactor config at {self.config_path}")


# ----------------------------------------------------------------
# Section parsers
# ----------------------------------------------------------------


def _load_reactor(data: dict) -> ReactorSection:
    tbl = _required_section(data, "reactor")
    return ReactorSection(
        surface_area=_required_number(tbl, "surface_area", "reactor"),
        wall_thickness=_required_number(tbl, "wall_thickness", "reactor"),
        wall_thermal_conductivity=_optional_number(
            tbl, "wall_thermal_conductivity", "reactor", DEFAULT_WALL_THERMAL_CONDUCTIVITY
        ),
    )


def _load_mass(data: dict) -> MassSection:
    tbl = _required_section(data, "mass")
    return MassSection(
        input=_required_number(tbl, "input", "mass"),
        output=_required_number(tbl, "output", "mass"),
    )


def _load_reaction(data: dict) -> ReactionSection:
    tbl = _required_section(data, "reaction")
    energy_tbl = _required_section(tbl, "energy", "reaction.energy")

    def required(key):
        return _required_number(tbl, key, "reaction")

    def optional(key, default):
        return _optional_number(tbl, key, "reaction", default)

    return ReactionSection(
        needed_temp=required("needed_temp"),
        needed_humidity=required("needed_humidity"),
        needed_pressure=required("needed_pressure"),
        volume=required("volume"),
        pressure=required("pressure"),
        humidity=required("humidity"),
        temperature=required("temperature"),
        heat_capacity=required("heat_capacity"),
        thermal_conductivity=required("thermal_conductivity"),
        min_temp=required("min_temp"),
        max_temp=required("max_temp"),
        max_pressure=required("max_pressure"),
        max_humidity=required("max_humidity"),
        energy=EnergySection(
            consumption=_required_number(energy_tbl, "consumption", "reaction.energy"),
            max_consumption=_required_number(
                energy_tbl, "max_consumption", "reaction.energy"
            ),
        ),
        ambient_temperature=optional("ambient_temperature", DEFAULT_AMBIENT_TEMPERATURE),
        specific_gas_constant=optional(
            "specific_gas_constant", DEFAULT_SPECIFIC_GAS_CONSTANT
        ),
        heat_transfer_coefficient=optional(
            "heat_transfer_coefficient", DEFAULT_HEAT_TRANSFER_COEFFICIENT
        ),
        cooling_rate=optional("cooling_rate", DEFAULT_COOLING_RATE),
        heating_rate=optional("heating_rate", DEFAULT_HEATING_RATE),
    )


def _load_simulation(data: dict) -> SimulationSection:
    tbl = _optional_section(data, "simulation")
    defaults = SimulationSection()

    tick_ms = tbl.get("tick_ms", defaults.tick_ms)
    if isinstance(tick_ms, bool) or not isinstance(tick_ms, int):
        raise ConfigError("[simulation] 'tick_ms' has invalid type")

    mode_name = _optional_str(tbl, "control_mode", "simulation", defaults.control_mode.value)
    try:
        control_mode = ControlMode(mode_name.lower())
    except ValueError as e:
        raise ConfigError(
            f"[simulation] 'control_mode' must be one of "
            f"{[m.value for m in ControlMode]}, got '{mode_name}'"
        ) from e

    return SimulationSection(
        tick_ms=tick_ms,
        time_acceleration=_optional_number(
            tbl, "time_acceleration", "simulation", defaults.time_acceleration
        ),
        control_mode=control_mode,
    )


def _load_temperature_controller(data: dict) -> TemperatureControllerSection:
    controllers = _optional_section(data, "controllers")
    tbl = _optional_section(controllers, "temperature", "controllers.temperature")
    defaults = TemperatureControllerSection()
    section = "controllers.temperature"

    strategy = _optional_str(tbl, "strategy", section, defaults.strategy).lower()
    if strategy not in TEMPERATURE_STRATEGIES:
        raise ConfigError(
            f"[{section}] 'strategy' must be one of {list(TEMPERATURE_STRATEGIES)}, "
            f"got '{strategy}'"
        )

    return TemperatureControllerSection(
        strategy=strategy,
        kp=_optional_number(tbl, "kp", section, defaults.kp),
        ki=_optional_number(tbl, "ki", section, defaults.ki),
        kd=_optional_number(tbl, "kd", section, defaults.kd),
        parallel_mode=_optional_bool(tbl, "parallel_mode", section, defaults.parallel_mode),
        parallel_threshold=_optional_number(
            tbl, "parallel_threshold", section, defaults.parallel_threshold
        ),
    )


def _load_logging(data: dict) -> LoggingSection:
    tbl = _optional_section(data, "logging")
    defaults = LoggingSection()

    level = _optional_str(tbl, "level", "logging", defaults.level).upper()
    if level not in LOG_LEVELS:
        raise ConfigError(
            f"[logging] 'level' must be one of {list(LOG_LEVELS)}, got '{level}'"
        )

    log_dir = tbl.get("log_dir", defaults.log_dir)
    if log_dir is not None and not isinstance(log_dir, str):
        raise ConfigError("[logging] 'log_dir' has invalid type")

    return LoggingSection(
        level=level,
        log_dir=log_dir,
        json=_optional_bool(tbl, "json", "logging", defaults.json),
    )


# ----------------------------------------------------------------
# Field helpers
# ----------------------------------------------------------------


def _required_section(data: dict, key: str, section: Optional[str] = None) -> dict:
    section = section or key
    tbl = data.get(key)
    if tbl is None:
        raise ConfigError(f"[{section}] section missing")
    if not isinstance(tbl, dict):
        raise ConfigError(f"[{section}] must be a mapping")
    return tbl


def _optional_section(data: dict, key: str, section: Optional[str] = None) -> dict:
    if data.get(key) is None:
        return {}
    return _required_section(data, key, section)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _required_number(tbl: dict, key: str, section: str) -> float:
    if key not in tbl:
        raise ConfigError(f"[{section}] missing required field '{key}'")
    value = tbl[key]
    if not _is_number(value):
        raise ConfigError(f"[{section}] '{key}' has invalid type")
    return float(value)


def _optional_number(tbl: dict, key: str, section: str, default: float) -> float:
    if tbl.get(key) is None:
        return default
    return _required_number(tbl, key, section)


def _optional_bool(tbl: dict, key: str, section: str, default: bool) -> bool:
    value = tbl.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"[{section}] '{key}' has invalid type")
    return value


def _optional_str(tbl: dict, key: str, section: str, default: str) -> str:
    value = tbl.get(key, default)
    if not isinstance(value, str):
        raise ConfigError(f"[{section}] '{key}' has invalid type")
    return value
