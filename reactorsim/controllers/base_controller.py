# reactorsim/controllers/base_controller.py
"""
Base classes for reactor controllers.

Provides the common infrastructure shared by the temperature, pressure and
humidity controllers:
- SensorRange: immutable [min, max] clamp for the controlled quantity
- BaseController: owns a range and the "has control" flag
- BaseTemperatureController: interface shared by the interchangeable
  temperature strategies (PID and physically-derived)

Controllers never touch ReactorState directly. They read a detached
Environment snapshot and return actuation values; the physics engine
writes the results back under the state lock.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from reactorsim.state.reactor_state import Environment

__all__ = ["SensorRange", "BaseController", "BaseTemperatureController"]


@dataclass(frozen=True)
class SensorRange:
    """Immutable readable/controllable range of one quantity.

    Attributes:
        min_value: Lower bound (inclusive)
        max_value: Upper bound (inclusive)
    """

    min_value: float
    max_value: float

    def __post_init__(self):
        if self.min_value > self.max_value:
            raise ValueError(
                f"SensorRange min_value {self.min_value} exceeds "
                f"max_value {self.max_value}"
            )

    def clamp(self, value: float) -> float:
        return max(self.min_value, min(self.max_value, value))

    def contains(self, value: float) -> bool:
        return self.min_value <= value <= self.max_value

    @property
    def span(self) -> float:
        return self.max_value - self.min_value


class BaseController(ABC):
    """
    Abstract base class for reactor controllers.

    Subclasses implement compute() with their own signature; the shared
    capability is the range and the enable flag.
    """

    def __init__(self, sensor_range: SensorRange, has_control: bool = True):
        """Initialise controller.

        Args:
            sensor_range: Range of the controlled quantity
            has_control: Whether the controller actuates at all
        """
        self._range = sensor_range
        self._has_control = has_control

    def get_range(self) -> SensorRange:
        return self._range

    def has_control(self) -> bool:
        return self._has_control

    def set_control(self, enabled: bool) -> None:
        """Enable or disable actuation.

        Args:
            enabled: False makes compute() return zero actuation
        """
        self._has_control = bool(enabled)


class BaseTemperatureController(BaseController):
    """
    Interface for temperature-control strategies.

    Both strategies return (heating_power, cooling_power) in watts so the
    engine can swap them without knowing which is active.
    """

    @abstractmethod
    def compute_actuation(self, env: Environment, dt: float) -> tuple[float, float]:
        """Compute heater and cooler commands for one tick.

        Args:
            env: Environment snapshot
            dt: Elapsed time in seconds

        Returns:
            Tuple of (heating_power, cooling_power) in watts
        """
        pass

    def reset(self) -> None:
        """Clear any accumulated controller state."""
        pass
