# reactorsim/controllers/__init__.py
"""
Reactor controllers.

- SensorRange: immutable [min, max] clamp
- PIDTemperatureController: PID with anti-windup and parallel mode
- PhysicalTemperatureController: heat-balance derived actuator
- PressureController: mass-flow control of vessel pressure
- HumidityController: water-vapour injection control
"""

from reactorsim.controllers.base_controller import (
    BaseController,
    BaseTemperatureController,
    SensorRange,
)
from reactorsim.controllers.humidity_controller import HumidityController
from reactorsim.controllers.physical_temperature_controller import (
    PhysicalTemperatureController,
)
from reactorsim.controllers.pressure_controller import PressureController
from reactorsim.controllers.temperature_controller import PIDTemperatureController

__all__ = [
    "SensorRange",
    "BaseController",
    "BaseTemperatureController",
    # Temperature
    "PIDTemperatureController",
    "PhysicalTemperatureController",
    # Pressure / humidity
    "PressureController",
    "HumidityController",
]
