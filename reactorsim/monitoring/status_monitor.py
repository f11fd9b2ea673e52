# reactorsim/monitoring/status_monitor.py
"""
Status monitor for the reactor.

Reads the shared state at its own cadence, derives the StatusMode from the
controller ranges and writes it back under the state lock. Every status
transition is recorded as an alarm event, and the most recent alarms are
published with the telemetry.

Status rules:
- CRITICAL: temperature, pressure or humidity outside its range
- WARNING: any of them within WARNING_MARGIN of a range bound, or the
  temperature further than SETPOINT_DEVIATION of the range span from its
  set-point
- NORMAL: otherwise
"""

from typing import Any

from reactorsim.controllers.base_controller import SensorRange
from reactorsim.diagnostics.logging_system import (
    AlarmPriority,
    AlarmState,
    EventCategory,
    ReactorLogger,
    get_logger,
)
from reactorsim.state.reactor_state import Environment, ReactorState, StatusMode

WARNING_MARGIN = 0.05  # fraction of range span
SETPOINT_DEVIATION = 0.10  # fraction of temperature range span
RECENT_ALARM_LIMIT = 10

_ALARM_PRIORITY = {
    StatusMode.CRITICAL: AlarmPriority.CRITICAL,
    StatusMode.WARNING: AlarmPriority.MEDIUM,
    StatusMode.NORMAL: AlarmPriority.LOW,
}


class StatusMonitor:
    """
    Derives and publishes StatusMode for the reactor.

    Example:
        >>> monitor = StatusMonitor(state, t_range, p_range, h_range)
        >>> status = monitor.check()
        >>> telemetry = monitor.get_telemetry()
    """

    def __init__(
        self,
        state: ReactorState,
        temperature_range: SensorRange,
        pressure_range: SensorRange,
        humidity_range: SensorRange,
        event_logger: ReactorLogger | None = None,
    ):
        self.state = state
        self.ranges = {
            "temperature": temperature_range,
            "pressure": pressure_range,
            "humidity": humidity_range,
        }
        self.event_logger = event_logger or get_logger(__name__, device="reactor")
        self._check_count = 0

    def evaluate(self, env: Environment) -> StatusMode:
        """Derive the status for an environment snapshot."""
        status, _ = self.assess(env)
        return status

    def assess(self, env: Environment) -> tuple[StatusMode, list[str]]:
        """Derive the status and the conditions that caused it.

        Returns:
            Tuple of (status, reasons); reasons name each violated condition
        """
        critical = []
        warnings = []

        for name, sensor_range in self.ranges.items():
            value = getattr(env, name)
            if not sensor_range.contains(value):
                critical.append(
                    f"{name} {value:.2f} outside "
                    f"[{sensor_range.min_value}, {sensor_range.max_value}]"
                )
                continue

            margin = sensor_range.span * WARNING_MARGIN
            if (
                value - sensor_range.min_value < margin
                or sensor_range.max_value - value < margin
            ):
                warnings.append(f"{name} {value:.2f} near range bound")

        if critical:
            return StatusMode.CRITICAL, critical

        t_range = self.ranges["temperature"]
        setpoint = t_range.clamp(env.needed_temperature)
        if abs(env.temperature - setpoint) > t_range.span * SETPOINT_DEVIATION:
            warnings.append(
                f"temperature {env.temperature:.2f} deviates from "
                f"set-point {setpoint:.2f}"
            )

        if warnings:
            return StatusMode.WARNING, warnings
        return StatusMode.NORMAL, []

    def check(self) -> StatusMode:
        """Evaluate the live state and publish the result."""
        env = self.state.snapshot()
        status, reasons = self.assess(env)
        previous = self.state.status_mode

        self.state.set_status_mode(status)
        self._check_count += 1

        if status is not previous:
            alarm_state = (
                AlarmState.CLEARED if status is StatusMode.NORMAL else AlarmState.ACTIVE
            )
            detail = "; ".join(reasons) if reasons else "all values within range"
            self.event_logger.log_alarm(
                f"Reactor status {previous.value} -> {status.value}: {detail}",
                priority=_ALARM_PRIORITY[status],
                state=alarm_state,
                component="status_monitor",
                data={"previous": previous.value, "status": status.value},
            )

        return status

    def get_telemetry(self) -> dict[str, Any]:
        """Rounded view of the state for display, with the latest alarms."""
        summary = self.state.get_summary()
        alarms = self.event_logger.get_event_trail(
            limit=RECENT_ALARM_LIMIT, category=EventCategory.ALARM
        )
        return {
            "temperature_k": round(summary["temperature"], 2),
            "needed_temperature_k": round(summary["needed_temperature"], 2),
            "pressure_pa": round(summary["pressure"], 1),
            "needed_pressure_pa": round(summary["needed_pressure"], 1),
            "humidity_percent": round(summary["humidity"], 2),
            "needed_humidity_percent": round(summary["needed_humidity"], 2),
            "mass_kg": round(summary["mass"], 6),
            "heating_w": round(summary["heating_rate"], 1),
            "cooling_w": round(summary["cooling_rate"], 1),
            "reaction_heat_w": round(summary["reaction_heat_rate"], 3),
            "energy_consumption_w": round(summary["energy_consumption"], 1),
            "control_mode": summary["control_mode"],
            "status_mode": summary["status_mode"],
            "running": summary["running"],
            "checks": self._check_count,
            "recent_alarms": [entry.to_dict() for entry in alarms],
        }
