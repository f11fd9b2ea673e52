# reactorsim/diagnostics/logging_system.py
"""
Event logging for the reactor simulator.

Process events, alarms and operator actions are recorded as LogEntry
objects stamped with simulated time. Each entry travels through the
standard logging machinery attached to its LogRecord, so:
- the console handler prints it as one human-readable line
- the optional rotating file handler writes it as one JSON object
- alarm, audit and safety entries are also kept in a bounded in-memory
  trail that the status monitor publishes with its telemetry

Plain records from the module loggers (logging.getLogger(__name__)) pass
through the same formatters as SYSTEM entries.
"""

import json
import logging
import logging.handlers
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from reactorsim.time.simulation_clock import SimulationClock

__all__ = [
    "EventSeverity",
    "EventCategory",
    "AlarmPriority",
    "AlarmState",
    "LogEntry",
    "SimTimeFormatter",
    "JSONFormatter",
    "ReactorLogger",
    "configure_logging",
    "get_logger",
]

# Rotating JSON log file
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

DEFAULT_TRAIL_SIZE = 1000


class EventSeverity(Enum):
    """How urgent an event is. A lower value is more severe."""

    CRITICAL = 1  # Reactor outside its safe range
    ALERT = 2  # Operator must act now
    ERROR = 3
    WARNING = 4
    NOTICE = 5  # Significant but expected, e.g. operator actions
    INFO = 6
    DEBUG = 7


class EventCategory(Enum):
    SAFETY = "safety"  # Loss of control, loop failures
    PROCESS = "process"  # Control and physics events
    ALARM = "alarm"  # Status transitions
    AUDIT = "audit"  # Operator actions
    SYSTEM = "system"  # Lifecycle, plain log records


class AlarmPriority(Enum):
    CRITICAL = 1
    HIGH = 2
    MEDIUM = 3
    LOW = 4


class AlarmState(Enum):
    ACTIVE = "ACTIVE"  # Condition present
    CLEARED = "CLEARED"  # Condition gone


_LEVEL_FOR_SEVERITY = {
    EventSeverity.CRITICAL: logging.CRITICAL,
    EventSeverity.ALERT: logging.CRITICAL,
    EventSeverity.ERROR: logging.ERROR,
    EventSeverity.WARNING: logging.WARNING,
    EventSeverity.NOTICE: logging.INFO,
    EventSeverity.INFO: logging.INFO,
    EventSeverity.DEBUG: logging.DEBUG,
}

_SEVERITY_FOR_LEVEL = {
    logging.CRITICAL: EventSeverity.CRITICAL,
    logging.ERROR: EventSeverity.ERROR,
    logging.WARNING: EventSeverity.WARNING,
    logging.INFO: EventSeverity.INFO,
    logging.DEBUG: EventSeverity.DEBUG,
}

_SEVERITY_FOR_PRIORITY = {
    AlarmPriority.CRITICAL: EventSeverity.CRITICAL,
    AlarmPriority.HIGH: EventSeverity.ALERT,
    AlarmPriority.MEDIUM: EventSeverity.WARNING,
    AlarmPriority.LOW: EventSeverity.NOTICE,
}

# Categories kept in the in-memory trail
TRAIL_CATEGORIES = frozenset(
    {EventCategory.ALARM, EventCategory.AUDIT, EventCategory.SAFETY}
)


@dataclass
class LogEntry:
    """One reactor event.

    Optional context (device, component, user, data, alarm fields) is only
    serialised when set.
    """

    simulation_time: float
    wall_time: float
    severity: EventSeverity
    category: EventCategory
    message: str

    device: str = ""
    component: str = ""
    user: str = ""
    data: dict[str, Any] = field(default_factory=dict)

    alarm_priority: AlarmPriority | None = None
    alarm_state: AlarmState | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "simulation_time": self.simulation_time,
            "wall_time": self.wall_time,
            "severity": self.severity.name,
            "category": self.category.value,
            "message": self.message,
        }
        for name in ("device", "component", "user", "data"):
            value = getattr(self, name)
            if value:
                result[name] = value
        if self.alarm_priority is not None:
            result["alarm_priority"] = self.alarm_priority.name
        if self.alarm_state is not None:
            result["alarm_state"] = self.alarm_state.value
        return result

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    def to_human_readable(self) -> str:
        source = ":".join(part for part in (self.device, self.component) if part)
        prefix = f"[SIM:{self.simulation_time:8.2f}s] [{self.severity.name:8s}]"
        if source:
            return f"{prefix} {source}: {self.message}"
        return f"{prefix} {self.message}"


def _sim_now(clock: SimulationClock | None) -> float:
    return clock.now() if clock is not None else 0.0


class SimTimeFormatter(logging.Formatter):
    """Console formatter prefixing each line with simulated time."""

    def __init__(self, clock: SimulationClock | None = None):
        super().__init__(
            fmt="[SIM:%(sim_time)8.2fs] [%(levelname)8s] %(name)s: %(message)s"
        )
        self.clock = clock

    def format(self, record: logging.LogRecord) -> str:
        entry = getattr(record, "event", None)
        if entry is not None:
            return entry.to_human_readable()

        record.sim_time = _sim_now(self.clock)
        return super().format(record)


class JSONFormatter(logging.Formatter):
    """File formatter writing one JSON object per record."""

    def __init__(self, device: str = "", clock: SimulationClock | None = None):
        super().__init__()
        self.device = device
        self.clock = clock

    def format(self, record: logging.LogRecord) -> str:
        entry = getattr(record, "event", None)
        if entry is not None:
            return entry.to_json()

        entry = LogEntry(
            simulation_time=_sim_now(self.clock),
            wall_time=record.created,
            severity=_SEVERITY_FOR_LEVEL.get(record.levelno, EventSeverity.INFO),
            category=EventCategory.SYSTEM,
            message=record.getMessage(),
            device=self.device,
            component=record.name,
        )
        if record.exc_info:
            entry.data["exception"] = self.formatException(record.exc_info)
        return entry.to_json()


class ReactorLogger:
    """
    Structured event logger for one reactor device.

    Owns a non-propagating stdlib logger with a console handler and, when a
    log directory is given, a rotating JSON file handler.

    Example:
        >>> events = ReactorLogger("reactorsim.events", device="reactor")
        >>> events.log_alarm("Pressure high", AlarmPriority.HIGH)
        >>> events.get_event_trail(category=EventCategory.ALARM)
    """

    def __init__(
        self,
        name: str,
        device: str = "",
        log_dir: Path | None = None,
        enable_json: bool = True,
        enable_console: bool = True,
        clock: SimulationClock | None = None,
        level: int = logging.DEBUG,
        max_trail_entries: int = DEFAULT_TRAIL_SIZE,
    ):
        """
        Args:
            name: Name of the underlying stdlib logger
            device: Device name recorded on every entry
            log_dir: Directory for the JSON log file (None = no file)
            enable_json: Write the JSON file when log_dir is set
            enable_console: Print entries to stderr
            clock: SimulationClock used for simulated timestamps
            level: Minimum level handed to the handlers
            max_trail_entries: Size of the in-memory trail
        """
        self.name = name
        self.device = device
        self.log_dir = Path(log_dir) if log_dir else None
        self.clock = clock

        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)
        self.logger.propagate = False
        self.logger.handlers.clear()

        if enable_console:
            console = logging.StreamHandler()
            console.setFormatter(SimTimeFormatter(clock))
            self.logger.addHandler(console)

        if enable_json and self.log_dir:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            log_file = self.log_dir / f"{device or 'reactor'}.json.log"
            file_handler = logging.handlers.RotatingFileHandler(
                log_file, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS
            )
            file_handler.setFormatter(JSONFormatter(device=device, clock=clock))
            self.logger.addHandler(file_handler)

        self.event_trail: list[LogEntry] = []
        self._trail_lock = threading.Lock()
        self._max_trail_entries = max_trail_entries

    def set_clock(self, clock: SimulationClock | None) -> None:
        """Stamp later entries, and plain records, with this clock."""
        self.clock = clock
        for handler in self.logger.handlers:
            if isinstance(handler.formatter, (SimTimeFormatter, JSONFormatter)):
                handler.formatter.clock = clock

    # ----------------------------------------------------------------
    # Events
    # ----------------------------------------------------------------

    def log_event(
        self,
        severity: EventSeverity,
        category: EventCategory,
        message: str,
        **kwargs,
    ) -> LogEntry:
        """
        Record an event.

        Args:
            severity: Event severity
            category: Event category
            message: Event text
            **kwargs: Extra LogEntry fields (component, user, data, ...)

        Returns:
            The recorded LogEntry
        """
        kwargs.setdefault("device", self.device)
        entry = LogEntry(
            simulation_time=_sim_now(self.clock),
            wall_time=time.time(),
            severity=severity,
            category=category,
            message=message,
            **kwargs,
        )

        self.logger.log(
            _LEVEL_FOR_SEVERITY[severity], message, extra={"event": entry}
        )

        if category in TRAIL_CATEGORIES:
            with self._trail_lock:
                self.event_trail.append(entry)
                del self.event_trail[: -self._max_trail_entries]

        return entry

    def log_audit(
        self, message: str, user: str = "operator", action: str = "", **kwargs
    ) -> LogEntry:
        """Record an operator action. The action name is stored in data."""
        data = dict(kwargs.pop("data", {}))
        data["action"] = action

        return self.log_event(
            EventSeverity.NOTICE,
            EventCategory.AUDIT,
            message,
            user=user,
            data=data,
            **kwargs,
        )

    def log_alarm(
        self,
        message: str,
        priority: AlarmPriority,
        state: AlarmState = AlarmState.ACTIVE,
        **kwargs,
    ) -> LogEntry:
        """Record an alarm; its severity follows from the priority."""
        return self.log_event(
            _SEVERITY_FOR_PRIORITY[priority],
            EventCategory.ALARM,
            message,
            alarm_priority=priority,
            alarm_state=state,
            **kwargs,
        )

    def get_event_trail(
        self,
        limit: int = 100,
        severity: EventSeverity | None = None,
        category: EventCategory | None = None,
    ) -> list[LogEntry]:
        """Most recent trail entries, oldest first, optionally filtered."""
        with self._trail_lock:
            entries = list(self.event_trail)

        if severity is not None:
            entries = [e for e in entries if e.severity is severity]
        if category is not None:
            entries = [e for e in entries if e.category is category]

        return entries[-limit:] if limit > 0 else []


# ----------------------------------------------------------------
# Logger factory
# ----------------------------------------------------------------

_loggers: dict[str, ReactorLogger] = {}
_loggers_lock = threading.Lock()
_default_log_dir: Path | None = None
_default_clock: SimulationClock | None = None
_default_level: int = logging.INFO


def configure_logging(
    log_dir: Path | str | None = None,
    clock: SimulationClock | None = None,
    level: str | int = logging.INFO,
) -> None:
    """
    Set process-wide logging defaults.

    The clock and level also apply to loggers get_logger() has already
    handed out, and the level is set on the "reactorsim" logger so module
    loggers follow it. The log directory only applies to loggers created
    afterwards.

    Args:
        log_dir: Directory for JSON log files
        clock: SimulationClock used for simulated timestamps
        level: Level name or number

    Raises:
        ValueError: If level is an unknown name
    """
    global _default_log_dir, _default_clock, _default_level

    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown logging level: {level}")
        level = resolved

    _default_log_dir = Path(log_dir) if log_dir else None
    if _default_log_dir:
        _default_log_dir.mkdir(parents=True, exist_ok=True)

    with _loggers_lock:
        _default_clock = clock
        _default_level = level
        for reactor_logger in _loggers.values():
            reactor_logger.set_clock(clock)
            reactor_logger.logger.setLevel(level)

    logging.getLogger("reactorsim").setLevel(level)


def get_logger(name: str, device: str = "", **kwargs) -> ReactorLogger:
    """
    Return the shared ReactorLogger for (name, device), creating it once.

    Unset log_dir, clock and level fall back to the configure_logging()
    defaults.
    """
    key = f"{name}:{device}"

    with _loggers_lock:
        if key not in _loggers:
            if _default_log_dir:
                kwargs.setdefault("log_dir", _default_log_dir)
            if _default_clock is not None:
                kwargs.setdefault("clock", _default_clock)
            kwargs.setdefault("level", _default_level)
            _loggers[key] = ReactorLogger(name, device, **kwargs)

        return _loggers[key]
