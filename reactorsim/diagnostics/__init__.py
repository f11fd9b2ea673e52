# reactorsim/diagnostics/__init__.py
"""
Diagnostics for the reactor simulator.

Modules:
- logging_system: Structured logging with event trail and alarms
"""

from reactorsim.diagnostics.logging_system import (
    AlarmPriority,
    AlarmState,
    EventCategory,
    EventSeverity,
    LogEntry,
    ReactorLogger,
    configure_logging,
    get_logger,
)

__all__ = [
    "AlarmPriority",
    "AlarmState",
    "EventCategory",
    "EventSeverity",
    "LogEntry",
    "ReactorLogger",
    "configure_logging",
    "get_logger",
]
