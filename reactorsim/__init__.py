# reactorsim/__init__.py
"""
Closed chemical-reactor control and thermodynamics simulator.

Subpackages:
- state: lock-guarded shared reactor state
- controllers: temperature (PID and physical), pressure and humidity control
- physics: thermodynamic relations and the per-tick engine
- time: wall-clock measurement for the tick loop
- simulation: the fixed-tick simulation loop
- monitoring: status derivation and telemetry
- diagnostics: structured logging
"""

__version__ = "1.0.0"
