# reactorsim/physics/__init__.py
"""
Reactor physics.

- thermodynamics: heat losses, reaction heat, psychrometrics, ideal gas
- ReactorPhysics: per-tick engine writing results into ReactorState
"""

from reactorsim.physics import thermodynamics
from reactorsim.physics.reactor_physics import ReactorPhysics

__all__ = [
    "thermodynamics",
    "ReactorPhysics",
]
