"""
Actuator Module - Black Box Interface

Purpose: Move the host pointer on behalf of authenticated clients
Interface: probe_capabilities(), create_actuator(), move(), move_to()
Hidden: Display-server detection, ydotool invocation, position tracking

Provides graceful degradation - hosts without a backend get an actuator
that reports failure instead of crashing the server.
"""

from .actuator import NullActuator, PointerActuator, YdotoolActuator, create_actuator
from .capability import (
    ActuatorBackend,
    ActuatorCapabilities,
    disabled_capabilities,
    probe_capabilities,
)

__all__ = [
    "ActuatorBackend",
    "ActuatorCapabilities",
    "NullActuator",
    "PointerActuator",
    "YdotoolActuator",
    "create_actuator",
    "disabled_capabilities",
    "probe_capabilities",
]
