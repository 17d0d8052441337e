"""
Capability probe for the pointer actuator.

Runs once at startup and decides which backend can move the pointer on this
host. The result is a frozen descriptor; nothing downstream reads the
environment again.

Design Principles:
- Graceful degradation: no usable backend = actuator reports failure, server keeps running
- One-shot: environment sniffing happens here and nowhere else
"""

import logging
import os
import shutil
import sys
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

logger = logging.getLogger("padlink.actuator.capability")


class ActuatorBackend(Enum):
    """Backends able to move the pointer."""

    YDOTOOL = "ydotool"
    # No command-line backend; the host needs a native desktop integration
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class ActuatorCapabilities:
    """What the probe found."""

    backend: ActuatorBackend
    platform: str
    session_type: Optional[str] = None
    wayland_display: Optional[str] = None
    reason: str = ""

    @property
    def available(self) -> bool:
        return self.backend is not ActuatorBackend.UNAVAILABLE

    @property
    def relative_moves(self) -> bool:
        return self.available

    @property
    def absolute_moves(self) -> bool:
        return self.available

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data["backend"] = self.backend.value
        data["available"] = self.available
        return data


def probe_capabilities(
    environ: Optional[Mapping[str, str]] = None,
    platform: Optional[str] = None,
    which: Callable[[str], Optional[str]] = shutil.which,
    command: str = "ydotool",
) -> ActuatorCapabilities:
    """
    Pick the pointer backend for this host.

    Order of checks:
    1. Not Linux: unavailable
    2. Wayland session (XDG_SESSION_TYPE=wayland or WAYLAND_DISPLAY set): ydotool
    3. X11 session: unavailable, X11 hosts use a native backend
    4. Otherwise: ydotool if it is on PATH

    Args:
        environ: Environment to inspect (default: os.environ)
        platform: sys.platform value (default: current platform)
        which: PATH lookup function
        command: Executable name of the ydotool client

    Returns:
        Immutable capability descriptor
    """
    environ = os.environ if environ is None else environ
    platform = sys.platform if platform is None else platform

    session_type = environ.get("XDG_SESSION_TYPE") or None
    wayland_display = environ.get("WAYLAND_DISPLAY") or None

    logger.info(
        f"Checking display server: sessionType={session_type}, waylandDisplay={wayland_display}"
    )

    def _result(backend: ActuatorBackend, reason: str) -> ActuatorCapabilities:
        logger.info(f"Pointer backend: {backend.value} ({reason})")
        return ActuatorCapabilities(
            backend=backend,
            platform=platform,
            session_type=session_type,
            wayland_display=wayland_display,
            reason=reason,
        )

    if not platform.startswith("linux"):
        return _result(ActuatorBackend.UNAVAILABLE, f"platform {platform} is not linux")

    if session_type == "wayland" or wayland_display:
        return _result(ActuatorBackend.YDOTOOL, "wayland session detected")

    if session_type == "x11":
        return _result(ActuatorBackend.UNAVAILABLE, "x11 session uses a native backend")

    if which(command):
        return _result(ActuatorBackend.YDOTOOL, f"{command} found in PATH")

    return _result(ActuatorBackend.UNAVAILABLE, f"{command} not found in PATH")


def disabled_capabilities(platform: Optional[str] = None) -> ActuatorCapabilities:
    """Descriptor used when the actuator is switched off in configuration."""
    return ActuatorCapabilities(
        backend=ActuatorBackend.UNAVAILABLE,
        platform=sys.platform if platform is None else platform,
        reason="disabled by configuration",
    )
