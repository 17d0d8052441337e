"""
Pointer actuators.

An actuator takes relative or absolute move requests and reports whether the
pointer actually moved.
"""

import logging
import subprocess
from typing import Callable, Optional, Protocol, Tuple

from padlink.config.provider import ActuatorConfig

from .capability import ActuatorBackend, ActuatorCapabilities

logger = logging.getLogger("padlink.actuator")


class PointerActuator(Protocol):
    """Protocol for pointer actuators."""

    def is_available(self) -> bool:
        ...

    def move(self, dx: float, dy: float) -> bool:
        """Move the pointer by a relative displacement."""
        ...

    def move_to(self, x: float, y: float) -> bool:
        """Place the pointer at an absolute position."""
        ...


class NullActuator:
    """Actuator for hosts without a usable backend. Every move fails."""

    def __init__(self, reason: str = ""):
        self.reason = reason

    def is_available(self) -> bool:
        return False

    def move(self, dx: float, dy: float) -> bool:
        logger.debug(f"Pointer move ignored, no backend ({self.reason})")
        return False

    def move_to(self, x: float, y: float) -> bool:
        logger.debug(f"Pointer move ignored, no backend ({self.reason})")
        return False


class YdotoolActuator:
    """
    Moves the pointer through the ydotool client.

    ydotool cannot report where the pointer is, so the position is tracked
    here: relative moves are added to the tracked position and sent as an
    absolute `mousemove`. The tracked position only changes when the command
    succeeds.
    """

    def __init__(
        self,
        command: str = "ydotool",
        timeout: float = 1.0,
        start_position: Tuple[int, int] = (0, 0),
        runner: Optional[Callable[..., subprocess.CompletedProcess]] = None,
    ):
        """
        Initialize ydotool actuator.

        Args:
            command: ydotool executable
            timeout: Per-command timeout in seconds
            start_position: Assumed pointer position before the first move
            runner: subprocess.run replacement, for tests
        """
        self.command = command
        self.timeout = timeout
        self.track_x, self.track_y = start_position
        self._runner = runner

    def is_available(self) -> bool:
        return True

    @property
    def position(self) -> Tuple[int, int]:
        return self.track_x, self.track_y

    def move(self, dx: float, dy: float) -> bool:
        new_x = self.track_x + round(dx)
        new_y = self.track_y + round(dy)
        if self._mousemove(new_x, new_y):
            logger.debug(f"Move succeeded: dx={dx}, dy={dy} -> absolute: x={new_x}, y={new_y}")
            return True
        return False

    def move_to(self, x: float, y: float) -> bool:
        return self._mousemove(round(x), round(y))

    def _mousemove(self, x: int, y: int) -> bool:
        cmd = [self.command, "mousemove", str(x), str(y)]
        runner = self._runner or subprocess.run

        try:
            logger.debug(f"Running: {' '.join(cmd)}")
            process = runner(cmd, capture_output=True, text=True, timeout=self.timeout)
        except subprocess.TimeoutExpired:
            logger.error(f"Pointer move timed out after {self.timeout}s")
            return False
        except OSError as e:
            logger.error(f"Pointer move failed: {e}")
            return False

        if process.returncode != 0:
            logger.error(f"Pointer move failed (exit {process.returncode}): {process.stderr}")
            return False

        self.track_x, self.track_y = x, y
        return True


def create_actuator(
    capabilities: ActuatorCapabilities,
    config: Optional[ActuatorConfig] = None,
) -> PointerActuator:
    """Build the actuator matching the probed capabilities."""
    if capabilities.backend is ActuatorBackend.YDOTOOL:
        if config is None:
            return YdotoolActuator()
        return YdotoolActuator(
            command=config.command,
            timeout=config.timeout_seconds,
            start_position=config.start_position,
        )
    return NullActuator(reason=capabilities.reason)
