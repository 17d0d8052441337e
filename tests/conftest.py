"""
Shared pytest fixtures for padlink tests.

This module provides common fixtures including:
- FakeClock: Controllable epoch-millisecond clock for expiry tests
- MemorySnapshotStorage: In-memory snapshot backend with failure injection
- YdotoolMocker: Mock ydotool subprocess calls
"""

import os
import sys
from dataclasses import dataclass, field
from typing import List, Optional
from unittest.mock import MagicMock, patch

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from padlink.modules.auth import TokenStore

# 2026-01-01T00:00:00Z
START_MS = 1_767_225_600_000


# =============================================================================
# Clock and Storage
# =============================================================================

class FakeClock:
    """Clock returning a settable time in epoch milliseconds."""

    def __init__(self, now: int = START_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


class MemorySnapshotStorage:
    """
    Snapshot backend kept in memory.

    Records every write so tests can assert on persistence behaviour, and
    can be told to fail reads or writes.
    """

    def __init__(self, payload: Optional[str] = None):
        self.payload = payload
        self.writes: List[str] = []
        self.fail_reads = False
        self.fail_writes = False

    def read(self) -> Optional[str]:
        if self.fail_reads:
            raise OSError("simulated read failure")
        return self.payload

    def write(self, payload: str) -> None:
        if self.fail_writes:
            raise OSError("simulated write failure")
        self.payload = payload
        self.writes.append(payload)

    def describe(self) -> str:
        return "memory"

    @property
    def write_count(self) -> int:
        return len(self.writes)


@pytest.fixture
def clock():
    """Controllable clock starting at START_MS."""
    return FakeClock()


@pytest.fixture
def memory_storage():
    """Empty in-memory snapshot backend."""
    return MemorySnapshotStorage()


@pytest.fixture
def token_store(memory_storage, clock):
    """Opened TokenStore over in-memory storage and the fake clock."""
    store = TokenStore(memory_storage, clock=clock)
    store.open()
    yield store
    store.close()


# =============================================================================
# ydotool Mocking Infrastructure
# =============================================================================

@dataclass
class YdotoolCall:
    """Record of a ydotool call made during testing."""
    command: List[str]
    timeout: Optional[float] = None


@dataclass
class YdotoolMocker:
    """
    Mock subprocess.run for ydotool commands.

    Usage:
        def test_move(ydotool_mocker):
            ydotool_mocker.returncode = 1
            assert actuator.move(5, 5) is False
            assert ydotool_mocker.call_count == 1
    """
    returncode: int = 0
    stderr: str = ""
    raise_exc: Optional[BaseException] = None
    calls: List[YdotoolCall] = field(default_factory=list)

    def mock_run(self, cmd, capture_output=True, text=True, timeout=None, **kwargs):
        self.calls.append(YdotoolCall(command=list(cmd), timeout=timeout))
        if self.raise_exc is not None:
            raise self.raise_exc

        result = MagicMock()
        result.returncode = self.returncode
        result.stdout = ""
        result.stderr = self.stderr
        return result

    @property
    def call_count(self) -> int:
        return len(self.calls)


@pytest.fixture
def ydotool_mocker():
    """YdotoolMocker with subprocess.run patched."""
    mocker = YdotoolMocker()
    with patch("subprocess.run", side_effect=mocker.mock_run):
        yield mocker
