# tests/conftest.py
"""
Shared fixtures for callcore tests.
"""

import pytest

from callcore.config import SessionConfig
from callcore.core.hooks import HookRegistry, register_builtin_hooks
from callcore.core.tsd import ElevationChecker, RateLimiter, TsdApplier


@pytest.fixture
def anyio_backend():
    # Only asyncio: the applier's timeout race is asyncio-specific
    return "asyncio"


class FakeClock:
    """Millisecond clock driven by the test."""

    def __init__(self, start: int = 1_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class RecordingSleep:
    """Stands in for asyncio.sleep; records requested delays (seconds)."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleeper():
    return RecordingSleep()


@pytest.fixture
def session_config():
    return SessionConfig()


@pytest.fixture
def hooks():
    return register_builtin_hooks(HookRegistry())


@pytest.fixture
def applier(clock, sleeper, hooks):
    return TsdApplier(
        rate_limiter=RateLimiter(clock=clock),
        elevation=ElevationChecker(probe=lambda: True),
        hooks=hooks,
        sleep=sleeper,
    )
