"""
Pytest configuration for test suite

Markers:
- unit: Fast unit tests (no external dependencies)
- integration: Integration tests
- external: Tests that call the real Coinbase API (requires internet, deselected by default)
- slow: Slow-running tests (>10 seconds)
"""

import pytest

from config.settings import reset_settings


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: Fast unit tests (no dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line(
        "markers", "external: Tests using the real Coinbase API (requires internet)"
    )
    config.addinivalue_line("markers", "slow: Slow tests (>10 seconds)")


@pytest.fixture(autouse=True)
def fresh_settings():
    """Every test starts from freshly loaded settings"""
    reset_settings()
    yield
    reset_settings()


class FakeClock:
    """Manual clock whose sleep advances time instead of waiting"""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: list[float] = []

    def time(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()
