"""
Pytest configuration and fixtures for apphost tests.
"""

import sys
from pathlib import Path

import pytest

# Add the repository root to path for imports
# This allows `from apphost.redis import ...` to work
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from apphost.config import AppHostSettings  # noqa: E402
from apphost.hosting import DistributedApplicationBuilder, ParameterResource  # noqa: E402


@pytest.fixture
def settings():
    """Settings isolated from the process environment."""
    return AppHostSettings(default_host="127.0.0.1", health_check_timeout_seconds=1.0)


@pytest.fixture
def builder(settings):
    """A fresh application builder."""
    return DistributedApplicationBuilder(settings)


@pytest.fixture
def password():
    """A secret parameter with a fixed value."""
    return ParameterResource("db-password", lambda: "s3cret-Value", secret=True)


class FakeRedisClient:
    """Stands in for redis.asyncio.Redis in health probes."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.pings = 0
        self.closed = False

    async def ping(self):
        self.pings += 1
        if self.fail:
            raise ConnectionError("Connection refused")
        return True

    async def aclose(self):
        self.closed = True


@pytest.fixture
def fake_redis():
    return FakeRedisClient()
