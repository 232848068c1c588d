from __future__ import annotations

import os
import time
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from smarttodo.observability import reset_metrics
from smarttodo.storage import MemoryAdapter
from smarttodo.store import TaskStore
from tests.helpers.clock import FakeClock

# ROOT is defined for reference but we don't need to manipulate sys.path
# since we're using proper Python packaging
ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture(autouse=True)
def _fresh_metrics() -> Generator[None, None, None]:
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def adapter() -> MemoryAdapter:
    return MemoryAdapter()


@pytest.fixture()
def store(adapter: MemoryAdapter, clock: FakeClock) -> TaskStore:
    return TaskStore(adapter, clock=clock)


def _wait_until(timeout_s: float, pause_s: float, check: Callable[[], bool]) -> bool:
    deadline = time.time() + timeout_s
    while time.time() < deadline:
        if check():
            return True
        time.sleep(pause_s)
    return False


def _redis_ping(url: str) -> bool:
    try:
        import redis

        r = redis.Redis.from_url(url, socket_connect_timeout=0.5)
        return bool(r.ping())
    except Exception:
        return False


def _local_redis_available() -> bool:
    url = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    return _redis_ping(url)


@pytest.fixture(scope="session")
def redis_url() -> str:
    """Provide a Redis URL: REDIS_URL if reachable, else localhost, else skip."""
    env_url = os.getenv("REDIS_URL")
    if env_url and _wait_until(3.0, 0.2, lambda: _redis_ping(env_url)):
        return env_url

    local_url = "redis://localhost:6379/0"
    if _wait_until(1.0, 0.2, lambda: _redis_ping(local_url)):
        return local_url

    pytest.skip("Redis not available; set REDIS_URL or start local Redis")


@pytest.fixture()
def unique_prefix() -> str:
    # millisecond prefix to avoid collisions
    return f"test:{int(time.time() * 1000)}"


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-skip tests marked 'redis' when no Redis server is reachable."""
    if _local_redis_available():
        return
    for item in items:
        if "redis" in item.keywords:
            item.add_marker(
                pytest.mark.skip(reason="Redis not available; set REDIS_URL or start local Redis")
            )
