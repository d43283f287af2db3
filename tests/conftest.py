import pytest

from mcp_simple_datetime import server
from mcp_simple_datetime.config import get_settings
from mcp_simple_datetime.store import TimerStore
from mcp_simple_datetime.timers import TimerService


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, now_ms: int = 1_738_683_045_000):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, milliseconds: int) -> None:
        self.now_ms += milliseconds


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point every test at a private state file with a fixed locale and timezone."""
    monkeypatch.setenv("MCP_DATETIME_STATE_FILE", str(tmp_path / "timer-state.json"))
    monkeypatch.setenv("MCP_DATETIME_LOCALE", "en_US")
    monkeypatch.setenv("MCP_DATETIME_TIMEZONE", "UTC")
    get_settings.cache_clear()
    server.get_timer_service.cache_clear()
    yield
    get_settings.cache_clear()
    server.get_timer_service.cache_clear()


@pytest.fixture
def state_path(tmp_path):
    return tmp_path / "timer-state.json"


@pytest.fixture
def store(state_path):
    return TimerStore(state_path)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def service(store, clock):
    return TimerService(store, clock=clock)
