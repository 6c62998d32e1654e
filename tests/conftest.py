"""Shared test fixtures for all test modules."""

import os
import tempfile

import pytest

# ── Environment overrides (must be set before importing backend modules) ─────
_tmp = tempfile.mkdtemp(prefix="loveshare_pytest_")
os.environ["LOVESHARE_DATA_DIR"] = _tmp
os.environ["LOVESHARE_DB_PATH"] = os.path.join(_tmp, "server-db.json")
os.environ["LOVESHARE_FRONTEND_DIR"] = os.path.join(_tmp, "no-frontend")
os.environ["LOVESHARE_IMGBB_API_KEY"] = "pytest-imgbb-key"


class FakeClock:
    """Settable millisecond clock for expiry tests."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_store(clock):
    """A store over an in-memory backend with a controllable clock."""
    from backend.services.share_store import InMemoryBackend, ShareStore
    return ShareStore(InMemoryBackend(), clock=clock)


@pytest.fixture
def file_store(tmp_path, clock):
    """A store over a JSON file in a temp directory."""
    from backend.services.share_store import JsonFileBackend, ShareStore
    return ShareStore(JsonFileBackend(tmp_path / "server-db.json"), clock=clock)


@pytest.fixture
def photos():
    return ["http://x.com/a.png", "https://y.com/b.png"]
