import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("RATE_LIMIT_PERMITS", "10")
os.environ.setdefault("RATE_LIMIT_WINDOW_S", "60")
os.environ.setdefault("ALLOWED_ORIGINS", "https://localhost:7000")
os.environ.setdefault("WS_MAX_CONNECTIONS", "50")

from chathub.deps import http_limiter, message_limiter, registry, runtime_logs


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(autouse=True)
def reset_runtime_state():
    registry.clear()
    message_limiter.reset()
    http_limiter.reset()
    runtime_logs.clear()
    yield
    registry.clear()
