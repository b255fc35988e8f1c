from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from tasktimer.store import LogStore
from tasktimer.timer import TaskTimer

T0 = datetime(2026, 10, 18, 9, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime = T0) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current = self.current + timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def log_file(tmp_path):
    return tmp_path / "tasks.csv"


@pytest.fixture
def store(log_file) -> LogStore:
    return LogStore(log_file)


@pytest.fixture
def timer(store, clock) -> TaskTimer:
    return TaskTimer(store, clock=clock)
