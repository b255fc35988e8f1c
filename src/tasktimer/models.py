from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


class TimerState(str, enum.Enum):
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"


@dataclass(frozen=True)
class LogRecord:
    index: int
    start_time: datetime
    description: str
    elapsed_seconds: int = 0
    paused_seconds: int = 0
    paused_since: Optional[datetime] = None
    stopped_at: Optional[datetime] = None

    @property
    def is_paused(self) -> bool:
        return self.paused_since is not None

    @property
    def is_stopped(self) -> bool:
        return self.stopped_at is not None

    @property
    def state(self) -> TimerState:
        if self.is_stopped:
            return TimerState.STOPPED
        if self.is_paused:
            return TimerState.PAUSED
        return TimerState.RUNNING
