"""Timer semantics derived from persisted records and the wall clock.

Nothing about a running timer lives in memory between commands. Each transition reads the
record, computes the new field values from the current time and writes them straight back
through the store:

- ``pause`` stores the pause moment in ``paused_since``
- ``resume`` adds ``now - paused_since`` to ``paused_seconds`` and clears ``paused_since``
- ``stop`` closes any open pause, then fixes ``elapsed_seconds`` and ``stopped_at``

State per record: Running <-> Paused -> Stopped (terminal).
"""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Optional

from .codec import check_description
from .errors import AlreadyPaused, AlreadyStopped, NotPaused
from .logger import log
from .models import LogRecord, TimerState
from .store import LogStore

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _seconds_between(later: datetime, earlier: datetime) -> int:
    # Clock going backwards must never shrink an accumulated duration.
    return max(0, int((later - earlier).total_seconds()))


def current_elapsed(record: LogRecord, now: datetime) -> int:
    """Elapsed seconds for ``record`` as of ``now``.

    Stopped records report their fixed ``elapsed_seconds``; paused records report the
    accumulated ``paused_seconds``; running records report wall time since start minus
    time spent paused.
    """
    if record.is_stopped:
        return record.elapsed_seconds
    if record.is_paused:
        return record.paused_seconds
    return max(0, _seconds_between(now, record.start_time) - record.paused_seconds)


def worked_seconds(record: LogRecord, now: datetime) -> int:
    """Time actually spent on ``record``, for reports.

    Unlike ``current_elapsed``, a paused record counts the time it ran before the
    current pause rather than its pause total.
    """
    if record.is_stopped:
        return record.elapsed_seconds
    until = record.paused_since if record.paused_since is not None else now
    return max(0, _seconds_between(until, record.start_time) - record.paused_seconds)


class TaskTimer:
    def __init__(self, store: LogStore, clock: Optional[Clock] = None) -> None:
        self.store = store
        self._clock = clock or utc_now

    def now(self) -> datetime:
        return self._clock().astimezone(timezone.utc).replace(microsecond=0)

    def _index(self, index: Optional[int]) -> int:
        return self.store.resolve(index).index

    def start(self, description: str) -> int:
        check_description(description)
        index = self.store.append(description, start_time=self.now())
        log.info("Started task #%d", index)
        return index

    def pause(self, index: Optional[int] = None) -> LogRecord:
        idx = self._index(index)
        now = self.now()

        def _pause(r: LogRecord) -> LogRecord:
            if r.is_stopped:
                raise AlreadyStopped(r.index)
            if r.is_paused:
                raise AlreadyPaused(r.index)
            return replace(r, paused_since=now)

        rec = self.store.replace(idx, _pause)
        log.info("Paused task #%d at %s", idx, now.isoformat())
        return rec

    def resume(self, index: Optional[int] = None) -> LogRecord:
        idx = self._index(index)
        now = self.now()

        def _resume(r: LogRecord) -> LogRecord:
            if r.is_stopped:
                raise AlreadyStopped(r.index)
            if not r.is_paused:
                raise NotPaused(r.index)
            interval = _seconds_between(now, r.paused_since)
            return replace(r, paused_seconds=r.paused_seconds + interval, paused_since=None)

        rec = self.store.replace(idx, _resume)
        log.info("Resumed task #%d, paused total %ds", idx, rec.paused_seconds)
        return rec

    def stop(self, index: Optional[int] = None) -> LogRecord:
        idx = self._index(index)
        now = self.now()

        def _stop(r: LogRecord) -> LogRecord:
            if r.is_stopped:
                raise AlreadyStopped(r.index)
            paused = r.paused_seconds
            if r.paused_since is not None:
                paused += _seconds_between(now, r.paused_since)
            elapsed = max(0, _seconds_between(now, r.start_time) - paused)
            return replace(r, elapsed_seconds=elapsed, paused_seconds=paused, paused_since=None, stopped_at=now)

        rec = self.store.replace(idx, _stop)
        log.info("Stopped task #%d, elapsed %ds (paused %ds)", idx, rec.elapsed_seconds, rec.paused_seconds)
        return rec

    def elapsed(self, index: Optional[int] = None) -> int:
        return current_elapsed(self.store.resolve(index), self.now())

    def status(self, index: Optional[int] = None) -> tuple[LogRecord, TimerState, int]:
        rec = self.store.resolve(index)
        return rec, rec.state, current_elapsed(rec, self.now())
