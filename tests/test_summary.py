from datetime import date, timedelta, timezone

from tasktimer.models import LogRecord
from tasktimer.summary import build_summary, render_summary_text

from conftest import T0


def _stopped(index, start, elapsed, desc="task"):
    return LogRecord(
        index=index,
        start_time=start,
        description=desc,
        elapsed_seconds=elapsed,
        stopped_at=start + timedelta(seconds=elapsed),
    )


def test_weekly_summary_groups_by_day():
    records = [
        _stopped(1, T0 - timedelta(days=10), 999, "too old"),
        _stopped(2, T0 - timedelta(days=2), 600, "review"),
        _stopped(3, T0 - timedelta(days=2, hours=1), 300, "review"),
        _stopped(4, T0, 120, "write"),
    ]
    rep = build_summary(records, days=7, now=T0 + timedelta(hours=1), tz=timezone.utc)
    assert len(rep.by_day) == 7
    assert rep.by_day[0][0] == date(2026, 10, 12)
    assert rep.by_day[-1] == (date(2026, 10, 18), 120)
    assert dict(rep.by_day)[date(2026, 10, 16)] == 900
    assert rep.total_s == 1020
    assert rep.top_tasks[0] == ("review", 900, 2)
    assert rep.open_tasks == 0


def test_daily_summary_counts_open_tasks():
    running = LogRecord(index=1, start_time=T0, description="still going")
    rep = build_summary([running], days=1, now=T0 + timedelta(minutes=30), tz=timezone.utc)
    assert rep.total_s == 1800
    assert rep.open_tasks == 1
    assert rep.title.startswith("Daily Summary")


def test_render_summary_text():
    rep = build_summary([_stopped(1, T0, 3661, "deep work")], days=1, now=T0, tz=timezone.utc)
    text = render_summary_text(rep)
    assert "Total tracked: 1h 01m 01s" in text
    assert "Sun 2026-10-18" in text
    assert "deep work" in text


def test_render_empty_summary():
    text = render_summary_text(build_summary([], days=7, now=T0, tz=timezone.utc))
    assert "Top tasks: (no data)" in text
    assert "Total tracked: 0s" in text


def test_paused_task_counts_time_worked_before_the_pause():
    paused = LogRecord(
        index=1,
        start_time=T0,
        description="interrupted",
        paused_seconds=120,
        paused_since=T0 + timedelta(seconds=3720),
    )
    rep = build_summary([paused], days=1, now=T0 + timedelta(seconds=3780), tz=timezone.utc)
    assert rep.total_s == 3600
    assert rep.open_tasks == 1
