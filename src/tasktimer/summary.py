from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Iterable, Optional

from .models import LogRecord
from .timer import worked_seconds
from .utils import format_duration, shorten


@dataclass(frozen=True)
class Summary:
    title: str
    total_s: int
    by_day: list[tuple[date, int]]          # oldest first, one entry per day in the window
    top_tasks: list[tuple[str, int, int]]   # description, total_s, entries
    open_tasks: int


def _bar(secs: int, longest: int, width: int = 24) -> str:
    if longest <= 0:
        return ""
    cells = min(width, max(0, round(width * secs / longest)))
    return ("█" * cells).ljust(width)


def build_summary(
    records: Iterable[LogRecord],
    *,
    days: int,
    now: datetime,
    tz: Optional[tzinfo] = None,
    title: Optional[str] = None,
) -> Summary:
    """Group tracked time by the local calendar day each task started on.

    The window is the last ``days`` days including today. Open tasks count the time
    worked so far; a paused task stops counting at its pause.
    """
    days = max(1, int(days))
    today = now.astimezone(tz).date()
    first = today - timedelta(days=days - 1)

    per_day: dict[date, int] = {first + timedelta(days=i): 0 for i in range(days)}
    per_task: dict[str, int] = {}
    task_entries: dict[str, int] = {}
    total = 0
    open_tasks = 0

    for r in records:
        day = r.start_time.astimezone(tz).date()
        if day < first or day > today:
            continue
        secs = worked_seconds(r, now)
        if not r.is_stopped:
            open_tasks += 1
        per_day[day] += secs
        per_task[r.description] = per_task.get(r.description, 0) + secs
        task_entries[r.description] = task_entries.get(r.description, 0) + 1
        total += secs

    top = sorted(per_task.items(), key=lambda x: x[1], reverse=True)[:10]
    if title is None:
        if days == 1:
            title = f"Daily Summary — {today.strftime('%b %d, %Y')}"
        else:
            title = f"Summary — last {days} days ({first.strftime('%b %d')} to {today.strftime('%b %d, %Y')})"

    return Summary(
        title=title,
        total_s=total,
        by_day=sorted(per_day.items()),
        top_tasks=[(desc, secs, task_entries[desc]) for desc, secs in top],
        open_tasks=open_tasks,
    )


def render_summary_text(rep: Summary) -> str:
    lines: list[str] = []
    lines.append(rep.title)
    lines.append("")
    lines.append(f"Total tracked: {format_duration(rep.total_s)}")
    if rep.open_tasks:
        lines.append(f"Still open:    {rep.open_tasks} task(s)")
    lines.append("")

    maxv = max((v for _, v in rep.by_day), default=0)
    lines.append("By day:")
    for day, secs in rep.by_day:
        lines.append(f"  {day.strftime('%a %Y-%m-%d')}  {format_duration(secs):>11}  {_bar(secs, maxv)}")
    lines.append("")

    if rep.top_tasks:
        lines.append("Top tasks:")
        for desc, secs, n in rep.top_tasks:
            extra = f"{n} entries" if n != 1 else "1 entry"
            lines.append(f"  {format_duration(secs):>11}  ({extra})  {shorten(desc, 60)}")
    else:
        lines.append("Top tasks: (no data)")
    return "\n".join(lines)
