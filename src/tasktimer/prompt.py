from __future__ import annotations

import sys
from datetime import datetime
from typing import Iterable, Optional, TextIO

from .models import LogRecord
from .timer import worked_seconds

BANNER = "Write your task (finish with an empty line or Ctrl-D):"
SEPARATOR = "-" * 40


def read_description(stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> str:
    """Read a task description from the terminal.

    Lines are read until an empty line or EOF and joined into one line with single spaces.
    Returns an empty string when nothing was typed.
    """
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    if stdin.isatty():
        print(BANNER, file=stdout)
        stdout.flush()

    parts: list[str] = []
    for raw in stdin:
        line = raw.strip()
        if not line:
            break
        parts.append(line)
    return " ".join(parts)


def show_entries(records: Iterable[LogRecord], now: datetime) -> str:
    blocks: list[str] = []
    for r in records:
        blocks.append(
            "\n".join(
                [
                    f"Log Entry: {r.index}",
                    f"Start Time: {r.start_time.astimezone().strftime('%Y-%m-%d %H:%M:%S %z')}",
                    r.description,
                    f"Elapsed Time: {worked_seconds(r, now)} seconds ({r.state.value})",
                    SEPARATOR,
                ]
            )
        )
    return "\n".join(blocks)
