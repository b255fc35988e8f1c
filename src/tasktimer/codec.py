"""On-disk shape of the task log.

One record per physical line, comma-separated with standard CSV quoting, preceded by a
fixed header line. Timestamps are RFC 2822 strings in UTC with whole-second resolution,
so ``decode(encode(r)) == r`` holds for every record built from second-resolution times.
"""
from __future__ import annotations

import csv
import io
import re
from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import Iterable, Optional, Sequence

from .errors import InvalidDescription, MalformedRecord
from .models import LogRecord

HEADER = (
    "Index",
    "Start Time",
    "Task Description",
    "Elapsed Time (seconds)",
    "Paused Duration (seconds)",
    "Paused Since",
    "Stopped At",
)

_UINT_RE = re.compile(r"\d+")


def format_timestamp(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return format_datetime(dt.astimezone(timezone.utc).replace(microsecond=0))


def parse_timestamp(s: str, *, field: str) -> datetime:
    try:
        dt = parsedate_to_datetime(s)
    except (TypeError, ValueError, IndexError):
        raise MalformedRecord(field, "not an RFC 2822 timestamp", value=s) from None
    if dt is None:
        raise MalformedRecord(field, "not an RFC 2822 timestamp", value=s)
    # "-0000" means UTC with no local offset information.
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def check_description(description: str) -> str:
    if not description.strip():
        raise InvalidDescription("Task description must not be empty.")
    # str.splitlines also breaks on \x0b, \x0c, \x1c-\x1e, \x85, \u2028 and \u2029
    if description.splitlines() != [description]:
        raise InvalidDescription("Task description must be a single line.")
    return description


def _write_line(fields: Sequence[str]) -> str:
    buf = io.StringIO()
    w = csv.writer(buf, lineterminator="\n")
    w.writerow(fields)
    return buf.getvalue()


def header_line() -> str:
    return _write_line(HEADER)


def encode(record: LogRecord) -> str:
    """Return the single CSV line (with trailing newline) for ``record``."""
    if record.index < 1:
        raise ValueError(f"index must be >= 1, got {record.index}")
    if record.elapsed_seconds < 0 or record.paused_seconds < 0:
        raise ValueError("durations must be non-negative")
    check_description(record.description)
    return _write_line(
        [
            str(record.index),
            format_timestamp(record.start_time),
            record.description,
            str(int(record.elapsed_seconds)),
            str(int(record.paused_seconds)),
            format_timestamp(record.paused_since) if record.paused_since is not None else "",
            format_timestamp(record.stopped_at) if record.stopped_at is not None else "",
        ]
    )


def _uint(value: str, field: str) -> int:
    if not _UINT_RE.fullmatch(value):
        raise MalformedRecord(field, "expected a non-negative integer", value=value)
    return int(value)


def _optional_timestamp(value: str, field: str) -> Optional[datetime]:
    if value == "":
        return None
    return parse_timestamp(value, field=field)


def _split(line: str) -> list[str]:
    try:
        rows = list(csv.reader([line]))
    except csv.Error as exc:
        raise MalformedRecord("row", str(exc)) from None
    return rows[0] if rows else []


def decode_fields(fields: Sequence[str]) -> LogRecord:
    if len(fields) != len(HEADER):
        raise MalformedRecord("row", f"expected {len(HEADER)} fields, found {len(fields)}")
    index = _uint(fields[0], HEADER[0])
    if index < 1:
        raise MalformedRecord(HEADER[0], "index must be >= 1", value=fields[0])
    description = fields[2]
    if not description.strip():
        raise MalformedRecord(HEADER[2], "empty description")
    return LogRecord(
        index=index,
        start_time=parse_timestamp(fields[1], field=HEADER[1]),
        description=description,
        elapsed_seconds=_uint(fields[3], HEADER[3]),
        paused_seconds=_uint(fields[4], HEADER[4]),
        paused_since=_optional_timestamp(fields[5], HEADER[5]),
        stopped_at=_optional_timestamp(fields[6], HEADER[6]),
    )


def decode(line: str) -> LogRecord:
    """Decode one CSV line into a record, raising MalformedRecord on any bad field."""
    return decode_fields(_split(line.rstrip("\r\n")))


def encode_document(records: Iterable[LogRecord]) -> str:
    return header_line() + "".join(encode(r) for r in records)


def decode_document(text: str) -> list[LogRecord]:
    """Decode a whole log file. An empty file is an empty log.

    Record indices must run 1..N in file order; anything else is reported as malformed
    rather than repaired.
    """
    lines = text.splitlines()
    if not lines:
        return []
    if _split(lines[0]) != list(HEADER):
        raise MalformedRecord("header", "unexpected header line", line=1, value=lines[0])

    out: list[LogRecord] = []
    for lineno, line in enumerate(lines[1:], start=2):
        if not line.strip():
            raise MalformedRecord("row", "blank line", line=lineno)
        try:
            rec = decode(line)
        except MalformedRecord as exc:
            raise exc.at_line(lineno) from None
        expected = len(out) + 1
        if rec.index != expected:
            raise MalformedRecord(HEADER[0], f"expected index {expected}", line=lineno, value=str(rec.index))
        out.append(rec)
    return out
