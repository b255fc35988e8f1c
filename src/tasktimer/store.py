from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, replace as dc_replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from . import codec
from .errors import IoFailure, MalformedRecord, NotFound
from .logger import log
from .models import LogRecord
from .utils import ensure_dir


def _reason(exc: OSError) -> str:
    return exc.strerror or str(exc)


@dataclass
class LogStore:
    """Whole-file CRUD over the task log.

    Every operation reads the complete file, works on the decoded record list and, for
    mutations, writes the complete new document to a temporary file in the same directory
    before renaming it over the log. Indices are positional: deleting a record renumbers
    every record after it, so the log always holds indices ``1..N``.

    There is no locking; two processes mutating the same file at once is unsupported.
    """

    path: Path

    def __post_init__(self) -> None:
        self.path = Path(self.path).expanduser()

    # -- reading ---------------------------------------------------------------

    def _read(self) -> list[LogRecord]:
        if not self.path.exists():
            log.debug("Log file %s does not exist yet, treating as empty", self.path)
            return []
        try:
            data = self.path.read_bytes()
        except OSError as exc:
            raise IoFailure("read", self.path, _reason(exc)) from exc
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            line = data.count(b"\n", 0, exc.start) + 1
            raise MalformedRecord("row", f"not valid UTF-8 at byte {exc.start}", line=line) from None
        records = codec.decode_document(text)
        log.debug("Read %d records from %s", len(records), self.path)
        return records

    def list(self) -> list[LogRecord]:
        return self._read()

    def find(self, index: int) -> LogRecord:
        for r in self._read():
            if r.index == index:
                return r
        raise NotFound(index)

    def latest(self) -> LogRecord:
        records = self._read()
        if not records:
            raise NotFound(None)
        return records[-1]

    def resolve(self, index: Optional[int]) -> LogRecord:
        """Find ``index``, or the most recently added record when ``index`` is None."""
        if index is None:
            return self.latest()
        return self.find(index)

    # -- writing ---------------------------------------------------------------

    def _write(self, records: list[LogRecord]) -> None:
        # Encode first so an invalid record never touches the file.
        payload = codec.encode_document(records)
        try:
            ensure_dir(self.path.parent)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
        except OSError as exc:
            raise IoFailure("create", self.path, _reason(exc)) from exc

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(payload)
                f.flush()
            os.replace(tmp_path, self.path)
        except OSError as exc:
            tmp_path.unlink(missing_ok=True)
            raise IoFailure("write", self.path, _reason(exc)) from exc
        log.debug("Rewrote %s with %d records", self.path, len(records))

    def append(self, description: str, *, start_time: Optional[datetime] = None) -> int:
        """Add a new open record and return its index (``count + 1``)."""
        records = self._read()
        if start_time is None:
            start_time = datetime.now(timezone.utc)
        rec = LogRecord(
            index=len(records) + 1,
            start_time=start_time.astimezone(timezone.utc).replace(microsecond=0),
            description=description,
        )
        records.append(rec)
        self._write(records)
        log.info("Appended task #%d to %s", rec.index, self.path)
        return rec.index

    def replace(self, index: int, updater: Callable[[LogRecord], LogRecord]) -> LogRecord:
        """Apply ``updater`` to record ``index`` and rewrite the log.

        All other records are written back unchanged and in the same order.
        """
        records = self._read()
        for pos, old in enumerate(records):
            if old.index != index:
                continue
            new = updater(old)
            if new.index != index:
                raise ValueError(f"updater changed index {index} to {new.index}")
            records[pos] = new
            self._write(records)
            log.info("Updated task #%d in %s", index, self.path)
            return new
        raise NotFound(index)

    def delete(self, index: int) -> LogRecord:
        """Remove record ``index`` and renumber the records after it."""
        records = self._read()
        kept: list[LogRecord] = []
        removed: Optional[LogRecord] = None
        for r in records:
            if r.index == index and removed is None:
                removed = r
                continue
            kept.append(r)
        if removed is None:
            raise NotFound(index)

        renumbered = [r if r.index == i else dc_replace(r, index=i) for i, r in enumerate(kept, start=1)]
        self._write(renumbered)
        log.info("Deleted task #%d from %s (%d records remain)", index, self.path, len(renumbered))
        return removed
