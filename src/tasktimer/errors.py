from __future__ import annotations

from pathlib import Path
from typing import Optional


class TaskTimerError(Exception):
    """Base class for every error the tasktimer core raises."""


class ConfigError(TaskTimerError):
    pass


class IoFailure(TaskTimerError):
    def __init__(self, action: str, path: Path | str, reason: str) -> None:
        self.action = action
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"could not {action} '{path}': {reason}")


class MalformedRecord(TaskTimerError):
    """A line of the log could not be decoded.

    ``field`` names the offending column (or ``"header"`` / ``"row"``), ``line`` is the
    1-based physical line number when known.
    """

    def __init__(self, field: str, reason: str, *, line: Optional[int] = None, value: Optional[str] = None) -> None:
        self.field = field
        self.reason = reason
        self.line = line
        self.value = value
        where = f"line {line}: " if line is not None else ""
        shown = f" (got {value!r})" if value is not None else ""
        super().__init__(f"{where}malformed {field}: {reason}{shown}")

    def at_line(self, line: int) -> "MalformedRecord":
        return MalformedRecord(self.field, self.reason, line=line, value=self.value)


class InvalidDescription(TaskTimerError):
    pass


class NotFound(TaskTimerError):
    def __init__(self, index: Optional[int]) -> None:
        self.index = index
        if index is None:
            super().__init__("No entries in the log yet.")
        else:
            super().__init__(f"No such entry: {index}")


class InvalidTransition(TaskTimerError):
    def __init__(self, index: int, message: str) -> None:
        self.index = index
        super().__init__(message)


class AlreadyPaused(InvalidTransition):
    def __init__(self, index: int) -> None:
        super().__init__(index, f"Task #{index} is already paused. Use `resume` to continue it.")


class NotPaused(InvalidTransition):
    def __init__(self, index: int) -> None:
        super().__init__(index, f"Task #{index} is not paused. Use `pause` first.")


class AlreadyStopped(InvalidTransition):
    def __init__(self, index: int) -> None:
        super().__init__(index, f"Task #{index} is already stopped. Start a new task instead.")
