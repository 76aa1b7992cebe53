from __future__ import annotations
from typing import Optional


class PortwatchError(Exception):
    pass


class TableParseError(PortwatchError):
    """A socket table line does not have the kernel's record layout."""

    def __init__(self, lineno: int, line: str, reason: str):
        self.lineno = lineno
        self.line = line
        self.reason = reason
        super().__init__(f"line {lineno}: {reason}: {line.strip()!r}")


class TableReadError(PortwatchError):
    """Reading one family's table failed during a poll."""

    def __init__(self, family: int, path: str, cause: BaseException):
        self.family = family
        self.path = path
        self.cause = cause
        super().__init__(f"cannot read tcp{'' if family == 4 else '6'} table {path}: {cause}")

    @property
    def missing(self) -> bool:
        return isinstance(self.cause, FileNotFoundError)


class ConfigError(PortwatchError):
    def __init__(self, message: str, key: Optional[str] = None):
        self.key = key
        super().__init__(f"{key}: {message}" if key else message)
