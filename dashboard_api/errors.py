from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List


class ErrorKind(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    MISSING_INPUT = "MISSING_INPUT"
    UNSUPPORTED_INDICATOR = "UNSUPPORTED_INDICATOR"


class DataError(Exception):
    """
    Base for every failure that aborts an aggregator call.

    Each subclass pins one ErrorKind and carries a JSON-ready ``detail``
    payload so the HTTP boundary can report it without string parsing.
    """

    kind: ErrorKind

    def __init__(self, message: str, detail: Dict[str, Any]):
        super().__init__(message)
        self.message = message
        self.detail = detail


class NotFoundError(DataError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(f"CSV not found: {self.path}", {"path": str(self.path)})


class MissingInputError(DataError):
    kind = ErrorKind.MISSING_INPUT

    def __init__(self, paths: Iterable[str]):
        self.paths: List[str] = [str(p) for p in paths]
        listing = "\n - ".join(self.paths)
        super().__init__(f"Required CSV files are missing:\n - {listing}", {"missing": self.paths})


class UnsupportedIndicatorError(DataError):
    kind = ErrorKind.UNSUPPORTED_INDICATOR

    def __init__(self, name: str, supported: Iterable[str]):
        self.name = name
        self.supported = sorted(supported)
        super().__init__(
            f"Unsupported indicator: {name}",
            {"indicator": name, "supported": self.supported},
        )
