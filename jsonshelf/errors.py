from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum


class ErrorCode(str, Enum):
    MISSING_INPUT = "missingInput"
    INVALID_INPUT = "invalidInput"
    NOT_ARRAY = "notArray"
    NOT_NUMBER = "notNumber"
    NEGATIVE_NUMBER = "negativeNumber"
    DIVIDE_BY_ZERO = "zeroNumber"
    MISSING_FILE = "missingFile"
    ALREADY_EXISTS = "exists"
    CONFIGURATION = "configuration"
    CORRUPT_DOCUMENT = "corruptDocument"
    IO_ERROR = "ioError"


class DatabaseError(Exception):
    """
    The one error type raised by jsonshelf.

    Callers branch on ``code``; ``message`` is meant for humans.
    """

    def __init__(self, message: str, code: ErrorCode):
        super().__init__(f"[DatabaseError]: {message}")
        self.message = message
        self.code = code
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def __repr__(self) -> str:
        return f"DatabaseError({self.message!r}, code={self.code.name})"
