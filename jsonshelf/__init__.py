from __future__ import annotations

from .database import Database, __version__
from .errors import DatabaseError, ErrorCode
from .events import EventEmitter, EventPayload
from .matcher import ValueKind, classify, equal
from .settings import StoreOptions

__all__ = [
    "Database",
    "DatabaseError",
    "ErrorCode",
    "EventEmitter",
    "EventPayload",
    "StoreOptions",
    "ValueKind",
    "classify",
    "equal",
    "__version__",
]
