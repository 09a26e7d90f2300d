from __future__ import annotations

import copy
import logging
from typing import Any, Callable, TypedDict

from .errors import DatabaseError, ErrorCode

logger = logging.getLogger(__name__)


class EventPayload(TypedDict, total=False):
    """
    What listeners receive. ``file_name`` is always present; the rest
    depends on the event.
    """

    file_name: str
    file: dict[str, Any] | None
    key: str
    keys: list[str]
    value: Any
    values: list[Any]
    item: Any
    items: dict[str, Any]
    number: int | float
    is_found: bool
    result: Any
    deleted_values: list[Any]
    limit: int | None
    from_cache: bool
    save_cache: bool
    from_file: bool
    is_default_file: bool
    clone_file_name: str
    before_file: dict[str, Any]
    after_reset: dict[str, Any]
    input: dict[str, Any]


Listener = Callable[[EventPayload], Any]


class EventEmitter:
    """
    Synchronous, in-process observer list keyed by event name.

    Listeners run in registration order. A failing listener is logged and
    skipped; it never aborts the operation that emitted the event.
    """

    def __init__(self) -> None:
        # dict used as an insertion-ordered set
        self._listeners: dict[str, dict[Listener, None]] = {}

    def on(self, event: str, listener: Listener):
        _check_registration(event, listener)
        self._listeners.setdefault(event, {})[listener] = None
        return self

    def off(self, event: str, listener: Listener):
        _check_registration(event, listener)
        registered = self._listeners.get(event)
        if registered is not None:
            registered.pop(listener, None)
            if not registered:
                del self._listeners[event]
        return self

    def listeners(self, event: str) -> list[Listener]:
        return list(self._listeners.get(event, ()))

    def emit(self, event: str, payload: dict[str, Any]):
        # Snapshot so listeners may unsubscribe themselves mid-emit.
        listeners = list(self._listeners.get(event, ()))
        if not listeners:
            return self
        # Listeners get a private copy; the payload shares objects with return values.
        payload = copy.deepcopy(payload)
        for listener in listeners:
            try:
                listener(payload)  # type: ignore[arg-type]
            except Exception:
                logger.exception("EMIT %s: listener %r failed", event, listener)
        return self


def _check_registration(event: Any, listener: Any) -> None:
    if not isinstance(event, str):
        raise DatabaseError("event value must be a string", ErrorCode.INVALID_INPUT)
    if not callable(listener):
        raise DatabaseError("listener value must be callable", ErrorCode.INVALID_INPUT)
