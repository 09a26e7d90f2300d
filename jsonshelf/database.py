from __future__ import annotations

import logging
import math
import operator
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Callable, Iterable

from .errors import DatabaseError, ErrorCode
from .events import EventEmitter
from .matcher import classify, equal
from .persistence.disk_store import DiskJsonDocumentStore
from .settings import StoreOptions, get_options

__version__ = "1.0.0"

logger = logging.getLogger(__name__)

Predicate = Callable[[str, Any, int], Any]


class Database(EventEmitter):
    """
    Key-value façade over named JSON documents.

    Every operation takes an optional trailing ``file_name``; without it the
    instance's default document is used. Mutations follow one protocol:
    load a private copy, change it, persist it once, emit the event, return.
    """

    def __init__(self, file_name: str | None = None, **options: Any):
        super().__init__()
        self._options: StoreOptions = get_options(file_name, **options)
        self._default_name = self._options.file_name
        self._store = DiskJsonDocumentStore(
            self._options.directory,
            spaces=self._options.spaces,
            auto_write=self._options.auto_write,
            cache=self._options.cache,
            emit=self.emit,
        )
        self._store.ensure(self._default_name)

    def __repr__(self) -> str:
        return f"<Database {self._default_name!r} in {str(self._store.directory)!r}>"

    @property
    def version(self) -> str:
        return f"v{__version__}"

    @property
    def options(self) -> StoreOptions:
        return self._options

    @property
    def default_file_name(self) -> str:
        return self._default_name

    @property
    def store(self) -> DiskJsonDocumentStore:
        return self._store

    def path_for(self, file_name: str | None = None) -> Path:
        return self._store.path_for(self._resolve(file_name))

    # ------------------------------------------------------------------
    # Whole document
    # ------------------------------------------------------------------

    def keys(self, file_name: str | None = None) -> list[str]:
        return list(self._store.load(self._resolve(file_name)))

    def values(self, file_name: str | None = None) -> list[Any]:
        return list(self._store.load(self._resolve(file_name)).values())

    def get_all(self, file_name: str | None = None) -> dict[str, Any]:
        name = self._resolve(file_name)
        doc = self._store.load(name)
        self.emit("getAll", {"file_name": name, "file": doc})
        return doc

    def to_json(self, file_name: str | None = None) -> dict[str, Any]:
        return self._store.load(self._resolve(file_name))

    def to_array(self, file_name: str | None = None) -> list[list[Any]]:
        return [[k, v] for k, v in self._store.load(self._resolve(file_name)).items()]

    def write_all(self, names: str | Iterable[str] | None = None) -> bool:
        """
        Flush cached documents to disk; the batched counterpart of autoWrite.

        ``names`` may be one name, a list of names, or None for every cached
        document. Returns False when caching is off.
        """
        if names is not None and not isinstance(names, str):
            if not isinstance(names, (list, tuple)) or not all(isinstance(n, str) for n in names):
                raise DatabaseError("names value must be a string or a list of strings", ErrorCode.INVALID_INPUT)
        return self._store.write_all(names)

    def delete_all(self, file_name: str | None = None) -> dict[str, Any]:
        name = self._resolve(file_name)
        before = self._store.load(name)
        empty: dict[str, Any] = {}
        self._commit(name, empty, "deleteAll", before_file=before)
        return empty

    def reset(self, file_name: str | None = None) -> dict[str, Any]:
        name = self._resolve(file_name)
        empty: dict[str, Any] = {}
        self._store.persist(name, empty)
        self.emit("reset", {"file_name": name, "file": empty, "after_reset": empty})
        return empty

    def destroy(self, file_name: str | None = None) -> bool:
        name = self._resolve(file_name)
        self._store.destroy(name)
        self.emit("destroy", {"file_name": name, "file": None})
        return True

    def create(self, file_name: str, document: Mapping[str, Any] | None = None, make_default: bool = False) -> dict[str, Any]:
        if file_name is None or file_name == "":
            raise DatabaseError("fileName is missing", ErrorCode.MISSING_INPUT)
        name = self._resolve(file_name)
        if document is None:
            doc: dict[str, Any] = {}
        elif isinstance(document, Mapping):
            doc = dict(document)
        else:
            raise DatabaseError("document value must be a mapping", ErrorCode.INVALID_INPUT)

        self._store.create(name, doc)
        if make_default:
            logger.info("DEFAULT FILE: %s -> %s", self._default_name, name)
            self._default_name = name
        self.emit("create", {"file_name": name, "file": doc, "is_default_file": bool(make_default)})
        return doc

    def clone(self, clone_file_name: str, file_name: str | None = None) -> dict[str, Any]:
        if clone_file_name is None or clone_file_name == "":
            raise DatabaseError("the name of the clone file is missing", ErrorCode.MISSING_INPUT)
        dest = self._resolve(clone_file_name)
        name = self._resolve(file_name)
        doc = self._store.clone(name, dest)
        self.emit("clone", {"file_name": name, "file": doc, "clone_file_name": dest})
        return doc

    # ------------------------------------------------------------------
    # Point and bulk key operations
    # ------------------------------------------------------------------

    def set(self, key: str, value: Any, file_name: str | None = None) -> dict[str, Any]:
        _check_key(key)
        name = self._resolve(file_name)
        doc = self._store.load(name)
        doc[key] = value
        self._commit(name, doc, "set", key=key, value=value)
        return doc

    def set_many(self, entries: Mapping[str, Any] | Iterable[tuple[str, Any]], file_name: str | None = None) -> dict[str, Any]:
        items = _as_items(entries, "entries")
        name = self._resolve(file_name)
        doc = self._store.load(name)
        doc.update(items)
        self._commit(name, doc, "setMany", items=items)
        return doc

    def set_file(self, document: Mapping[str, Any] | Iterable[tuple[str, Any]], file_name: str | None = None) -> dict[str, Any]:
        """Replace the whole document with ``document``."""
        doc = _as_items(document, "document")
        name = self._resolve(file_name)
        self._commit(name, doc, "setFile", input=doc)
        return doc

    def get(self, key: str, fallback: Any = None, file_name: str | None = None) -> Any:
        _check_key(key)
        name = self._resolve(file_name)
        doc = self._store.load(name)
        is_found = key in doc
        value = doc[key] if is_found else fallback
        self.emit("get", {"file_name": name, "file": doc, "key": key, "is_found": is_found, "value": value})
        return value

    def get_many(self, keys: list[str], fallback: Any = None, file_name: str | None = None) -> Any:
        """
        Return ``{key: value}`` for the keys that exist.

        Missing keys are left out rather than padded; ``fallback`` is only
        returned when none of the keys exist.
        """
        _check_keys(keys)
        name = self._resolve(file_name)
        doc = self._store.load(name)
        found = {key: doc[key] for key in keys if key in doc}
        result = found if found else fallback
        self.emit("getMany", {"file_name": name, "file": doc, "keys": list(keys), "is_found": bool(found), "result": result})
        return result

    def delete(self, key: str, file_name: str | None = None) -> Any:
        _check_key(key)
        name = self._resolve(file_name)
        doc = self._store.load(name)
        if key not in doc:
            self.emit("delete", {"file_name": name, "file": doc, "key": key, "is_found": False})
            return None
        value = doc.pop(key)
        self._commit(name, doc, "delete", key=key, value=value, is_found=True)
        return value

    def delete_many(self, keys: list[str], file_name: str | None = None) -> list[Any]:
        _check_keys(keys)
        name = self._resolve(file_name)
        doc = self._store.load(name)
        removed = [doc.pop(key) for key in keys if key in doc]
        if removed:
            self._commit(name, doc, "deleteMany", keys=list(keys), result=removed)
        else:
            self.emit("deleteMany", {"file_name": name, "file": doc, "keys": list(keys), "result": removed})
        return removed

    def has(self, key: str, file_name: str | None = None) -> bool:
        _check_key(key)
        name = self._resolve(file_name)
        doc = self._store.load(name)
        result = key in doc
        self.emit("has", {"file_name": name, "file": doc, "key": key, "result": result})
        return result

    def has_any(self, keys: list[str], file_name: str | None = None) -> bool:
        _check_keys(keys)
        name = self._resolve(file_name)
        doc = self._store.load(name)
        result = any(key in doc for key in keys)
        self.emit("hasAny", {"file_name": name, "file": doc, "keys": list(keys), "result": result})
        return result

    def has_all(self, keys: list[str], file_name: str | None = None) -> bool:
        _check_keys(keys)
        name = self._resolve(file_name)
        doc = self._store.load(name)
        result = all(key in doc for key in keys)
        self.emit("hasAll", {"file_name": name, "file": doc, "keys": list(keys), "result": result})
        return result

    # ------------------------------------------------------------------
    # Value based lookups
    # ------------------------------------------------------------------

    def get_by_value(self, value: Any, fallback: Any = None, file_name: str | None = None) -> Any:
        name = self._resolve(file_name)
        doc = self._store.load(name)
        key = _key_of(doc, value)
        result = key if key is not None else fallback
        self.emit("getByValue", {"file_name": name, "file": doc, "value": value, "result": result})
        return result

    def get_many_by_value(self, values: list[Any], fallback: Any = None, file_name: str | None = None) -> Any:
        """
        Resolve each value to the first key holding an equal value.

        Always returns a list (in input order, unresolved values skipped),
        or ``fallback`` when nothing resolved at all.
        """
        _check_list(values, "values")
        name = self._resolve(file_name)
        doc = self._store.load(name)
        keys = [key for key in (_key_of(doc, v) for v in values) if key is not None]
        result = keys if keys else fallback
        self.emit("getManyByValue", {"file_name": name, "file": doc, "values": list(values), "result": result})
        return result

    def has_value(self, value: Any, file_name: str | None = None) -> bool:
        name = self._resolve(file_name)
        doc = self._store.load(name)
        result = _key_of(doc, value) is not None
        self.emit("hasValue", {"file_name": name, "file": doc, "value": value, "result": result})
        return result

    def has_any_value(self, values: list[Any], file_name: str | None = None) -> bool:
        _check_list(values, "values")
        name = self._resolve(file_name)
        doc = self._store.load(name)
        result = any(_key_of(doc, v) is not None for v in values)
        self.emit("hasAnyValue", {"file_name": name, "file": doc, "values": list(values), "result": result})
        return result

    def has_all_value(self, values: list[Any], file_name: str | None = None) -> bool:
        _check_list(values, "values")
        name = self._resolve(file_name)
        doc = self._store.load(name)
        result = all(_key_of(doc, v) is not None for v in values)
        self.emit("hasAllValue", {"file_name": name, "file": doc, "values": list(values), "result": result})
        return result

    # ------------------------------------------------------------------
    # Predicate search; predicates are called as predicate(key, value, index)
    # ------------------------------------------------------------------

    def find(self, predicate: Predicate, file_name: str | None = None) -> Any:
        _check_callable(predicate)
        name = self._resolve(file_name)
        doc = self._store.load(name)
        for index, (key, value) in enumerate(doc.items()):
            if predicate(key, value, index):
                self.emit("find", {"file_name": name, "file": doc, "key": key, "value": value, "is_found": True})
                return value
        self.emit("find", {"file_name": name, "file": doc, "is_found": False})
        return None

    def filter(self, predicate: Predicate, file_name: str | None = None) -> dict[str, Any]:
        _check_callable(predicate)
        return self._filter(predicate, file_name, "filter")

    def includes(self, text: str, file_name: str | None = None) -> dict[str, Any]:
        """Entries whose key contains ``text``."""
        _check_key(text)
        return self._filter(lambda key, value, index: text in key, file_name, "includes", value=text)

    def starts_with(self, prefix: str, file_name: str | None = None) -> dict[str, Any]:
        _check_key(prefix)
        return self._filter(lambda key, value, index: key.startswith(prefix), file_name, "startsWith", value=prefix)

    def some(self, predicate: Predicate, file_name: str | None = None) -> bool:
        _check_callable(predicate)
        name = self._resolve(file_name)
        doc = self._store.load(name)
        result = any(predicate(key, value, index) for index, (key, value) in enumerate(doc.items()))
        self.emit("some", {"file_name": name, "file": doc, "result": result})
        return result

    def every(self, predicate: Predicate, file_name: str | None = None) -> bool:
        _check_callable(predicate)
        name = self._resolve(file_name)
        doc = self._store.load(name)
        result = all(predicate(key, value, index) for index, (key, value) in enumerate(doc.items()))
        self.emit("every", {"file_name": name, "file": doc, "result": result})
        return result

    def for_each(self, callback: Predicate, file_name: str | None = None) -> None:
        _check_callable(callback)
        name = self._resolve(file_name)
        doc = self._store.load(name)
        self.emit("forEach", {"file_name": name, "file": doc})
        for index, (key, value) in enumerate(doc.items()):
            callback(key, value, index)

    def find_and_delete(self, predicate: Predicate, file_name: str | None = None) -> Any:
        _check_callable(predicate)
        name = self._resolve(file_name)
        doc = self._store.load(name)
        for index, (key, value) in enumerate(list(doc.items())):
            if predicate(key, value, index):
                del doc[key]
                self._commit(name, doc, "findAndDelete", key=key, value=value, is_found=True)
                return value
        self.emit("findAndDelete", {"file_name": name, "file": doc, "is_found": False})
        return None

    def filter_and_delete(self, predicate: Predicate, limit: int | None = None, file_name: str | None = None) -> list[Any]:
        """
        Remove up to ``limit`` matching entries (all of them when None) and
        return their values in document order.
        """
        _check_callable(predicate)
        if limit is not None:
            if isinstance(limit, bool) or not isinstance(limit, int):
                raise DatabaseError("limit value must be an integer", ErrorCode.INVALID_INPUT)
            if limit < 0:
                raise DatabaseError("limit value must be greater than or equal to 0", ErrorCode.NEGATIVE_NUMBER)
        name = self._resolve(file_name)
        doc = self._store.load(name)

        removed: list[Any] = []
        if limit != 0:
            for index, (key, value) in enumerate(list(doc.items())):
                if predicate(key, value, index):
                    removed.append(doc.pop(key))
                    if limit is not None and len(removed) >= limit:
                        break

        if removed:
            self._commit(name, doc, "filterAndDelete", limit=limit, result=removed)
        else:
            self.emit("filterAndDelete", {"file_name": name, "file": doc, "limit": limit, "result": removed})
        return removed

    # ------------------------------------------------------------------
    # Array valued entries
    # ------------------------------------------------------------------

    def push(self, key: str, item: Any, file_name: str | None = None) -> list[Any]:
        _check_key(key)
        name = self._resolve(file_name)
        doc = self._store.load(name)
        data = _array_at(doc, key)
        data.append(item)
        self._commit(name, doc, "push", key=key, item=item, result=data)
        return data

    def push_all(self, key: str, values: list[Any], file_name: str | None = None) -> list[Any]:
        _check_key(key)
        _check_list(values, "values")
        name = self._resolve(file_name)
        doc = self._store.load(name)
        data = _array_at(doc, key)
        data.extend(values)
        self._commit(name, doc, "pushAll", key=key, values=list(values), result=data)
        return data

    def unshift(self, key: str, item: Any, file_name: str | None = None) -> list[Any]:
        _check_key(key)
        name = self._resolve(file_name)
        doc = self._store.load(name)
        data = _array_at(doc, key)
        data.insert(0, item)
        self._commit(name, doc, "unshift", key=key, item=item, result=data)
        return data

    def unshift_all(self, key: str, values: list[Any], file_name: str | None = None) -> list[Any]:
        _check_key(key)
        _check_list(values, "values")
        name = self._resolve(file_name)
        doc = self._store.load(name)
        data = _array_at(doc, key)
        data[:0] = values
        self._commit(name, doc, "unshiftAll", key=key, values=list(values), result=data)
        return data

    def pop(self, key: str, count: int = 1, file_name: str | None = None) -> list[Any]:
        """
        Remove up to ``count`` items from the end of the array at ``key``.

        The removed items are returned in the order they had in the array.
        """
        _check_key(key)
        count = _to_count(count)
        name = self._resolve(file_name)
        doc = self._store.load(name)
        data = _array_at(doc, key)
        cut = max(len(data) - count, 0)
        removed = data[cut:]
        del data[cut:]
        self._commit(name, doc, "pop", key=key, number=count, deleted_values=removed, result=data)
        return removed

    def shift(self, key: str, count: int = 1, file_name: str | None = None) -> list[Any]:
        _check_key(key)
        count = _to_count(count)
        name = self._resolve(file_name)
        doc = self._store.load(name)
        data = _array_at(doc, key)
        removed = data[:count]
        del data[:count]
        self._commit(name, doc, "shift", key=key, number=count, deleted_values=removed, result=data)
        return removed

    # ------------------------------------------------------------------
    # Numeric entries; a missing (or null) key counts as 0
    # ------------------------------------------------------------------

    def add(self, key: str, number: int | float | str = 1, file_name: str | None = None) -> int | float:
        _check_key(key)
        operand = _to_number(number, "number value")
        name = self._resolve(file_name)
        doc = self._store.load(name)
        result = _apply(operator.add, _number_at(doc, key), operand)
        doc[key] = result
        self._commit(name, doc, "add", key=key, number=operand, result=result)
        return result

    def subtract(
        self,
        key: str,
        number: int | float | str = 1,
        allow_negative: bool = True,
        clamp_at_zero: bool = True,
        file_name: str | None = None,
    ) -> int | float:
        """
        Subtract ``number`` from the value at ``key``.

        When ``allow_negative`` is off and the result would drop below zero,
        it is clamped to 0 if ``clamp_at_zero`` is set; otherwise a
        NEGATIVE_NUMBER error is raised and nothing is written.
        """
        _check_key(key)
        operand = _to_number(number, "number value")
        name = self._resolve(file_name)
        doc = self._store.load(name)
        result = _apply(operator.sub, _number_at(doc, key), operand)
        if result < 0 and not allow_negative:
            if not clamp_at_zero:
                raise DatabaseError(f"subtracting {operand} from {key!r} would go below zero", ErrorCode.NEGATIVE_NUMBER)
            result = 0
        doc[key] = result
        self._commit(name, doc, "subtract", key=key, number=operand, result=result)
        return result

    def multiply(self, key: str, number: int | float | str, file_name: str | None = None) -> int | float:
        _check_key(key)
        operand = _to_number(number, "number value")
        name = self._resolve(file_name)
        doc = self._store.load(name)
        result = _apply(operator.mul, _number_at(doc, key), operand)
        doc[key] = result
        self._commit(name, doc, "multiply", key=key, number=operand, result=result)
        return result

    def divide(self, key: str, number: int | float | str, keep_decimal: bool = False, file_name: str | None = None) -> int | float:
        _check_key(key)
        operand = _to_number(number, "number value")
        if operand == 0:
            raise DatabaseError("number value must not be 0", ErrorCode.DIVIDE_BY_ZERO)
        name = self._resolve(file_name)
        doc = self._store.load(name)
        quotient = _apply(operator.truediv, _number_at(doc, key), operand)
        result = quotient if keep_decimal else math.floor(quotient)
        doc[key] = result
        self._commit(name, doc, "divide", key=key, number=operand, result=result)
        return result

    # ------------------------------------------------------------------
    # Type introspection
    # ------------------------------------------------------------------

    def type_of(self, key: str, file_name: str | None = None) -> str:
        """
        Tag of the stored value: "null", "boolean", "number", "string",
        "array", "object" (or "other"); "undefined" when the key is absent.
        """
        _check_key(key)
        doc = self._store.load(self._resolve(file_name))
        if key not in doc:
            return "undefined"
        return classify(doc[key]).value

    # ------------------------------------------------------------------

    def _resolve(self, file_name: str | None) -> str:
        if file_name is None:
            return self._default_name
        if not isinstance(file_name, str):
            raise DatabaseError("fileName value must be a string", ErrorCode.INVALID_INPUT)
        return self._store.normalize(file_name)

    def _filter(self, predicate: Predicate, file_name: str | None, event: str, **details: Any) -> dict[str, Any]:
        name = self._resolve(file_name)
        doc = self._store.load(name)
        result = {key: value for index, (key, value) in enumerate(doc.items()) if predicate(key, value, index)}
        self.emit(event, {"file_name": name, "file": doc, "result": result, **details})
        return result

    def _commit(self, name: str, doc: dict[str, Any], event: str, **details: Any) -> None:
        self._store.persist(name, doc)
        self.emit(event, {"file_name": name, "file": doc, **details})


def _check_key(key: Any) -> None:
    if key is None or key == "":
        raise DatabaseError("key value is missing", ErrorCode.MISSING_INPUT)
    if not isinstance(key, str):
        raise DatabaseError("key value must be a string", ErrorCode.INVALID_INPUT)


def _check_list(value: Any, what: str) -> None:
    if value is None:
        raise DatabaseError(f"{what} value is missing", ErrorCode.MISSING_INPUT)
    if not isinstance(value, (list, tuple)):
        raise DatabaseError(f"{what} value must be a list", ErrorCode.INVALID_INPUT)


def _check_keys(keys: Any) -> None:
    _check_list(keys, "keys")
    for key in keys:
        _check_key(key)


def _check_callable(fn: Any) -> None:
    if not callable(fn):
        raise DatabaseError("callback value must be callable", ErrorCode.INVALID_INPUT)


def _as_items(entries: Any, what: str) -> dict[str, Any]:
    if entries is None:
        raise DatabaseError(f"{what} value is missing", ErrorCode.MISSING_INPUT)
    if isinstance(entries, Mapping):
        items = dict(entries)
    elif isinstance(entries, (list, tuple)):
        try:
            items = dict(entries)
        except (TypeError, ValueError) as e:
            raise DatabaseError(f"{what} value must be a mapping or a list of pairs", ErrorCode.INVALID_INPUT) from e
    else:
        raise DatabaseError(f"{what} value must be a mapping or a list of pairs", ErrorCode.INVALID_INPUT)
    for key in items:
        _check_key(key)
    return items


def _key_of(doc: dict[str, Any], value: Any) -> str | None:
    for key, stored in doc.items():
        if equal(value, stored):
            return key
    return None


def _array_at(doc: dict[str, Any], key: str) -> list[Any]:
    if doc.get(key) is None:
        doc[key] = []
    data = doc[key]
    if not isinstance(data, list):
        raise DatabaseError(f"the value at {key!r} must be an array", ErrorCode.NOT_ARRAY)
    return data


def _number_at(doc: dict[str, Any], key: str) -> int | float:
    stored = doc.get(key)
    if stored is None:
        return 0
    return _to_number(stored, f"the value at {key!r}")


def _to_number(value: Any, what: str) -> int | float:
    if isinstance(value, bool):
        raise DatabaseError(f"{what} must be a number", ErrorCode.NOT_NUMBER)
    if isinstance(value, (int, float)):
        n = value
    elif isinstance(value, str):
        try:
            n = int(value)
        except ValueError:
            try:
                n = float(value)
            except ValueError:
                raise DatabaseError(f"{what} must be a number", ErrorCode.NOT_NUMBER) from None
    else:
        raise DatabaseError(f"{what} must be a number", ErrorCode.NOT_NUMBER)
    if isinstance(n, float) and not math.isfinite(n):
        raise DatabaseError(f"{what} must be a finite number", ErrorCode.NOT_NUMBER)
    return n


def _to_count(value: Any) -> int:
    n = _to_number(value, "number value")
    if isinstance(n, float):
        if not n.is_integer():
            raise DatabaseError("number value must be a whole number", ErrorCode.NOT_NUMBER)
        n = int(n)
    if n < 0:
        raise DatabaseError("number value must be greater than or equal to 0", ErrorCode.NEGATIVE_NUMBER)
    return n


def _apply(op: Callable[[Any, Any], Any], left: int | float, right: int | float) -> int | float:
    try:
        n = op(left, right)
    except OverflowError as e:
        raise DatabaseError(f"result of {op.__name__} is too large", ErrorCode.NOT_NUMBER) from e
    if isinstance(n, float) and not math.isfinite(n):
        raise DatabaseError(f"result of {op.__name__} is not a finite number", ErrorCode.NOT_NUMBER)
    return _tidy(n)


def _tidy(n: int | float) -> int | float:
    # JSON has a single number type; keep 3.0 as 3 so files stay stable.
    if isinstance(n, float) and n.is_integer():
        return int(n)
    return n
