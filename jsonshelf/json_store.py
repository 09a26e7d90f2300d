from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .errors import DatabaseError, ErrorCode

JSON_SUFFIX = ".json"


def normalize_name(name: str) -> str:
    """
    Strip a single trailing ".json" (case-sensitive, trailing whitespace tolerated).

    Names without the suffix come back unchanged.
    """
    stripped = name.rstrip()
    if stripped.endswith(JSON_SUFFIX):
        return stripped[: -len(JSON_SUFFIX)]
    return name


def dump_json(payload: Any, *, indent: int = 4) -> str:
    """
    Serialize a document, keeping key insertion order.

    An indent of 0 gives compact single-line output. NaN and infinities
    are rejected since JSON has no spelling for them.
    """
    try:
        return json.dumps(payload, indent=indent or None, ensure_ascii=False, allow_nan=False) + "\n"
    except (TypeError, ValueError) as e:
        raise DatabaseError(f"document is not JSON serializable: {e}", ErrorCode.INVALID_INPUT) from e


def read_json(path: Path) -> dict[str, Any]:
    """
    Read a document from disk.

    Raises MISSING_FILE for a missing file and CORRUPT_DOCUMENT for empty
    or unparsable content or a top level that is not an object.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise DatabaseError(f"{path.name} file not found", ErrorCode.MISSING_FILE) from e
    except OSError as e:
        raise DatabaseError(f"failed to read {path}: {e}", ErrorCode.IO_ERROR) from e

    if not raw.strip():
        raise DatabaseError(f"{path.name} is empty", ErrorCode.CORRUPT_DOCUMENT)
    try:
        doc = json.loads(raw)
    except json.JSONDecodeError as e:
        raise DatabaseError(f"{path.name} is not valid JSON: {e}", ErrorCode.CORRUPT_DOCUMENT) from e
    if not isinstance(doc, dict):
        raise DatabaseError(f"{path.name} does not hold a JSON object", ErrorCode.CORRUPT_DOCUMENT)
    return doc


def atomic_write_text(path: Path, text: str) -> None:
    """
    Atomically write already-serialized JSON by writing a temp file then replacing.
    """
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tmp_path.open("w", encoding="utf-8") as f:
            f.write(text)
        tmp_path.replace(path)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise DatabaseError(f"failed to write {path}: {e}", ErrorCode.IO_ERROR) from e


def atomic_write_json(path: Path, payload: Any, *, indent: int = 4) -> None:
    atomic_write_text(path, dump_json(payload, indent=indent))
