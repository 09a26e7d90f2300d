from __future__ import annotations

from pathlib import Path

from ..json_store import JSON_SUFFIX, normalize_name


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def document_path(directory: Path, name: str) -> Path:
    # "users/alice.json" and "users/alice" both map to <directory>/users/alice.json
    return directory / f"{normalize_name(name)}{JSON_SUFFIX}"
