from __future__ import annotations

from .disk_store import DiskJsonDocumentStore
from .interfaces import DocumentStore
from .locks import GLOBAL_PATH_LOCKS, PathLockRegistry

__all__ = [
    "DocumentStore",
    "DiskJsonDocumentStore",
    "GLOBAL_PATH_LOCKS",
    "PathLockRegistry",
]
