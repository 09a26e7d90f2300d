from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Callable, Iterable

from ..errors import DatabaseError, ErrorCode
from ..json_store import atomic_write_text, dump_json, normalize_name, read_json
from .interfaces import DocumentStore
from .locks import GLOBAL_PATH_LOCKS
from .paths import document_path, ensure_dir

logger = logging.getLogger(__name__)

EmitHook = Callable[[str, dict[str, Any]], Any]


class DiskJsonDocumentStore(DocumentStore):
    """
    Stores named JSON documents as ``<directory>/<name>.json``.

    - With ``auto_write`` every persist rewrites the file atomically.
    - With ``cache`` documents are kept in memory after the first load and
      the cache becomes the source of truth for that name; disk is only
      read again after ``destroy`` drops the entry.
    - Loads hand out deep copies and persists cache deep copies, so nothing
      outside the store can reach the cached objects.
    """

    def __init__(
        self,
        directory: Path,
        *,
        spaces: int = 4,
        auto_write: bool = True,
        cache: bool = False,
        emit: EmitHook | None = None,
    ):
        self._directory = ensure_dir(directory)
        self._spaces = spaces
        self._auto_write = auto_write
        self._cache: dict[str, dict[str, Any]] | None = {} if cache else None
        self._emit = emit

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def caching(self) -> bool:
        return self._cache is not None

    @property
    def auto_write(self) -> bool:
        return self._auto_write

    def normalize(self, name: str) -> str:
        return normalize_name(name)

    def path_for(self, name: str) -> Path:
        return document_path(self._directory, name)

    def cached_names(self) -> list[str]:
        return list(self._cache) if self._cache is not None else []

    def exists(self, name: str) -> bool:
        name = self.normalize(name)
        if self._cache is not None and name in self._cache:
            return True
        return self.path_for(name).exists()

    def ensure(self, name: str) -> None:
        """Create an empty document on disk if the file is missing."""
        path = self.path_for(name)
        with GLOBAL_PATH_LOCKS.lock_for(path):
            if not path.exists():
                atomic_write_text(path, dump_json({}, indent=self._spaces))
                logger.debug("DOC ENSURE: created empty %s", path)

    def load(self, name: str) -> dict[str, Any]:
        name = self.normalize(name)
        if self._cache is not None:
            cached = self._cache.get(name)
            if cached is not None:
                logger.debug("DOC LOAD: cache hit %s", name)
                doc = copy.deepcopy(cached)
                self._notify("getFile", {"file_name": name, "file": doc, "from_cache": True, "save_cache": False, "from_file": False})
                return doc

        path = self.path_for(name)
        with GLOBAL_PATH_LOCKS.lock_for(path):
            doc = read_json(path)
        logger.debug("DOC LOAD: read %s (%d keys)", path, len(doc))

        if self._cache is not None:
            self._cache[name] = copy.deepcopy(doc)
            self._notify("getFile", {"file_name": name, "file": doc, "from_cache": False, "save_cache": True, "from_file": True})
        else:
            self._notify("getFile", {"file_name": name, "file": doc, "from_cache": False, "save_cache": False, "from_file": True})
        return doc

    def persist(self, name: str, doc: dict[str, Any]) -> None:
        name = self.normalize(name)
        # Serialize up front so a bad value fails before disk or cache change.
        text = dump_json(doc, indent=self._spaces)

        if self._auto_write:
            path = self.path_for(name)
            with GLOBAL_PATH_LOCKS.lock_for(path):
                atomic_write_text(path, text)
            logger.debug("DOC WRITE: %s (%d keys)", path, len(doc))
            self._notify("writeFile", {"file_name": name, "file": doc})

        if self._cache is not None:
            self._cache[name] = copy.deepcopy(doc)
            self._notify("writeCache", {"file_name": name, "file": doc})

    def destroy(self, name: str) -> None:
        name = self.normalize(name)
        path = self.path_for(name)
        in_cache = self._cache is not None and name in self._cache

        with GLOBAL_PATH_LOCKS.lock_for(path):
            try:
                path.unlink()
            except FileNotFoundError as e:
                if not in_cache:
                    raise DatabaseError(f"{name}.json file not found", ErrorCode.MISSING_FILE) from e
            except OSError as e:
                raise DatabaseError(f"failed to delete {path}: {e}", ErrorCode.IO_ERROR) from e
        GLOBAL_PATH_LOCKS.forget(path)

        if self._cache is not None:
            self._cache.pop(name, None)
        logger.info("DOC DESTROY: %s", path)

    def create(self, name: str, doc: dict[str, Any]) -> dict[str, Any]:
        name = self.normalize(name)
        if self.exists(name):
            raise DatabaseError(f"a file named {name}.json already exists", ErrorCode.ALREADY_EXISTS)
        self.persist(name, doc)
        logger.info("DOC CREATE: %s", name)
        return doc

    def clone(self, source: str, dest: str) -> dict[str, Any]:
        dest = self.normalize(dest)
        if self.exists(dest):
            raise DatabaseError(f"a file named {dest}.json already exists", ErrorCode.ALREADY_EXISTS)
        doc = self.load(source)
        self.persist(dest, doc)
        logger.info("DOC CLONE: %s -> %s", self.normalize(source), dest)
        return doc

    def write_all(self, names: str | Iterable[str] | None = None) -> bool:
        """
        Flush cached documents to disk.

        This is how a cache-only store (``auto_write`` off) gets batched onto
        disk. Returns False when caching is disabled since there is nothing
        to flush.
        """
        if self._cache is None:
            return False

        if names is None:
            targets = list(self._cache)
        elif isinstance(names, str):
            targets = [self.normalize(names)]
        else:
            targets = [self.normalize(n) for n in names]

        for name in targets:
            doc = self._cache.get(name)
            if doc is None:
                logger.debug("DOC FLUSH: %s not cached, skipping", name)
                continue
            path = self.path_for(name)
            text = dump_json(doc, indent=self._spaces)
            with GLOBAL_PATH_LOCKS.lock_for(path):
                atomic_write_text(path, text)
            logger.debug("DOC FLUSH: %s", path)
            self._notify("writeFile", {"file_name": name, "file": doc})
        return True

    def _notify(self, event: str, payload: dict[str, Any]) -> None:
        if self._emit is not None:
            self._emit(event, payload)
