"""JSON-file-backed store.

All tables live in one JSON file.  Writers serialise on an ``fcntl``
lock file and replace the document atomically (temp file +
``os.replace``), so readers always see a complete document and an
aborted write leaves the previous one in place.
"""

from __future__ import annotations

import errno
import fcntl
import json
import os
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import structlog

from ordercore.domain.exceptions import StoreUnavailable
from ordercore.infrastructure.persistence.store import StoreBackend, Tables, empty_tables

logger = structlog.get_logger(__name__)

STORE_FILE = "store.json"
_LOCK_POLL_SECONDS = 0.01


class JsonFileBackend(StoreBackend):

    def __init__(self, data_dir: Path, lock_timeout: float = 5.0) -> None:
        self._data_dir = data_dir
        self._file_path = data_dir / STORE_FILE
        self._lock_path = data_dir / ".store.lock"
        self._lock_timeout = lock_timeout

    @property
    def file_path(self) -> Path:
        return self._file_path

    # --- StoreBackend interface -----------------------------------------------

    def read(self) -> Tables:
        try:
            return self._load()
        except OSError as exc:
            raise StoreUnavailable(f"Cannot read store at {self._file_path}: {exc}") from exc

    @contextmanager
    def transaction(self) -> Iterator[Tables]:
        with self._lock():
            try:
                tables = self._load()
            except OSError as exc:
                raise StoreUnavailable(f"Cannot read store at {self._file_path}: {exc}") from exc
            yield tables
            self._persist(tables)

    # --- File helpers ---------------------------------------------------------

    @contextmanager
    def _lock(self) -> Iterator[None]:
        """Acquire the exclusive store lock, waiting at most ``lock_timeout``."""
        self._ensure_dir()
        deadline = time.monotonic() + self._lock_timeout
        with open(self._lock_path, "w") as lock_file:
            while True:
                try:
                    fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                    break
                except OSError as exc:
                    if exc.errno not in (errno.EAGAIN, errno.EACCES):
                        raise StoreUnavailable(f"Cannot lock store: {exc}") from exc
                    if time.monotonic() >= deadline:
                        logger.warning("store_lock_timeout", path=str(self._lock_path))
                        raise StoreUnavailable(
                            f"Store is busy; gave up after {self._lock_timeout:g}s"
                        ) from exc
                    time.sleep(_LOCK_POLL_SECONDS)
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def _load(self) -> Tables:
        if not self._file_path.exists():
            return empty_tables()
        with open(self._file_path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _persist(self, tables: Tables) -> None:
        self._ensure_dir()
        fd, temp_path = tempfile.mkstemp(
            dir=self._data_dir, prefix=".store_", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(tables, f, indent=2)
                f.write("\n")
            os.replace(temp_path, self._file_path)
        except Exception as exc:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            if isinstance(exc, OSError):
                raise StoreUnavailable(
                    f"Cannot write store at {self._file_path}: {exc}"
                ) from exc
            raise

    def _ensure_dir(self) -> None:
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreUnavailable(f"Cannot create data directory {self._data_dir}: {exc}") from exc
