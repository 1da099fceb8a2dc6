"""JSON file preference store.

Preferences are kept as one flat JSON object mapping keys to strings. A commit
merges the staged entries into the file under a lock and replaces the file
atomically, so readers see either the old or the new contents.
"""

from __future__ import annotations

import json
import logging
import os
import platform
import tempfile
import time
from pathlib import Path
from typing import Any

from ..exceptions import StoreOperationError
from .base import BufferedEditor, TargetEditor, TargetStore

logger = logging.getLogger(__name__)


LOCK_POLL_INTERVAL = 0.01


class CommitLock:
    """Exclusive lock on a preference file, held for the duration of a commit.

    The lock lives in a sibling ``<name>.lock`` file so the preference file
    itself can be replaced while the lock is held.
    """

    def __init__(self, path: Path, timeout: float = 10.0):
        self.lockfile = path.with_name(path.name + ".lock")
        self.timeout = timeout
        self._handle = None

    def _try_lock(self, handle) -> bool:
        try:
            if platform.system() == "Windows":
                import msvcrt

                msvcrt.locking(handle.fileno(), msvcrt.LK_NBLCK, 1)
            else:
                import fcntl

                fcntl.lockf(handle, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError:
            return False
        return True

    def acquire(self) -> None:
        """Wait for the lock.

        Raises:
            StoreOperationError: If the lock is not obtained within the timeout
        """
        deadline = time.monotonic() + self.timeout
        handle = open(self.lockfile, "wb")
        while not self._try_lock(handle):
            if time.monotonic() >= deadline:
                handle.close()
                raise StoreOperationError(
                    "lock", f"{self.lockfile} still locked after {self.timeout}s"
                )
            time.sleep(LOCK_POLL_INTERVAL)
        self._handle = handle

    def release(self) -> None:
        if self._handle is None:
            return
        if platform.system() == "Windows":
            import msvcrt

            try:
                msvcrt.locking(self._handle.fileno(), msvcrt.LK_UNLCK, 1)
            except OSError:
                pass
        self._handle.close()
        self._handle = None
        try:
            self.lockfile.unlink()
        except OSError:
            pass

    def __enter__(self) -> CommitLock:
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()


class PreferenceFileStore(TargetStore):
    """Flat ``{key: value}`` JSON preference file.

    Config keys:
        - path: Path to the JSON file (required); created on first commit
        - indent: JSON indentation (default: 2)
        - lock_timeout: Seconds to wait for a concurrent commit (default: 10)
    """

    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(config)
        if "path" not in self.config:
            raise ValueError("PreferenceFileStore requires a 'path'")
        self.path = Path(self.config["path"])
        self.indent = self.config.get("indent", 2)
        self.lock_timeout = self.config.get("lock_timeout", 10.0)

    def load(self) -> dict[str, str]:
        """Load all preferences.

        Returns:
            The stored mapping; empty if the file is missing or empty

        Raises:
            StoreOperationError: If the file is not a JSON object
        """
        if not self.path.exists() or self.path.stat().st_size == 0:
            return {}

        try:
            with open(self.path, encoding="utf-8") as f:
                content = f.read()
            if not content.strip():
                return {}
            data = json.loads(content)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreOperationError("load", f"cannot read {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise StoreOperationError("load", f"{self.path} does not hold a JSON object")
        return data

    def contains(self, key: str) -> bool:
        return key in self.load()

    def get(self, key: str) -> str | None:
        return self.load().get(key)

    def edit(self) -> TargetEditor:
        return BufferedEditor(self._write_batch, str(self.path))

    def _write_batch(self, staged: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with CommitLock(self.path, self.lock_timeout):
            data = self.load()
            data.update(staged)

            fd, tmp_path = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=self.indent, ensure_ascii=False)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise

        logger.debug(f"Wrote {len(staged)} preferences to {self.path}")
