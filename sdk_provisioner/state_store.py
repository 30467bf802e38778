from __future__ import annotations

import contextlib
import fcntl
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Iterator, List, Optional

from .errors import StateLockedError, StateStoreError

logger = logging.getLogger(__name__)

MARKER_SUFFIX = ".done"
LOCK_NAME = ".lock"

_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


def _check_name(name: str) -> str:
    if not _NAME_RE.match(name) or name.endswith(MARKER_SUFFIX):
        raise ValueError(f"Invalid state key: {name!r}")
    return name


class StateStore:
    """Directory-backed checkpoint store.

    Layout (one directory per provisioning target):
      <step_id>.done   presence marker, written once the step succeeded
      <KEY>            auxiliary value as text
      .lock            flock target for the running orchestrator

    Every write is flushed to disk before the call returns. Markers are never
    removed by the store; deleting the directory is the only reset.
    """

    def __init__(self, root: str) -> None:
        self.root = Path(root)

    def ensure(self) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StateStoreError(f"Cannot create state directory {self.root}: {e}") from e

    def _marker(self, step_id: str) -> Path:
        return self.root / f"{_check_name(step_id)}{MARKER_SUFFIX}"

    def is_complete(self, step_id: str) -> bool:
        try:
            return self._marker(step_id).is_file()
        except OSError:
            return False

    def mark_complete(self, step_id: str) -> None:
        self._write(self._marker(step_id), "")
        logger.info("Checkpoint recorded: %s", step_id)

    def completed_steps(self) -> List[str]:
        if not self.root.is_dir():
            return []
        return sorted(p.name[: -len(MARKER_SUFFIX)] for p in self.root.glob(f"*{MARKER_SUFFIX}"))

    def get_aux(self, key: str) -> Optional[str]:
        p = self.root / _check_name(key)
        try:
            value = p.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StateStoreError(f"Cannot read {p}: {e}") from e
        return value or None

    def set_aux(self, key: str, value: str) -> None:
        self._write(self.root / _check_name(key), value.strip() + "\n")
        logger.info("Stored %s", key)

    def _write(self, path: Path, contents: str) -> None:
        self.ensure()
        tmp: Optional[str] = None
        try:
            fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(self.root))
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(contents)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, path)
            dir_fd = os.open(str(self.root), os.O_RDONLY)
            try:
                os.fsync(dir_fd)
            finally:
                os.close(dir_fd)
        except OSError as e:
            if tmp is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp)
            raise StateStoreError(f"Cannot write {path}: {e}") from e

    @contextlib.contextmanager
    def lock(self) -> Iterator[None]:
        """Hold an exclusive lock on the store for the duration of a run."""

        self.ensure()
        lock_path = self.root / LOCK_NAME
        try:
            fd = os.open(str(lock_path), os.O_RDWR | os.O_CREAT, 0o600)
        except OSError as e:
            raise StateStoreError(f"Cannot open {lock_path}: {e}") from e
        try:
            try:
                fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            except BlockingIOError as e:
                raise StateLockedError(
                    f"Another provisioner run holds {lock_path}; wait for it to finish"
                ) from e
            try:
                yield
            finally:
                fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            os.close(fd)
