"""Single-instance lock file (PID + process start time)"""

import json
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

import psutil

from ..errors import AlreadyRunningError
from ..logging_config import get_logger

logger = get_logger("instance_lock")


@dataclass(frozen=True)
class LockInfo:
    pid: int
    create_time: float


def _get_create_time(pid: int) -> Optional[float]:
    try:
        return psutil.Process(pid).create_time()
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return None


def _read_lock(path: Path) -> Optional[LockInfo]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        return LockInfo(pid=int(payload["pid"]), create_time=float(payload["create_time"]))
    except (OSError, ValueError, KeyError, TypeError):
        return None


def _is_lock_held(lock: LockInfo) -> bool:
    if lock.pid == os.getpid():
        return False
    create_time = _get_create_time(lock.pid)
    if create_time is None:
        return False
    # A reused pid belongs to a different process start
    return abs(create_time - lock.create_time) < 1.0


class InstanceLock:
    """Keeps two copies of the application from switching the same root.

    Usable as a context manager::

        with InstanceLock(state_dir / "platform_switcher.lock"):
            ...
    """

    def __init__(self, lock_path: Path):
        self.lock_path = lock_path
        self._acquired = False

    def acquire(self) -> LockInfo:
        """Create the lock file, taking over a stale one.

        Raises:
            AlreadyRunningError: If a live process holds the lock
        """
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        pid = os.getpid()
        info = LockInfo(pid=pid, create_time=_get_create_time(pid) or 0.0)

        while True:
            try:
                with self.lock_path.open("x", encoding="utf-8") as f:
                    json.dump(asdict(info), f, indent=2)
                self._acquired = True
                return info
            except FileExistsError:
                existing = _read_lock(self.lock_path)
                if existing is not None and _is_lock_held(existing):
                    raise AlreadyRunningError(
                        f"Only one instance is allowed! (pid {existing.pid} is already running)"
                    )
                logger.warning(f"Taking over stale lock file {self.lock_path}")
                self.lock_path.unlink(missing_ok=True)

    def release(self) -> None:
        if self._acquired:
            self.lock_path.unlink(missing_ok=True)
            self._acquired = False

    def __enter__(self) -> "InstanceLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
