# dirgate/services/permissions.py
from __future__ import annotations

import logging
import os
import stat
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PermissionFlags:
    readable: bool
    writable: bool


class PermissionStore(ABC):
    """
    Public-readable / public-writable flags of a filesystem entry.
    Setters report failure as False instead of raising.
    """

    @abstractmethod
    def flags(self, path: Path) -> Optional[PermissionFlags]:
        ...

    @abstractmethod
    def set_publicly_readable(self, path: Path, value: bool) -> bool:
        ...

    @abstractmethod
    def set_publicly_writable(self, path: Path, value: bool) -> bool:
        ...

    def is_publicly_readable(self, path: Path) -> bool:
        f = self.flags(path)
        return f is not None and f.readable

    def is_publicly_writable(self, path: Path) -> bool:
        f = self.flags(path)
        return f is not None and f.writable


class ModeBitPermissionStore(PermissionStore):
    """
    Flags live in the entry's own "others" permission bits:
      S_IROTH -> publicly readable, S_IWOTH -> publicly writable.

    Updates are read-modify-write on the mode, serialized per path so two
    toggles in this process cannot lose each other's bit. Changes made by
    other processes are last-writer-wins.
    """

    def __init__(self):
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # ---------- Public API ----------

    def flags(self, path: Path) -> Optional[PermissionFlags]:
        try:
            mode = os.stat(path).st_mode
        except OSError as e:
            logger.debug("stat failed for %s: %s", path, e)
            return None
        return PermissionFlags(
            readable=bool(mode & stat.S_IROTH),
            writable=bool(mode & stat.S_IWOTH),
        )

    def set_publicly_readable(self, path: Path, value: bool) -> bool:
        return self._set_bit(path, stat.S_IROTH, value)

    def set_publicly_writable(self, path: Path, value: bool) -> bool:
        return self._set_bit(path, stat.S_IWOTH, value)

    # ---------- Internals ----------

    def _lock_for(self, path: Path) -> threading.Lock:
        key = os.path.normpath(os.path.abspath(path))
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def _set_bit(self, path: Path, bit: int, value: bool) -> bool:
        with self._lock_for(path):
            try:
                mode = stat.S_IMODE(os.stat(path).st_mode)
                new_mode = (mode | bit) if value else (mode & ~bit)
                if new_mode != mode:
                    os.chmod(path, new_mode)
            except OSError as e:
                logger.warning("permission change failed for %s: %s", path, e)
                return False
        logger.info("mode of %s set to %o", path, new_mode)
        return True
