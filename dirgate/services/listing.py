# dirgate/services/listing.py
from __future__ import annotations

import logging
import mimetypes
import os
import stat
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List

from dirgate.services.paths import PathDenied, PathResolver, ResolvedPath
from dirgate.services.permissions import PermissionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Entry:
    name: str
    path: Path
    relative: str
    is_dir: bool
    size: int
    mtime: datetime
    type: str
    is_public: bool
    is_writable: bool


def guess_type(name: str) -> str:
    mime, _ = mimetypes.guess_type(name)
    return mime or "application/octet-stream"


class DirectoryLister:
    """
    Enumerate one directory into Entry records, directories first.
    Raises OSError if the directory itself cannot be read.

    Symlinks that lead outside the root are listed as bare links: no size,
    no flags, nothing read from the target.
    """

    def __init__(self, resolver: PathResolver, permissions: PermissionStore):
        self.resolver = resolver
        self.permissions = permissions

    def list(self, directory: ResolvedPath) -> List[Entry]:
        entries: List[Entry] = []
        with os.scandir(directory.path) as it:
            for de in it:
                relative = f"{directory.relative}/{de.name}" if directory.relative else de.name
                escapes = isinstance(self.resolver.resolve_confined(relative), PathDenied)
                try:
                    st = de.stat(follow_symlinks=not escapes)
                except OSError as e:
                    logger.debug("skipping %s: %s", de.path, e)
                    continue
                entries.append(self._entry(directory, de.name, relative, st, escapes))

        entries.sort(key=lambda e: (not e.is_dir, e.name.lower(), e.name))
        return entries

    def _entry(
        self, directory: ResolvedPath, name: str, relative: str, st: os.stat_result, escapes: bool
    ) -> Entry:
        path = directory.path / name
        is_dir = stat.S_ISDIR(st.st_mode)
        flags = None if escapes else self.permissions.flags(path)
        return Entry(
            name=name,
            path=path,
            relative=relative,
            is_dir=is_dir,
            size=0 if is_dir or escapes else st.st_size,
            mtime=datetime.fromtimestamp(st.st_mtime),
            type="directory" if is_dir else guess_type(name),
            is_public=bool(flags and flags.readable),
            is_writable=bool(flags and flags.writable),
        )
