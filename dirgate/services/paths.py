# dirgate/services/paths.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union


@dataclass(frozen=True)
class ResolvedPath:
    path: Path       # absolute, normalized, inside root
    relative: str    # POSIX form relative to root, "" for the root itself


@dataclass(frozen=True)
class PathDenied:
    request_path: str
    reason: str = "outside root"


Resolution = Union[ResolvedPath, PathDenied]


def _within(candidate: Path, root: Path) -> bool:
    # Segment-wise comparison: "/srv/data-evil" is not inside "/srv/data".
    return candidate == root or candidate.is_relative_to(root)


class PathResolver:
    """
    Map request paths onto the served root.

    `resolve` is pure path arithmetic and never touches the filesystem.
    `confine` follows symlinks and re-checks containment against the
    canonical root; call it before any I/O on the result.
    """

    def __init__(self, root: Path):
        self.root = Path(os.path.normpath(os.path.abspath(root)))
        self.canonical_root = self.root.resolve()

    def resolve(self, request_path: str) -> Resolution:
        if "\x00" in request_path:
            return PathDenied(request_path, "invalid path")

        rel = request_path.replace("\\", "/").lstrip("/")
        candidate = Path(os.path.normpath(os.path.join(self.root, rel)))
        if not _within(candidate, self.root):
            return PathDenied(request_path)

        relative = "" if candidate == self.root else candidate.relative_to(self.root).as_posix()
        return ResolvedPath(candidate, relative)

    def confine(self, resolved: ResolvedPath) -> Resolution:
        try:
            canonical = resolved.path.resolve(strict=False)
        except (OSError, RuntimeError):
            # symlink loops surface here
            return PathDenied(resolved.relative, "unresolvable path")
        if not _within(canonical, self.canonical_root):
            return PathDenied(resolved.relative)
        return resolved

    def resolve_confined(self, request_path: str) -> Resolution:
        resolved = self.resolve(request_path)
        if isinstance(resolved, PathDenied):
            return resolved
        return self.confine(resolved)
