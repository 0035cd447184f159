# dirgate/services/access.py
from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from dirgate.errors import ErrorKind
from dirgate.services.listing import DirectoryLister, Entry, guess_type
from dirgate.services.paths import PathDenied, PathResolver, ResolvedPath
from dirgate.services.permissions import PermissionStore
from dirgate.services.sessions import SessionRegistry

logger = logging.getLogger(__name__)

READ_METHODS = {"GET", "HEAD"}


# ---------- Outcomes ----------

@dataclass(frozen=True)
class Serve:
    target: ResolvedPath
    media_type: str


@dataclass(frozen=True)
class Listing:
    target: ResolvedPath
    entries: List[Entry] = field(default_factory=list)
    identity: Optional[str] = None


@dataclass(frozen=True)
class Deny:
    kind: ErrorKind
    reason: str

    @property
    def status_code(self) -> int:
        return self.kind.status_code


@dataclass(frozen=True)
class RedirectToLogin:
    original_path: str


Decision = Union[Serve, Listing, Deny, RedirectToLogin]


class PermissionFlag(str, Enum):
    READ = "read"
    WRITE = "write"


@dataclass(frozen=True)
class MutationResult:
    ok: bool
    kind: Optional[ErrorKind] = None
    reason: str = ""

    @classmethod
    def failed(cls, kind: ErrorKind, reason: str) -> "MutationResult":
        return cls(ok=False, kind=kind, reason=reason)


# ---------- Orchestrator ----------

class AccessDecision:
    """
    Decide, per request, whether to serve a file, list a directory, deny, or
    send the caller to the login page.

    Read rule (files and directories alike): publicly readable OR a valid
    session. Permission changes always require a valid session, whatever the
    target's own flags say.
    """

    def __init__(
        self,
        resolver: PathResolver,
        permissions: PermissionStore,
        sessions: SessionRegistry,
        lister: DirectoryLister,
    ):
        self.resolver = resolver
        self.permissions = permissions
        self.sessions = sessions
        self.lister = lister

    def decide(self, request_path: str, token: Optional[str] = None, method: str = "GET") -> Decision:
        if method.upper() not in READ_METHODS:
            return Deny(ErrorKind.METHOD_NOT_ALLOWED, "method not allowed")

        resolved = self.resolver.resolve_confined(request_path)
        if isinstance(resolved, PathDenied):
            logger.info("denied %r: %s", request_path, resolved.reason)
            return Deny(ErrorKind.PATH_TRAVERSAL_DENIED, resolved.reason)

        st = self._stat(resolved.path)
        if isinstance(st, Deny):
            return st

        is_public = self.permissions.is_publicly_readable(resolved.path)
        identity = self.sessions.validate_session(token) if token else None

        if not (is_public or identity):
            return RedirectToLogin(request_path)

        if stat.S_ISDIR(st.st_mode):
            try:
                entries = self.lister.list(resolved)
            except OSError as e:
                logger.warning("listing %s failed: %s", resolved.path, e)
                return Deny(ErrorKind.STORAGE_FAILURE, "cannot read directory")
            return Listing(resolved, entries, identity)

        if stat.S_ISREG(st.st_mode):
            return Serve(resolved, guess_type(resolved.path.name))

        # sockets, fifos, devices
        return Deny(ErrorKind.NOT_FOUND, "not found")

    def set_permission(
        self,
        flag: PermissionFlag,
        request_path: str,
        value: bool,
        token: Optional[str],
    ) -> MutationResult:
        identity = self.sessions.validate_session(token) if token else None
        if not identity:
            return MutationResult.failed(ErrorKind.UNAUTHORIZED, "Unauthorized")

        resolved = self.resolver.resolve_confined(request_path)
        if isinstance(resolved, PathDenied):
            logger.info("denied permission change on %r: %s", request_path, resolved.reason)
            return MutationResult.failed(
                ErrorKind.PATH_TRAVERSAL_DENIED,
                "Access denied: Path is outside the root directory",
            )

        st = self._stat(resolved.path)
        if isinstance(st, Deny):
            return MutationResult.failed(st.kind, st.reason)

        if flag is PermissionFlag.READ:
            ok = self.permissions.set_publicly_readable(resolved.path, value)
        else:
            ok = self.permissions.set_publicly_writable(resolved.path, value)

        if not ok:
            return MutationResult.failed(ErrorKind.STORAGE_FAILURE, "Failed to update permissions")

        logger.info("%s set public-%s=%s on %r", identity, flag.value, value, resolved.relative)
        return MutationResult(ok=True)

    # ---------- Internals ----------

    def _stat(self, path: Path) -> Union[os.stat_result, Deny]:
        try:
            return os.stat(path)
        except (FileNotFoundError, NotADirectoryError):
            return Deny(ErrorKind.NOT_FOUND, "not found")
        except OSError as e:
            logger.warning("stat %s failed: %s", path, e)
            return Deny(ErrorKind.STORAGE_FAILURE, "cannot access path")
