# dirgate/di.py
from dataclasses import dataclass
from typing import Optional
from dirgate.config import Settings
from dirgate.services.access import AccessDecision
from dirgate.services.credentials import CredentialStore
from dirgate.services.listing import DirectoryLister
from dirgate.services.paths import PathResolver
from dirgate.services.permissions import ModeBitPermissionStore, PermissionStore
from dirgate.services.sessions import SessionRegistry

@dataclass
class Container:
    settings: Settings
    resolver: PathResolver
    permissions: PermissionStore
    sessions: SessionRegistry
    credentials: CredentialStore
    lister: DirectoryLister
    access: AccessDecision

def build_container(settings: Optional[Settings] = None) -> Container:
    s = settings or Settings()
    if not s.ROOT_DIR.is_dir():
        raise ValueError(f"ROOT_DIR is not a directory: {s.ROOT_DIR}")

    resolver = PathResolver(s.ROOT_DIR)
    permissions = ModeBitPermissionStore()
    sessions = SessionRegistry(ttl_sec=s.SESSION_TTL_SEC)
    credentials = CredentialStore(s.AUTH_USERNAME, s.AUTH_PASSWORD, s.AUTH_DISPLAY_NAME)
    lister = DirectoryLister(resolver, permissions)

    access = AccessDecision(
        resolver=resolver,
        permissions=permissions,
        sessions=sessions,
        lister=lister,
    )

    return Container(s, resolver, permissions, sessions, credentials, lister, access)
