# tests/test_access.py
import os
from pathlib import Path

from dirgate.errors import ErrorKind
from dirgate.services.access import (
    AccessDecision,
    Deny,
    Listing,
    PermissionFlag,
    RedirectToLogin,
    Serve,
)
from dirgate.services.listing import DirectoryLister
from dirgate.services.paths import PathResolver
from dirgate.services.permissions import ModeBitPermissionStore
from dirgate.services.sessions import SessionRegistry


def test_private_file_redirects_anonymous(container):
    out = container.access.decide("/secret.txt")
    assert out == RedirectToLogin("/secret.txt")


def test_private_file_served_with_session(container):
    token = container.sessions.create_session("a")
    out = container.access.decide("/secret.txt", token)
    assert isinstance(out, Serve)
    assert out.target.relative == "secret.txt"
    assert out.media_type == "text/plain"


def test_public_directory_listed_anonymously(container):
    out = container.access.decide("/pub/")
    assert isinstance(out, Listing)
    assert out.identity is None
    assert [e.name for e in out.entries] == ["file.txt", "notes.md"]
    by_name = {e.name: e for e in out.entries}
    assert by_name["file.txt"].is_public is True
    assert by_name["notes.md"].is_public is False
    assert by_name["file.txt"].size == len("hello")


def test_listing_puts_directories_first(container, root: Path):
    token = container.sessions.create_session("a")
    (root / "zeta").mkdir()
    out = container.access.decide("/", token)
    assert isinstance(out, Listing)
    assert out.identity == "a"
    assert [e.name for e in out.entries] == ["pub", "zeta", "secret.txt"]
    assert out.entries[0].is_dir and out.entries[0].size == 0
    assert out.entries[0].type == "directory"


def test_private_root_redirects_anonymous(container):
    assert isinstance(container.access.decide("/"), RedirectToLogin)


def test_traversal_is_denied_with_403(container):
    out = container.access.decide("/pub/../../etc/passwd")
    assert isinstance(out, Deny)
    assert out.kind is ErrorKind.PATH_TRAVERSAL_DENIED
    assert out.status_code == 403
    assert out.reason == "outside root"


def test_missing_path_is_not_found_even_for_anonymous(container):
    out = container.access.decide("/nope.txt")
    assert isinstance(out, Deny)
    assert out.kind is ErrorKind.NOT_FOUND
    assert out.status_code == 404


def test_file_used_as_directory_is_not_found(container):
    out = container.access.decide("/secret.txt/child")
    assert isinstance(out, Deny)
    assert out.kind is ErrorKind.NOT_FOUND


def test_non_read_methods_are_refused(container):
    out = container.access.decide("/pub/file.txt", method="DELETE")
    assert isinstance(out, Deny)
    assert out.status_code == 405


def test_head_is_a_read(container):
    assert isinstance(container.access.decide("/pub/file.txt", method="HEAD"), Serve)


def test_special_files_are_not_served(container, root: Path):
    fifo = root / "pub" / "pipe"
    os.mkfifo(fifo)
    os.chmod(fifo, 0o644)
    out = container.access.decide("/pub/pipe")
    assert isinstance(out, Deny)
    assert out.kind is ErrorKind.NOT_FOUND


def test_expired_session_is_anonymous(root: Path):
    now = [0.0]
    sessions = SessionRegistry(ttl_sec=10, clock=lambda: now[0])
    permissions = ModeBitPermissionStore()
    resolver = PathResolver(root)
    access = AccessDecision(resolver, permissions, sessions, DirectoryLister(resolver, permissions))

    token = sessions.create_session("a")
    assert isinstance(access.decide("/secret.txt", token), Serve)
    now[0] = 10.0
    assert isinstance(access.decide("/secret.txt", token), RedirectToLogin)


def test_unreadable_directory_is_storage_failure(container, monkeypatch):
    def boom(_resolved):
        raise PermissionError("denied")

    monkeypatch.setattr(container.lister, "list", boom)
    out = container.access.decide("/pub/")
    assert isinstance(out, Deny)
    assert out.kind is ErrorKind.STORAGE_FAILURE
    assert out.status_code == 500


# ---------- Permission mutation ----------

def test_mutation_requires_session_even_on_public_target(container, root: Path):
    target = root / "pub" / "file.txt"
    before = os.stat(target).st_mode

    out = container.access.set_permission(PermissionFlag.WRITE, "pub/file.txt", True, None)
    assert out.ok is False
    assert out.kind is ErrorKind.UNAUTHORIZED

    out = container.access.set_permission(PermissionFlag.READ, "pub/file.txt", False, "bogus")
    assert out.kind is ErrorKind.UNAUTHORIZED
    assert os.stat(target).st_mode == before


def test_authenticated_write_toggle(container, root: Path):
    token = container.sessions.create_session("a")
    out = container.access.set_permission(PermissionFlag.WRITE, "pub/file.txt", True, token)
    assert out.ok is True
    assert container.permissions.is_publicly_writable(root / "pub" / "file.txt") is True


def test_read_toggle_takes_effect_for_next_request(container):
    token = container.sessions.create_session("a")
    assert isinstance(container.access.decide("/secret.txt"), RedirectToLogin)

    out = container.access.set_permission(PermissionFlag.READ, "secret.txt", True, token)
    assert out.ok
    assert isinstance(container.access.decide("/secret.txt"), Serve)

    out = container.access.set_permission(PermissionFlag.READ, "/secret.txt", False, token)
    assert out.ok
    assert isinstance(container.access.decide("/secret.txt"), RedirectToLogin)


def test_mutation_outside_root_is_denied(container):
    token = container.sessions.create_session("a")
    out = container.access.set_permission(PermissionFlag.READ, "../outside", True, token)
    assert out.kind is ErrorKind.PATH_TRAVERSAL_DENIED


def test_mutation_of_missing_path_is_not_found(container):
    token = container.sessions.create_session("a")
    out = container.access.set_permission(PermissionFlag.READ, "pub/missing.txt", True, token)
    assert out.kind is ErrorKind.NOT_FOUND


def test_store_failure_is_surfaced(container, monkeypatch):
    token = container.sessions.create_session("a")
    monkeypatch.setattr(container.permissions, "set_publicly_readable", lambda path, value: False)
    out = container.access.set_permission(PermissionFlag.READ, "pub/file.txt", False, token)
    assert out.ok is False
    assert out.kind is ErrorKind.STORAGE_FAILURE


def test_listing_does_not_stat_symlink_targets_outside_root(container, root: Path, tmp_path: Path):
    outside = tmp_path / "outside.bin"
    outside.write_bytes(b"x" * 4096)
    os.chmod(outside, 0o666)
    os.symlink(outside, root / "pub" / "escape")

    out = container.access.decide("/pub/")
    assert isinstance(out, Listing)
    link = {e.name: e for e in out.entries}["escape"]
    assert link.size == 0
    assert link.is_public is False
    assert link.is_writable is False

    assert isinstance(container.access.decide("/pub/escape"), Deny)
