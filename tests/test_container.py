# tests/test_container.py
import logging
from pathlib import Path

import pytest

from dirgate.config import Settings
from dirgate.di import build_container
from dirgate.logging import log_auth_event, redact_args


def test_build_container_rejects_missing_root(tmp_path: Path):
    with pytest.raises(ValueError):
        build_container(Settings(_env_file=None, ROOT_DIR=tmp_path / "missing"))


def test_services_share_one_session_registry(container):
    assert container.access.sessions is container.sessions
    assert container.access.permissions is container.permissions
    assert container.sessions.ttl_sec == 24 * 3600


def test_settings_from_env(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("ROOT_DIR", str(tmp_path))
    monkeypatch.setenv("PORT", "8123")
    s = Settings(_env_file=None)
    assert s.ROOT_DIR == tmp_path
    assert s.PORT == 8123
    assert s.SESSION_COOKIE_NAME == "session"


def test_redact_args_hides_password():
    safe = redact_args({"username": "admin", "password": "hunter2"})
    assert safe["password"] == "[redacted]"
    assert safe["username"] == "a***n"


def test_log_auth_event_never_logs_password(caplog):
    logger = logging.getLogger("test.auth")
    with caplog.at_level(logging.INFO, logger="test.auth"):
        log_auth_event(logger, "login_failed", {"username": "a", "password": "hunter2"})
    assert "hunter2" not in caplog.text
    assert "login_failed" in caplog.text
