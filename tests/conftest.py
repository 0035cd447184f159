# tests/conftest.py
import os
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from dirgate.config import Settings
from dirgate.di import build_container
from dirgate_server.http_app import create_app


@pytest.fixture
def root(tmp_path: Path) -> Path:
    """
    data/            private (o-r)
      secret.txt     private
      pub/           public
        file.txt     public
        notes.md     private
    """
    data = tmp_path / "data"
    data.mkdir()
    os.chmod(data, 0o750)

    secret = data / "secret.txt"
    secret.write_text("top secret")
    os.chmod(secret, 0o640)

    pub = data / "pub"
    pub.mkdir()
    os.chmod(pub, 0o755)

    f = pub / "file.txt"
    f.write_text("hello")
    os.chmod(f, 0o644)

    notes = pub / "notes.md"
    notes.write_text("# notes")
    os.chmod(notes, 0o640)
    return data


@pytest.fixture
def settings(root: Path) -> Settings:
    return Settings(
        _env_file=None,
        ROOT_DIR=root,
        AUTH_USERNAME="a",
        AUTH_PASSWORD="a",
        AUTH_DISPLAY_NAME="Admin User",
    )


@pytest.fixture
def container(settings: Settings):
    return build_container(settings)


@pytest.fixture
def client(container) -> TestClient:
    return TestClient(create_app(container))

