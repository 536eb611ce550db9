"""Shared test fixtures for the task board."""

import sys
from pathlib import Path

import pytest

# Ensure the project root (kanban_server.py, taskboard/) is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

from kanban_server import create_app
from taskboard.config import Config
from taskboard.csrf import SESSION_KEY
from taskboard.service import TaskService
from taskboard.store import TaskStore

CSRF = "test-csrf-token"


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "kanban.db")


@pytest.fixture
def store(db_path):
    return TaskStore(db_path)


@pytest.fixture
def service(store):
    return TaskService(store)


@pytest.fixture
def app(db_path):
    config = Config(database=f"sqlite:///{db_path}", secret_key="test-secret")
    app = create_app(config)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def app_service(app):
    return app.extensions["task_service"]


@pytest.fixture
def client(app):
    """Test client with a known anti-forgery token in its session."""
    client = app.test_client()
    with client.session_transaction() as sess:
        sess[SESSION_KEY] = CSRF
    return client
