# tests/conftest.py

from pathlib import Path

import pytest

from keyhub.core import database as db
from keyhub.core.schema import initialize_database
from keyhub.exceptions import StorageError
from keyhub.project import store
from keyhub.project.exporter import export_history
from keyhub.project.files import FileAccess
from keyhub.web import sessions


class FakeFileAccess(FileAccess):
    """
    In-memory FileAccess.

    Pickers answer with the configured paths (None means the user cancelled).
    Writes land in `written`; a write whose file name contains one of
    `fail_on` raises StorageError.
    """

    def __init__(self, open_path=None, save_dir=None, directory=None, files=None, fail_on=()):
        self.open_path = Path(open_path) if open_path else None
        self.save_dir = Path(save_dir) if save_dir else None
        self.directory = Path(directory) if directory else None
        self.files = dict(files or {})
        self.fail_on = tuple(fail_on)
        self.written = {}
        self.suggested_names = []

    def pick_save_target(self, title, suggested_name, extension_filters):
        self.suggested_names.append(suggested_name)
        return self.save_dir / suggested_name if self.save_dir else None

    def pick_open_target(self, title, extension_filters):
        return self.open_path

    def pick_directory(self, title):
        return self.directory

    def read_text(self, path):
        return self.files[Path(path).name]

    def write_text(self, path, content):
        if any(marker in Path(path).name for marker in self.fail_on):
            raise StorageError(f"Disk full: {path}", code="io_error")
        self.written[Path(path).name] = content


@pytest.fixture
def temp_db(tmp_path, monkeypatch):
    """A fresh database with the default languages plus French."""
    db_file = tmp_path / "keyhub_test.db"
    monkeypatch.setattr(db, "DB_FILE", db_file)
    initialize_database()
    db.add_language("French", "fr")
    return db_file


@pytest.fixture(autouse=True)
def reset_in_memory_state():
    yield
    export_history.clear()
    sessions.clear_sessions()
    store._project_locks.clear()


@pytest.fixture
def fake_files():
    return FakeFileAccess


@pytest.fixture
def demo_project(temp_db):
    """Project "Demo" in en and fr with two keys, one complete."""
    project = store.create_project("Demo", "Demo project", ["en", "fr"])
    store.create_key(project.id, "home.title")
    store.create_key(project.id, "home.subtitle")
    store.update_cell(project.id, "home.title", "en", "Welcome")
    store.update_cell(project.id, "home.title", "fr", "Bienvenue")
    store.update_cell(project.id, "home.subtitle", "en", "Start here")
    return store.get_project(project.id)


@pytest.fixture
def client(temp_db):
    from keyhub.web import create_app

    app = create_app()
    app.config["TESTING"] = True
    return app.test_client()
