import pytest

import db


@pytest.fixture
def store(tmp_path, monkeypatch):
    """Point the store at a fresh SQLite file with all tables created."""
    monkeypatch.setattr(db, "DB_FILE", tmp_path / "church-test.db")
    db.init_db("$2b$12$placeholderhashplaceholderhashplaceholderha", "admin@test.local")
    return db


@pytest.fixture
def member_row():
    def make(**overrides):
        row = {"name": "Ana Souza", "status": "active"}
        row.update(overrides)
        return row
    return make
