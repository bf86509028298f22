# tests/test_schema.py

import sqlite3

from keyhub.core import database as db
from keyhub.core import schema


def create_version_one_file(db_file):
    conn = sqlite3.connect(db_file)
    conn.executescript("""
        CREATE TABLE projects (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE,
            description TEXT,
            selected_languages TEXT NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            is_completed INTEGER DEFAULT 0
        );
        CREATE TABLE translations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            project_id INTEGER NOT NULL,
            key TEXT NOT NULL,
            language TEXT NOT NULL,
            value TEXT,
            is_completed INTEGER DEFAULT 0,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            UNIQUE(project_id, key, language)
        );
        CREATE TABLE db_version (version INTEGER);
        INSERT INTO db_version (version) VALUES (1);
        INSERT INTO projects (name, selected_languages) VALUES ('Legacy', '["en", "ja"]');
        INSERT INTO translations (project_id, key, language, value, is_completed) VALUES (1, 'b.key', 'en', 'B', 1);
        INSERT INTO translations (project_id, key, language, value, is_completed) VALUES (1, 'a.key', 'en', 'A', 1);
        INSERT INTO translations (project_id, key, language, value, is_completed) VALUES (1, 'b.key', 'ja', '', 0);
    """)
    conn.commit()
    conn.close()


def test_version_one_file_gets_sort_order_from_insertion(tmp_path, monkeypatch):
    db_file = tmp_path / "legacy.db"
    create_version_one_file(db_file)
    monkeypatch.setattr(db, "DB_FILE", db_file)

    schema.initialize_database()

    assert schema.get_db_version() == schema.DB_VERSION
    orders = {
        (row["key"], row["language"]): row["sort_order"]
        for row in db.query("SELECT key, language, sort_order FROM translations")
    }
    assert orders == {("b.key", "en"): 1, ("b.key", "ja"): 1, ("a.key", "en"): 2}
    assert db.get_max_sort_order(1) == 2


def test_initialize_twice_is_harmless(temp_db):
    schema.initialize_database()
    schema.initialize_database()

    codes = [row["code"] for row in db.get_all_languages()]
    assert len(codes) == len(set(codes))
    assert schema.get_db_version() == schema.DB_VERSION


def test_default_languages_are_seeded_and_active(temp_db):
    codes = {row["code"] for row in db.get_all_active_languages()}
    assert {language["code"] for language in schema.DEFAULT_LANGUAGES} <= codes
    assert "fr" in codes


def test_fresh_file_reports_version_zero(tmp_path, monkeypatch):
    monkeypatch.setattr(db, "DB_FILE", tmp_path / "empty.db")
    assert schema.get_db_version() == 0
