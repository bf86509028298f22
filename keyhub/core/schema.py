"""
Database Schema Management Module

This module handles database initialization, schema validation, migrations
and seeding of the default supported languages.
For CRUD operations, see core/database.py
"""

import sqlite3

# Import database module to use DB_FILE and get_connection dynamically
# This ensures monkeypatching in tests works correctly
import keyhub.core.database as db
from keyhub.logger import get_logger

logger = get_logger(__name__)

DB_VERSION = 2  # Increment when schema changes (v2 added translations.sort_order)

# Seeded on every initialization; existing codes are left untouched
DEFAULT_LANGUAGES = [
    {"name": "Chinese (Simplified)", "code": "zh-Hans"},
    {"name": "Chinese (Traditional)", "code": "zh-Hant"},
    {"name": "English", "code": "en"},
    {"name": "Japanese", "code": "ja"},
    {"name": "Korean", "code": "ko"},
    {"name": "Turkish", "code": "tr"},
]


def get_connection():
    """Get a database connection using the database module's DB_FILE."""
    return db.get_connection()


def get_db_version() -> int:
    """Get current database version."""
    try:
        with get_connection() as conn:
            row = conn.execute("SELECT version FROM db_version LIMIT 1").fetchone()
            return row[0] if row else 0
    except sqlite3.OperationalError:
        return 0


def set_db_version(version: int):
    """Set database version."""
    with get_connection() as conn:
        conn.execute("CREATE TABLE IF NOT EXISTS db_version (version INTEGER)")
        conn.execute("DELETE FROM db_version")
        conn.execute("INSERT INTO db_version (version) VALUES (?)", (version,))


def _table_exists(conn, table: str) -> bool:
    row = conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?", (table,)
    ).fetchone()
    return row is not None


def initialize_database():
    """Create missing tables, migrate older files and seed default languages."""
    with get_connection() as conn:
        had_translations = _table_exists(conn, "translations")

    current_version = get_db_version()
    if had_translations and current_version < DB_VERSION:
        migrate_database(current_version, DB_VERSION)

    with get_connection() as conn:
        cursor = conn.cursor()

        cursor.execute("""
        CREATE TABLE IF NOT EXISTS supported_languages (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE,
            code TEXT NOT NULL UNIQUE,
            is_active INTEGER DEFAULT 1,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
        """)

        cursor.execute("""
        CREATE TABLE IF NOT EXISTS projects (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE,
            description TEXT,
            selected_languages TEXT NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            is_completed INTEGER DEFAULT 0
        )
        """)

        cursor.execute("""
        CREATE TABLE IF NOT EXISTS translations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            project_id INTEGER NOT NULL,
            key TEXT NOT NULL,
            language TEXT NOT NULL,
            value TEXT,
            is_completed INTEGER DEFAULT 0,
            sort_order INTEGER DEFAULT 0,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY (project_id) REFERENCES projects (id) ON DELETE CASCADE,
            UNIQUE(project_id, key, language)
        )
        """)

        cursor.execute("""
        CREATE TABLE IF NOT EXISTS app_config (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
        """)

    ensure_database_indexes()
    seed_default_languages()
    set_db_version(DB_VERSION)
    logger.debug(f"Database ready at {db.DB_FILE} (version {DB_VERSION})")


def seed_default_languages():
    """Insert the default supported languages if they are missing."""
    with get_connection() as conn:
        for language in DEFAULT_LANGUAGES:
            conn.execute(
                "INSERT OR IGNORE INTO supported_languages (name, code) VALUES (?, ?)",
                (language["name"], language["code"]),
            )


# ============================================================
# Database Schema Validation
# ============================================================

def ensure_translations_schema():
    """
    Ensure translations table has all required columns.

    Files created before sort_order existed get the column added and one
    shared value per key, following the key's first insertion.
    """
    try:
        with get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute("PRAGMA table_info(translations)")
            existing_cols = {row[1] for row in cursor.fetchall()}

            if "sort_order" not in existing_cols:
                logger.info("Adding sort_order column to translations table")
                cursor.execute("ALTER TABLE translations ADD COLUMN sort_order INTEGER DEFAULT 0")
                cursor.execute("""
                    SELECT project_id, key, MIN(id) AS first_id
                    FROM translations
                    GROUP BY project_id, key
                    ORDER BY project_id, first_id
                """)
                next_order = {}
                for project_id, key, _ in cursor.fetchall():
                    next_order[project_id] = next_order.get(project_id, 0) + 1
                    conn.execute(
                        "UPDATE translations SET sort_order = ? WHERE project_id = ? AND key = ?",
                        (next_order[project_id], project_id, key),
                    )
    except Exception as e:
        logger.error(f"Failed to ensure translations schema: {e}")
        raise


def ensure_database_indexes():
    """Create indexes used by the sort and lookup queries."""
    with get_connection() as conn:
        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_translations_project_sort
            ON translations (project_id, sort_order)
        """)
        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_translations_project_language
            ON translations (project_id, language)
        """)


# ============================================================
# Database Migration
# ============================================================

def migrate_database(from_version: int, to_version: int):
    """Migrate database from one version to another."""
    logger.info(f"Migrating database from version {from_version} to {to_version}")

    if from_version < 2:
        ensure_translations_schema()

    set_db_version(to_version)
    logger.info(f"Database migrated to version {to_version}")
