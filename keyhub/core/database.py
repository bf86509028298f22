"""
Database CRUD Operations Module

This module is the only place that talks to SQLite. It handles:
- Connection management and the generic query/execute primitives
- Supported languages
- Projects
- Translations (one row per project, key and language)
- App Config

For schema management and migrations, see core/schema.py
"""

import json
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, List, Dict, Any, Iterable, Sequence

from keyhub.exceptions import ConflictError, StorageError
from keyhub.translation.models import is_value_complete
from keyhub.logger import get_logger

logger = get_logger(__name__)

DB_FILE = Path(__file__).parent.parent / "keyhub.db"


@dataclass
class ExecuteResult:
    """Outcome of a write statement."""
    last_insert_id: Optional[int]
    rowcount: int


@contextmanager
def get_connection():
    """Open a connection, commit on success, roll back on error, always close."""
    conn = sqlite3.connect(DB_FILE)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def query(statement: str, params: Sequence[Any] = (), conn=None) -> List[Dict[str, Any]]:
    """Run a parameterised SELECT and return rows as dicts."""
    try:
        if conn is not None:
            return [dict(row) for row in conn.execute(statement, tuple(params)).fetchall()]
        with get_connection() as own_conn:
            return [dict(row) for row in own_conn.execute(statement, tuple(params)).fetchall()]
    except sqlite3.Error as e:
        logger.error(f"Query failed: {e}")
        raise StorageError(f"Database query failed: {e}", code="storage_error") from e


def execute(statement: str, params: Sequence[Any] = (), conn=None) -> ExecuteResult:
    """Run a parameterised write statement."""
    try:
        if conn is not None:
            cursor = conn.execute(statement, tuple(params))
            return ExecuteResult(cursor.lastrowid, cursor.rowcount)
        with get_connection() as own_conn:
            cursor = own_conn.execute(statement, tuple(params))
            return ExecuteResult(cursor.lastrowid, cursor.rowcount)
    except sqlite3.IntegrityError:
        # Callers translate constraint violations into domain conflicts
        raise
    except sqlite3.Error as e:
        logger.error(f"Statement failed: {e}")
        raise StorageError(f"Database write failed: {e}", code="storage_error") from e


@contextmanager
def transaction(conn=None):
    """
    Group several query/execute calls into one commit.

    Given an open connection, join the caller's transaction instead of opening one.
    """
    if conn is not None:
        yield conn
        return
    try:
        with get_connection() as conn:
            yield conn
    except sqlite3.IntegrityError:
        raise
    except sqlite3.Error as e:
        logger.error(f"Transaction failed: {e}")
        raise StorageError(f"Database transaction failed: {e}", code="storage_error") from e


def _placeholders(values: Sequence[Any]) -> str:
    return ", ".join("?" for _ in values)


# ============================================================
# Supported Language CRUD Operations
# ============================================================

def get_all_active_languages() -> List[Dict[str, Any]]:
    """Get all active supported languages ordered by name."""
    rows = query("""
        SELECT id, name, code, is_active, created_at
        FROM supported_languages
        WHERE is_active = 1
        ORDER BY name
    """)
    return [_language_row(row) for row in rows]


def get_all_languages() -> List[Dict[str, Any]]:
    """Get all supported languages, including inactive ones."""
    rows = query("""
        SELECT id, name, code, is_active, created_at
        FROM supported_languages
        ORDER BY name
    """)
    return [_language_row(row) for row in rows]


def get_language_by_code(code: str) -> Optional[Dict[str, Any]]:
    rows = query("SELECT * FROM supported_languages WHERE code = ?", (code,))
    return _language_row(rows[0]) if rows else None


def add_language(name: str, code: str) -> int:
    """Add a supported language."""
    try:
        result = execute(
            "INSERT INTO supported_languages (name, code) VALUES (?, ?)",
            (name, code),
        )
    except sqlite3.IntegrityError as e:
        raise ConflictError(f"Language '{code}' or name '{name}' already exists",
                            code="language_exists") from e
    return result.last_insert_id


def toggle_language_status(language_id: int) -> bool:
    """Flip a language's active flag. Returns False if it does not exist."""
    result = execute("""
        UPDATE supported_languages
        SET is_active = NOT is_active
        WHERE id = ?
    """, (language_id,))
    return result.rowcount > 0


def get_language_names_by_codes(codes: List[str]) -> List[str]:
    """Get display names of active languages for the given codes."""
    if not codes:
        return []
    rows = query(f"""
        SELECT name FROM supported_languages
        WHERE code IN ({_placeholders(codes)}) AND is_active = 1
        ORDER BY name
    """, codes)
    return [row['name'] for row in rows]


def _language_row(row: Dict[str, Any]) -> Dict[str, Any]:
    row = dict(row)
    row['is_active'] = bool(row.get('is_active'))
    return row


# ============================================================
# Project CRUD Operations
# ============================================================

def create_project(name: str, description: str, selected_languages: List[str], conn=None) -> int:
    """Create a new project."""
    try:
        result = execute("""
            INSERT INTO projects (name, description, selected_languages)
            VALUES (?, ?, ?)
        """, (name, description or '', json.dumps(selected_languages)), conn=conn)
    except sqlite3.IntegrityError as e:
        raise ConflictError(f"A project named '{name}' already exists",
                            code="project_exists", details={"name": name}) from e
    return result.last_insert_id


def get_all_projects() -> List[Dict[str, Any]]:
    """Get all projects, most recently updated first."""
    rows = query("""
        SELECT id, name, description, selected_languages, created_at, updated_at, is_completed
        FROM projects
        ORDER BY updated_at DESC, id DESC
    """)
    return [_project_row(row) for row in rows]


def get_project_by_id(project_id: int) -> Optional[Dict[str, Any]]:
    """Get a project by ID."""
    rows = query("SELECT * FROM projects WHERE id = ?", (project_id,))
    return _project_row(rows[0]) if rows else None


def get_project_by_name(name: str) -> Optional[Dict[str, Any]]:
    """Get a project by exact name."""
    rows = query("SELECT * FROM projects WHERE name = ?", (name,))
    return _project_row(rows[0]) if rows else None


def update_project(project_id: int, name: str = None, description: str = None,
                   selected_languages: List[str] = None, conn=None) -> bool:
    """Update a project. Returns False if nothing matched."""
    updates = []
    params = []

    if name is not None:
        updates.append("name = ?")
        params.append(name)
    if description is not None:
        updates.append("description = ?")
        params.append(description)
    if selected_languages is not None:
        updates.append("selected_languages = ?")
        params.append(json.dumps(selected_languages))

    if not updates:
        return False

    updates.append("updated_at = CURRENT_TIMESTAMP")
    params.append(project_id)
    try:
        result = execute(f"UPDATE projects SET {', '.join(updates)} WHERE id = ?", params, conn=conn)
    except sqlite3.IntegrityError as e:
        raise ConflictError(f"A project named '{name}' already exists",
                            code="project_exists", details={"name": name}) from e
    return result.rowcount > 0


def delete_project(project_id: int, conn=None) -> bool:
    """Delete a project and all its translations."""
    with transaction(conn) as conn:
        # Cascade is declared on the table, delete explicitly for older files
        execute("DELETE FROM translations WHERE project_id = ?", (project_id,), conn=conn)
        result = execute("DELETE FROM projects WHERE id = ?", (project_id,), conn=conn)
    return result.rowcount > 0


def toggle_project_completion(project_id: int) -> bool:
    """Flip the project's completion flag."""
    result = execute("""
        UPDATE projects
        SET is_completed = NOT is_completed, updated_at = CURRENT_TIMESTAMP
        WHERE id = ?
    """, (project_id,))
    return result.rowcount > 0


def _project_row(row: Dict[str, Any]) -> Dict[str, Any]:
    row = dict(row)
    try:
        languages = json.loads(row.get('selected_languages') or '[]')
        if not isinstance(languages, list):
            languages = []
    except (json.JSONDecodeError, TypeError):
        logger.warning(f"Invalid selected_languages for project {row.get('id')}, treating as empty")
        languages = []
    row['selected_languages'] = languages
    row['is_completed'] = bool(row.get('is_completed'))
    return row


# ============================================================
# Translation CRUD Operations
# ============================================================

def get_max_sort_order(project_id: int, conn=None) -> int:
    rows = query(
        "SELECT COALESCE(MAX(sort_order), 0) AS max_sort FROM translations WHERE project_id = ?",
        (project_id,),
        conn=conn,
    )
    return rows[0]['max_sort'] if rows else 0


def create_translation_key(project_id: int, key: str, language_codes: List[str]) -> int:
    """
    Insert one empty row per language for a new key.

    All rows share one sort_order, one higher than any in the project.

    Returns:
        The sort_order assigned to the key
    """
    try:
        with transaction() as conn:
            sort_order = get_max_sort_order(project_id, conn=conn) + 1
            for language in language_codes:
                execute("""
                    INSERT INTO translations (project_id, key, language, value, is_completed, sort_order)
                    VALUES (?, ?, ?, '', 0, ?)
                """, (project_id, key, language, sort_order), conn=conn)
    except sqlite3.IntegrityError as e:
        raise ConflictError(f"Translation key '{key}' already exists", code="key_exists") from e
    return sort_order


def get_project_translation_rows(project_id: int, order_by: str) -> List[Dict[str, Any]]:
    """
    Get all translation rows of a project.

    Args:
        project_id: The project ID
        order_by: ORDER BY clause from translation.sorting (never user input)
    """
    return query(f"""
        SELECT key, language, value, is_completed, sort_order
        FROM translations
        WHERE project_id = ?
        ORDER BY {order_by}
    """, (project_id,))


def get_translations_by_key(project_id: int, key: str) -> List[Dict[str, Any]]:
    """Get every language row of one key, ordered by language."""
    rows = query("""
        SELECT language, value, is_completed, sort_order
        FROM translations
        WHERE project_id = ? AND key = ?
        ORDER BY language
    """, (project_id, key))
    for row in rows:
        row['is_completed'] = bool(row['is_completed'])
    return rows


def get_project_keys(project_id: int) -> List[str]:
    rows = query("""
        SELECT DISTINCT key
        FROM translations
        WHERE project_id = ?
        ORDER BY key
    """, (project_id,))
    return [row['key'] for row in rows]


def key_exists(project_id: int, key: str) -> bool:
    rows = query(
        "SELECT COUNT(*) AS count FROM translations WHERE project_id = ? AND key = ?",
        (project_id, key),
    )
    return bool(rows and rows[0]['count'] > 0)


def upsert_translation(project_id: int, key: str, language: str, value: str,
                       sort_order: int = None, conn=None) -> None:
    """
    Insert or update one (key, language) cell.

    is_completed is always derived from the value. sort_order is only used
    when the row is inserted.
    """
    if sort_order is None:
        existing = query(
            "SELECT MAX(sort_order) AS sort_order FROM translations WHERE project_id = ? AND key = ?",
            (project_id, key),
            conn=conn,
        )
        sort_order = existing[0]['sort_order'] if existing and existing[0]['sort_order'] is not None else None
        if sort_order is None:
            sort_order = get_max_sort_order(project_id, conn=conn) + 1

    execute("""
        INSERT INTO translations (project_id, key, language, value, is_completed, sort_order)
        VALUES (?, ?, ?, ?, ?, ?)
        ON CONFLICT(project_id, key, language) DO UPDATE SET
            value = excluded.value,
            is_completed = excluded.is_completed,
            updated_at = CURRENT_TIMESTAMP
    """, (project_id, key, language, value, 1 if is_value_complete(value) else 0, sort_order), conn=conn)


def bulk_upsert_translations(project_id: int, translations: Dict[str, Dict[str, str]],
                             language_codes: Iterable[str], conn=None) -> int:
    """
    Upsert every (key, language, value) triple of a canonical map in one transaction.

    Languages outside language_codes are skipped. New keys get consecutive
    sort_order values in map order; existing keys keep theirs.

    Returns:
        Number of cells written
    """
    allowed = set(language_codes)
    written = 0
    try:
        with transaction(conn) as conn:
            next_sort_order = get_max_sort_order(project_id, conn=conn) + 1
            existing_orders = {
                row['key']: row['sort_order']
                for row in query("""
                    SELECT key, MAX(sort_order) AS sort_order
                    FROM translations WHERE project_id = ? GROUP BY key
                """, (project_id,), conn=conn)
            }
            for key, values in translations.items():
                sort_order = existing_orders.get(key)
                if sort_order is None:
                    sort_order = next_sort_order
                    existing_orders[key] = sort_order
                    next_sort_order += 1
                for language, value in values.items():
                    if language not in allowed:
                        continue
                    upsert_translation(project_id, key, language, value or '', sort_order=sort_order, conn=conn)
                    written += 1
    except sqlite3.IntegrityError as e:
        logger.error(f"Bulk upsert failed for project {project_id}: {e}")
        raise StorageError(f"Database write failed: {e}", code="storage_error") from e
    logger.debug(f"Upserted {written} cells for project {project_id}")
    return written


def rename_translation_key(project_id: int, old_key: str, new_key: str) -> int:
    """Re-key every row of old_key. Returns the number of rows changed."""
    try:
        result = execute("""
            UPDATE translations
            SET key = ?, updated_at = CURRENT_TIMESTAMP
            WHERE project_id = ? AND key = ?
        """, (new_key, project_id, old_key))
    except sqlite3.IntegrityError as e:
        raise ConflictError(f"Translation key '{new_key}' already exists",
                            code="key_exists") from e
    return result.rowcount


def delete_translation_keys(project_id: int, keys: List[str]) -> int:
    """Delete every row of the given keys. Returns the number of rows deleted."""
    if not keys:
        return 0
    result = execute(
        f"DELETE FROM translations WHERE project_id = ? AND key IN ({_placeholders(keys)})",
        [project_id, *keys],
    )
    return result.rowcount


def add_language_rows(project_id: int, language: str, conn=None) -> int:
    """Insert an empty row in `language` for every existing key of the project."""
    result = execute("""
        INSERT INTO translations (project_id, key, language, value, is_completed, sort_order)
        SELECT project_id, key, ?, '', 0, MAX(sort_order)
        FROM translations
        WHERE project_id = ?
        GROUP BY key
        ON CONFLICT(project_id, key, language) DO NOTHING
    """, (language, project_id), conn=conn)
    return result.rowcount


def delete_language_rows(project_id: int, language: str, conn=None) -> int:
    """Delete every row of one language in a project."""
    result = execute(
        "DELETE FROM translations WHERE project_id = ? AND language = ?",
        (project_id, language),
        conn=conn,
    )
    return result.rowcount


# ============================================================
# App Config CRUD Operations
# ============================================================

def get_app_config(key: str) -> Optional[str]:
    """Get a configuration value by key."""
    rows = query("SELECT value FROM app_config WHERE key = ?", (key,))
    return rows[0]['value'] if rows else None


def set_app_config(key: str, value: str):
    """Set a configuration value."""
    execute("""
        INSERT OR REPLACE INTO app_config (key, value, updated_at)
        VALUES (?, ?, CURRENT_TIMESTAMP)
    """, (key, value))

