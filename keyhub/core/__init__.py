"""
Core module - Persistence

This module provides:
- database: query/execute primitives and CRUD operations for all entities
- schema: Database initialization, migrations and language seeding
"""

from keyhub.core.database import (
    DB_FILE,
    ExecuteResult,
    get_connection,
    query,
    execute,
    transaction,
    # Supported language operations
    get_all_active_languages,
    get_all_languages,
    get_language_by_code,
    add_language,
    toggle_language_status,
    get_language_names_by_codes,
    # Project operations
    create_project,
    get_all_projects,
    get_project_by_id,
    get_project_by_name,
    update_project,
    delete_project,
    toggle_project_completion,
    # Translation operations
    create_translation_key,
    get_project_translation_rows,
    get_translations_by_key,
    get_project_keys,
    key_exists,
    upsert_translation,
    bulk_upsert_translations,
    rename_translation_key,
    delete_translation_keys,
    add_language_rows,
    delete_language_rows,
    # App config operations
    get_app_config,
    set_app_config,
)

from keyhub.core.schema import (
    DB_VERSION,
    DEFAULT_LANGUAGES,
    get_db_version,
    set_db_version,
    initialize_database,
    migrate_database,
)
