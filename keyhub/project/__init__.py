"""
Project module - Project storage, import and export

This module provides:
- store: Project bundle loading and all project, key, cell and language mutations
- files: File picker and text I/O capability
- interchange: CSV and JSON parsing and rendering
- importer: Two-phase import with overwrite confirmation
- exporter: JSON, CSV and per-language export with history
"""

from keyhub.project.store import (
    BatchResult,
    EditBuffer,
    ProjectBundle,
    add_language,
    create_key,
    create_keys,
    create_project,
    delete_key,
    delete_keys,
    delete_project,
    export_translations,
    get_project,
    list_projects,
    load_project_bundle,
    project_mutation_lock,
    remove_language,
    rename_key,
    update_cell,
    update_project,
)

from keyhub.project.files import (
    ExtensionFilter,
    FileAccess,
    LocalFileAccess,
)

from keyhub.project.importer import (
    ConflictSummary,
    ImportOutcome,
    ImportSession,
    ImportState,
    cancel_import,
    confirm_overwrite_and_import,
    import_content,
    import_project,
)

from keyhub.project.exporter import (
    ExportOutcome,
    export_all_languages_json,
    export_csv,
    export_history,
    export_project_json,
    export_single_language_json,
)
