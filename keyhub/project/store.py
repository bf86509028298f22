"""
Project Store Module

Loads projects into the in-memory shape used by validation, progress and
search, and performs every project, key, cell and language mutation.

Every key mutation goes through the validator first. Cell completion is
derived from the value inside core.database on each write.

Mutations on one project must not overlap; callers hold
project_mutation_lock(project_id) around them.
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from keyhub.core import database as db
from keyhub.exceptions import (
    ConflictError,
    InvalidInputError,
    InvalidKeyError,
    InvalidOperationError,
    KeyhubError,
    NotFoundError,
)
from keyhub.logger import get_logger
from keyhub.translation import progress
from keyhub.translation.models import (
    Project,
    SupportedLanguage,
    TranslationCell,
    TranslationGroup,
    groups_from_rows,
)
from keyhub.translation.sorting import DEFAULT_SORT, SortOption, order_by_clause, parse_sort_option
from keyhub.translation.validator import (
    BatchKeyResult,
    KeyValidationOptions,
    ValidationResult,
    validate_batch,
    validate_complete,
)

logger = get_logger(__name__)

_project_locks: Dict[int, threading.Lock] = {}
_project_locks_guard = threading.Lock()


@contextmanager
def project_mutation_lock(project_id: int):
    """Serialize mutations of one project."""
    with _project_locks_guard:
        lock = _project_locks.setdefault(project_id, threading.Lock())
    with lock:
        yield


@dataclass
class ProjectBundle:
    """A loaded project: its active languages and its sorted groups."""
    project: Project
    languages: List[SupportedLanguage]
    groups: List[TranslationGroup]
    sort: SortOption = DEFAULT_SORT

    @property
    def language_codes(self) -> List[str]:
        return [language.code for language in self.languages]

    def progress(self) -> progress.LanguageProgress:
        return progress.calculate(self.groups, self.language_codes)

    def incomplete_keys(self) -> List[str]:
        return [group.key for group in progress.get_incomplete_items(self.groups, self.language_codes)]

    def to_dict(self, groups: Optional[List[TranslationGroup]] = None) -> Dict[str, Any]:
        groups = self.groups if groups is None else groups
        return {
            "project": self.project.to_dict(),
            "languages": [language.to_dict() for language in self.languages],
            "sort": self.sort.value,
            "progress": self.progress().to_dict(),
            "incomplete_keys": self.incomplete_keys(),
            "groups": [group.to_dict() for group in groups],
        }


@dataclass
class BatchResult:
    """Outcome of a batch operation where single items may fail."""
    success_count: int = 0
    failure_count: int = 0
    failures: List[BatchKeyResult] = field(default_factory=list)
    created: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "failures": [{"key": f.key, "message": f.message} for f in self.failures],
            "created": list(self.created),
        }


# ============================================================
# Supported languages
# ============================================================

def list_languages(include_inactive: bool = False) -> List[SupportedLanguage]:
    rows = db.get_all_languages() if include_inactive else db.get_all_active_languages()
    return [SupportedLanguage.from_row(row) for row in rows]


def _active_language_codes() -> List[str]:
    return [row['code'] for row in db.get_all_active_languages()]


# ============================================================
# Projects
# ============================================================

def _require_project(project_id: int) -> Dict[str, Any]:
    row = db.get_project_by_id(project_id)
    if row is None:
        raise NotFoundError(f"Project {project_id} not found", code="project_not_found",
                            details={"project_id": project_id})
    return row


def _with_stats(row: Dict[str, Any], groups: Optional[List[TranslationGroup]] = None,
                language_codes: Optional[List[str]] = None) -> Project:
    """Attach key statistics counted with the same completion check as the bundle progress."""
    if language_codes is None:
        active = set(_active_language_codes())
        language_codes = [code for code in row['selected_languages'] if code in active]
    if groups is None:
        groups = groups_from_rows(db.get_project_translation_rows(row['id'], order_by_clause(DEFAULT_SORT)))
    completed = 0
    if language_codes:
        completed = sum(1 for group in groups if progress.is_item_complete(group, language_codes))
    return Project.from_row(row, total_keys=len(groups), completed_keys=completed)


def get_project(project_id: int) -> Project:
    return _with_stats(_require_project(project_id))


def list_projects() -> List[Project]:
    """All projects, most recently updated first, with key statistics."""
    return [_with_stats(row) for row in db.get_all_projects()]


def _clean_language_list(language_codes: Iterable[str]) -> List[str]:
    """Trim and de-duplicate codes, keeping their order."""
    cleaned: List[str] = []
    for code in language_codes or []:
        code = (code or "").strip()
        if code and code not in cleaned:
            cleaned.append(code)
    return cleaned


def create_project(name: str, description: Optional[str], language_codes: Iterable[str]) -> Project:
    """
    Create a project.

    Raises:
        InvalidInputError: Empty name, no languages or an inactive/unknown language
        ConflictError: A project with the same name exists
    """
    name = (name or "").strip()
    if not name:
        raise InvalidInputError("Project name cannot be empty", code="empty_name")

    languages = _clean_language_list(language_codes)
    if not languages:
        raise InvalidInputError("Select at least one language", code="no_languages")

    active = set(_active_language_codes())
    unknown = [code for code in languages if code not in active]
    if unknown:
        raise InvalidInputError(f"Unsupported or inactive languages: {', '.join(unknown)}",
                                code="unknown_language", details={"languages": unknown})

    description = (description or "").strip() or None
    project_id = db.create_project(name, description, languages)
    logger.info(f"Created project {project_id} '{name}' with {len(languages)} languages")
    return get_project(project_id)


def update_project(project_id: int, name: Optional[str] = None,
                   description: Optional[str] = None) -> Project:
    """Rename a project or change its description. Languages change through add/remove_language."""
    _require_project(project_id)
    if name is not None:
        name = name.strip()
        if not name:
            raise InvalidInputError("Project name cannot be empty", code="empty_name")
    if description is not None:
        description = description.strip()
    db.update_project(project_id, name=name, description=description)
    logger.info(f"Updated project {project_id}")
    return get_project(project_id)


def delete_project(project_id: int) -> None:
    _require_project(project_id)
    db.delete_project(project_id)
    logger.info(f"Deleted project {project_id}")


def toggle_project_completion(project_id: int) -> Project:
    _require_project(project_id)
    db.toggle_project_completion(project_id)
    return get_project(project_id)


def load_project_bundle(project_id: int, sort: Optional[Any] = None) -> ProjectBundle:
    """
    Load a project, its active languages and its groups in sort order.

    Languages keep the project's order; codes of languages deactivated since
    the project was created are left out.

    Raises:
        NotFoundError: The project does not exist
    """
    option = parse_sort_option(sort)
    row = _require_project(project_id)

    active = {language['code']: language for language in db.get_all_active_languages()}
    languages = [
        SupportedLanguage.from_row(active[code])
        for code in row['selected_languages']
        if code in active
    ]

    groups = groups_from_rows(db.get_project_translation_rows(project_id, order_by_clause(option)))
    logger.debug(f"Loaded project {project_id}: {len(groups)} keys, {len(languages)} languages")
    codes = [language.code for language in languages]
    return ProjectBundle(project=_with_stats(row, groups, codes), languages=languages, groups=groups, sort=option)


# ============================================================
# Keys
# ============================================================

def get_keys(project_id: int) -> List[str]:
    _require_project(project_id)
    return db.get_project_keys(project_id)


def get_key_group(project_id: int, key: str) -> TranslationGroup:
    """One key with its cells in every language."""
    _require_project(project_id)
    rows = db.get_translations_by_key(project_id, key)
    if not rows:
        raise NotFoundError(f"Translation key '{key}' not found", code="key_not_found",
                            details={"key": key})
    group = TranslationGroup(key=key, sort_order=rows[0]['sort_order'] or 0)
    for row in rows:
        group.translations[row['language']] = TranslationCell(row['value'] or "", row['is_completed'])
    return group


def validate_key(project_id: int, key: str, options: Optional[KeyValidationOptions] = None,
                 exclude_key: Optional[str] = None) -> ValidationResult:
    """
    Validate a candidate key against the project's keys.

    Args:
        exclude_key: Key left out of the comparison set, the current key when renaming
    """
    existing = [k for k in get_keys(project_id) if k != exclude_key]
    return validate_complete(key, existing, options)


def create_key(project_id: int, key: str, options: Optional[KeyValidationOptions] = None) -> TranslationGroup:
    """
    Create a key with an empty cell in every project language.

    The key gets a sort order one higher than any key in the project.

    Raises:
        InvalidKeyError: The validator rejected the key
    """
    row = _require_project(project_id)
    result = validate_complete(key, db.get_project_keys(project_id), options)
    if not result.is_valid:
        raise InvalidKeyError(key, result)

    key = key.strip()
    sort_order = db.create_translation_key(project_id, key, row['selected_languages'])
    logger.info(f"Created key '{key}' in project {project_id}")
    return TranslationGroup(
        key=key,
        sort_order=sort_order,
        translations={code: TranslationCell() for code in row['selected_languages']},
    )


def create_keys(project_id: int, keys: Iterable[str],
                options: Optional[KeyValidationOptions] = None) -> BatchResult:
    """
    Validate and create several keys, one at a time.

    A rejected or failing key is counted and reported; the others are still
    created.
    """
    row = _require_project(project_id)
    outcome = BatchResult()

    for item in validate_batch(keys, db.get_project_keys(project_id), options):
        if not item.is_valid:
            outcome.failure_count += 1
            outcome.failures.append(item)
            continue
        try:
            db.create_translation_key(project_id, item.key, row['selected_languages'])
        except KeyhubError as e:
            logger.error(f"Failed to create key '{item.key}' in project {project_id}: {e}")
            outcome.failure_count += 1
            outcome.failures.append(BatchKeyResult(item.key, False, e.message))
            continue
        outcome.success_count += 1
        outcome.created.append(item.key)

    logger.info(f"Batch created {outcome.success_count} keys in project {project_id}, "
                f"{outcome.failure_count} failed")
    return outcome


def rename_key(project_id: int, old_key: str, new_key: str,
               options: Optional[KeyValidationOptions] = None) -> str:
    """
    Re-key every cell of old_key. Values and completion are untouched.

    Returns:
        The new key; unchanged input is a no-op
    """
    _require_project(project_id)
    if not db.key_exists(project_id, old_key):
        raise NotFoundError(f"Translation key '{old_key}' not found", code="key_not_found",
                            details={"key": old_key})

    trimmed = (new_key or "").strip()
    if trimmed == old_key:
        return old_key

    result = validate_key(project_id, new_key, options, exclude_key=old_key)
    if not result.is_valid:
        raise InvalidKeyError(new_key, result)

    db.rename_translation_key(project_id, old_key, trimmed)
    logger.info(f"Renamed key '{old_key}' to '{trimmed}' in project {project_id}")
    return trimmed


def delete_keys(project_id: int, keys: Iterable[str]) -> int:
    """Delete every cell of the given keys. Returns the number of keys removed."""
    _require_project(project_id)
    keys = list(dict.fromkeys(keys))
    present = [key for key in keys if db.key_exists(project_id, key)]
    db.delete_translation_keys(project_id, present)
    logger.info(f"Deleted {len(present)} keys from project {project_id}")
    return len(present)


def delete_key(project_id: int, key: str) -> int:
    return delete_keys(project_id, [key])


# ============================================================
# Cells
# ============================================================

def update_cell(project_id: int, key: str, language: str, value: str) -> TranslationCell:
    """
    Write one cell. Completion follows the trimmed value.

    Raises:
        NotFoundError: Unknown project, key or language of the project
    """
    row = _require_project(project_id)
    if language not in row['selected_languages']:
        raise NotFoundError(f"Language '{language}' is not part of this project",
                            code="language_not_in_project", details={"language": language})
    if not db.key_exists(project_id, key):
        raise NotFoundError(f"Translation key '{key}' not found", code="key_not_found",
                            details={"key": key})

    value = value or ""
    db.upsert_translation(project_id, key, language, value)
    logger.debug(f"Updated cell '{key}' [{language}] in project {project_id}")
    return TranslationCell.of(value)


class EditBuffer:
    """
    Uncommitted cell edits of one project.

    Edits stay in memory until commit(), typically on focus loss, so typing
    does not write to storage on every keystroke.
    """

    def __init__(self, project_id: int):
        self.project_id = project_id
        self._pending: Dict[Tuple[str, str], str] = {}

    def set(self, key: str, language: str, value: str):
        self._pending[(key, language)] = value

    def get(self, key: str, language: str, default: Optional[str] = None) -> Optional[str]:
        return self._pending.get((key, language), default)

    @property
    def pending(self) -> Dict[Tuple[str, str], str]:
        return dict(self._pending)

    def has_changes(self) -> bool:
        return bool(self._pending)

    def commit(self, key: Optional[str] = None, language: Optional[str] = None) -> int:
        """
        Write buffered edits, all of them or those matching key/language.

        Returns:
            Number of cells written
        """
        targets = [
            cell for cell in self._pending
            if (key is None or cell[0] == key) and (language is None or cell[1] == language)
        ]
        for cell in targets:
            update_cell(self.project_id, cell[0], cell[1], self._pending[cell])
            del self._pending[cell]
        return len(targets)

    def discard(self, key: Optional[str] = None, language: Optional[str] = None) -> int:
        targets = [
            cell for cell in self._pending
            if (key is None or cell[0] == key) and (language is None or cell[1] == language)
        ]
        for cell in targets:
            del self._pending[cell]
        return len(targets)


# ============================================================
# Project languages
# ============================================================

def add_language(project_id: int, language_code: str) -> Project:
    """
    Add a language to a project with an empty cell for every existing key.

    Raises:
        InvalidInputError: The code is not an active supported language
        ConflictError: The project already has the language
    """
    row = _require_project(project_id)
    language_code = (language_code or "").strip()
    if language_code not in _active_language_codes():
        raise InvalidInputError(f"Unsupported or inactive language: {language_code}",
                                code="unknown_language", details={"language": language_code})
    if language_code in row['selected_languages']:
        raise ConflictError(f"Language '{language_code}' is already part of this project",
                            code="language_in_project", details={"language": language_code})

    with db.transaction() as conn:
        added = db.add_language_rows(project_id, language_code, conn=conn)
        db.update_project(project_id, selected_languages=row['selected_languages'] + [language_code],
                          conn=conn)
    logger.info(f"Added language '{language_code}' to project {project_id} ({added} cells)")
    return get_project(project_id)


def remove_language(project_id: int, language_code: str) -> Project:
    """
    Remove a language and all its cells from a project.

    Raises:
        NotFoundError: The project does not have the language
        InvalidOperationError: It is the project's last language
    """
    row = _require_project(project_id)
    languages = row['selected_languages']
    if language_code not in languages:
        raise NotFoundError(f"Language '{language_code}' is not part of this project",
                            code="language_not_in_project", details={"language": language_code})
    if len(languages) == 1:
        raise InvalidOperationError("A project must keep at least one language", code="last_language")

    with db.transaction() as conn:
        removed = db.delete_language_rows(project_id, language_code, conn=conn)
        db.update_project(project_id, selected_languages=[c for c in languages if c != language_code],
                          conn=conn)
    logger.info(f"Removed language '{language_code}' from project {project_id} ({removed} cells)")
    return get_project(project_id)


# ============================================================
# Export data
# ============================================================

def export_translations(project_id: int, sort: Optional[Any] = SortOption.KEY_ASC) -> Dict[str, Dict[str, str]]:
    """Canonical map of a project restricted to its languages, in sort order."""
    row = _require_project(project_id)
    option = parse_sort_option(sort)
    groups = groups_from_rows(db.get_project_translation_rows(project_id, order_by_clause(option)))
    return {group.key: group.values(row['selected_languages']) for group in groups}
