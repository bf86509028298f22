"""
Project Export Module

Writes a project's translations through a FileAccess: the full JSON bundle,
CSV, one language as flat JSON, or every language into a chosen directory.
A cancelled picker gives an unsuccessful outcome with cancelled=True; it is
not an error.
"""

import threading
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from keyhub.exceptions import KeyhubError, NotFoundError
from keyhub.logger import get_logger
from keyhub.project import interchange
from keyhub.project import store
from keyhub.project.files import CSV_FILTER, JSON_FILTER, FileAccess
from keyhub.translation.models import Project, SupportedLanguage

logger = get_logger(__name__)

MSG_CANCELLED = "Export cancelled"
HISTORY_LIMIT = 100


@dataclass
class ExportOutcome:
    success: bool
    message: str
    cancelled: bool = False
    paths: List[Path] = field(default_factory=list)
    success_count: int = 0
    failure_count: int = 0
    failed_languages: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "cancelled": self.cancelled,
            "paths": [str(path) for path in self.paths],
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "failed_languages": list(self.failed_languages),
        }


@dataclass
class ExportRecord:
    project_id: int
    format: str
    file_name: str
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project_id": self.project_id,
            "format": self.format,
            "file_name": self.file_name,
            "timestamp": self.timestamp,
        }


class ExportHistory:
    """The most recent exports, oldest first, capped at `limit` records."""

    def __init__(self, limit: int = HISTORY_LIMIT):
        self.limit = limit
        self._records: List[ExportRecord] = []
        self._lock = threading.Lock()

    def record(self, project_id: int, export_format: str, file_name: str) -> ExportRecord:
        entry = ExportRecord(project_id, export_format, file_name, interchange.export_timestamp())
        with self._lock:
            self._records.append(entry)
            if len(self._records) > self.limit:
                self._records = self._records[-self.limit:]
        return entry

    def for_project(self, project_id: int) -> List[ExportRecord]:
        with self._lock:
            return [entry for entry in self._records if entry.project_id == project_id]

    def recent(self, limit: int = 10) -> List[ExportRecord]:
        """Newest first."""
        with self._lock:
            return list(reversed(self._records[-limit:])) if limit > 0 else []

    def clear(self):
        with self._lock:
            self._records = []


export_history = ExportHistory()


def _export_data(project_id: int) -> Tuple[Project, List[SupportedLanguage], Dict[str, Dict[str, str]]]:
    bundle = store.load_project_bundle(project_id)
    translations = store.export_translations(project_id)
    # Columns follow the project's active languages
    codes = bundle.language_codes
    translations = {key: {code: values.get(code, "") for code in codes} for key, values in translations.items()}
    return bundle.project, bundle.languages, translations


def _language_dicts(languages: List[SupportedLanguage]) -> List[Dict[str, str]]:
    return [{"code": language.code, "name": language.name} for language in languages]


def render_project_json(project_id: int) -> Tuple[str, str]:
    """Return (file_name, content) of the full JSON bundle."""
    project, languages, translations = _export_data(project_id)
    bundle = interchange.to_json_bundle(project.to_dict(), _language_dicts(languages), translations)
    return interchange.generate_file_name(project.name, "json"), interchange.render_json(bundle)


def render_csv(project_id: int) -> Tuple[str, str]:
    """Return (file_name, content) of the CSV export."""
    project, languages, translations = _export_data(project_id)
    content = interchange.to_csv([language.code for language in languages], translations)
    return interchange.generate_file_name(project.name, "csv"), content


def render_single_language(project_id: int, language_code: str) -> Tuple[str, str]:
    """Return (file_name, content) of one language as flat JSON."""
    project, languages, translations = _export_data(project_id)
    if language_code not in [language.code for language in languages]:
        raise NotFoundError(f"Language '{language_code}' is not part of this project",
                            code="language_not_in_project", details={"language": language_code})
    content = interchange.render_json(interchange.single_language_map(translations, language_code))
    return interchange.generate_file_name(project.name, "json", language_code), content


def _save(file_access: FileAccess, project_id: int, export_format: str, title: str,
          file_name: str, content: str, filters) -> ExportOutcome:
    path = file_access.pick_save_target(title, file_name, filters)
    if path is None:
        return ExportOutcome(success=False, message=MSG_CANCELLED, cancelled=True)
    file_access.write_text(path, content)
    export_history.record(project_id, export_format, Path(path).name)
    logger.info(f"Exported project {project_id} as {export_format} to {path}")
    return ExportOutcome(success=True, message=f"Exported to {Path(path).name}", paths=[Path(path)],
                         success_count=1)


def export_project_json(file_access: FileAccess, project_id: int) -> ExportOutcome:
    file_name, content = render_project_json(project_id)
    return _save(file_access, project_id, "json", "Export Project Translations",
                 file_name, content, [JSON_FILTER])


def export_csv(file_access: FileAccess, project_id: int) -> ExportOutcome:
    file_name, content = render_csv(project_id)
    return _save(file_access, project_id, "csv", "Export CSV Translation Table",
                 file_name, content, [CSV_FILTER])


def export_single_language_json(file_access: FileAccess, project_id: int, language_code: str) -> ExportOutcome:
    file_name, content = render_single_language(project_id, language_code)
    return _save(file_access, project_id, f"json:{language_code}", f"Export {language_code} Translations",
                 file_name, content, [JSON_FILTER])


def export_all_languages_json(file_access: FileAccess, project_id: int,
                              today: Optional[date] = None) -> ExportOutcome:
    """
    Write one flat JSON file per project language into a chosen directory.

    A failing language is counted and the rest are still written.
    """
    project, languages, translations = _export_data(project_id)

    directory = file_access.pick_directory("Choose Export Directory")
    if directory is None:
        return ExportOutcome(success=False, message=MSG_CANCELLED, cancelled=True)

    outcome = ExportOutcome(success=False, message="")
    for language in languages:
        file_name = interchange.generate_file_name(project.name, "json", language.code, today)
        content = interchange.render_json(interchange.single_language_map(translations, language.code))
        path = Path(directory) / file_name
        try:
            file_access.write_text(path, content)
        except KeyhubError as e:
            logger.error(f"Failed to export {language.code} of project {project_id}: {e}")
            outcome.failure_count += 1
            outcome.failed_languages.append(language.code)
            continue
        export_history.record(project_id, f"json:{language.code}", file_name)
        outcome.success_count += 1
        outcome.paths.append(path)

    outcome.success = outcome.failure_count == 0 and outcome.success_count > 0
    outcome.message = f"Exported {outcome.success_count} languages, {outcome.failure_count} failed"
    logger.info(f"Project {project_id}: {outcome.message}")
    return outcome
