"""
Project Import Module

Two-phase import of a translation file into a new project:

    IDLE -> PARSED -> COMMITTED
                   `-> NEEDS_CONFIRMATION -> COMMITTED
                                          `-> ABORTED

An ImportSession carries the parsed payload and the inferred metadata across
the overwrite decision. Nothing is written to storage before the session is
committed; cancelling or abandoning a session leaves storage untouched.
"""

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from keyhub.core import database as db
from keyhub.exceptions import InvalidOperationError, KeyhubError
from keyhub.logger import get_logger
from keyhub.project import interchange
from keyhub.project.files import FileAccess, IMPORT_FILTERS
from keyhub.project.store import get_project, project_mutation_lock
from keyhub.translation.models import Project
from keyhub.translation.validator import validate_format

logger = get_logger(__name__)

MSG_CANCELLED = "Import cancelled"


class ImportState(str, Enum):
    IDLE = "idle"
    PARSED = "parsed"
    NEEDS_CONFIRMATION = "needs_confirmation"
    COMMITTED = "committed"
    ABORTED = "aborted"


@dataclass
class ConflictSummary:
    """The existing project an import would replace."""
    id: int
    name: str
    description: Optional[str]
    language_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "language_count": self.language_count,
        }


@dataclass
class ImportOutcome:
    """Result of an import step. Cancellation is success=False, not an error."""
    success: bool
    message: str
    project: Optional[Project] = None
    needs_overwrite_confirmation: bool = False
    conflicting_project: Optional[ConflictSummary] = None
    imported_count: int = 0
    key_count: int = 0
    skipped_languages: List[str] = field(default_factory=list)
    skipped_keys: List[str] = field(default_factory=list)
    session_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "project": self.project.to_dict() if self.project else None,
            "needs_overwrite_confirmation": self.needs_overwrite_confirmation,
            "conflicting_project": self.conflicting_project.to_dict() if self.conflicting_project else None,
            "imported_count": self.imported_count,
            "key_count": self.key_count,
            "skipped_languages": list(self.skipped_languages),
            "skipped_keys": list(self.skipped_keys),
            "session_id": self.session_id,
        }


@dataclass
class ImportSession:
    """State of one import, held in memory by the caller between steps."""
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: ImportState = ImportState.IDLE
    filename: Optional[str] = None
    payload: Optional[interchange.ParsedPayload] = None
    metadata: Optional[interchange.ProjectMetadata] = None
    conflict: Optional[ConflictSummary] = None
    created_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None

    def load(self, content: str, filename: str) -> "ImportSession":
        """
        Parse a payload and infer the project metadata. No storage access.

        Raises:
            ImportFormatError: The payload is malformed
            InvalidOperationError: The session already holds a payload
        """
        if self.state != ImportState.IDLE:
            raise InvalidOperationError(f"Import session is already {self.state.value}",
                                        code="invalid_session_state")
        self.payload = interchange.parse_payload(content, filename)
        self.metadata = interchange.infer_project_metadata(self.payload, filename)
        self.filename = filename
        self.state = ImportState.PARSED
        logger.debug(f"Import session {self.session_id} parsed '{filename}' as '{self.metadata.name}'")
        return self

    def cancel(self) -> ImportOutcome:
        """Abandon the import. Storage is never touched."""
        if self.state == ImportState.COMMITTED:
            raise InvalidOperationError("Import was already committed", code="invalid_session_state")
        self.state = ImportState.ABORTED
        self.finished_at = time.time()
        logger.info(f"Import session {self.session_id} cancelled")
        return ImportOutcome(success=False, message=MSG_CANCELLED, session_id=self.session_id)

    @property
    def is_finished(self) -> bool:
        return self.state in (ImportState.COMMITTED, ImportState.ABORTED)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "state": self.state.value,
            "filename": self.filename,
            "project_name": self.metadata.name if self.metadata else None,
            "languages": list(self.metadata.languages) if self.metadata else [],
            "key_count": len(self.payload.translations) if self.payload else 0,
            "conflicting_project": self.conflict.to_dict() if self.conflict else None,
        }


def _find_conflict(name: str) -> Optional[ConflictSummary]:
    row = db.get_project_by_name(name)
    if row is None:
        return None
    return ConflictSummary(
        id=row['id'],
        name=row['name'],
        description=row.get('description') or None,
        language_count=len(row['selected_languages']),
    )


def _supported_languages(session: ImportSession):
    """Split the inferred languages into (active supported, skipped)."""
    active = {row['code'] for row in db.get_all_active_languages()}
    usable = [code for code in session.metadata.languages if code in active]
    skipped = [code for code in session.metadata.languages if code not in active]
    return usable, skipped


def _no_language_outcome(session: ImportSession, skipped: List[str]) -> ImportOutcome:
    session.state = ImportState.ABORTED
    session.finished_at = time.time()
    logger.warning(f"Import of '{session.metadata.name}' has no supported languages")
    return ImportOutcome(
        success=False,
        message="None of the file's languages are supported: " + (", ".join(skipped) or "none found"),
        skipped_languages=skipped,
        session_id=session.session_id,
    )


def _create_and_import(session: ImportSession, languages: List[str], skipped: List[str],
                       replace: Optional[ConflictSummary] = None) -> ImportOutcome:
    metadata = session.metadata
    translations = {}
    skipped_keys = []
    for key, values in session.payload.translations.items():
        if validate_format(key).is_valid:
            # Every key gets a cell in every project language
            translations[key] = {code: values.get(code, "") for code in languages}
        else:
            skipped_keys.append(key)

    try:
        with db.transaction() as conn:
            if replace is not None and db.delete_project(replace.id, conn=conn):
                logger.info(f"Replacing project {replace.id} '{replace.name}'")
            project_id = db.create_project(metadata.name, metadata.description, languages, conn=conn)
            written = db.bulk_upsert_translations(project_id, translations, languages, conn=conn)
    except KeyhubError:
        logger.exception(f"Import of '{metadata.name}' failed, nothing was written")
        raise

    session.state = ImportState.COMMITTED
    session.finished_at = time.time()
    logger.info(f"Imported '{metadata.name}' as project {project_id}: "
                f"{len(translations)} keys, {written} cells")
    return ImportOutcome(
        success=True,
        message=f"Imported {len(translations)} keys into '{metadata.name}'",
        project=get_project(project_id),
        imported_count=written,
        key_count=len(translations),
        skipped_languages=skipped,
        skipped_keys=skipped_keys,
        session_id=session.session_id,
    )


def import_content(content: str, filename: str, session: Optional[ImportSession] = None) -> ImportOutcome:
    """
    Parse a payload and import it, unless a project with the inferred name exists.

    On a name conflict the returned outcome asks for overwrite confirmation
    and the session keeps the payload for confirm_overwrite_and_import().

    Raises:
        ImportFormatError: The payload is malformed
    """
    session = session or ImportSession()
    session.load(content, filename)

    usable, skipped = _supported_languages(session)
    if not usable:
        return _no_language_outcome(session, skipped)

    conflict = _find_conflict(session.metadata.name)
    if conflict is not None:
        session.conflict = conflict
        session.state = ImportState.NEEDS_CONFIRMATION
        logger.info(f"Import of '{conflict.name}' conflicts with project {conflict.id}, awaiting decision")
        return ImportOutcome(
            success=False,
            message=f"A project named '{conflict.name}' already exists",
            needs_overwrite_confirmation=True,
            conflicting_project=conflict,
            skipped_languages=skipped,
            session_id=session.session_id,
        )

    return _create_and_import(session, usable, skipped)


def import_project(file_access: FileAccess, session: Optional[ImportSession] = None) -> ImportOutcome:
    """Ask for a file, read it and import it. A cancelled picker is a clean outcome."""
    path = file_access.pick_open_target("Import Project", IMPORT_FILTERS)
    if path is None:
        return ImportOutcome(success=False, message=MSG_CANCELLED,
                             session_id=session.session_id if session else None)
    content = file_access.read_text(path)
    return import_content(content, path.name, session)


def confirm_overwrite_and_import(session: ImportSession) -> ImportOutcome:
    """
    Replace the conflicting project with the session's payload.

    Raises:
        InvalidOperationError: The session is not awaiting an overwrite decision
    """
    if session.state != ImportState.NEEDS_CONFIRMATION:
        raise InvalidOperationError(f"Import session is {session.state.value}, not awaiting confirmation",
                                    code="invalid_session_state")

    usable, skipped = _supported_languages(session)
    if not usable:
        return _no_language_outcome(session, skipped)

    conflict = session.conflict
    with project_mutation_lock(conflict.id):
        return _create_and_import(session, usable, skipped, replace=conflict)


def cancel_import(session: ImportSession) -> ImportOutcome:
    return session.cancel()
