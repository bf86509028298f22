"""Import and export API routes."""

from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, Response, jsonify, request

from keyhub.exceptions import InvalidInputError, NotFoundError
from keyhub.logger import get_logger
from keyhub.project import exporter, importer
from keyhub.web import sessions

transfer_bp = Blueprint("transfer", __name__)
logger = get_logger(__name__)

MIME_TYPES = {
    "json": "application/json; charset=utf-8",
    "csv": "text/csv; charset=utf-8",
}


def _require_session(session_id: str) -> importer.ImportSession:
    session = sessions.get_session(session_id)
    if session is None:
        raise NotFoundError(f"Import session {session_id} not found or expired", code="session_not_found")
    return session


@transfer_bp.post("/import")
def start_import():
    """
    Import a translation file.

    Accepts a multipart upload in 'file' or a JSON body {filename, content}.
    On a name conflict the response carries needs_overwrite_confirmation and
    a session_id for /import/<session_id>/confirm or /cancel.
    """
    upload = request.files.get("file")
    if upload is not None:
        filename = upload.filename or ""
        try:
            content = upload.read().decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidInputError("The file is not UTF-8 text", code="invalid_encoding") from e
    else:
        data: Dict[str, Any] = request.get_json(silent=True) or {}
        filename = str(data.get("filename") or "")
        content = data.get("content")
        if not isinstance(content, str):
            raise InvalidInputError("Provide a file upload or 'content' text", code="missing_content")

    session = sessions.create_session()
    try:
        outcome = importer.import_content(content, filename, session)
    except Exception:
        sessions.discard_session(session.session_id)
        raise

    status = 201 if outcome.success else 200
    return jsonify(outcome.to_dict()), status


@transfer_bp.get("/import/<session_id>")
def get_import(session_id: str):
    return jsonify({"session": _require_session(session_id).to_dict()})


@transfer_bp.post("/import/<session_id>/confirm")
def confirm_import(session_id: str):
    outcome = importer.confirm_overwrite_and_import(_require_session(session_id))
    return jsonify(outcome.to_dict()), 201 if outcome.success else 200


@transfer_bp.post("/import/<session_id>/cancel")
def cancel_import(session_id: str):
    outcome = importer.cancel_import(_require_session(session_id))
    return jsonify(outcome.to_dict())


def _download(file_name: str, content: str, export_format: str, project_id: int, history_format: str):
    exporter.export_history.record(project_id, history_format, file_name)
    logger.info("Project %s exported as %s", project_id, history_format)
    return Response(
        content,
        mimetype=MIME_TYPES[export_format],
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )


@transfer_bp.get("/projects/<int:project_id>/export/json")
def export_json(project_id: int):
    file_name, content = exporter.render_project_json(project_id)
    return _download(file_name, content, "json", project_id, "json")


@transfer_bp.get("/projects/<int:project_id>/export/csv")
def export_csv(project_id: int):
    file_name, content = exporter.render_csv(project_id)
    return _download(file_name, content, "csv", project_id, "csv")


@transfer_bp.get("/projects/<int:project_id>/export/languages/<code>")
def export_language(project_id: int, code: str):
    file_name, content = exporter.render_single_language(project_id, code)
    return _download(file_name, content, "json", project_id, f"json:{code}")


@transfer_bp.get("/exports/history")
def export_history():
    """Recent exports, newest first, or every retained export of ?project_id="""
    project_id = request.args.get("project_id", type=int)
    if project_id is not None:
        records = exporter.export_history.for_project(project_id)
    else:
        records = exporter.export_history.recent(request.args.get("limit", default=10, type=int))
    return jsonify({"exports": [record.to_dict() for record in records]})
