"""Project management API routes - CRUD, bundle and project languages."""

from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, jsonify, request

import keyhub.config as config
from keyhub.exceptions import InvalidInputError
from keyhub.logger import get_logger
from keyhub.project import store
from keyhub.project.store import project_mutation_lock
from keyhub.translation.search import filter_groups, highlight

projects_bp = Blueprint("projects", __name__)
logger = get_logger(__name__)


@projects_bp.get("/")
def list_projects():
    """Return all projects with key statistics."""
    projects = store.list_projects()
    logger.debug("Projects listed: %s", len(projects))
    return jsonify({"projects": [project.to_dict() for project in projects]})


@projects_bp.post("/")
def create_project():
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    languages = data.get("languages") or []
    if not isinstance(languages, list):
        raise InvalidInputError("'languages' must be a list of codes", code="invalid_languages")
    project = store.create_project(data.get("name"), data.get("description"), languages)
    return jsonify({"project": project.to_dict()}), 201


@projects_bp.get("/<int:project_id>")
def get_project(project_id: int):
    """Return details for a single project."""
    return jsonify({"project": store.get_project(project_id).to_dict()})


@projects_bp.put("/<int:project_id>")
def update_project(project_id: int):
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    with project_mutation_lock(project_id):
        project = store.update_project(project_id, name=data.get("name"), description=data.get("description"))
    return jsonify({"project": project.to_dict()})


@projects_bp.delete("/<int:project_id>")
def delete_project(project_id: int):
    with project_mutation_lock(project_id):
        store.delete_project(project_id)
    return jsonify({"success": True})


@projects_bp.post("/<int:project_id>/toggle-completion")
def toggle_completion(project_id: int):
    with project_mutation_lock(project_id):
        project = store.toggle_project_completion(project_id)
    return jsonify({"project": project.to_dict()})


@projects_bp.get("/<int:project_id>/bundle")
def get_bundle(project_id: int):
    """
    Return the project with its languages, sorted groups, progress and incomplete keys.

    Query params:
        sort: time_desc | time_asc | key_asc | key_desc (default from settings)
        q: search term; filters groups and adds highlighted keys
    """
    sort = request.args.get("sort") or config.get_default_sort()
    bundle = store.load_project_bundle(project_id, sort)

    term = request.args.get("q", "")
    groups = filter_groups(bundle.groups, term, bundle.language_codes)
    payload = bundle.to_dict(groups)
    if term.strip():
        payload["highlights"] = {group.key: str(highlight(group.key, term)) for group in groups}
    return jsonify(payload)


@projects_bp.post("/<int:project_id>/languages")
def add_project_language(project_id: int):
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    with project_mutation_lock(project_id):
        project = store.add_language(project_id, str(data.get("code") or ""))
    return jsonify({"project": project.to_dict()})


@projects_bp.delete("/<int:project_id>/languages/<code>")
def remove_project_language(project_id: int, code: str):
    with project_mutation_lock(project_id):
        project = store.remove_language(project_id, code)
    return jsonify({"project": project.to_dict()})
