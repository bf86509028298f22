"""Translation key and cell API routes."""

from __future__ import annotations

from typing import Any, Dict, List

from flask import Blueprint, jsonify, request

import keyhub.config as config
from keyhub.exceptions import InvalidInputError
from keyhub.logger import get_logger
from keyhub.project import store
from keyhub.project.store import project_mutation_lock
from keyhub.translation.validator import validate_batch, validate_format

translation_bp = Blueprint("translation", __name__)
logger = get_logger(__name__)


def _string_list(data: Dict[str, Any], field: str) -> List[str]:
    values = data.get(field)
    if isinstance(values, str):
        values = values.splitlines()
    if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
        raise InvalidInputError(f"'{field}' must be a list of strings", code=f"invalid_{field}")
    return values


@translation_bp.get("/<int:project_id>/keys")
def list_keys(project_id: int):
    return jsonify({"keys": store.get_keys(project_id)})


@translation_bp.get("/<int:project_id>/keys/<key>")
def get_key(project_id: int, key: str):
    return jsonify({"group": store.get_key_group(project_id, key).to_dict()})


@translation_bp.post("/<int:project_id>/keys")
def create_key(project_id: int):
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    with project_mutation_lock(project_id):
        group = store.create_key(project_id, str(data.get("key") or ""), config.get_validation_options())
    return jsonify({"group": group.to_dict()}), 201


@translation_bp.post("/<int:project_id>/keys/batch")
def create_keys(project_id: int):
    """Create several keys; accepts a list or newline-separated text in 'keys'."""
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    keys = _string_list(data, "keys")
    with project_mutation_lock(project_id):
        result = store.create_keys(project_id, keys, config.get_validation_options())
    return jsonify(result.to_dict())


@translation_bp.post("/<int:project_id>/keys/validate")
def validate_key(project_id: int):
    """
    Validate without saving.

    Body:
        key: candidate key
        exclude_key: current key when renaming
        mode: "format" for the live-typing check only, "full" (default) for every check
    """
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    key = str(data.get("key") or "")
    if data.get("mode") == "format":
        result = validate_format(key)
    else:
        result = store.validate_key(project_id, key, config.get_validation_options(),
                                    exclude_key=data.get("exclude_key"))
    return jsonify(result.to_dict())


@translation_bp.post("/<int:project_id>/keys/validate-batch")
def validate_keys(project_id: int):
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    results = validate_batch(_string_list(data, "keys"), store.get_keys(project_id),
                             config.get_validation_options())
    return jsonify({"results": [
        {"key": item.key, "is_valid": item.is_valid, "message": item.message} for item in results
    ]})


@translation_bp.post("/<int:project_id>/keys/rename")
def rename_key(project_id: int):
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    with project_mutation_lock(project_id):
        key = store.rename_key(project_id, str(data.get("old_key") or ""), str(data.get("new_key") or ""),
                               config.get_validation_options())
    return jsonify({"key": key})


@translation_bp.delete("/<int:project_id>/keys")
def delete_keys(project_id: int):
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    keys = _string_list(data, "keys")
    with project_mutation_lock(project_id):
        deleted = store.delete_keys(project_id, keys)
    return jsonify({"deleted": deleted})


@translation_bp.put("/<int:project_id>/cells")
def update_cell(project_id: int):
    """Commit one cell edit, e.g. on focus loss."""
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    value = data.get("value")
    if value is not None and not isinstance(value, str):
        raise InvalidInputError("'value' must be a string", code="invalid_value")
    with project_mutation_lock(project_id):
        cell = store.update_cell(project_id, str(data.get("key") or ""), str(data.get("language") or ""),
                                 value or "")
    return jsonify({"value": cell.value, "is_completed": cell.is_completed})
