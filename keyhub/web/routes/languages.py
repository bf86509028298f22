"""Supported language API routes."""

from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, jsonify, request

from keyhub.core import database as db
from keyhub.exceptions import InvalidInputError, NotFoundError
import keyhub.language_codes as lc
from keyhub.logger import get_logger
from keyhub.project import store
from keyhub.translation.models import SupportedLanguage

languages_bp = Blueprint("languages", __name__)
logger = get_logger(__name__)


@languages_bp.get("/")
def list_languages():
    """Return active languages, or all of them with ?all=1."""
    include_inactive = request.args.get("all") in ("1", "true", "yes")
    languages = store.list_languages(include_inactive=include_inactive)
    return jsonify({"languages": [language.to_dict() for language in languages]})


@languages_bp.post("/")
def add_language():
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    code = str(data.get("code") or "").strip()
    if not lc.is_valid_language_code(code):
        raise InvalidInputError(f"'{code}' is not a valid language code", code="invalid_language_code")

    name = str(data.get("name") or "").strip() or lc.display_name(code)
    language_id = db.add_language(name, code)
    logger.info("Added supported language %s (%s)", code, name)
    language = SupportedLanguage.from_row(db.get_language_by_code(code))
    return jsonify({"language": language.to_dict(), "id": language_id}), 201


@languages_bp.post("/<int:language_id>/toggle")
def toggle_language(language_id: int):
    if not db.toggle_language_status(language_id):
        raise NotFoundError(f"Language {language_id} not found", code="language_not_found")
    logger.info("Toggled supported language %s", language_id)
    return jsonify({"success": True})


@languages_bp.get("/names")
def language_names():
    """Display names of active languages for ?codes=en,fr"""
    codes = [code for code in request.args.get("codes", "").split(",") if code]
    return jsonify({"names": db.get_language_names_by_codes(codes)})
