"""Settings management API routes."""

from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, jsonify, request

import keyhub.config as config
from keyhub.exceptions import InvalidInputError
from keyhub.logger import get_logger, LOG_FILE, LOG_MODES
from keyhub.translation.sorting import SortOption, parse_sort_option

settings_bp = Blueprint("settings", __name__)
logger = get_logger(__name__)

VALIDATION_FLAGS = ("case_sensitive", "check_similarity", "check_namespace_conflict")


@settings_bp.get("/")
def get_settings():
    """Return current configuration with default values merged."""
    logger.debug("Settings retrieved")
    return jsonify({
        "config": config.load_config(),
        "meta": {
            "log_modes": list(LOG_MODES),
            "log_file": str(LOG_FILE),
            "sort_options": [option.value for option in SortOption],
        },
    })


@settings_bp.put("/")
def update_settings():
    """Update configuration; unknown top-level keys are rejected."""
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    changes = data.get("config")
    if not isinstance(changes, dict):
        raise InvalidInputError("Request body must contain a 'config' object", code="config_missing")

    unknown = sorted(set(changes) - set(config.DEFAULT_CONFIG))
    if unknown:
        raise InvalidInputError(f"Unknown settings: {', '.join(unknown)}", code="unknown_setting")
    if "log_mode" in changes and changes["log_mode"] not in LOG_MODES:
        raise InvalidInputError(f"log_mode must be one of: {', '.join(LOG_MODES)}", code="invalid_log_mode")
    if "default_sort" in changes:
        parse_sort_option(changes["default_sort"])
    validation = changes.get("validation")
    if validation is not None:
        if not isinstance(validation, dict):
            raise InvalidInputError("'validation' must be an object", code="invalid_validation")
        threshold = validation.get("similarity_threshold")
        if threshold is not None and (isinstance(threshold, bool) or not isinstance(threshold, (int, float))
                                      or not 0 < threshold <= 1):
            raise InvalidInputError("similarity_threshold must be in (0, 1]", code="invalid_threshold")
        for name in VALIDATION_FLAGS:
            if name in validation and not isinstance(validation[name], bool):
                raise InvalidInputError(f"{name} must be true or false", code="invalid_validation",
                                        details={"setting": name})

    updated = config.update_config(changes)
    logger.info("Settings updated")
    return jsonify({"config": updated})
