import copy
import json
from typing import Dict, Any

from keyhub.core import database as db
from keyhub.core.schema import initialize_database
from keyhub.logger import get_logger, _clear_log_mode_cache, LOG_MODES
from keyhub.translation.sorting import SortOption
from keyhub.translation.validator import KeyValidationOptions, DEFAULT_SIMILARITY_THRESHOLD

logger = get_logger(__name__)

CONFIG_KEY = 'config'

# Default configuration template
DEFAULT_CONFIG = {
    "validation": {
        "case_sensitive": True,
        "check_similarity": True,
        "similarity_threshold": DEFAULT_SIMILARITY_THRESHOLD,
        "check_namespace_conflict": True,
    },
    "default_sort": SortOption.TIME_DESC.value,
    "log_mode": "off"
}


def _merge(defaults: Dict[str, Any], stored: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay stored values on defaults, one level of nesting deep."""
    merged = copy.deepcopy(defaults)
    for key, value in stored.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key].update(value)
        else:
            merged[key] = value
    return merged


def initialize_app():
    """
    Initialize the application.
    Called on first run and after a factory reset: creates or migrates the
    database and stores the default configuration if none exists yet.
    """
    logger.info("Initializing application...")

    initialize_database()
    logger.info("Database initialized")

    if db.get_app_config(CONFIG_KEY) is None:
        save_config(DEFAULT_CONFIG)
        logger.info("Default configuration saved to database")
    else:
        logger.debug("Configuration already exists in database")

    logger.info("Application initialized successfully")


def load_config() -> Dict[str, Any]:
    """Load the configuration from database, merged over the defaults."""
    try:
        config_json = db.get_app_config(CONFIG_KEY)
    except Exception as e:
        logger.error(f"Failed to load config from database: {e}")
        logger.warning("Using default configuration")
        return copy.deepcopy(DEFAULT_CONFIG)

    if not config_json:
        logger.debug("No config in database, using defaults")
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        stored = json.loads(config_json)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse config from database: {e}")
        logger.warning("Using default configuration")
        return copy.deepcopy(DEFAULT_CONFIG)

    if not isinstance(stored, dict):
        logger.error("Stored config is not an object, using default configuration")
        return copy.deepcopy(DEFAULT_CONFIG)

    logger.debug("Configuration loaded from database")
    return _merge(DEFAULT_CONFIG, stored)


def save_config(config: Dict[str, Any]):
    """Save the configuration to database and apply the log mode."""
    if config.get('log_mode', 'off') not in LOG_MODES:
        raise ValueError(f"log_mode must be one of: {', '.join(LOG_MODES)}")
    try:
        config_json = json.dumps(config, ensure_ascii=False)
        db.set_app_config(CONFIG_KEY, config_json)
        logger.info("Configuration saved to database")
    except Exception as e:
        logger.error(f"Failed to save config to database: {e}")
        raise
    _clear_log_mode_cache()


def update_config(changes: Dict[str, Any]) -> Dict[str, Any]:
    """Merge changes into the current configuration, save and return it."""
    config = _merge(load_config(), changes)
    save_config(config)
    return config


def get_validation_options() -> KeyValidationOptions:
    return KeyValidationOptions.from_dict(load_config().get('validation'))


def get_default_sort() -> str:
    return load_config().get('default_sort') or SortOption.TIME_DESC.value


def factory_reset():
    """
    Perform a factory reset.
    WARNING: This will delete all data and reset to defaults.
    """
    logger.warning("Performing factory reset...")

    if db.DB_FILE.exists():
        db.DB_FILE.unlink()
        logger.info("Database deleted")

    initialize_app()
    _clear_log_mode_cache()
    logger.info("Factory reset complete")
