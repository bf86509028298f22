import json
import logging
from pathlib import Path

LOG_DIR = Path(__file__).parent.parent / "logs"
LOG_FILE = LOG_DIR / "app.log"

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_MODES = ('off', 'info', 'debug')

# Cache for log mode to avoid a config read per logger
_log_mode_cache = None
# Names of loggers configured by get_logger
_managed_loggers = set()


def _get_log_mode() -> str:
    """Get log mode from the persisted configuration."""
    global _log_mode_cache
    if _log_mode_cache is not None:
        return _log_mode_cache

    try:
        from keyhub.core import database as db
        # Reading config must not create the database as a side effect
        if not db.DB_FILE.exists():
            return 'off'
        stored = db.get_app_config('config')
        log_mode = json.loads(stored).get('log_mode', 'off') if stored else 'off'
    except Exception:
        # Database module still importing, or config unreadable; retry next time
        return 'off'

    if log_mode not in LOG_MODES:
        log_mode = 'off'
    _log_mode_cache = log_mode
    return log_mode


def _levels_for(log_mode: str):
    """Return (logger_level, console_level) for a log mode."""
    if log_mode == 'debug':
        return logging.DEBUG, logging.DEBUG
    if log_mode == 'off':
        # Higher than CRITICAL disables everything
        return logging.CRITICAL + 1, logging.CRITICAL + 1
    return logging.INFO, logging.INFO


def _apply_log_mode(logger: logging.Logger, log_mode: str) -> None:
    logger_level, console_level = _levels_for(log_mode)
    logger.setLevel(logger_level)

    formatter = logging.Formatter(LOG_FORMAT)
    file_handlers = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]

    if log_mode != 'off' and not file_handlers:
        LOG_DIR.mkdir(exist_ok=True)
        f_handler = logging.FileHandler(LOG_FILE, encoding='utf-8')
        f_handler.setLevel(logging.DEBUG)
        f_handler.setFormatter(formatter)
        logger.addHandler(f_handler)
    elif log_mode == 'off' and file_handlers:
        for handler in file_handlers:
            handler.close()
            logger.removeHandler(handler)

    console_handlers = [
        h for h in logger.handlers
        if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
    ]
    if not console_handlers:
        c_handler = logging.StreamHandler()
        c_handler.setFormatter(formatter)
        logger.addHandler(c_handler)
        console_handlers = [c_handler]
    for handler in console_handlers:
        handler.setLevel(console_level)


def _clear_log_mode_cache():
    """Re-read the log mode and reconfigure every logger created by get_logger."""
    global _log_mode_cache
    _log_mode_cache = None

    log_mode = _get_log_mode()
    for logger_name in list(_managed_loggers):
        _apply_log_mode(logging.getLogger(logger_name), log_mode)


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    _apply_log_mode(logger, _get_log_mode())
    _managed_loggers.add(name)
    return logger
