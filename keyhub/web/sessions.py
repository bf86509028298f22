"""
In-memory registry of import sessions awaiting an overwrite decision.
"""

from __future__ import annotations

import threading
import time
from typing import Dict, Optional

from keyhub.logger import get_logger
from keyhub.project.importer import ImportSession

logger = get_logger(__name__)

_sessions: Dict[str, ImportSession] = {}
_sessions_lock = threading.Lock()
_SESSION_RETENTION_SECONDS = 600  # Retain finished sessions for 10 minutes
_ABANDONED_SESSION_SECONDS = 3600  # Drop undecided sessions after an hour


def create_session() -> ImportSession:
    """Create and register an empty import session."""
    session = ImportSession()
    with _sessions_lock:
        _cleanup_sessions_locked()
        _sessions[session.session_id] = session
    logger.debug("Import session %s created", session.session_id)
    return session


def get_session(session_id: str) -> Optional[ImportSession]:
    """Fetch a session by ID (if still retained)."""
    with _sessions_lock:
        session = _sessions.get(session_id)
        if session and _is_expired(session, time.time()):
            _sessions.pop(session_id, None)
            return None
        return session


def discard_session(session_id: str) -> bool:
    with _sessions_lock:
        return _sessions.pop(session_id, None) is not None


def clear_sessions() -> None:
    with _sessions_lock:
        _sessions.clear()


def _is_expired(session: ImportSession, now: float) -> bool:
    if session.finished_at:
        return (now - session.finished_at) > _SESSION_RETENTION_SECONDS
    # Never reached a decision
    return (now - session.created_at) > _ABANDONED_SESSION_SECONDS


def _cleanup_sessions_locked():
    """Remove expired sessions (call with lock held)."""
    now = time.time()
    expired = [session_id for session_id, session in _sessions.items() if _is_expired(session, now)]
    for session_id in expired:
        _sessions.pop(session_id, None)
    if expired:
        logger.debug("Expired %s import sessions", len(expired))
