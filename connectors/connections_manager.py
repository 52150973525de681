# connections_manager.py
"""
connections_manager.py
----------------------
Manages folder backend sessions

Holds in-memory sessions to folder backends.

Creates connectors as needed.
    Connectors are proxy objects to the backend REST API.
Reuses existing sessions when possible.

"""

import logging

from common.config import Settings
from connectors.folder_connector import FolderConnector, FolderSession

logger = logging.getLogger(__name__)

######################### Sessions #########################


## the manager is this module itself

# variable to hold active sessions:

_active_sessions: dict[tuple[str, str | None], FolderSession] = {}
# key: (backend_url, token) tuple
# value: FolderSession instance
# This allows unique sessions per (backend_url, token) pair.

# create a session. If a matching open session already exists, return it.
def get_session(settings: Settings) -> FolderSession:
    """
    Get or create a backend session for the given settings.
    Reuses existing sessions if one matches the (backend_url, token) pair.
    Closed sessions are replaced.
    """
    key = (settings.backend_url, settings.token)
    session = _active_sessions.get(key)
    if session is not None and not session.is_closed:
        return session

    session = FolderSession(settings.backend_url, token=settings.token, timeout=settings.timeout)
    logger.debug("Opened backend session %s for %s", session.session_id, settings.backend_url)
    _active_sessions[key] = session
    return session


def get_connector(settings: Settings) -> FolderConnector:
    return FolderConnector(get_session(settings), api_prefix=settings.api_prefix)


async def close_all() -> None:
    """Close every cached session."""
    sessions = list(_active_sessions.values())
    _active_sessions.clear()
    for session in sessions:
        if not session.is_closed:
            await session.aclose()
