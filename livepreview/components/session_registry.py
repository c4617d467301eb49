"""Registry of preview sessions keyed by caller-supplied identifiers."""

import logging
from pathlib import Path
from typing import Callable, Dict, Optional

from .preview_session import PreviewSession

log = logging.getLogger(__name__)

SessionFactory = Callable[[str, Optional[Path]], PreviewSession]


class SessionRegistry:
    """Creates sessions through a factory and tracks them until disposal."""

    def __init__(self, factory: SessionFactory):
        self.factory = factory
        self._sessions: Dict[str, PreviewSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, key: object) -> bool:
        return key in self._sessions

    def get(self, key: str) -> Optional[PreviewSession]:
        return self._sessions.get(key)

    def create_or_show(self, key: str, root_location: Optional[Path] = None) -> PreviewSession:
        """Reveal the session for ``key``, creating it first if needed."""
        session = self._sessions.get(key)
        if session is not None:
            log.debug(f"Revealing existing session {key}")
            session.reveal()
            return session

        session = self.factory(key, root_location)
        session.on_disposed = self._forget
        self._sessions[key] = session
        log.info(f"Registered session {key} ({len(self._sessions)} open)")
        return session

    def add_tab(self, key: str, root_location: Optional[Path] = None) -> PreviewSession:
        """Add a tab to the session for ``key``, or create the session."""
        session = self._sessions.get(key)
        if session is None:
            return self.create_or_show(key, root_location)
        session.add_new_tab()
        return session

    def refresh(self, key: str) -> bool:
        session = self._sessions.get(key)
        if session is None:
            return False
        return session.refresh_active_tab()

    def dispose(self, key: str) -> None:
        session = self._sessions.get(key)
        if session is not None:
            session.dispose()

    def dispose_all(self) -> None:
        for session in list(self._sessions.values()):
            session.dispose()

    def _forget(self, session: PreviewSession) -> None:
        if self._sessions.get(session.session_id) is session:
            del self._sessions[session.session_id]
            log.debug(f"Unregistered session {session.session_id}")
