# gyansetu/services/session_store.py
import secrets
import threading
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

logger = logging.getLogger(__name__)

class SessionStore:
    """In-process map of opaque session tokens to user snapshots.

    Sessions expire a fixed time after login; lookups never extend them.
    Nothing is persisted, so a restart logs everybody out.
    """

    def __init__(self, max_age: timedelta = timedelta(hours=24)):
        self.max_age = max_age
        self._sessions: Dict[str, dict] = {}
        self._lock = threading.Lock()

    def create(self, user: dict) -> str:
        token = secrets.token_urlsafe(32)
        now = datetime.now(timezone.utc)
        with self._lock:
            self._sessions[token] = {
                "user": dict(user),
                "expires_at": now + self.max_age,
            }
        logger.info(f"Session opened for {user.get('email')} ({user.get('role')})")
        return token

    def get(self, token: Optional[str]) -> Optional[dict]:
        """Return the user snapshot for a live token, or None"""
        if not token:
            return None
        with self._lock:
            entry = self._sessions.get(token)
            if entry is None:
                return None
            if entry["expires_at"] <= datetime.now(timezone.utc):
                del self._sessions[token]
                return None
            return dict(entry["user"])

    def destroy(self, token: Optional[str]) -> bool:
        if not token:
            return False
        with self._lock:
            return self._sessions.pop(token, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
