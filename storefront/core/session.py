"""Browser session management"""

import logging
import uuid
from collections import OrderedDict
from datetime import datetime
from typing import Any, Callable, Optional
from dataclasses import dataclass, field

from .cart import CartStore
from .storage import CartStorage, MemoryCartStorage, JsonFileCartStorage
from ..services.checkout import CheckoutFlow

logger = logging.getLogger(__name__)

StorageFactory = Callable[[str], CartStorage]


@dataclass
class UserSession:
    """One browser's shopping session"""
    session_id: str
    created_at: datetime
    updated_at: datetime
    cart: CartStore
    checkout: CheckoutFlow = field(default_factory=CheckoutFlow)
    flash: dict[str, Any] = field(default_factory=dict)

    def touch(self) -> None:
        self.updated_at = datetime.utcnow()

    def set_flash(self, key: str, value: Any) -> None:
        """Store a value for the next request only"""
        self.flash[key] = value

    def pop_flash(self, key: str, default: Any = None) -> Any:
        """Read a flashed value once"""
        return self.flash.pop(key, default)


def memory_storage_factory() -> StorageFactory:
    # The cart lives exactly as long as its session object
    def factory(session_id: str) -> CartStorage:
        return MemoryCartStorage()

    return factory


def file_storage_factory(directory: str) -> StorageFactory:
    def factory(session_id: str) -> CartStorage:
        return JsonFileCartStorage(directory, session_id)

    return factory


class SessionManager:
    """
    Manages browser sessions and their carts.

    Sessions idle for longer than ``max_age_hours`` are swept at most once
    per ``cleanup_interval_seconds``. Above ``max_sessions`` the least
    recently used session is dropped. Carts in file storage survive both
    and are reloaded when the cookie comes back.
    """

    def __init__(
        self,
        storage_factory: Optional[StorageFactory] = None,
        max_age_hours: int = 24,
        max_sessions: int = 10000,
        cleanup_interval_seconds: int = 300,
    ):
        self.storage_factory = storage_factory or memory_storage_factory()
        self.max_age_hours = max_age_hours
        self.max_sessions = max_sessions
        self.cleanup_interval_seconds = cleanup_interval_seconds
        self.sessions: OrderedDict[str, UserSession] = OrderedDict()
        self._last_cleanup = datetime.utcnow()

    def create_session(self, session_id: Optional[str] = None) -> UserSession:
        """Create a session, reloading its persisted cart if the id is known"""
        now = datetime.utcnow()
        session_id = session_id or uuid.uuid4().hex
        session = UserSession(
            session_id=session_id,
            created_at=now,
            updated_at=now,
            cart=CartStore(self.storage_factory(session_id)),
        )
        self.sessions[session.session_id] = session
        self._evict_overflow()
        return session

    def get_or_create_session(self, session_id: Optional[str] = None) -> UserSession:
        """Get existing session or create new one"""
        self._cleanup_if_due()

        if session_id and session_id in self.sessions:
            session = self.sessions[session_id]
            session.touch()
            self.sessions.move_to_end(session_id)
            return session
        if session_id and _is_valid_session_id(session_id):
            return self.create_session(session_id)
        return self.create_session()

    def cleanup_old_sessions(self, max_age_hours: Optional[int] = None) -> int:
        """Drop idle sessions from memory; persisted carts are kept"""
        max_age_hours = self.max_age_hours if max_age_hours is None else max_age_hours
        now = datetime.utcnow()
        self._last_cleanup = now
        old_sessions = [
            sid for sid, session in self.sessions.items()
            if (now - session.updated_at).total_seconds() > max_age_hours * 3600
        ]
        for sid in old_sessions:
            del self.sessions[sid]

        if old_sessions:
            logger.info(f"Removed {len(old_sessions)} idle sessions")
        return len(old_sessions)

    def _cleanup_if_due(self) -> None:
        elapsed = (datetime.utcnow() - self._last_cleanup).total_seconds()
        if elapsed >= self.cleanup_interval_seconds:
            self.cleanup_old_sessions()

    def _evict_overflow(self) -> None:
        while len(self.sessions) > self.max_sessions:
            sid, _ = self.sessions.popitem(last=False)
            logger.debug(f"Session limit reached, dropped {sid[:8]}")


def _is_valid_session_id(session_id: str) -> bool:
    # Ids become file names, so only accept what create_session generates
    return len(session_id) == 32 and all(c in "0123456789abcdef" for c in session_id)
