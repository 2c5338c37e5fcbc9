"""
Level Up Dashboard - Session Holder
Single source of truth for the authenticated operator
"""

from typing import Optional, Tuple

from logger import get_logger
from services.errors import AuthenticationError
from services.models import Session

log = get_logger("services.session")

MISSING_CREDENTIALS_MSG = "Please enter username and password"
LOGIN_FAILED_MSG = "Login failed"
ACCESS_DENIED_MSG = "Please log in as admin to access CRUD features."


class SessionHolder:
    """Owns the operator identity, its persistence and its invalidation"""

    def __init__(self, store, authenticator=None):
        self.store = store
        self.authenticator = authenticator
        self._session: Optional[Session] = None

    @property
    def current(self) -> Optional[Session]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    @property
    def username(self) -> Optional[str]:
        return self._session.username if self._session else None

    @property
    def token(self) -> Optional[str]:
        return self._session.token if self._session else None

    @property
    def can_allocate(self) -> bool:
        """Only an authenticated operator may record point allocations"""
        return self.is_authenticated

    def restore(self) -> bool:
        """Adopt a persisted session if a well-formed one exists"""
        session = Session.from_record(self.store.load())
        if session is None:
            self._session = None
            return False

        self._session = session
        log.info(f"Restored session for '{session.username}'")
        return True

    async def login(self, username: str, password: str) -> Tuple[bool, str]:
        """Authenticate and persist; any failure leaves no session at all"""
        if not username or not password:
            return False, MISSING_CREDENTIALS_MSG

        try:
            data = await self.authenticator.login(username, password)
        except AuthenticationError as e:
            self._clear()
            log.warning(f"Login failed for '{username}': {e.reason or e}")
            return False, e.reason or LOGIN_FAILED_MSG

        session = Session.from_record(data)
        if session is None:
            self._clear()
            log.warning(f"Login for '{username}' returned an incomplete session")
            return False, LOGIN_FAILED_MSG

        self._session = session
        self.store.save(session.username, session.token)
        log.info(f"Operator '{session.username}' logged in")
        return True, f"Welcome, {session.username}!"

    def logout(self):
        """Clear the active and persisted session unconditionally"""
        if self._session:
            log.info(f"Operator '{self._session.username}' logged out")
        self._clear()

    def invalidate(self, reason: str):
        """Drop the session after the service rejected its credential"""
        log.warning(f"Session invalidated: {reason}")
        self._clear()

    def _clear(self):
        self._session = None
        self.store.clear()


def allocation_access_message(session) -> Optional[str]:
    """Message shown instead of the allocation form, or None when allowed"""
    if session is None or not session.can_allocate:
        return ACCESS_DENIED_MSG
    return None
