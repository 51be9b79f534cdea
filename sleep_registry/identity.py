"""
Identity resolution – turn a native identity or a session token into a User.
"""

from typing import Optional

from sleep_registry.errors import AuthenticationError
from sleep_registry.models import User


class IdentityResolver:
    """Resolve the caller of a request. Read-only."""

    def __init__(self, store, session_store, clock):
        self.store = store
        self.sessions = session_store
        self.clock = clock

    def resolve_email(self, native_email: Optional[str] = None, token: Optional[str] = None) -> Optional[str]:
        """Email of the caller, or None when neither credential is usable."""
        if native_email:
            return native_email
        if token:
            session = self.sessions.find_session_by_token(token)
            if session and session.is_valid_at(self.clock()):
                return session.email
        return None

    def resolve_caller(self, native_email: Optional[str] = None, token: Optional[str] = None) -> Optional[User]:
        """Return the active User behind the credentials, or None."""
        email = self.resolve_email(native_email, token)
        if not email:
            return None
        user = self.store.get_user_by_email(email)
        if user is None or not user.is_active:
            return None
        return user

    def require_caller(self, native_email: Optional[str] = None, token: Optional[str] = None) -> User:
        """Like resolve_caller, but a missing identity is an error."""
        user = self.resolve_caller(native_email, token)
        if user is None:
            raise AuthenticationError("Not authenticated")
        return user
