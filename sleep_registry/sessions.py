"""
Session store – opaque login tokens mapped to (email, role, expiry).
"""

import secrets
import string
from typing import Optional

from sleep_registry.config import TOKEN_LENGTH
from sleep_registry.models import Role, Session, SessionId, UserId

_TOKEN_CHARS = string.ascii_letters + string.digits


def generate_session_token(length: int = TOKEN_LENGTH) -> str:
    """Generate a secure random alphanumeric session token."""
    return "".join(secrets.choice(_TOKEN_CHARS) for _ in range(length))


class SessionStore:
    """Pure data access over the sessions collection."""

    def __init__(self, store, clock):
        self.store = store
        self.clock = clock

    def create_session(
        self,
        user_id: UserId,
        email: str,
        role: Role,
        token: str,
        expires_at: Optional[int],
    ) -> SessionId:
        session = Session(
            id=SessionId.new(),
            user_id=user_id,
            email=email,
            role=role,
            token=token,
            created_at=self.clock(),
            expires_at=expires_at,
        )
        return self.store.insert_session(session)

    def find_session_by_token(self, token: str) -> Optional[Session]:
        if not token:
            return None
        return self.store.get_session_by_token(token)

    def delete_session(self, session_id: SessionId) -> None:
        self.store.delete_session(session_id)

    def delete_sessions_for_email(self, email: str) -> int:
        return self.store.delete_sessions_for_email(email)
