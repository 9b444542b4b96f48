"""
Auth Gateway

Registers and authenticates users against the record store and binds them
to sessions.

Passwords are stored as pbkdf2 hashes. Accounts created by older plaintext
deployments cannot log in until their password field is re-hashed.
"""

import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from loguru import logger

from ..exceptions import AuthenticationError, ConflictError
from ..security import get_password_hash, verify_password
from ..storage.record_store import Record, RecordStore
from ..storage.tables import USERS
from .sessions import SessionStore


@dataclass
class AuthResult:
    """A user record and the session just opened for it."""

    user: Record
    session_id: str


def normalize_email(email: str) -> str:
    return str(email).strip().lower()


def public_user(user: Record) -> dict:
    """Client-facing view of a user: {ID, Name, Email, Roles}."""
    name = f"{str(user.get('firstName') or '').strip()} {str(user.get('lastName') or '').strip()}"
    return {
        "ID": user.get("id"),
        "Name": name.strip(),
        "Email": user.get("email"),
        "Roles": user.get("role") or "user",
    }


class AuthGateway:
    """
    Registration, login and session resolution.

    Usage:
        gateway = AuthGateway(store, SessionStore())
        result = gateway.register("a@x.com", "secret1", "Asha", "Kumari")
        gateway.current_user(result.session_id)
    """

    def __init__(self, store: RecordStore, sessions: SessionStore):
        self.store = store
        self.sessions = sessions
        # Serializes the duplicate check with the insert
        self._register_lock = threading.Lock()

    def find_by_email(self, email: str) -> Optional[Record]:
        target = normalize_email(email)
        return self.store.find_one(
            USERS,
            lambda u: normalize_email(u.get("email") or "") == target,
        )

    def register(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role: str = "user",
        phone: Optional[str] = None,
        address: Optional[str] = None,
    ) -> AuthResult:
        """
        Create a user and log them in.

        Raises:
            ConflictError: If the email is already registered (case-insensitive)
        """
        hashed_password = get_password_hash(str(password))

        with self._register_lock:
            if self.find_by_email(email) is not None:
                raise ConflictError("Email already registered")

            user = self.store.insert(USERS, {
                "email": normalize_email(email),
                "password": hashed_password,
                "firstName": str(first_name or ""),
                "lastName": str(last_name or ""),
                "role": role or "user",
                "phone": str(phone) if phone else "",
                "address": str(address) if address else "",
                "isVerified": False,
                "createdAt": datetime.now(timezone.utc).isoformat(),
            })

        logger.info(f"Registered user #{user['id']} ({user['role']})")
        return AuthResult(user=user, session_id=self.sessions.create(user["id"]))

    def login(self, email: str, password: str) -> AuthResult:
        """
        Check credentials and open a session.

        Raises:
            AuthenticationError: If the email is unknown or the password is wrong
        """
        user = self.find_by_email(email)
        if user is None or not verify_password(str(password), user.get("password", "")):
            logger.info("Rejected login attempt")
            raise AuthenticationError("Invalid credentials")

        return AuthResult(user=user, session_id=self.sessions.create(user["id"]))

    def logout(self, session_id: Optional[str]) -> None:
        self.sessions.destroy(session_id)

    def current_user(self, session_id: Optional[str]) -> Optional[Record]:
        """
        Resolve a session to its user.

        No cookie, an unknown session and a deleted user all give None.
        """
        user_id: Any = self.sessions.resolve(session_id)
        if user_id is None:
            return None
        return self.store.find_one(USERS, {"id": user_id})
