from __future__ import annotations

import logging
from typing import Any, Optional

from ...constants import TABLE_USERS
from ...utils.auth import hash_password, needs_rehash, verify_password
from ..store import LocalStore
from .base_repo import DomainError

_log = logging.getLogger(__name__)


class LoginRepo:
    """
    Local user accounts. Never mirrored to the cloud.

    Rows: {id, username, passwordHash, fullName, isActive}
    Passwords are stored as bcrypt hashes; a legacy hash is upgraded on the
    next successful login.
    """

    def __init__(self, store: LocalStore) -> None:
        self.store = store

    @staticmethod
    def _norm_username(username: str) -> str:
        return (username or "").strip()

    # ------------------------------- reads -------------------------------

    def get_user_by_username(self, username: str) -> Optional[dict]:
        uname = self._norm_username(username)
        if not uname:
            return None
        for user in self.store.all(TABLE_USERS):
            if user.get("username") == uname:
                return user
        return None

    def verify(self, username: str, password: str) -> Optional[dict]:
        """Return the user when the credentials match an active account, else None."""
        user = self.get_user_by_username(username)
        if user is None or not user.get("isActive", True):
            return None
        if not verify_password(password or "", user.get("passwordHash")):
            return None
        if needs_rehash(user.get("passwordHash")):
            _log.info("Upgrading password hash for %s", user["username"])
            user = {**user, "passwordHash": hash_password(password)}
            self.store.put(TABLE_USERS, user)
        return user

    # ------------------------------ writes -------------------------------

    def create_user(self, username: str, password: str, full_name: str = "") -> Any:
        uname = self._norm_username(username)
        if not uname:
            raise DomainError("Username cannot be empty.")
        if not password:
            raise DomainError("Password cannot be empty.")
        with self.store.transaction():
            if self.get_user_by_username(uname) is not None:
                raise DomainError(f"User {uname!r} already exists.")
            return self.store.insert(TABLE_USERS, {
                "username": uname,
                "passwordHash": hash_password(password),
                "fullName": (full_name or "").strip(),
                "isActive": True,
            })

    def update_password(self, user_id: Any, new_password: str) -> None:
        if not new_password:
            raise DomainError("Password cannot be empty.")
        with self.store.transaction():
            user = self.store.get(TABLE_USERS, user_id)
            if user is None:
                raise DomainError("User not found.")
            self.store.put(TABLE_USERS, {**user, "passwordHash": hash_password(new_password)})
