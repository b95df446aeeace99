"""
Credential store: user lookups and inserts on top of DBStorage.
Callers own the transaction; insert() only adds and flushes.
"""
from __future__ import annotations

from typing import Optional

from sqlalchemy import func, or_

from models.user import User


def normalize_username(username: str) -> str:
    return username.strip() if isinstance(username, str) else username


def normalize_email(email: str) -> str:
    return email.strip().lower() if isinstance(email, str) else email


class CredentialStore:
    def __init__(self, storage):
        self.storage = storage

    @property
    def _session(self):
        return self.storage.get_session()

    def find_by_username(self, username: str) -> Optional[User]:
        if not username:
            return None
        return (
            self._session.query(User)
            .filter(func.lower(User.username) == normalize_username(username).lower())
            .first()
        )

    def find_by_id(self, user_id: str) -> Optional[User]:
        if not user_id:
            return None
        return self.storage.get(User, user_id)

    def exists_by_username_or_email(self, username: str, email: str) -> bool:
        query = self._session.query(User.id).filter(
            or_(
                func.lower(User.username) == normalize_username(username).lower(),
                User.email == normalize_email(email),
            )
        )
        return self._session.query(query.exists()).scalar()

    def insert(self, user: User) -> User:
        user.username = normalize_username(user.username)
        user.email = normalize_email(user.email)
        self.storage.new(user)
        self._session.flush()
        return user
