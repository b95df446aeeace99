"""
Session store: refresh token records.

Records are keyed by the SHA-256 digest of the token value. Revocation is a
single conditional UPDATE (`revoked = false AND expires_at > now`); the row
count tells the caller whether it won, so two requests presenting the same
token can never both see it as live. Nothing here commits: the session
manager commits revoke and insert together.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import and_, delete, or_, update

from models.refresh_token import RefreshToken
from utils.security import hash_token, utcnow


class SessionStore:
    def __init__(self, storage):
        self.storage = storage

    @property
    def _session(self):
        return self.storage.get_session()

    def insert(self, record: RefreshToken) -> RefreshToken:
        self.storage.new(record)
        self._session.flush()
        return record

    def find_by_token_value(self, value: str) -> Optional[RefreshToken]:
        if not value:
            return None
        return (
            self._session.query(RefreshToken)
            .populate_existing()
            .filter(RefreshToken.token_hash == hash_token(value))
            .first()
        )

    def find_for_user(self, user_id: str, value: str) -> Optional[RefreshToken]:
        if not value or not user_id:
            return None
        return (
            self._session.query(RefreshToken)
            .populate_existing()
            .filter(
                RefreshToken.token_hash == hash_token(value),
                RefreshToken.user_id == user_id,
            )
            .first()
        )

    def revoke(self, value: str, now: Optional[datetime] = None) -> bool:
        """Revoke a live record. True only for the caller that flipped it."""
        if not value:
            return False
        return self._revoke_where(RefreshToken.token_hash == hash_token(value), now)

    def revoke_for_user(self, user_id: str, value: str, now: Optional[datetime] = None) -> bool:
        """Like revoke(), but only if the record belongs to user_id."""
        if not value or not user_id:
            return False
        return self._revoke_where(
            and_(
                RefreshToken.token_hash == hash_token(value),
                RefreshToken.user_id == user_id,
            ),
            now,
        )

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Delete expired and revoked records. Returns the number removed."""
        now = now or utcnow()
        result = self._session.execute(
            delete(RefreshToken)
            .where(or_(RefreshToken.expires_at <= now, RefreshToken.revoked.is_(True)))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def _revoke_where(self, criterion, now: Optional[datetime]) -> bool:
        now = now or utcnow()
        result = self._session.execute(
            update(RefreshToken)
            .where(
                criterion,
                RefreshToken.revoked.is_(False),
                RefreshToken.expires_at > now,
            )
            .values(revoked=True, revoked_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
