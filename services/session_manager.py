"""
Session manager: registration, sign-in, and the refresh token lifecycle.

- create_session() mints an access token and a new refresh token record
- refresh_token() rotates: the presented record is revoked and a new one
  inserted in the same transaction
- sign_out() revokes a record only when it belongs to the caller

Whether a presented refresh token is still live is decided by the store's
conditional UPDATE, never by reading the record first, so concurrent
refreshes of one token produce at most one new session.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError

from models.credential_store import CredentialStore, normalize_email, normalize_username
from models.refresh_token import RefreshToken
from models.session_store import SessionStore
from models.user import User, UserRole
from services.errors import INVALID_CREDENTIALS, INVALID_REFRESH_TOKEN, Conflict, Unauthorized
from utils.security import (
    burn_password_check,
    generate_refresh_token,
    hash_password,
    hash_token,
    utcnow,
    verify_password,
)
from utils.tokens import TokenCodec

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_TTL = timedelta(days=7)


@dataclass(frozen=True)
class SessionTokens:
    access_token: str
    refresh_token: str
    expires_in: int
    role: str

    def to_dict(self) -> dict:
        return {
            "accessToken": self.access_token,
            "refreshToken": self.refresh_token,
            "expiresIn": self.expires_in,
            "role": self.role,
        }


class SessionManager:
    def __init__(
        self,
        storage,
        codec: TokenCodec,
        refresh_ttl: timedelta = DEFAULT_REFRESH_TTL,
        credentials: Optional[CredentialStore] = None,
        sessions: Optional[SessionStore] = None,
    ):
        self.storage = storage
        self.codec = codec
        self.refresh_ttl = refresh_ttl
        self.credentials = credentials or CredentialStore(storage)
        self.sessions = sessions or SessionStore(storage)

    def register(
        self,
        username: str,
        password: str,
        first_name: str,
        last_name: str,
        email: str,
        role: UserRole = UserRole.MEMBER,
    ) -> User:
        """
        Create a user account. Raises Conflict when the username or email is
        taken, including when a concurrent registration wins the unique index.
        """
        if self.credentials.exists_by_username_or_email(username, email):
            logger.info("Registration rejected: username or email taken")
            raise Conflict("Username or email already exists")

        user = User(
            username=normalize_username(username),
            email=normalize_email(email),
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            password_hash=hash_password(password),
            role=role,
        )
        try:
            self.credentials.insert(user)
            self.storage.save()
        except IntegrityError:
            self.storage.rollback()
            logger.info("Registration lost a race on username/email uniqueness")
            raise Conflict("Username or email already exists")

        logger.info("Registered user %s (%s)", user.id, user.role.value)
        return user

    def sign_in(self, username: str, password: str) -> User:
        user = self.credentials.find_by_username(username)
        if user is None:
            burn_password_check(password or "")
            logger.warning("Sign-in failed")
            raise Unauthorized(INVALID_CREDENTIALS)
        if not verify_password(password or "", user.password_hash):
            logger.warning("Sign-in failed")
            raise Unauthorized(INVALID_CREDENTIALS)
        return user

    def create_session(self, user: User, commit: bool = True) -> SessionTokens:
        """Mint an access token and persist a new refresh token record."""
        role = user.role.value
        access_token = self.codec.issue(user.id, user.username, role)

        value = generate_refresh_token()
        now = utcnow()
        self.sessions.insert(
            RefreshToken(
                token_hash=hash_token(value),
                user_id=user.id,
                issued_at=now,
                expires_at=now + self.refresh_ttl,
                revoked=False,
            )
        )
        if commit:
            self.storage.save()
            logger.info("Created session for user %s", user.id)

        return SessionTokens(
            access_token=access_token,
            refresh_token=value,
            expires_in=self.codec.ttl_seconds,
            role=role,
        )

    def refresh_token(self, value: str) -> SessionTokens:
        """
        Rotate a refresh token. Unknown, revoked, expired or already-rotated
        tokens all fail with the same Unauthorized.
        """
        try:
            if not self.sessions.revoke(value):
                self.storage.rollback()
                logger.warning("Refresh rejected: token unknown, revoked or expired")
                raise Unauthorized(INVALID_REFRESH_TOKEN)

            record = self.sessions.find_by_token_value(value)
            user = self.credentials.find_by_id(record.user_id) if record else None
            if user is None:
                # keep the revocation; the owner is gone
                self.storage.save()
                logger.warning("Refresh rejected: token owner no longer exists")
                raise Unauthorized(INVALID_REFRESH_TOKEN)

            tokens = self.create_session(user, commit=False)
            self.storage.save()
        except Unauthorized:
            raise
        except Exception:
            self.storage.rollback()
            raise

        logger.info("Rotated session for user %s", user.id)
        return tokens

    def sign_out(self, user_id: str, value: str) -> bool:
        try:
            revoked = self.sessions.revoke_for_user(user_id, value)
            if revoked:
                self.storage.save()
            else:
                self.storage.rollback()
        except Exception:
            self.storage.rollback()
            raise

        if revoked:
            logger.info("User %s signed out", user_id)
        else:
            logger.warning("Sign-out rejected for user %s", user_id)
        return revoked

    def purge_expired(self) -> int:
        """Best-effort removal of expired or revoked refresh token records."""
        try:
            purged = self.sessions.purge_expired()
            self.storage.save()
        except Exception:
            self.storage.rollback()
            raise
        logger.info("Purged %d refresh token records", purged)
        return purged
