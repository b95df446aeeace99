"""
Access token codec.

Access tokens are HS256 JWTs (PyJWT) carrying the user id, username and role.
They are verified from the signature and expiry alone; nothing is looked up
in storage, so an access token stays valid until it expires. Only refresh
tokens are revocable.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

import jwt

from utils.security import generate_jti

ACCESS_TOKEN_TYPE = "access"
DEFAULT_ACCESS_TTL_SECONDS = 3600
REQUIRED_CLAIMS = ("sub", "username", "role", "iat", "exp")


class TokenError(Exception):
    """Base class for access token failures."""


class TokenInvalid(TokenError):
    pass


class TokenExpired(TokenError):
    pass


@dataclass(frozen=True)
class AccessClaims:
    user_id: str
    username: str
    role: str
    issued_at: datetime
    expires_at: datetime


class TokenCodec:
    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        issuer: str = "bulletin-board-api",
        ttl_seconds: int = DEFAULT_ACCESS_TTL_SECONDS,
    ):
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self.secret = secret
        self.algorithm = algorithm
        self.issuer = issuer
        self.ttl_seconds = int(ttl_seconds)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "TokenCodec":
        return cls(
            secret=config["JWT_SECRET"],
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            issuer=config.get("JWT_ISSUER", "bulletin-board-api"),
            ttl_seconds=int(config["ACCESS_TOKEN_EXPIRES"].total_seconds()),
        )

    def issue(self, user_id: str, username: str, role: str, ttl_seconds: Optional[int] = None) -> str:
        """
        Sign an access token for the given identity.
        ttl_seconds overrides the codec default; it may be zero or negative
        to mint an already-expired token.
        """
        now = int(datetime.now(timezone.utc).timestamp())
        ttl = self.ttl_seconds if ttl_seconds is None else int(ttl_seconds)
        payload = {
            "iss": self.issuer,
            "sub": str(user_id),
            "username": username,
            "role": role,
            "iat": now,
            "exp": now + ttl,
            "jti": generate_jti(),
            "type": ACCESS_TOKEN_TYPE,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> AccessClaims:
        """
        Decode and validate an access token.
        Raises TokenExpired once now >= exp, TokenInvalid for anything else.
        """
        if not token or not isinstance(token, str):
            raise TokenInvalid("Token missing")
        try:
            decoded: Dict[str, Any] = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require": list(REQUIRED_CLAIMS) + ["iss"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpired("Token expired")
        except jwt.InvalidTokenError as exc:
            raise TokenInvalid(f"Invalid token: {exc}")

        if decoded.get("type") != ACCESS_TOKEN_TYPE:
            raise TokenInvalid("Wrong token type")

        exp = int(decoded["exp"])
        return AccessClaims(
            user_id=str(decoded["sub"]),
            username=str(decoded["username"]),
            role=str(decoded["role"]),
            issued_at=datetime.fromtimestamp(int(decoded["iat"]), tz=timezone.utc),
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
        )
