"""
Caller identity derived from a verified access token.

Built once per request by utils.decorators.jwt_required and passed to the
view as an explicit argument; downstream code reads the administrator flag
instead of comparing role strings.
"""
from __future__ import annotations

from dataclasses import dataclass

from models.user import UserRole
from utils.tokens import AccessClaims


@dataclass(frozen=True)
class Identity:
    user_id: str
    username: str
    role: UserRole
    is_administrator: bool

    @classmethod
    def from_claims(cls, claims: AccessClaims) -> "Identity":
        try:
            role = UserRole(claims.role)
        except ValueError:
            # unknown roles get no privileges
            role = UserRole.MEMBER
        return cls(
            user_id=claims.user_id,
            username=claims.username,
            role=role,
            is_administrator=role is UserRole.ADMINISTRATOR,
        )

    def current_user_id(self) -> str:
        return self.user_id

    def current_username(self) -> str:
        return self.username

    def to_dict(self) -> dict:
        return {
            "id": self.user_id,
            "username": self.username,
            "role": self.role.value,
            "isAdministrator": self.is_administrator,
        }
