from enum import Enum

from sqlalchemy import Column, Index, String, func
from sqlalchemy.orm import relationship
from sqlalchemy.types import Enum as SAEnum

from models.base_model import Base, BaseModel


class UserRole(str, Enum):
    MEMBER = "Member"
    ADMINISTRATOR = "Administrator"


class User(BaseModel, Base):
    __tablename__ = "users"

    username = Column(String(30), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    password_hash = Column(String(128), nullable=False)
    role = Column(
        SAEnum(UserRole, name="user_role", native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.MEMBER,
    )

    refresh_tokens = relationship(
        "RefreshToken",
        back_populates="user",
        passive_deletes=True,
    )

    __table_args__ = (
        # usernames are unique regardless of case
        Index("uq_users_username_lower", func.lower(username), unique=True),
    )

    @property
    def is_administrator(self) -> bool:
        return self.role == UserRole.ADMINISTRATOR
