import uuid
from enum import Enum as PyEnum
from sqlalchemy import Column, String, Boolean, Enum, ForeignKey
from sqlalchemy.orm import relationship

from lifeline.database import Base
from lifeline.models.base import PortableUUID as UUID, TimestampMixin


class AccountRole(str, PyEnum):
    USER = "user"
    HELPER = "helper"


class Account(TimestampMixin, Base):
    """Authentication identity. Maps a bearer token subject to a profile."""

    __tablename__ = "accounts"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    name = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone_number = Column(String(20), unique=True, nullable=False)
    profile_image = Column(String(500), nullable=True)

    role = Column(Enum(AccountRole, name="account_role"), nullable=False)

    # Exactly one of these is set, matching the role
    user_id = Column(UUID(), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    helper_id = Column(UUID(), ForeignKey("helpers.id", ondelete="SET NULL"), nullable=True, index=True)

    is_verified = Column(Boolean, default=False, nullable=False)
    is_blocked = Column(Boolean, default=False, nullable=False)

    user = relationship("User", back_populates="account")
    helper = relationship("Helper", back_populates="account")

    def __repr__(self):
        return f"<Account {self.email} ({self.role.value})>"
