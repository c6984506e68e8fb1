import uuid
from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship

from lifeline.database import Base
from lifeline.models.base import PortableUUID as UUID, TimestampMixin


class User(TimestampMixin, Base):
    """Civilian profile: the person who may need help."""

    __tablename__ = "users"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    blood_group = Column(String(5), nullable=True)
    emergency_contact_name = Column(String(100), nullable=True)
    emergency_contact_phone = Column(String(20), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    account = relationship("Account", back_populates="user", uselist=False)

    def __repr__(self):
        return f"<User {self.id}>"
