import uuid
from sqlalchemy import Column, String, Float, Integer, Boolean, DateTime, JSON, Index
from sqlalchemy.orm import relationship

from lifeline.database import Base
from lifeline.models.base import PortableUUID as UUID, TimestampMixin, utcnow


class Helper(TimestampMixin, Base):
    """Responder profile: doctors, nurses, paramedics and trained volunteers."""

    __tablename__ = "helpers"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)

    # Qualifications
    profession = Column(String(100), nullable=True)  # "Cardiologist"
    degree = Column(String(50), nullable=True)  # "MD"
    skills = Column(JSON, default=list, nullable=False)

    # Availability
    is_available = Column(Boolean, default=True, nullable=False)

    # Performance metrics
    rating = Column(Float, default=0, nullable=False)  # 0-5
    response_rate = Column(Float, default=100, nullable=False)  # percent
    total_helps = Column(Integer, default=0, nullable=False)

    # Verification
    is_verified = Column(Boolean, default=False, nullable=False)
    verified_at = Column(DateTime, nullable=True)

    # Status
    is_active = Column(Boolean, default=True, nullable=False)
    is_online = Column(Boolean, default=False, nullable=False)
    last_active = Column(DateTime, default=utcnow, nullable=False)

    account = relationship("Account", back_populates="helper", uselist=False)

    __table_args__ = (
        Index("idx_helpers_available_verified", "is_available", "is_verified"),
    )

    def __repr__(self):
        return f"<Helper {self.id} ({self.profession})>"
