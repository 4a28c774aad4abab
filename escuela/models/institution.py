from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship

from escuela.database import Base
from escuela.models.user import utcnow


class Institution(Base):
    """
    Institución educativa (escuela / colegio / instituto).
    """
    __tablename__ = "institutions"

    id = Column(String, primary_key=True)
    name = Column(String(100), nullable=False, unique=True)
    address = Column(String(200), nullable=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(100), nullable=True, unique=True)

    created_by = Column(String, nullable=True)             # id del usuario creador
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # relaciones
    members = relationship("User", back_populates="institution")
    courses = relationship("Course", back_populates="institution", cascade="all, delete-orphan")
    students = relationship("Student", back_populates="institution", cascade="all, delete-orphan")
