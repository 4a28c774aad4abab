from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from escuela.database import Base


def utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    """
    Usuario local. El id es el del proveedor de identidad externo
    y nunca se regenera localmente.
    """
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)
    email = Column(String, index=True, nullable=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    display_name = Column(String, nullable=True)

    role = Column(String, nullable=False, default="profesor")            # admin | director | profesor | user
    permissions = Column(JSON, nullable=False, default=list)              # ["manage_institutions", ...]

    institution_id = Column(String, ForeignKey("institutions.id"), nullable=True)
    institution = relationship("Institution", back_populates="members")

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class BootstrapClaim(Base):
    """
    Fila única que registra quién reclamó el rol de primer administrador.
    La clave primaria fija (slot=1) hace que solo un INSERT pueda ganar.
    """
    __tablename__ = "bootstrap_claims"

    SLOT = 1

    slot = Column(Integer, primary_key=True, default=SLOT)
    user_id = Column(String, ForeignKey("users.id"), nullable=False)
    claimed_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
