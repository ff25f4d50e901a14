import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, LargeBinary
from sqlalchemy.orm import relationship

from bitacora.database import Base


def _now() -> datetime:
    return datetime.now(timezone.utc)


class UserSignature(Base):
    """Firma manuscrita del usuario, cifrada con su contraseña."""
    __tablename__ = "user_signatures"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)
    file_name = Column(String, nullable=False)
    mime_type = Column(String, nullable=False)
    size = Column(Integer, nullable=False)
    sha256_hash = Column(String(64), nullable=False)
    salt = Column(LargeBinary(16), nullable=False)
    ciphertext = Column(LargeBinary, nullable=False)
    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now, onupdate=_now)

    user = relationship("User")
