import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, DateTime, String, UniqueConstraint
from sqlalchemy.orm import relationship

from bitacora.database import Base


class Signatory(Base):
    """Firmante requerido de una versión de documento."""
    __tablename__ = "signatories"
    __table_args__ = (UniqueConstraint("document_id", "user_id", name="uq_signatory_document_user"),)

    id = Column(Integer, primary_key=True)
    document_id = Column(String(36), ForeignKey("documents.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    order = Column(Integer, nullable=False)

    document = relationship("Document", back_populates="signatories")
    user = relationship("User")


class Signature(Base):
    __tablename__ = "signatures"
    # Una sola firma por (documento, firmante)
    __table_args__ = (UniqueConstraint("document_id", "user_id", name="uq_signature_document_user"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    document_id = Column(String(36), ForeignKey("documents.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    signed_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    consent_hash = Column(String(64), nullable=False)
    method = Column(String, nullable=False, default="password")

    document = relationship("Document", back_populates="signatures")
    user = relationship("User")
