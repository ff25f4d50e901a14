import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum

from sqlalchemy import Column, Integer, String, Text, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship

from bitacora.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class DocumentKind(str, PyEnum):
    REPORT = "report"
    ACTA = "acta"


class ReportStatus(str, PyEnum):
    DRAFT = "Borrador"
    SUBMITTED = "Presentado"
    APPROVED = "Aprobado"
    OBSERVED = "Con Observaciones"


class ActaStatus(str, PyEnum):
    DRAFT = "En Borrador"
    FOR_SIGNATURES = "Para Firmas"
    SIGNED = "Firmada"
    CLOSED = "Cerrada"


STATUS_ENUMS = {
    DocumentKind.REPORT: ReportStatus,
    DocumentKind.ACTA: ActaStatus,
}

# Estado al que avanza el documento cuando firma el último firmante requerido
FULLY_SIGNED_STATUS = {
    DocumentKind.REPORT: ReportStatus.APPROVED.value,
    DocumentKind.ACTA: ActaStatus.SIGNED.value,
}

# Estados en los que ya no se admiten firmas
SIGNING_CLOSED_STATUSES = {
    DocumentKind.REPORT: set(),
    DocumentKind.ACTA: {ActaStatus.CLOSED.value},
}

INITIAL_STATUS = {
    DocumentKind.REPORT: ReportStatus.DRAFT.value,
    DocumentKind.ACTA: ActaStatus.DRAFT.value,
}


class Document(Base):
    __tablename__ = 'documents'

    id = Column(String(36), primary_key=True, default=_uuid)
    kind = Column(Enum(DocumentKind), nullable=False)
    number = Column(String, nullable=False)
    title = Column(String, nullable=False, default="")
    period = Column(String, nullable=True)
    version = Column(Integer, nullable=False, default=1)

    # Cadena de versiones: chain_id es el id de la versión 1
    chain_id = Column(String(36), nullable=False, index=True)
    previous_version_id = Column(String(36), ForeignKey('documents.id'), nullable=True)

    status = Column(String, nullable=False)
    summary = Column(Text, nullable=False, default="")
    submission_date = Column(DateTime, default=_now)
    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now, onupdate=_now)

    author_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    author = relationship("User")

    signatories = relationship("Signatory", back_populates="document", order_by="Signatory.order", cascade="all, delete-orphan")
    signatures = relationship("Signature", back_populates="document", order_by="Signature.signed_at", cascade="all, delete-orphan")
    commitments = relationship("Commitment", back_populates="document", order_by="Commitment.position", cascade="all, delete-orphan")

    @property
    def status_enum(self):
        return STATUS_ENUMS[self.kind]
