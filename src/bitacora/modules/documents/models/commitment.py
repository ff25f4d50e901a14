import uuid
from enum import Enum as PyEnum

from sqlalchemy import Column, Integer, String, Date, ForeignKey, Text
from sqlalchemy.orm import relationship

from bitacora.database import Base


class CommitmentStatus(str, PyEnum):
    PENDING = "Pendiente"
    COMPLETED = "Completado"


class Commitment(Base):
    __tablename__ = "commitments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    document_id = Column(String(36), ForeignKey("documents.id"), nullable=False)
    description = Column(Text, nullable=False)
    responsible_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    due_date = Column(Date, nullable=False)
    status = Column(String, nullable=False, default=CommitmentStatus.PENDING.value)
    position = Column(Integer, nullable=False, default=0)

    document = relationship("Document", back_populates="commitments")
    responsible = relationship("User")
