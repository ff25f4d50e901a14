"""Registros devueltos por la API, tal como el servidor los confirma.

All of them are immutable: local edits build new instances and the
server response always replaces what the client holds.
"""
from datetime import date, datetime
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from bitacora.permissions import AppRole


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, extra="ignore")


class DocumentKind(str, Enum):
    REPORT = "report"
    ACTA = "acta"

    @property
    def path(self) -> str:
        return "/reports" if self is DocumentKind.REPORT else "/actas"


class CommitmentStatus(str, Enum):
    PENDING = "Pendiente"
    COMPLETED = "Completado"

    def toggled(self) -> "CommitmentStatus":
        return CommitmentStatus.PENDING if self is CommitmentStatus.COMPLETED else CommitmentStatus.COMPLETED


class UserRef(ApiModel):
    id: int
    full_name: str


class UserProfile(UserRef):
    email: str
    app_role: AppRole
    project_role: Optional[str] = None


class Signatory(UserRef):
    order: int


class Signature(ApiModel):
    signer: UserRef
    signed_at: datetime
    consent_hash: str
    method: str


class Commitment(ApiModel):
    id: str
    description: str
    responsible: UserRef
    due_date: date
    status: CommitmentStatus

    @property
    def is_completed(self) -> bool:
        return self.status is CommitmentStatus.COMPLETED


class VersionSummary(ApiModel):
    id: str
    version: int
    status: str
    submission_date: datetime
    created_at: Optional[datetime] = None


class Document(ApiModel):
    id: str
    kind: DocumentKind
    number: str
    title: str
    period: Optional[str] = None
    version: int
    previous_report_id: Optional[str] = None
    status: str
    summary: str
    author: UserRef
    submission_date: datetime
    required_signatories: Tuple[Signatory, ...] = ()
    signatures: Tuple[Signature, ...] = ()
    commitments: Tuple[Commitment, ...] = ()
    attachments: Tuple[str, ...] = ()
    versions: Tuple[VersionSummary, ...] = ()
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def head(self) -> Optional[VersionSummary]:
        """Versión vigente de la cadena según el servidor."""
        return self.versions[-1] if self.versions else None

    @property
    def is_head(self) -> bool:
        return self.head is None or self.head.id == self.id

    def signature_for(self, user_id: int) -> Optional[Signature]:
        return next((s for s in self.signatures if s.signer.id == user_id), None)

    def is_signatory(self, user_id: int) -> bool:
        return any(s.id == user_id for s in self.required_signatories)

    @property
    def pending_signatories(self) -> Tuple[Signatory, ...]:
        signed = {s.signer.id for s in self.signatures}
        return tuple(s for s in self.required_signatories if s.id not in signed)

    @property
    def fully_signed(self) -> bool:
        return bool(self.required_signatories) and not self.pending_signatories


class Photo(ApiModel):
    id: str
    url: str
    date: datetime
    notes: Optional[str] = None
    author: UserRef


class ControlPoint(ApiModel):
    id: str
    name: str
    description: str = ""
    location: str = ""
    photos: Tuple[Photo, ...] = ()


class SignatureAssetMeta(ApiModel):
    """Metadatos de la firma personal. Never carries the content."""
    id: str
    file_name: str
    mime_type: str
    size: int
    sha256_hash: str
    created_at: datetime
    updated_at: datetime


class RevealedSignature(ApiModel):
    mime_type: str
    data_url: str

    def __repr_args__(self):
        # El contenido no debe aparecer en logs
        yield "mime_type", self.mime_type
