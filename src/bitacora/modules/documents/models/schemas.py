from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from bitacora.modules.documents.models.document import Document, DocumentKind


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class UserRef(CamelModel):
    id: int
    full_name: str


class SignatoryResponse(UserRef):
    order: int


class SignatureResponse(CamelModel):
    signer: UserRef
    signed_at: datetime
    consent_hash: str
    method: str


class CommitmentResponse(CamelModel):
    id: str
    description: str
    responsible: UserRef
    due_date: date
    status: str


class VersionInfo(CamelModel):
    id: str
    version: int
    status: str
    submission_date: datetime
    created_at: Optional[datetime] = None


class DocumentResponse(CamelModel):
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
    required_signatories: List[SignatoryResponse] = []
    signatures: List[SignatureResponse] = []
    commitments: List[CommitmentResponse] = []
    attachments: List[str] = []
    versions: List[VersionInfo] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Document, versions: List[Document]) -> "DocumentResponse":
        return cls(
            id=doc.id,
            kind=doc.kind,
            number=doc.number,
            title=doc.title,
            period=doc.period,
            version=doc.version,
            previous_report_id=doc.previous_version_id,
            status=doc.status,
            summary=doc.summary,
            author=UserRef.model_validate(doc.author),
            submission_date=doc.submission_date,
            required_signatories=[
                SignatoryResponse(id=s.user.id, full_name=s.user.full_name, order=s.order)
                for s in doc.signatories
            ],
            signatures=[
                SignatureResponse(
                    signer=UserRef.model_validate(sig.user),
                    signed_at=sig.signed_at,
                    consent_hash=sig.consent_hash,
                    method=sig.method,
                )
                for sig in doc.signatures
            ],
            commitments=[CommitmentResponse.model_validate(c) for c in doc.commitments],
            versions=[
                VersionInfo(
                    id=v.id,
                    version=v.version,
                    status=v.status,
                    submission_date=v.submission_date,
                    created_at=v.created_at,
                )
                for v in versions
            ],
            created_at=doc.created_at,
            updated_at=doc.updated_at,
        )


class CommitmentCreate(CamelModel):
    description: str
    responsible_id: int
    due_date: date


class DocumentCreate(CamelModel):
    """Creates a document, or a new version when previous_report_id is given."""
    number: Optional[str] = None
    title: Optional[str] = None
    period: Optional[str] = None
    summary: Optional[str] = None
    required_signatory_ids: Optional[List[int]] = None
    commitments: Optional[List[CommitmentCreate]] = None
    previous_report_id: Optional[str] = None


class DocumentUpdate(CamelModel):
    status: Optional[str] = None
    summary: Optional[str] = None


class CommitmentUpdate(CamelModel):
    status: str


class SignatureRequest(CamelModel):
    signer_id: int
    password: str = Field(default="", repr=False)
    consent: bool = False
    consent_statement: str = ""
