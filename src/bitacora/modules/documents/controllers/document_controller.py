from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from bitacora.database import get_db
from bitacora.modules.auth.dependencies import get_current_user, require_permission
from bitacora.modules.documents.models.document import DocumentKind
from bitacora.modules.documents.models.schemas import (
    CommitmentResponse, CommitmentUpdate, DocumentCreate, DocumentResponse, DocumentUpdate,
)
from bitacora.modules.documents.models.user import User
from bitacora.modules.documents.services import CommitmentService, DocumentError, DocumentService
from bitacora.permissions import EDIT_CONTENT

router = APIRouter()

# Ruta REST → tipo de documento
KINDS = {
    "reports": DocumentKind.REPORT,
    "actas": DocumentKind.ACTA,
}


def get_kind(kind: str) -> DocumentKind:
    if kind not in KINDS:
        raise HTTPException(status.HTTP_404_NOT_FOUND, {"message": "Recurso no encontrado", "code": "NOT_FOUND"})
    return KINDS[kind]


def http_error(e: DocumentError) -> HTTPException:
    return HTTPException(e.status_code, {"message": e.message, "code": e.code})


def document_response(db: Session, doc) -> DocumentResponse:
    return DocumentResponse.from_document(doc, DocumentService.get_versions(db, doc))


@router.get("/{kind}", response_model=List[DocumentResponse])
def list_documents(
    kind: DocumentKind = Depends(get_kind),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return [document_response(db, doc) for doc in DocumentService.list_documents(db, kind)]


@router.get("/{kind}/{document_id}", response_model=DocumentResponse)
def get_document(
    document_id: str,
    kind: DocumentKind = Depends(get_kind),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        doc = DocumentService.get_document(db, kind, document_id)
    except DocumentError as e:
        raise http_error(e)
    return document_response(db, doc)


@router.post("/{kind}", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
def create_document(
    payload: DocumentCreate,
    kind: DocumentKind = Depends(get_kind),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(EDIT_CONTENT)),
):
    """
    Crea un documento; con previousReportId crea una nueva versión de la cadena.
    """
    try:
        doc = DocumentService.create_document(db, kind, current_user, payload)
    except DocumentError as e:
        raise http_error(e)
    return document_response(db, doc)


@router.put("/{kind}/{document_id}", response_model=DocumentResponse)
def update_document(
    document_id: str,
    payload: DocumentUpdate,
    kind: DocumentKind = Depends(get_kind),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(EDIT_CONTENT)),
):
    try:
        doc = DocumentService.get_document(db, kind, document_id)
        doc = DocumentService.update_document(db, doc, current_user, payload)
    except DocumentError as e:
        raise http_error(e)
    return document_response(db, doc)


@router.put("/actas/{document_id}/commitments/{commitment_id}", response_model=CommitmentResponse)
def update_commitment(
    document_id: str,
    commitment_id: str,
    payload: CommitmentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(EDIT_CONTENT)),
):
    try:
        doc = DocumentService.get_document(db, DocumentKind.ACTA, document_id)
        commitment = CommitmentService.update_status(db, doc, commitment_id, payload.status)
    except DocumentError as e:
        raise http_error(e)
    return CommitmentResponse.model_validate(commitment)


@router.post("/actas/{document_id}/commitments/{commitment_id}/reminder")
def send_commitment_reminder(
    document_id: str,
    commitment_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(EDIT_CONTENT)),
):
    try:
        doc = DocumentService.get_document(db, DocumentKind.ACTA, document_id)
        notif = CommitmentService.send_reminder(db, doc, commitment_id)
    except DocumentError as e:
        raise http_error(e)
    return {"message": "Recordatorio enviado", "notificationId": notif.id}
