from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bitacora.database import get_db
from bitacora.modules.auth.dependencies import require_permission
from bitacora.modules.documents.controllers.document_controller import document_response, get_kind, http_error
from bitacora.modules.documents.models.document import DocumentKind
from bitacora.modules.documents.models.schemas import DocumentResponse, SignatureRequest
from bitacora.modules.documents.models.user import User
from bitacora.modules.documents.services import DocumentError, DocumentService
from bitacora.permissions import SIGN

router = APIRouter()


@router.post("/{kind}/{document_id}/signatures", response_model=DocumentResponse)
def sign_document(
    document_id: str,
    payload: SignatureRequest,
    kind: DocumentKind = Depends(get_kind),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(SIGN)),
):
    """
    Añade la firma del usuario actual. Devuelve el documento completo, con el
    estado avanzado si era la última firma requerida.
    """
    try:
        doc = DocumentService.get_document(db, kind, document_id)
        doc = DocumentService.add_signature(db, doc, current_user, payload)
    except DocumentError as e:
        raise http_error(e)
    return document_response(db, doc)
