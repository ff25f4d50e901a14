import hashlib
import logging
import uuid
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bitacora.modules.auth.services.auth_service import AuthService
from bitacora.modules.documents.models.commitment import Commitment, CommitmentStatus
from bitacora.modules.documents.models.document import (
    Document, DocumentKind, FULLY_SIGNED_STATUS, INITIAL_STATUS, SIGNING_CLOSED_STATUSES,
)
from bitacora.modules.documents.models.schemas import CommitmentCreate, DocumentCreate, DocumentUpdate, SignatureRequest
from bitacora.modules.documents.models.signature import Signatory, Signature
from bitacora.modules.documents.models.user import User
from bitacora.modules.documents.services.document_state_service import DocumentStateService
from bitacora.modules.documents.services.errors import (
    DocumentError, DocumentNotFound, SignatureError, StaleVersionError,
)

logger = logging.getLogger(__name__)


def consent_hash(document_id: str, signer_id: int, statement: str) -> str:
    """Huella del texto de consentimiento aceptado por el firmante."""
    return hashlib.sha256(f"{document_id}:{signer_id}:{statement}".encode("utf-8")).hexdigest()


class DocumentService:

    @staticmethod
    def get_document(session: Session, kind: DocumentKind, document_id: str) -> Document:
        doc = session.get(Document, document_id)
        if doc is None or doc.kind != kind:
            raise DocumentNotFound("Documento no encontrado")
        return doc

    @staticmethod
    def get_versions(session: Session, document: Document) -> List[Document]:
        """All versions of the document's chain, oldest first. The last one is the head."""
        return (
            session.query(Document)
            .filter(Document.chain_id == document.chain_id)
            .order_by(Document.version.asc())
            .all()
        )

    @staticmethod
    def get_head(session: Session, document: Document) -> Document:
        return DocumentService.get_versions(session, document)[-1]

    @staticmethod
    def require_head(session: Session, document: Document) -> Document:
        """Solo la versión vigente admite cambios."""
        head = DocumentService.get_head(session, document)
        if head.id != document.id:
            raise StaleVersionError(
                f"La versión v{document.version} ya fue reemplazada por v{head.version}"
            )
        return head

    @staticmethod
    def list_documents(session: Session, kind: DocumentKind) -> List[Document]:
        """
        Obtiene la versión vigente de cada documento del tipo indicado
        """
        docs = session.query(Document).filter(Document.kind == kind).order_by(Document.created_at.desc()).all()
        heads = {}
        for doc in docs:
            current = heads.get(doc.chain_id)
            if current is None or doc.version > current.version:
                heads[doc.chain_id] = doc
        return list(heads.values())

    @staticmethod
    def create_document(session: Session, kind: DocumentKind, author: User, data: DocumentCreate) -> Document:
        if data.previous_report_id:
            return DocumentService.create_new_version(session, kind, author, data)

        if not data.number or not data.title:
            raise DocumentError("El número y el título son obligatorios", code="VALIDATION_ERROR", status_code=422)

        document_id = str(uuid.uuid4())
        # La versión 1 abre la cadena
        document = Document(
            id=document_id,
            chain_id=document_id,
            kind=kind,
            number=data.number,
            title=data.title,
            period=data.period,
            version=1,
            status=INITIAL_STATUS[kind],
            summary=data.summary or "",
            author_id=author.id,
        )
        DocumentService._set_signatories(session, document, data.required_signatory_ids or [])
        DocumentService._set_commitments(session, document, data.commitments or [])
        session.add(document)
        session.commit()
        logger.info("Created %s %s (%s)", kind.value, document.number, document.id)
        return document

    @staticmethod
    def create_new_version(session: Session, kind: DocumentKind, author: User, data: DocumentCreate) -> Document:
        """
        Crea una nueva versión a partir de la versión vigente.
        The base row is never modified; the new row gets its own id and version number.
        """
        base = DocumentService.get_document(session, kind, data.previous_report_id)
        head = DocumentService.require_head(session, base)

        document = Document(
            kind=kind,
            number=base.number,
            title=data.title or base.title,
            period=data.period if data.period is not None else base.period,
            version=head.version + 1,
            chain_id=base.chain_id,
            previous_version_id=base.id,
            status=INITIAL_STATUS[kind],
            summary=data.summary if data.summary is not None else base.summary,
            author_id=author.id,
        )

        if data.required_signatory_ids is not None:
            DocumentService._set_signatories(session, document, data.required_signatory_ids)
        else:
            document.signatories = [Signatory(user_id=s.user_id, order=s.order) for s in base.signatories]

        if data.commitments is not None:
            DocumentService._set_commitments(session, document, data.commitments)
        else:
            document.commitments = [
                Commitment(
                    description=c.description,
                    responsible_id=c.responsible_id,
                    due_date=c.due_date,
                    status=c.status,
                    position=c.position,
                )
                for c in base.commitments
            ]

        session.add(document)
        session.commit()
        logger.info("Created %s %s v%s from %s", kind.value, document.number, document.version, base.id)
        return document

    @staticmethod
    def update_document(session: Session, document: Document, user: User, data: DocumentUpdate) -> Document:
        DocumentService.require_head(session, document)
        new_state = data.status if data.status is not None and data.status != document.status else None
        # La transición se valida antes de modificar la fila
        if new_state is not None:
            DocumentStateService.check_transition(user, document, new_state)
        if data.summary is not None:
            document.summary = data.summary
        if new_state is not None:
            DocumentStateService.apply_state(session, document, new_state)
        else:
            session.commit()
        return document

    @staticmethod
    def add_signature(session: Session, document: Document, acting_user: User, request: SignatureRequest) -> Document:
        """Añade la firma del usuario si es firmante requerido y aún no ha firmado."""
        if acting_user.id != request.signer_id:
            raise SignatureError("Solo el propio firmante puede firmar", code="FORBIDDEN", status_code=403)

        DocumentService.require_head(session, document)
        if document.status in SIGNING_CLOSED_STATUSES[document.kind]:
            raise SignatureError(
                f"El documento está en estado '{document.status}' y ya no admite firmas",
                code="NOT_SIGNABLE",
                status_code=409,
            )

        if not request.consent or not request.consent_statement.strip():
            raise SignatureError("Debes aceptar la declaración de consentimiento", code="CONSENT_REQUIRED")

        if not request.password or not AuthService.verify_password(request.password, acting_user.password_hash):
            raise SignatureError("Contraseña incorrecta", code="WRONG_PASSWORD", status_code=401)

        if request.signer_id not in {s.user_id for s in document.signatories}:
            raise SignatureError(
                "El usuario no es firmante requerido de este documento",
                code="NOT_A_SIGNATORY",
                status_code=403,
            )

        if any(sig.user_id == request.signer_id for sig in document.signatures):
            raise SignatureError("Este firmante ya firmó el documento", code="ALREADY_SIGNED", status_code=409)

        sig = Signature(
            user_id=request.signer_id,
            consent_hash=consent_hash(document.id, request.signer_id, request.consent_statement),
            method="password",
        )
        document.signatures.append(sig)
        try:
            session.commit()
        except IntegrityError:
            # Otra petición firmó primero
            session.rollback()
            raise SignatureError("Este firmante ya firmó el documento", code="ALREADY_SIGNED", status_code=409)

        session.refresh(document)
        signed = {s.user_id for s in document.signatures}
        required = {s.user_id for s in document.signatories}
        final_status = FULLY_SIGNED_STATUS[document.kind]
        if required <= signed and document.status != final_status:
            DocumentStateService.apply_state(session, document, final_status)

        logger.info("Document %s signed by user %s", document.id, request.signer_id)
        return document

    @staticmethod
    def _set_signatories(session: Session, document: Document, user_ids: List[int]):
        seen = []
        for user_id in user_ids:
            if user_id in seen:
                continue
            if session.get(User, user_id) is None:
                raise DocumentError(f"Usuario {user_id} no existe", code="VALIDATION_ERROR", status_code=422)
            seen.append(user_id)
        document.signatories = [Signatory(user_id=uid, order=i + 1) for i, uid in enumerate(seen)]

    @staticmethod
    def _set_commitments(session: Session, document: Document, items: List[CommitmentCreate]):
        if items and document.kind != DocumentKind.ACTA:
            raise DocumentError("Solo las actas tienen compromisos", code="VALIDATION_ERROR", status_code=422)
        for item in items:
            if session.get(User, item.responsible_id) is None:
                raise DocumentError(
                    f"Usuario {item.responsible_id} no existe", code="VALIDATION_ERROR", status_code=422
                )
        document.commitments = [
            Commitment(
                description=item.description,
                responsible_id=item.responsible_id,
                due_date=item.due_date,
                status=CommitmentStatus.PENDING.value,
                position=i,
            )
            for i, item in enumerate(items)
        ]

