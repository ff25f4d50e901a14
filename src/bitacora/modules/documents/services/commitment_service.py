from sqlalchemy.orm import Session

from bitacora.modules.documents.models.commitment import Commitment, CommitmentStatus
from bitacora.modules.documents.models.document import Document, DocumentKind
from bitacora.modules.documents.services.document_service import DocumentService
from bitacora.modules.documents.services.errors import CommitmentError, DocumentNotFound
from bitacora.modules.notifications.models.notification import Notification
from bitacora.modules.notifications.repositories.notification_repository import NotificationRepository
from bitacora.modules.notifications.services.notification_service import NotificationService


class CommitmentService:

    @staticmethod
    def get_commitment(document: Document, commitment_id: str) -> Commitment:
        if document.kind != DocumentKind.ACTA:
            raise DocumentNotFound("Solo las actas tienen compromisos")
        for commitment in document.commitments:
            if commitment.id == commitment_id:
                return commitment
        raise DocumentNotFound("Compromiso no encontrado")

    @staticmethod
    def update_status(session: Session, document: Document, commitment_id: str, status: str) -> Commitment:
        """
        Fija el estado de un compromiso. Setting the same status twice is a no-op.
        """
        if status not in {s.value for s in CommitmentStatus}:
            raise CommitmentError(f"Estado de compromiso inválido: {status}", code="VALIDATION_ERROR", status_code=422)
        DocumentService.require_head(session, document)
        commitment = CommitmentService.get_commitment(document, commitment_id)
        if commitment.status != status:
            commitment.status = status
            session.commit()
        return commitment

    @staticmethod
    def send_reminder(session: Session, document: Document, commitment_id: str) -> Notification:
        commitment = CommitmentService.get_commitment(document, commitment_id)
        if commitment.status == CommitmentStatus.COMPLETED.value:
            raise CommitmentError("El compromiso ya está completado")

        service = NotificationService(NotificationRepository(session))
        return service.create_commitment_reminder_notification(
            user_id=commitment.responsible_id,
            document_number=document.number,
            description=commitment.description,
            due_date=commitment.due_date,
        )
