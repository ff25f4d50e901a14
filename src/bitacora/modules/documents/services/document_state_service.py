import logging

from sqlalchemy.orm import Session

from bitacora.modules.documents.models.document import Document, DocumentKind, ActaStatus
from bitacora.modules.documents.models.user import User
from bitacora.modules.documents.services.errors import DocumentStateError
from bitacora.modules.notifications.repositories.notification_repository import NotificationRepository
from bitacora.modules.notifications.services.notification_service import NotificationService
from bitacora.permissions import EDIT_CONTENT, can_perform_action

logger = logging.getLogger(__name__)

# Los informes admiten cualquier cambio manual; las actas siguen su ciclo
ACTA_TRANSITIONS = {
    ActaStatus.DRAFT.value: [ActaStatus.FOR_SIGNATURES.value, ActaStatus.CLOSED.value],
    ActaStatus.FOR_SIGNATURES.value: [ActaStatus.DRAFT.value, ActaStatus.SIGNED.value, ActaStatus.CLOSED.value],
    ActaStatus.SIGNED.value: [ActaStatus.CLOSED.value],
    ActaStatus.CLOSED.value: [],
}


class DocumentStateService:

    @staticmethod
    def is_valid_status(document: Document, new_state: str) -> bool:
        return new_state in {s.value for s in document.status_enum}

    @staticmethod
    def can_change_state(user: User, document: Document, new_state: str) -> bool:
        """
        Defines transition rules based on user role and document kind
        """
        if not can_perform_action(user.app_role, EDIT_CONTENT):
            return False
        if not DocumentStateService.is_valid_status(document, new_state):
            return False
        if document.kind == DocumentKind.ACTA:
            return new_state in ACTA_TRANSITIONS.get(document.status, [])
        return True

    @staticmethod
    def change_document_state(session: Session, document: Document, user: User, new_state: str) -> Document:
        """
        Changes document state after validating permissions and notifies the author
        """
        if new_state == document.status:
            return document

        DocumentStateService.check_transition(user, document, new_state)
        DocumentStateService.apply_state(session, document, new_state)
        return document

    @staticmethod
    def check_transition(user: User, document: Document, new_state: str):
        if not DocumentStateService.can_change_state(user, document, new_state):
            raise DocumentStateError(
                f"El perfil {user.app_role.value} no puede cambiar el documento "
                f"de '{document.status}' a '{new_state}'"
            )

    @staticmethod
    def apply_state(session: Session, document: Document, new_state: str) -> Document:
        """Sets the state without role checks (server-side side effects such as the final signature)."""
        previous_state = document.status
        document.status = new_state
        session.commit()

        notif_service = NotificationService(NotificationRepository(session))
        notif_service.create_change_document_state_notification(
            user_id=document.author_id,
            document_number=document.number,
            version=document.version,
            new_state=new_state
        )

        logger.info("Document %s changed from %s to %s", document.id, previous_state, new_state)
        return document

    @staticmethod
    def get_allowed_transitions(user: User, document: Document) -> list[str]:
        """
        Returns list of states the document can transition to
        """
        return [
            state.value for state in document.status_enum
            if state.value != document.status and DocumentStateService.can_change_state(user, document, state.value)
        ]
