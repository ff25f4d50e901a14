from datetime import date
from typing import List, Optional

from bitacora.modules.notifications.models.notification import Notification
from bitacora.modules.notifications.repositories.notification_repository import NotificationRepository


class NotificationTemplate:
    def __init__(self, user_id: int, title: str, message: str):
        self.user_id = user_id
        self.title = title
        self.message = message

    def to_dict(self):
        return {
            'user_id': self.user_id,
            'title': self.title,
            'message': self.message
        }


class ChangeDocumentStateNotification(NotificationTemplate):
    def __init__(self, user_id: int, document_number: str, version: int, new_state: str):
        title = "Cambio de estado de documento"
        message = f"El documento '{document_number}' (v{version}) ha cambiado de estado a: '{new_state}'."
        super().__init__(user_id, title, message)


class CommitmentReminderNotification(NotificationTemplate):
    def __init__(self, user_id: int, document_number: str, description: str, due_date: date):
        title = "Recordatorio de compromiso"
        message = (
            f"Tienes pendiente el compromiso '{description}' del acta '{document_number}', "
            f"con vencimiento el {due_date.isoformat()}."
        )
        super().__init__(user_id, title, message)


class NotificationService:
    def __init__(self, repository: NotificationRepository):
        self.notification_repository = repository

    def _save(self, template: NotificationTemplate) -> Notification:
        return self.notification_repository.save(Notification(**template.to_dict()))

    def create_change_document_state_notification(
        self,
        user_id: int,
        document_number: str,
        version: int,
        new_state: str
    ) -> Notification:
        return self._save(ChangeDocumentStateNotification(user_id, document_number, version, new_state))

    def create_commitment_reminder_notification(
        self,
        user_id: int,
        document_number: str,
        description: str,
        due_date: date
    ) -> Notification:
        return self._save(CommitmentReminderNotification(user_id, document_number, description, due_date))

    def get_notifications(self, user_id: int) -> List[Notification]:
        return self.notification_repository.find_by_user_id(user_id)

    def mark_as_read(self, notification_id: int, user_id: int) -> Optional[Notification]:
        notif = self.notification_repository.find_by_id(notification_id)
        # Una notificación ajena se trata como inexistente
        if notif is None or notif.user_id != user_id:
            return None
        return self.notification_repository.update(notification_id, {'read': True})
