from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from bitacora.database import get_db
from bitacora.modules.auth.dependencies import get_current_user
from bitacora.modules.documents.models.user import User
from bitacora.modules.notifications.repositories.notification_repository import NotificationRepository
from bitacora.modules.notifications.services.notification_service import NotificationService
from bitacora.modules.notifications.models.schemas import NotificationResponse

router = APIRouter()


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    repo = NotificationRepository(db)
    return NotificationService(repo)


@router.get(
    "/users/{user_id}",
    response_model=List[NotificationResponse],
    summary="Obtener notificaciones de un usuario"
)
def list_notifications(
    user_id: int,
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(get_current_user),
):
    if user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"message": "Solo puedes ver tus propias notificaciones", "code": "FORBIDDEN"}
        )
    return service.get_notifications(user_id)


@router.patch(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Marcar notificación como leída"
)
def mark_notification_as_read(
    notification_id: int,
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(get_current_user),
):
    notif = service.mark_as_read(notification_id, current_user.id)
    if not notif:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"message": "Notificación no encontrada", "code": "NOT_FOUND"}
        )
    return notif
