from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from bitacora.database import get_db
from bitacora.modules.auth.services.auth_service import AuthService
from bitacora.modules.documents.models.user import User
from bitacora.permissions import can_perform_action


def get_current_user(
    x_user_id: Optional[int] = Header(default=None),
    db: Session = Depends(get_db),
) -> User:
    """Usuario que origina la petición (cabecera X-User-Id)."""
    user = AuthService.get_active_user(db, x_user_id) if x_user_id is not None else None
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Usuario no identificado", "code": "UNAUTHENTICATED"},
        )
    return user


def require_permission(action: str):
    def dependency(current_user: User = Depends(get_current_user)):
        if not can_perform_action(current_user.app_role, action):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "message": f"El perfil '{current_user.app_role.value}' no puede realizar '{action}'",
                    "code": "FORBIDDEN",
                },
            )
        return current_user
    return dependency
