from typing import Optional

from fastapi import APIRouter, Depends

from bitacora.modules.auth.dependencies import get_current_user
from bitacora.modules.documents.models.user import User
from bitacora.permissions import AppRole
from bitacora.modules.documents.models.schemas import CamelModel

router = APIRouter(prefix="/users", tags=["users"])


class UserResponse(CamelModel):
    id: int
    full_name: str
    email: str
    app_role: AppRole
    project_role: Optional[str] = None


@router.get("/me", response_model=UserResponse)
def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Obtener información del usuario actual"""
    return current_user
