from typing import Optional

from passlib.context import CryptContext
from sqlalchemy.orm import Session

from bitacora.modules.documents.models.user import User

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class AuthService:

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verifica si la contraseña coincide con el hash"""
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def get_password_hash(password: str) -> str:
        """Genera hash de la contraseña"""
        return pwd_context.hash(password)

    @staticmethod
    def get_active_user(db: Session, user_id: int) -> Optional[User]:
        user = db.get(User, user_id)
        if user is None or not user.is_active:
            return None
        return user
