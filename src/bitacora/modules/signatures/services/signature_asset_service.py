import base64
import hashlib
import logging
import os
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from sqlalchemy.orm import Session

from bitacora.config import get_settings
from bitacora.modules.signatures.models.user_signature import UserSignature

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {"image/png", "image/jpeg", "application/pdf"}


class SignatureAssetError(Exception):
    """Exception for personal signature upload/decrypt errors"""

    def __init__(self, message: str, code: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


def _fernet(password: str, salt: bytes) -> Fernet:
    """Clave Fernet derivada de la contraseña (PBKDF2-HMAC-SHA256)."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=get_settings().signature_kdf_iterations,
    )
    return Fernet(base64.urlsafe_b64encode(kdf.derive(password.encode("utf-8"))))


class SignatureAssetService:

    @staticmethod
    def get(session: Session, user_id: int) -> Optional[UserSignature]:
        return session.query(UserSignature).filter(UserSignature.user_id == user_id).first()

    @staticmethod
    def upload(session: Session, user_id: int, file_contents: bytes, filename: str,
               content_type: str, password: str) -> UserSignature:
        """
        Valida y cifra la firma. Replaces any previous signature of the user.
        """
        if not password or not password.strip():
            raise SignatureAssetError("Debes ingresar tu contraseña para proteger tu firma", "PASSWORD_REQUIRED")
        if content_type not in ALLOWED_MIME_TYPES:
            raise SignatureAssetError("La firma debe ser PNG, JPG o PDF", "UNSUPPORTED_TYPE")
        if not file_contents:
            raise SignatureAssetError("El archivo está vacío", "EMPTY_FILE")
        max_bytes = get_settings().signature_max_bytes
        if len(file_contents) > max_bytes:
            raise SignatureAssetError(f"El tamaño máximo es {max_bytes // 1024} KB", "FILE_TOO_LARGE")

        salt = os.urandom(16)
        token = _fernet(password, salt).encrypt(file_contents)

        asset = SignatureAssetService.get(session, user_id)
        if asset is None:
            asset = UserSignature(user_id=user_id)
            session.add(asset)
        asset.file_name = filename
        asset.mime_type = content_type
        asset.size = len(file_contents)
        asset.sha256_hash = hashlib.sha256(file_contents).hexdigest()
        asset.salt = salt
        asset.ciphertext = token
        session.commit()
        session.refresh(asset)
        logger.info("Stored encrypted signature for user %s", user_id)
        return asset

    @staticmethod
    def decrypt(session: Session, user_id: int, password: str) -> tuple[str, bytes]:
        asset = SignatureAssetService.get(session, user_id)
        if asset is None:
            raise SignatureAssetError("No tienes una firma registrada", "NOT_FOUND", 404)
        try:
            content = _fernet(password or "", asset.salt).decrypt(asset.ciphertext)
        except InvalidToken:
            raise SignatureAssetError("Contraseña incorrecta", "WRONG_PASSWORD", 401)
        return asset.mime_type, content

    @staticmethod
    def delete(session: Session, user_id: int) -> bool:
        asset = SignatureAssetService.get(session, user_id)
        if asset is None:
            return False
        session.delete(asset)
        session.commit()
        logger.info("Deleted signature for user %s", user_id)
        return True
