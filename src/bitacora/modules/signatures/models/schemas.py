from datetime import datetime

from bitacora.modules.documents.models.schemas import CamelModel


class UserSignatureResponse(CamelModel):
    """Metadatos de la firma. Nunca incluye el contenido."""
    id: str
    file_name: str
    mime_type: str
    size: int
    sha256_hash: str
    created_at: datetime
    updated_at: datetime


class DecryptRequest(CamelModel):
    password: str


class DecryptedSignature(CamelModel):
    mime_type: str
    data_url: str
