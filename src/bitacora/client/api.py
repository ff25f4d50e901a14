from typing import Any, Dict, List, Optional, Sequence

from bitacora.client.http import ApiClient
from bitacora.client.models import (
    ControlPoint, Document, DocumentKind, CommitmentStatus, RevealedSignature,
    SignatureAssetMeta, UserProfile,
)
from bitacora.client.uploads import SelectedFile


class DocumentsApi:
    def __init__(self, http: ApiClient):
        self.http = http

    async def list(self, kind: DocumentKind) -> List[Document]:
        data = await self.http.get(kind.path)
        return [Document.model_validate(item) for item in data]

    async def get(self, kind: DocumentKind, document_id: str) -> Document:
        return Document.model_validate(await self.http.get(f"{kind.path}/{document_id}"))

    async def create(self, kind: DocumentKind, fields: Dict[str, Any]) -> Document:
        return Document.model_validate(await self.http.post(kind.path, json=fields))

    async def create_version(self, kind: DocumentKind, previous_id: str, fields: Dict[str, Any]) -> Document:
        """El servidor asigna el id y el número de versión."""
        payload = dict(fields, previousReportId=previous_id)
        return Document.model_validate(await self.http.post(kind.path, json=payload))

    async def update(self, kind: DocumentKind, document_id: str,
                     status: Optional[str] = None, summary: Optional[str] = None) -> Document:
        payload = {}
        if status is not None:
            payload["status"] = status
        if summary is not None:
            payload["summary"] = summary
        return Document.model_validate(await self.http.put(f"{kind.path}/{document_id}", json=payload))

    async def update_commitment(self, document_id: str, commitment_id: str, status: CommitmentStatus):
        await self.http.put(
            f"{DocumentKind.ACTA.path}/{document_id}/commitments/{commitment_id}",
            json={"status": status.value},
        )

    async def send_commitment_reminder(self, document_id: str, commitment_id: str) -> Dict[str, Any]:
        return await self.http.post(f"{DocumentKind.ACTA.path}/{document_id}/commitments/{commitment_id}/reminder")

    async def sign(self, kind: DocumentKind, document_id: str, signer_id: int,
                   password: str, consent_statement: str) -> Document:
        data = await self.http.post(
            f"{kind.path}/{document_id}/signatures",
            json={
                "signerId": signer_id,
                "password": password,
                "consent": True,
                "consentStatement": consent_statement,
            },
        )
        return Document.model_validate(data)


class SignatureAssetApi:
    path = "/users/me/signature"

    def __init__(self, http: ApiClient):
        self.http = http

    async def fetch(self) -> Optional[SignatureAssetMeta]:
        data = await self.http.get(self.path)
        return SignatureAssetMeta.model_validate(data["signature"]) if data.get("signature") else None

    async def upload(self, file: SelectedFile, password: str) -> SignatureAssetMeta:
        data = await self.http.post(self.path, data={"password": password}, files={"file": file.as_upload()})
        return SignatureAssetMeta.model_validate(data["signature"])

    async def decrypt(self, password: str) -> RevealedSignature:
        data = await self.http.post(f"{self.path}/decrypt", json={"password": password})
        return RevealedSignature.model_validate(data["signature"])

    async def delete(self):
        await self.http.delete(self.path)


class ControlPointsApi:
    def __init__(self, http: ApiClient):
        self.http = http

    async def get(self, point_id: str) -> ControlPoint:
        return ControlPoint.model_validate(await self.http.get(f"/control-points/{point_id}"))

    async def add_photos(self, point_id: str, files: Sequence[SelectedFile], notes: str = "") -> ControlPoint:
        data = await self.http.post(
            f"/control-points/{point_id}/photos",
            data={"notes": notes},
            files=[("files", f.as_upload()) for f in files],
        )
        return ControlPoint.model_validate(data)

    async def reorder(self, point_id: str, photo_ids: Sequence[str]) -> ControlPoint:
        data = await self.http.put(f"/control-points/{point_id}/photos/order", json={"photoIds": list(photo_ids)})
        return ControlPoint.model_validate(data)


class UsersApi:
    def __init__(self, http: ApiClient):
        self.http = http

    async def me(self) -> UserProfile:
        return UserProfile.model_validate(await self.http.get("/users/me"))


class BitacoraApi:
    """Todos los recursos de la API sobre un mismo ApiClient."""

    def __init__(self, http: ApiClient):
        self.http = http
        self.documents = DocumentsApi(http)
        self.signature_asset = SignatureAssetApi(http)
        self.control_points = ControlPointsApi(http)
        self.users = UsersApi(http)

    async def aclose(self):
        await self.http.aclose()
