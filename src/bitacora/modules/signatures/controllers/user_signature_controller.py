import base64

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from bitacora.database import get_db
from bitacora.modules.auth.dependencies import get_current_user
from bitacora.modules.documents.models.user import User
from bitacora.modules.signatures.models.schemas import DecryptRequest, DecryptedSignature, UserSignatureResponse
from bitacora.modules.signatures.services.signature_asset_service import SignatureAssetError, SignatureAssetService

router = APIRouter(prefix="/users/me/signature", tags=["signature"])


def http_error(e: SignatureAssetError) -> HTTPException:
    return HTTPException(e.status_code, {"message": e.message, "code": e.code})


@router.get("")
def get_signature(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    asset = SignatureAssetService.get(db, current_user.id)
    signature = UserSignatureResponse.model_validate(asset).model_dump(by_alias=True, mode="json") if asset else None
    return {"signature": signature}


@router.post("")
async def upload_signature(
    password: str = Form(""),
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    contents = await file.read()
    try:
        asset = SignatureAssetService.upload(
            db, current_user.id, contents, file.filename or "firma", file.content_type or "", password
        )
    except SignatureAssetError as e:
        raise http_error(e)
    return {
        "message": "Tu firma manuscrita se guardó y encriptó correctamente.",
        "signature": UserSignatureResponse.model_validate(asset).model_dump(by_alias=True, mode="json"),
    }


@router.post("/decrypt")
def decrypt_signature(
    payload: DecryptRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Devuelve la firma descifrada como data URL. Nothing decrypted is stored."""
    try:
        mime_type, content = SignatureAssetService.decrypt(db, current_user.id, payload.password)
    except SignatureAssetError as e:
        raise http_error(e)
    data_url = f"data:{mime_type};base64,{base64.b64encode(content).decode('ascii')}"
    return {"signature": DecryptedSignature(mime_type=mime_type, data_url=data_url).model_dump(by_alias=True)}


@router.delete("")
def delete_signature(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not SignatureAssetService.delete(db, current_user.id):
        raise HTTPException(status.HTTP_404_NOT_FOUND, {"message": "No tienes una firma registrada", "code": "NOT_FOUND"})
    return {"message": "Firma eliminada"}
