from typing import List

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status
from sqlalchemy.orm import Session

from bitacora.database import get_db
from bitacora.modules.auth.dependencies import get_current_user, require_permission
from bitacora.modules.documents.models.user import User
from bitacora.modules.photos.models.schemas import ControlPointCreate, ControlPointResponse, PhotoOrderRequest
from bitacora.modules.photos.services.photo_service import PhotoOrderError, PhotoService
from bitacora.permissions import EDIT_CONTENT

router = APIRouter(prefix="/control-points", tags=["control-points"])


def http_error(e: PhotoOrderError) -> HTTPException:
    return HTTPException(e.status_code, {"message": e.message, "code": e.code})


@router.post("", response_model=ControlPointResponse, status_code=status.HTTP_201_CREATED)
def create_control_point(
    payload: ControlPointCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(EDIT_CONTENT)),
):
    return PhotoService.create_control_point(db, payload.name, payload.description, payload.location)


@router.get("/{point_id}", response_model=ControlPointResponse)
def get_control_point(
    point_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return PhotoService.get_control_point(db, point_id)
    except PhotoOrderError as e:
        raise http_error(e)


@router.post("/{point_id}/photos", response_model=ControlPointResponse)
async def add_photos(
    point_id: str,
    files: List[UploadFile] = File(...),
    notes: str = Form(""),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(EDIT_CONTENT)),
):
    uploads = [(f.filename or "foto", f.content_type or "", await f.read()) for f in files]
    try:
        point = PhotoService.get_control_point(db, point_id)
        return PhotoService.add_photos(db, point, current_user.id, uploads, notes or None)
    except PhotoOrderError as e:
        raise http_error(e)


@router.put("/{point_id}/photos/order", response_model=ControlPointResponse)
def reorder_photos(
    point_id: str,
    payload: PhotoOrderRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(EDIT_CONTENT)),
):
    """
    Guarda el nuevo orden y devuelve el orden canónico del servidor.
    """
    try:
        point = PhotoService.get_control_point(db, point_id)
        return PhotoService.reorder(db, point, payload.photo_ids)
    except PhotoOrderError as e:
        raise http_error(e)


@router.get("/{point_id}/photos/{photo_id}/content")
def get_photo_content(
    point_id: str,
    photo_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        photo = PhotoService.get_photo(db, point_id, photo_id)
    except PhotoOrderError as e:
        raise http_error(e)
    return Response(content=photo.content, media_type=photo.mime_type)
