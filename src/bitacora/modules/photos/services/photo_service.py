import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from bitacora.modules.photos.models.control_point import ControlPoint, PhotoEntry

logger = logging.getLogger(__name__)

ALLOWED_PHOTO_TYPES = {"image/png", "image/jpeg", "image/webp"}


class PhotoOrderError(Exception):
    """Exception for photo ordering and upload errors"""

    def __init__(self, message: str, code: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


class PhotoService:

    @staticmethod
    def get_control_point(session: Session, point_id: str) -> ControlPoint:
        point = session.get(ControlPoint, point_id)
        if point is None:
            raise PhotoOrderError("Punto de control no encontrado", "NOT_FOUND", 404)
        return point

    @staticmethod
    def create_control_point(session: Session, name: str, description: str, location: str) -> ControlPoint:
        point = ControlPoint(name=name, description=description, location=location)
        session.add(point)
        session.commit()
        return point

    @staticmethod
    def add_photos(session: Session, point: ControlPoint, author_id: int,
                   files: List[Tuple[str, str, bytes]], notes: Optional[str] = None) -> ControlPoint:
        """Appends the uploaded photos at the end of the timeline."""
        if not files:
            raise PhotoOrderError("Debes seleccionar al menos una foto", "VALIDATION_ERROR", 422)
        next_position = max((p.position for p in point.photos), default=-1) + 1
        for filename, content_type, content in files:
            if content_type not in ALLOWED_PHOTO_TYPES:
                raise PhotoOrderError(f"Formato no permitido: {filename}", "UNSUPPORTED_TYPE")
            point.photos.append(PhotoEntry(
                position=next_position,
                notes=notes,
                file_name=filename,
                mime_type=content_type,
                content=content,
                author_id=author_id,
            ))
            next_position += 1
        session.commit()
        session.refresh(point)
        return point

    @staticmethod
    def reorder(session: Session, point: ControlPoint, photo_ids: List[str]) -> ControlPoint:
        """
        Persiste un nuevo orden. The list must be a permutation of the point's current photos.
        """
        current = [p.id for p in point.photos]
        if len(photo_ids) != len(set(photo_ids)) or sorted(photo_ids) != sorted(current):
            raise PhotoOrderError(
                "El orden enviado no coincide con las fotos del punto de control",
                "ORDER_MISMATCH",
                409,
            )
        by_id = {p.id: p for p in point.photos}
        for position, photo_id in enumerate(photo_ids):
            by_id[photo_id].position = position
        session.commit()
        session.expire(point, ["photos"])
        logger.info("Reordered %d photos of control point %s", len(photo_ids), point.id)
        return point

    @staticmethod
    def get_photo(session: Session, point_id: str, photo_id: str) -> PhotoEntry:
        photo = session.get(PhotoEntry, photo_id)
        if photo is None or photo.control_point_id != point_id:
            raise PhotoOrderError("Foto no encontrada", "NOT_FOUND", 404)
        return photo
