import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, LargeBinary
from sqlalchemy.orm import relationship

from bitacora.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class ControlPoint(Base):
    __tablename__ = "control_points"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    location = Column(String, nullable=False, default="")

    photos = relationship("PhotoEntry", back_populates="control_point", order_by="PhotoEntry.position", cascade="all, delete-orphan")


class PhotoEntry(Base):
    __tablename__ = "photo_entries"

    id = Column(String(36), primary_key=True, default=_uuid)
    control_point_id = Column(String(36), ForeignKey("control_points.id"), nullable=False)
    position = Column(Integer, nullable=False)
    notes = Column(Text, nullable=True)
    date = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    file_name = Column(String, nullable=False)
    mime_type = Column(String, nullable=False)
    content = Column(LargeBinary, nullable=False)

    author_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    author = relationship("User")
    control_point = relationship("ControlPoint", back_populates="photos")

    @property
    def url(self) -> str:
        return f"/control-points/{self.control_point_id}/photos/{self.id}/content"
