from datetime import datetime
from typing import List, Optional

from bitacora.modules.documents.models.schemas import CamelModel, UserRef


class PhotoResponse(CamelModel):
    id: str
    url: str
    date: datetime
    notes: Optional[str] = None
    author: UserRef


class ControlPointCreate(CamelModel):
    name: str
    description: str = ""
    location: str = ""


class ControlPointResponse(CamelModel):
    id: str
    name: str
    description: str
    location: str
    photos: List[PhotoResponse] = []


class PhotoOrderRequest(CamelModel):
    photo_ids: List[str]
