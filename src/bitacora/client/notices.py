from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class NoticeLevel(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Notice(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: NoticeLevel
    title: str
    message: str
    code: Optional[str] = None
    retryable: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class NoticeBoard:
    """Mensajes visibles para el usuario, en orden de publicación."""

    def __init__(self):
        self._notices: List[Notice] = []

    def publish(self, level: NoticeLevel, title: str, message: str,
                code: Optional[str] = None, retryable: bool = False) -> Notice:
        notice = Notice(level=level, title=title, message=message, code=code, retryable=retryable)
        self._notices.append(notice)
        return notice

    def success(self, title: str, message: str) -> Notice:
        return self.publish(NoticeLevel.SUCCESS, title, message)

    def info(self, title: str, message: str) -> Notice:
        return self.publish(NoticeLevel.INFO, title, message)

    def warning(self, title: str, message: str, code: Optional[str] = None) -> Notice:
        return self.publish(NoticeLevel.WARNING, title, message, code=code)

    def error(self, title: str, error) -> Notice:
        # El mensaje del servidor se muestra tal cual
        level = NoticeLevel.WARNING if error.category in ("authorization", "validation", "conflict") else NoticeLevel.ERROR
        return self.publish(level, title, error.message, code=error.code, retryable=error.retryable)

    @property
    def notices(self) -> Tuple[Notice, ...]:
        return tuple(self._notices)

    @property
    def latest(self) -> Optional[Notice]:
        return self._notices[-1] if self._notices else None

    def clear(self):
        self._notices.clear()

    def __len__(self):
        return len(self._notices)
