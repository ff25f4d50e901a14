import logging
from typing import Generic, Optional, TypeVar

from bitacora.client.errors import ClientError
from bitacora.client.notices import Notice, NoticeBoard

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OperationResult(Generic[T]):
    """Outcome of a user-level operation.

    ``applied`` is false when the operation finished after its view was
    closed, in which case nothing local was mutated.
    """

    def __init__(self, ok: bool, value: Optional[T] = None, error: Optional[ClientError] = None,
                 notice: Optional[Notice] = None, applied: bool = True):
        self.ok = ok
        self.value = value
        self.error = error
        self.notice = notice
        self.applied = applied

    @classmethod
    def success(cls, value: Optional[T] = None, notice: Optional[Notice] = None, applied: bool = True):
        return cls(True, value=value, notice=notice, applied=applied)

    @classmethod
    def failure(cls, error: ClientError, notice: Optional[Notice] = None, applied: bool = True):
        return cls(False, error=error, notice=notice, applied=applied)

    def __bool__(self):
        return self.ok

    def __repr__(self):
        if self.ok:
            return f"OperationResult(ok=True, value={self.value!r})"
        return f"OperationResult(ok=False, error={self.error!r})"


def fail(notices: NoticeBoard, title: str, error: ClientError) -> OperationResult:
    """Publica el error y devuelve el resultado fallido."""
    logger.warning("%s: %s (%s)", title, error.message, error.code or error.category)
    return OperationResult.failure(error, notices.error(title, error))
