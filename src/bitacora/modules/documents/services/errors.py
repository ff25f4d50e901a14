from typing import Optional


class DocumentError(Exception):
    """Base for document rule violations. Carries the HTTP status and error code."""
    status_code = 400
    code: Optional[str] = None

    def __init__(self, message: str, code: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code


class DocumentNotFound(DocumentError):
    status_code = 404
    code = "NOT_FOUND"


class DocumentStateError(DocumentError):
    """Exception for document state transition errors"""
    status_code = 409
    code = "INVALID_TRANSITION"


class StaleVersionError(DocumentError):
    status_code = 409
    code = "STALE_VERSION"


class SignatureError(DocumentError):
    pass


class CommitmentError(DocumentError):
    pass
