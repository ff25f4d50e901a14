from typing import Any, Optional


class ClientError(Exception):
    """Base of every failure surfaced by the client core.

    ``retryable`` is only true for transport failures: everything else needs
    the user to change something before trying again.
    """
    category = "server"
    retryable = False

    def __init__(self, message: str, code: Optional[str] = None,
                 status_code: Optional[int] = None, details: Any = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details


class NotAuthorizedError(ClientError):
    category = "authorization"


class InvalidInputError(ClientError):
    category = "validation"


class OperationInProgressError(ClientError):
    category = "validation"


class WrongSecretError(ClientError):
    """Contraseña incorrecta. Distinct from a transport failure."""
    category = "authentication"


class ApiError(ClientError):
    """The server answered with a non-success status."""


class NetworkError(ClientError):
    category = "transport"
    retryable = True


class StaleReferenceError(ApiError):
    category = "stale-reference"


class AlreadySignedError(ApiError):
    """Otro intento ya registró la firma de este firmante."""
    category = "conflict"
