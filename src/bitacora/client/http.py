import logging
from typing import Any, Optional

import httpx

from bitacora.client.errors import (
    AlreadySignedError, ApiError, ClientError, NetworkError, NotAuthorizedError,
    StaleReferenceError, WrongSecretError,
)
from bitacora.config import get_settings

logger = logging.getLogger(__name__)

USER_HEADER = "X-User-Id"


def error_from_response(response: httpx.Response) -> ClientError:
    """Convierte una respuesta de error en la excepción del cliente que corresponde."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        body = {}
    message = body.get("message") or response.reason_phrase or f"Error {response.status_code}"
    code = body.get("code")
    kwargs = {"code": code, "status_code": response.status_code, "details": body.get("details")}

    if code == "ALREADY_SIGNED":
        return AlreadySignedError(message, **kwargs)
    if code == "WRONG_PASSWORD":
        return WrongSecretError(message, **kwargs)
    if code == "STALE_VERSION" or response.status_code == 404:
        return StaleReferenceError(message, **kwargs)
    if response.status_code in (401, 403):
        return NotAuthorizedError(message, **kwargs)
    return ApiError(message, **kwargs)


class ApiClient:
    """
    Cliente JSON sobre HTTP. Every non-success response raises a ClientError.
    """

    def __init__(self, base_url: Optional[str] = None, user_id: Optional[int] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None, timeout: Optional[float] = None):
        settings = get_settings()
        headers = {"Accept": "application/json"}
        if user_id is not None:
            headers[USER_HEADER] = str(user_id)
        self.user_id = user_id
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.api_url,
            headers=headers,
            timeout=timeout or settings.request_timeout,
            transport=transport,
        )

    async def request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise NetworkError("No se pudo conectar con el servidor") from e

        if response.is_success:
            logger.debug("%s %s -> %s", method, path, response.status_code)
            return response.json() if response.content else None

        error = error_from_response(response)
        logger.info("%s %s -> %s %s", method, path, response.status_code, error.code)
        raise error

    async def get(self, path: str, **kwargs) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def patch(self, path: str, **kwargs) -> Any:
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs) -> Any:
        return await self.request("DELETE", path, **kwargs)

    async def aclose(self):
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()
