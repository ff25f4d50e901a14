import logging
from typing import Optional

from bitacora.client.api import SignatureAssetApi
from bitacora.client.errors import ClientError, InvalidInputError
from bitacora.client.models import RevealedSignature, SignatureAssetMeta
from bitacora.client.notices import NoticeBoard
from bitacora.client.results import OperationResult, fail
from bitacora.client.scope import InFlight, ViewScope
from bitacora.client.uploads import SIGNATURE_FILE_TYPES, FileSelection, SelectedFile
from bitacora.config import get_settings

logger = logging.getLogger(__name__)


class PersonalSignatureStore:
    """
    Firma manuscrita personal del usuario.

    Only metadata is cached. Decrypted content lives in ``revealed`` until the
    view is closed or the metadata is reloaded; each reveal asks for the
    password again.
    """

    def __init__(self, api: SignatureAssetApi, notices: NoticeBoard, selection: Optional[FileSelection] = None):
        self.api = api
        self.notices = notices
        self.selection = selection or FileSelection(
            supports_multiple_files=False,
            allowed_types=SIGNATURE_FILE_TYPES,
            max_bytes=get_settings().signature_max_bytes,
        )
        self.in_flight = InFlight()
        self.metadata: Optional[SignatureAssetMeta] = None
        self._scope: Optional[ViewScope] = None
        self.confirming_removal = False
        self._revealed: Optional[RevealedSignature] = None

    @property
    def has_signature(self) -> bool:
        return self.metadata is not None

    @property
    def is_open(self) -> bool:
        return self._scope is not None and self._scope.active

    @property
    def revealed(self) -> Optional[RevealedSignature]:
        return self._revealed

    async def open(self) -> OperationResult[Optional[SignatureAssetMeta]]:
        # Cada apertura es una vista nueva; lo pedido en una anterior no se muestra aquí
        if self._scope is not None:
            self._scope.close()
        self._scope = ViewScope("signature")
        return await self.load()

    def close(self):
        if self._scope is not None:
            self._scope.close()
        self.confirming_removal = False
        self._revealed = None
        self.selection.clear()

    async def load(self) -> OperationResult[Optional[SignatureAssetMeta]]:
        self._revealed = None
        try:
            self.metadata = await self.api.fetch()
        except ClientError as e:
            return fail(self.notices, "No se pudo cargar tu firma", e)
        return OperationResult.success(self.metadata)

    def select_file(self, file: SelectedFile) -> OperationResult[SelectedFile]:
        try:
            self.selection.select(file)
        except ClientError as e:
            return fail(self.notices, "Archivo no válido", e)
        return OperationResult.success(file)

    async def upload(self, password: str) -> OperationResult[SignatureAssetMeta]:
        title = "No se pudo guardar tu firma"
        try:
            files = self.selection.require_files()
            if len(files) != 1:
                raise InvalidInputError("Selecciona un solo archivo de firma", code="VALIDATION_ERROR")
            file = files[0]
            if not password or not password.strip():
                raise InvalidInputError("Debes ingresar tu contraseña para proteger tu firma", code="PASSWORD_REQUIRED")
            with self.in_flight.hold("upload"):
                self.metadata = await self.api.upload(file, password)
        except ClientError as e:
            return fail(self.notices, title, e)

        self._revealed = None
        self.selection.clear()
        logger.info("Signature asset uploaded (%s, %d bytes)", self.metadata.mime_type, self.metadata.size)
        notice = self.notices.success("Firma guardada", "Tu firma manuscrita se guardó y encriptó correctamente.")
        return OperationResult.success(self.metadata, notice)

    async def decrypt(self, password: str) -> OperationResult[RevealedSignature]:
        title = "No se pudo mostrar tu firma"
        try:
            if not password:
                raise InvalidInputError("Debes ingresar tu contraseña", code="PASSWORD_REQUIRED")
            if self.metadata is None:
                raise InvalidInputError("No tienes una firma registrada", code="NOT_FOUND")
            scope = self._scope
            with self.in_flight.hold("decrypt"):
                revealed = await self.api.decrypt(password)
        except ClientError as e:
            return fail(self.notices, title, e)

        if scope is None or not scope.active:
            # La vista se cerró (o se reabrió) mientras se descifraba
            return OperationResult.success(None, applied=False)
        self._revealed = revealed
        return OperationResult.success(revealed)

    def hide(self):
        self._revealed = None

    def request_removal(self) -> OperationResult[None]:
        if self.metadata is None:
            return fail(self.notices, "No se puede eliminar",
                        InvalidInputError("No tienes una firma registrada", code="NOT_FOUND"))
        self.confirming_removal = True
        return OperationResult.success()

    def cancel_removal(self):
        self.confirming_removal = False

    async def confirm_removal(self) -> OperationResult[None]:
        """Elimina la firma. Irreversible; only after request_removal()."""
        title = "No se pudo eliminar tu firma"
        try:
            if not self.confirming_removal:
                raise InvalidInputError("Confirma primero que deseas eliminar tu firma", code="CONFIRMATION_REQUIRED")
            with self.in_flight.hold("delete"):
                await self.api.delete()
        except ClientError as e:
            return fail(self.notices, title, e)

        self.confirming_removal = False
        self.metadata = None
        self._revealed = None
        logger.info("Signature asset removed")
        return OperationResult.success(notice=self.notices.success("Firma eliminada", "Tu firma fue eliminada"))
