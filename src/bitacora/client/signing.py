"""Firma de documentos con consentimiento explícito.

Each required signatory moves through::

    UNSIGNED -> CONSENT_GIVEN -> SIGNED
                              -> FAILED (dialog stays open, the user may retry)

Only the server decides whether a signature was applied. The engine never
appends a signature locally: the caller replaces its whole document with the
one the server returns.
"""
import logging
from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, SecretStr

from bitacora.client.api import DocumentsApi
from bitacora.client.capabilities import Capabilities
from bitacora.client.errors import AlreadySignedError, ClientError, InvalidInputError, OperationInProgressError
from bitacora.client.models import Document
from bitacora.client.notices import NoticeBoard
from bitacora.client.results import OperationResult, fail
from bitacora.client.scope import InFlight, ViewScope
from bitacora.config import get_settings
from bitacora.permissions import SIGN

logger = logging.getLogger(__name__)

SIGNATURE_PROGRESS_STEPS = (
    "Validando credenciales",
    "Aplicando firma",
    "Guardando documento",
)


class SignerState(str, Enum):
    UNSIGNED = "unsigned"
    CONSENT_GIVEN = "consent_given"
    SIGNED = "signed"
    FAILED = "failed"


class ConsentPayload(BaseModel):
    """Lo que el firmante afirma justo antes de firmar."""
    model_config = ConfigDict(frozen=True)

    password: SecretStr
    consent: bool = False
    statement: Optional[str] = None


class ConsentDialog:
    def __init__(self, document_id: str, signer_id: int, statement: str):
        self.document_id = document_id
        self.signer_id = signer_id
        self.statement = statement
        self.state = SignerState.UNSIGNED
        self.error: Optional[str] = None
        self.step: Optional[int] = None
        self.is_open = True

    @property
    def steps(self) -> Tuple[str, ...]:
        return SIGNATURE_PROGRESS_STEPS

    @property
    def current_step(self) -> Optional[str]:
        return SIGNATURE_PROGRESS_STEPS[self.step] if self.step is not None else None

    @property
    def submitting(self) -> bool:
        return self.state is SignerState.CONSENT_GIVEN


class SignatureConsentEngine:

    def __init__(self, api: DocumentsApi, capabilities: Capabilities, notices: NoticeBoard,
                 scope: Optional[ViewScope] = None, in_flight: Optional[InFlight] = None):
        self.api = api
        self.capabilities = capabilities
        self.notices = notices
        self.scope = scope
        self.in_flight = in_flight or InFlight()
        self._dialogs: Dict[str, ConsentDialog] = {}

    def dialog(self, document_id: str) -> Optional[ConsentDialog]:
        return self._dialogs.get(document_id)

    def open_dialog(self, document: Document, signer_id: int, statement: Optional[str] = None) -> ConsentDialog:
        """Abre el diálogo de consentimiento. There is at most one per document."""
        current = self._dialogs.get(document.id)
        if current is not None and current.is_open:
            if current.signer_id != signer_id:
                raise OperationInProgressError("Ya hay un diálogo de firma abierto para este documento")
            return current
        dialog = ConsentDialog(document.id, signer_id, statement or get_settings().default_consent_statement)
        self._dialogs[document.id] = dialog
        return dialog

    def close_dialog(self, document_id: str):
        dialog = self._dialogs.pop(document_id, None)
        if dialog is not None:
            dialog.is_open = False

    def signer_state(self, document: Document, signer_id: int) -> SignerState:
        if document.signature_for(signer_id) is not None:
            return SignerState.SIGNED
        dialog = self._dialogs.get(document.id)
        if dialog is not None and dialog.signer_id == signer_id:
            return dialog.state
        return SignerState.UNSIGNED

    async def request_signature(self, document: Document, signer_id: int,
                                consent: ConsentPayload) -> OperationResult[Document]:
        title = "No se pudo firmar el documento"
        try:
            self.capabilities.require(SIGN)
            password = consent.password.get_secret_value()
            if not consent.consent:
                raise InvalidInputError("Debes aceptar la declaración de consentimiento", code="CONSENT_REQUIRED")
            if not password.strip():
                raise InvalidInputError("Debes ingresar tu contraseña para firmar", code="VALIDATION_ERROR")
            dialog = self.open_dialog(document, signer_id, consent.statement)
        except ClientError as e:
            return fail(self.notices, title, e)

        statement = consent.statement or dialog.statement
        try:
            with self.in_flight.hold(("sign", document.id), "La firma ya se está procesando"):
                dialog.state = SignerState.CONSENT_GIVEN
                dialog.error = None
                dialog.step = 1
                try:
                    signed = await self.api.sign(document.kind, document.id, signer_id, password, statement)
                except ClientError as e:
                    if self._unmounted():
                        return OperationResult.failure(e, applied=False)
                    dialog.state = SignerState.FAILED
                    dialog.step = None
                    dialog.error = e.message
                    if isinstance(e, AlreadySignedError):
                        logger.info("Signer %s already signed document %s", signer_id, document.id)
                    return fail(self.notices, title, e)
        except OperationInProgressError as e:
            return fail(self.notices, title, e)

        if self._unmounted():
            return OperationResult.success(signed, applied=False)

        dialog.step = len(SIGNATURE_PROGRESS_STEPS) - 1
        dialog.state = SignerState.SIGNED
        self.close_dialog(document.id)
        logger.info("Document %s signed by %s; status %s", signed.id, signer_id, signed.status)
        notice = self.notices.success("Documento firmado", f"{signed.number} v{signed.version}: {signed.status}")
        return OperationResult.success(signed, notice)

    def _unmounted(self) -> bool:
        return self.scope is not None and not self.scope.active
