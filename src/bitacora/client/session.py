import logging
from typing import Any, Dict, Optional

from bitacora.client.api import BitacoraApi
from bitacora.client.capabilities import Capabilities
from bitacora.client.commitments import CommitmentTracker
from bitacora.client.errors import ClientError, InvalidInputError
from bitacora.client.models import Document, DocumentKind
from bitacora.client.notices import NoticeBoard
from bitacora.client.results import OperationResult, fail
from bitacora.client.scope import InFlight, ViewScope
from bitacora.client.signing import ConsentPayload, SignatureConsentEngine
from bitacora.client.versions import VersionChain
from bitacora.permissions import EDIT_CONTENT

logger = logging.getLogger(__name__)


class DocumentSession:
    """
    Documento abierto en una vista.

    Holds the last server-confirmed record plus the local edits (status,
    summary, commitment toggles) until ``save()``. Historical versions are
    opened read-only.
    """

    def __init__(self, api: BitacoraApi, document: Document, capabilities: Capabilities,
                 notices: Optional[NoticeBoard] = None):
        self.api = api
        self.notices = notices if notices is not None else NoticeBoard()
        self.capabilities = capabilities if document.is_head else capabilities.as_read_only()
        self.scope = ViewScope(document.id)
        self.in_flight = InFlight()
        self._document = document
        self.draft_status: Optional[str] = None
        self.draft_summary: Optional[str] = None
        self.versions = VersionChain(api.documents, document.kind, self.capabilities, self.notices)
        self.commitments = CommitmentTracker(
            document.id, document.commitments, api.documents, self.capabilities, self.notices
        )
        self.signatures = SignatureConsentEngine(
            api.documents, self.capabilities, self.notices, scope=self.scope, in_flight=self.in_flight
        )

    @property
    def key(self) -> str:
        return self._document.id

    @property
    def kind(self) -> DocumentKind:
        return self._document.kind

    @property
    def document(self) -> Document:
        return self._document

    @property
    def read_only(self) -> bool:
        return self.capabilities.read_only

    @property
    def has_unsaved_changes(self) -> bool:
        return self.draft_status is not None or self.draft_summary is not None or self.commitments.dirty

    def _replace(self, document: Document):
        """Reconcilia con el registro del servidor."""
        self._document = document
        self.commitments.rebase(document.commitments)

    def edit_status(self, status: str) -> OperationResult[str]:
        try:
            self.capabilities.require(EDIT_CONTENT)
        except ClientError as e:
            return fail(self.notices, "No se pudo cambiar el estado", e)
        self.draft_status = None if status == self._document.status else status
        return OperationResult.success(status)

    def edit_summary(self, summary: str) -> OperationResult[str]:
        try:
            self.capabilities.require(EDIT_CONTENT)
        except ClientError as e:
            return fail(self.notices, "No se pudo editar el resumen", e)
        self.draft_summary = None if summary == self._document.summary else summary
        return OperationResult.success(summary)

    def toggle_commitment(self, commitment_id: str):
        return self.commitments.toggle(commitment_id)

    async def save(self) -> OperationResult[Document]:
        """
        Guarda los cambios: one PUT for status/summary when they changed, then
        one call per modified commitment.
        """
        title = "No se pudieron guardar los cambios"
        try:
            self.capabilities.require(EDIT_CONTENT)
            if not self.has_unsaved_changes:
                raise InvalidInputError("No hay cambios que guardar", code="NO_CHANGES")
        except ClientError as e:
            return fail(self.notices, title, e)

        try:
            with self.in_flight.hold("save", "Los cambios ya se están guardando"):
                if self.draft_status is not None or self.draft_summary is not None:
                    updated = await self.api.documents.update(
                        self.kind, self.key, status=self.draft_status, summary=self.draft_summary
                    )
                    if self.scope.active:
                        self.draft_status = None
                        self.draft_summary = None
                        self._replace(updated)
                report = await self.commitments.flush()
                if report.succeeded and self.scope.active:
                    self._document = self._document.model_copy(update={"commitments": self.commitments.confirmed})
        except ClientError as e:
            return fail(self.notices, title, e)

        if not report.ok:
            logger.warning("Save of %s partially failed: %s", self.key, report.summary())
            notice = self.notices.warning("Algunos compromisos no se guardaron", report.summary())
            first_error = next(iter(report.failed.values()))
            return OperationResult.failure(first_error, notice)

        notice = self.notices.success("Cambios guardados", f"{self._document.number} v{self._document.version}")
        return OperationResult.success(self._document, notice)

    async def sign(self, signer_id: int, password: str, consent: bool,
                   statement: Optional[str] = None) -> OperationResult[Document]:
        result = await self.signatures.request_signature(
            self._document, signer_id, ConsentPayload(password=password, consent=consent, statement=statement)
        )
        if result.ok and result.applied:
            self._replace(result.value)
        return result

    async def reload(self) -> OperationResult[Document]:
        try:
            document = await self.api.documents.get(self.kind, self.key)
        except ClientError as e:
            return fail(self.notices, "No se pudo recargar el documento", e)
        if self.scope.active:
            self._replace(document)
        return OperationResult.success(document, applied=self.scope.active)

    async def create_new_version(self, changes: Optional[Dict[str, Any]] = None) -> OperationResult[Document]:
        return await self.versions.create_new_version(self._document, changes)

    async def send_reminder(self, commitment_id: str):
        return await self.commitments.send_reminder(commitment_id)

    def close(self):
        self.scope.close()
        self.signatures.close_dialog(self.key)


class DocumentWorkspace:
    """Sesiones abiertas, una por id de documento."""

    def __init__(self, api: BitacoraApi, capabilities: Capabilities, notices: Optional[NoticeBoard] = None):
        self.api = api
        self.capabilities = capabilities
        self.notices = notices if notices is not None else NoticeBoard()
        self._sessions: Dict[str, DocumentSession] = {}

    def get(self, document_id: str) -> Optional[DocumentSession]:
        return self._sessions.get(document_id)

    async def open(self, kind: DocumentKind, document_id: str) -> OperationResult[DocumentSession]:
        """Abre un documento por id. A historical version opens read-only."""
        existing = self._sessions.get(document_id)
        if existing is not None:
            return OperationResult.success(existing)
        result = await self._chain(kind).select_version(document_id)
        if not result.ok:
            return OperationResult.failure(result.error, result.notice)
        return OperationResult.success(self._register(result.value))

    async def open_current(self, kind: DocumentKind, document_id: str) -> OperationResult[DocumentSession]:
        result = await self._chain(kind).current(document_id)
        if not result.ok:
            return OperationResult.failure(result.error, result.notice)
        existing = self._sessions.get(result.value.id)
        return OperationResult.success(existing or self._register(result.value))

    def _chain(self, kind: DocumentKind) -> VersionChain:
        return VersionChain(self.api.documents, kind, self.capabilities, self.notices)

    def _register(self, document: Document) -> DocumentSession:
        session = DocumentSession(self.api, document, self.capabilities, self.notices)
        self._sessions[document.id] = session
        return session

    def close(self, document_id: str):
        session = self._sessions.pop(document_id, None)
        if session is not None:
            session.close()
