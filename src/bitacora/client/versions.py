import logging
from typing import Any, Dict, Optional

from bitacora.client.api import DocumentsApi
from bitacora.client.capabilities import Capabilities
from bitacora.client.errors import ClientError, InvalidInputError
from bitacora.client.models import Document, DocumentKind, VersionSummary
from bitacora.client.notices import NoticeBoard
from bitacora.client.results import OperationResult, fail
from bitacora.permissions import EDIT_CONTENT

logger = logging.getLogger(__name__)

# Campos que una nueva versión puede cambiar respecto de la base
VERSION_FIELDS = {"title": "title", "period": "period", "summary": "summary",
                  "required_signatory_ids": "requiredSignatoryIds", "commitments": "commitments"}


def next_version_hint(document: Document) -> int:
    """Número que probablemente tendrá la próxima versión. Display only."""
    return document.version + 1


def derives_from(document: Document) -> Optional[VersionSummary]:
    if document.previous_report_id is None:
        return None
    return next((v for v in document.versions if v.id == document.previous_report_id), None)


class VersionChain:
    """Resolves current and historical versions of one kind of document.

    Every version shown is fetched by id from the server; the ``versions``
    list a client already holds may be behind the server's head.
    """

    def __init__(self, api: DocumentsApi, kind: DocumentKind, capabilities: Capabilities, notices: NoticeBoard):
        self.api = api
        self.kind = kind
        self.capabilities = capabilities
        self.notices = notices

    async def current(self, document_id: str) -> OperationResult[Document]:
        try:
            document = await self.api.get(self.kind, document_id)
            if not document.is_head:
                document = await self.api.get(self.kind, document.head.id)
        except ClientError as e:
            return fail(self.notices, "No se pudo cargar el documento", e)
        return OperationResult.success(document)

    async def select_version(self, version_id: str) -> OperationResult[Document]:
        """Fetches exactly ``version_id``. A failure never falls back to another version."""
        try:
            document = await self.api.get(self.kind, version_id)
        except ClientError as e:
            return fail(self.notices, "No se pudo cargar la versión", e)
        return OperationResult.success(document)

    async def ancestor(self, document: Document) -> OperationResult[Document]:
        if document.previous_report_id is None:
            return fail(self.notices, "Sin versión anterior",
                        InvalidInputError(f"{document.number} v{document.version} es la primera versión"))
        return await self.select_version(document.previous_report_id)

    async def create_new_version(self, base: Document, changes: Optional[Dict[str, Any]] = None) -> OperationResult[Document]:
        """
        Crea una nueva versión a partir de ``base``.

        ``base`` is not modified. The new id and version number are taken from
        the server response, never computed here.
        """
        try:
            self.capabilities.require(EDIT_CONTENT)
            payload = self._payload(changes or {})
        except ClientError as e:
            return fail(self.notices, "No se pudo crear la versión", e)

        try:
            created = await self.api.create_version(self.kind, base.id, payload)
        except ClientError as e:
            return fail(self.notices, "No se pudo crear la versión", e)

        logger.info("Created %s %s v%s from v%s", self.kind.value, created.number, created.version, base.version)
        notice = self.notices.success(
            "Nueva versión creada", f"{created.number} v{created.version} creada a partir de v{base.version}"
        )
        return OperationResult.success(created, notice)

    @staticmethod
    def _payload(changes: Dict[str, Any]) -> Dict[str, Any]:
        unknown = set(changes) - set(VERSION_FIELDS)
        if unknown:
            raise InvalidInputError(f"Campos no editables en una nueva versión: {', '.join(sorted(unknown))}")
        return {VERSION_FIELDS[name]: value for name, value in changes.items()}
