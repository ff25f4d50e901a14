import asyncio
import logging
from datetime import date
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple

from bitacora.client.api import DocumentsApi
from bitacora.client.capabilities import Capabilities
from bitacora.client.errors import ClientError, InvalidInputError
from bitacora.client.models import Commitment, CommitmentStatus
from bitacora.client.notices import NoticeBoard
from bitacora.client.results import OperationResult, fail
from bitacora.permissions import EDIT_CONTENT

logger = logging.getLogger(__name__)

DUE_SOON_DAYS = 3


class DueState(str, Enum):
    COMPLETED = "completed"
    OVERDUE = "overdue"
    DUE_SOON = "due_soon"
    ON_TRACK = "on_track"


def due_state(commitment: Commitment, today: Optional[date] = None) -> DueState:
    if commitment.is_completed:
        return DueState.COMPLETED
    days_left = (commitment.due_date - (today or date.today())).days
    if days_left < 0:
        return DueState.OVERDUE
    if days_left <= DUE_SOON_DAYS:
        return DueState.DUE_SOON
    return DueState.ON_TRACK


class CommitmentUpdateReport:
    """Resultado de guardar los compromisos modificados, uno por llamada."""

    def __init__(self, succeeded: Tuple[str, ...] = (), failed: Optional[Dict[str, ClientError]] = None):
        self.succeeded = succeeded
        self.failed = failed or {}

    @property
    def attempted(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed

    def summary(self) -> str:
        if self.ok:
            return f"{len(self.succeeded)} compromiso(s) actualizado(s)"
        errors = "; ".join(f"{cid}: {e.message}" for cid, e in self.failed.items())
        return f"{len(self.failed)} de {self.attempted} compromiso(s) no se guardaron ({errors})"


class CommitmentTracker:
    """
    Estado local de los compromisos de un acta.

    ``toggle`` only changes local state. Saving sends one update per
    commitment whose status differs from the last server-confirmed list.
    A failed update keeps the local status, so it stays pending and is
    sent again on the next save.
    """

    def __init__(self, document_id: str, commitments: Iterable[Commitment], api: DocumentsApi,
                 capabilities: Capabilities, notices: NoticeBoard):
        self.document_id = document_id
        self.api = api
        self.capabilities = capabilities
        self.notices = notices
        self._confirmed: Tuple[Commitment, ...] = tuple(commitments)
        self._local: Tuple[Commitment, ...] = self._confirmed

    @property
    def items(self) -> Tuple[Commitment, ...]:
        return self._local

    @property
    def confirmed(self) -> Tuple[Commitment, ...]:
        return self._confirmed

    def get(self, commitment_id: str) -> Commitment:
        for c in self._local:
            if c.id == commitment_id:
                return c
        raise InvalidInputError(f"Compromiso {commitment_id} no existe en este documento", code="NOT_FOUND")

    def toggle(self, commitment_id: str) -> OperationResult[Commitment]:
        try:
            self.capabilities.require(EDIT_CONTENT)
            current = self.get(commitment_id)
        except ClientError as e:
            return fail(self.notices, "No se pudo cambiar el compromiso", e)

        updated = current.model_copy(update={"status": current.status.toggled()})
        self._local = tuple(updated if c.id == commitment_id else c for c in self._local)
        return OperationResult.success(updated)

    def pending_changes(self) -> Tuple[Tuple[str, CommitmentStatus], ...]:
        confirmed = {c.id: c.status for c in self._confirmed}
        return tuple((c.id, c.status) for c in self._local if confirmed.get(c.id) != c.status)

    @property
    def dirty(self) -> bool:
        return bool(self.pending_changes())

    async def flush(self) -> CommitmentUpdateReport:
        """Envía los cambios pendientes. Each call succeeds or fails on its own."""
        self.capabilities.require(EDIT_CONTENT)
        changes = self.pending_changes()
        if not changes:
            return CommitmentUpdateReport()

        results = await asyncio.gather(
            *(self.api.update_commitment(self.document_id, cid, status) for cid, status in changes),
            return_exceptions=True,
        )

        succeeded, failed = [], {}
        for (cid, status), result in zip(changes, results):
            if isinstance(result, ClientError):
                failed[cid] = result
            elif isinstance(result, BaseException):
                raise result
            else:
                succeeded.append(cid)
                self._confirm(cid, status)

        report = CommitmentUpdateReport(tuple(succeeded), failed)
        if failed:
            logger.warning("Document %s: %s", self.document_id, report.summary())
        else:
            logger.info("Document %s: %s", self.document_id, report.summary())
        return report

    def _confirm(self, commitment_id: str, status: CommitmentStatus):
        self._confirmed = tuple(
            c.model_copy(update={"status": status}) if c.id == commitment_id else c for c in self._confirmed
        )

    def rebase(self, commitments: Iterable[Commitment]):
        """Adopta la lista del servidor conservando los cambios locales aún no guardados."""
        pending = dict(self.pending_changes())
        self._confirmed = tuple(commitments)
        self._local = tuple(
            c.model_copy(update={"status": pending[c.id]}) if c.id in pending else c for c in self._confirmed
        )

    def discard_changes(self):
        self._local = self._confirmed

    async def send_reminder(self, commitment_id: str) -> OperationResult[str]:
        try:
            self.capabilities.require(EDIT_CONTENT)
            commitment = self.get(commitment_id)
            if commitment.is_completed:
                raise InvalidInputError("El compromiso ya está completado", code="VALIDATION_ERROR")
            response = await self.api.send_commitment_reminder(self.document_id, commitment_id)
        except ClientError as e:
            return fail(self.notices, "No se pudo enviar el recordatorio", e)

        notice = self.notices.success(
            "Recordatorio enviado", f"Se notificó a {commitment.responsible.full_name}"
        )
        return OperationResult.success(response.get("message", ""), notice)
