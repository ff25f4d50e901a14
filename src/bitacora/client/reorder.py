import logging
from typing import Optional, Sequence, Tuple

from bitacora.client.api import ControlPointsApi
from bitacora.client.capabilities import Capabilities
from bitacora.client.errors import ClientError, InvalidInputError, OperationInProgressError
from bitacora.client.models import ControlPoint, Photo
from bitacora.client.notices import NoticeBoard
from bitacora.client.results import OperationResult, fail
from bitacora.client.scope import ViewScope
from bitacora.client.uploads import PHOTO_FILE_TYPES, FileSelection
from bitacora.config import get_settings
from bitacora.permissions import EDIT_CONTENT

logger = logging.getLogger(__name__)


def move(items: Sequence, from_index: int, to_index: int) -> tuple:
    result = list(items)
    result.insert(to_index, result.pop(from_index))
    return tuple(result)


class ReorderableCollection:
    """
    Línea de tiempo de fotos de un punto de control.

    ``items`` is always either the last order confirmed by the server or one
    pending permutation of it. No second reorder starts while one is in flight.
    """

    def __init__(self, point: ControlPoint, api: ControlPointsApi, capabilities: Capabilities,
                 notices: NoticeBoard, scope: Optional[ViewScope] = None,
                 selection: Optional[FileSelection] = None):
        self.owner_id = point.id
        self.api = api
        self.capabilities = capabilities
        self.notices = notices
        self.scope = scope or ViewScope(point.id)
        self.selection = selection or FileSelection(
            supports_multiple_files=get_settings().photo_upload_multiple,
            allowed_types=PHOTO_FILE_TYPES,
        )
        self.point = point
        self._confirmed: Tuple[Photo, ...] = tuple(point.photos)
        self._visible: Tuple[Photo, ...] = self._confirmed
        self.focused_id: Optional[str] = None
        self.busy = False

    @property
    def items(self) -> Tuple[Photo, ...]:
        return self._visible

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(p.id for p in self._visible)

    @property
    def confirmed_ids(self) -> Tuple[str, ...]:
        return tuple(p.id for p in self._confirmed)

    @property
    def pending(self) -> bool:
        return self._visible != self._confirmed

    @property
    def focused_index(self) -> Optional[int]:
        if self.focused_id is None:
            return None
        ids = self.ids
        return ids.index(self.focused_id) if self.focused_id in ids else None

    def focus(self, index: Optional[int]):
        self.focused_id = self._visible[index].id if index is not None else None

    async def reorder(self, from_index: int, to_index: int) -> OperationResult[Tuple[Photo, ...]]:
        title = "No se pudo reordenar las fotos"
        try:
            self.capabilities.require(EDIT_CONTENT)
            if self.busy:
                raise OperationInProgressError("Espera a que termine el reordenamiento anterior", code="IN_PROGRESS")
            size = len(self._visible)
            if not (0 <= from_index < size and 0 <= to_index < size):
                raise InvalidInputError("Posición fuera de rango", code="VALIDATION_ERROR")
            if from_index == to_index:
                raise InvalidInputError("La foto ya está en esa posición", code="VALIDATION_ERROR")
        except ClientError as e:
            return fail(self.notices, title, e)

        # Optimista: se muestra el nuevo orden de inmediato
        self._visible = move(self._visible, from_index, to_index)
        self.busy = True
        try:
            point = await self.api.reorder(self.owner_id, self.ids)
        except ClientError as e:
            if not self.scope.active:
                return OperationResult.failure(e, applied=False)
            self._visible = self._confirmed
            logger.warning("Reorder of %s rolled back: %s", self.owner_id, e.message)
            return fail(self.notices, title, e)
        finally:
            self.busy = False

        if not self.scope.active:
            return OperationResult.success(tuple(point.photos), applied=False)
        self._adopt(point)
        logger.info("Reorder of %s confirmed (%d photos)", self.owner_id, len(self._confirmed))
        return OperationResult.success(self._visible)

    async def add_photos(self, notes: str = "") -> OperationResult[Tuple[Photo, ...]]:
        """Sube las fotos seleccionadas. They appear only once the server returns them."""
        title = "No se pudieron subir las fotos"
        try:
            self.capabilities.require(EDIT_CONTENT)
            if self.busy:
                raise OperationInProgressError("Espera a que termine la operación anterior", code="IN_PROGRESS")
            files = self.selection.require_files()
        except ClientError as e:
            return fail(self.notices, title, e)

        self.busy = True
        try:
            point = await self.api.add_photos(self.owner_id, files, notes)
        except ClientError as e:
            return fail(self.notices, title, e)
        finally:
            self.busy = False

        if not self.scope.active:
            return OperationResult.success(tuple(point.photos), applied=False)
        self.selection.clear()
        self._adopt(point)
        notice = self.notices.success("Fotos agregadas", f"{len(files)} foto(s) agregada(s) a {point.name}")
        return OperationResult.success(self._visible, notice)

    async def sync(self) -> OperationResult[Tuple[Photo, ...]]:
        """Vuelve a leer el orden del servidor."""
        if self.busy:
            return fail(self.notices, "No se pudo actualizar",
                        OperationInProgressError("Hay una operación en curso", code="IN_PROGRESS"))
        try:
            point = await self.api.get(self.owner_id)
        except ClientError as e:
            return fail(self.notices, "No se pudo actualizar", e)
        if self.scope.active:
            self._adopt(point)
        return OperationResult.success(tuple(point.photos), applied=self.scope.active)

    def _adopt(self, point: ControlPoint):
        self.point = point
        self._confirmed = tuple(point.photos)
        self._visible = self._confirmed
        if self.focused_id is not None and self.focused_id not in self.ids:
            self.focused_id = None
