from contextlib import contextmanager
from typing import Hashable, Set

from bitacora.client.errors import OperationInProgressError


class ViewScope:
    """Vida de la vista que originó una operación.

    Responses that arrive after ``close()`` must not touch local state.
    """

    def __init__(self, key: Hashable):
        self.key = key
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def close(self):
        self._active = False

    def __repr__(self):
        return f"ViewScope({self.key!r}, active={self._active})"


class InFlight:
    """Operaciones en curso, para no enviar dos veces la misma."""

    def __init__(self):
        self._keys: Set[Hashable] = set()

    def is_busy(self, key: Hashable) -> bool:
        return key in self._keys

    @property
    def any_busy(self) -> bool:
        return bool(self._keys)

    @contextmanager
    def hold(self, key: Hashable, message: str = "La operación ya está en curso"):
        if key in self._keys:
            raise OperationInProgressError(message, code="IN_PROGRESS")
        self._keys.add(key)
        try:
            yield
        finally:
            self._keys.discard(key)
