from typing import Iterable, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from bitacora.client.errors import InvalidInputError

SIGNATURE_FILE_TYPES = ("image/png", "image/jpeg", "application/pdf")
PHOTO_FILE_TYPES = ("image/png", "image/jpeg", "image/webp")


class SelectedFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

    def as_upload(self) -> Tuple[str, bytes, str]:
        return self.name, self.content, self.content_type

    def __repr_args__(self):
        yield "name", self.name
        yield "content_type", self.content_type
        yield "size", self.size


class FileSelection:
    """Selector de archivos compartido por la firma personal y las fotos.

    ``supports_multiple_files`` decides whether one or several files can be
    picked at once; everything else is identical for both uploads.
    """

    def __init__(self, supports_multiple_files: bool = False,
                 allowed_types: Iterable[str] = (), max_bytes: Optional[int] = None):
        self.supports_multiple_files = supports_multiple_files
        self.allowed_types = tuple(allowed_types)
        self.max_bytes = max_bytes
        self._files: Tuple[SelectedFile, ...] = ()

    def select(self, *files: SelectedFile) -> Tuple[SelectedFile, ...]:
        """Replaces the current selection. Nothing is kept if any file is rejected."""
        if len(files) > 1 and not self.supports_multiple_files:
            raise InvalidInputError("Solo puedes seleccionar un archivo", code="VALIDATION_ERROR")
        for f in files:
            if self.allowed_types and f.content_type not in self.allowed_types:
                raise InvalidInputError(f"Formato no permitido: {f.name}", code="UNSUPPORTED_TYPE")
            if f.size == 0:
                raise InvalidInputError(f"El archivo {f.name} está vacío", code="EMPTY_FILE")
            if self.max_bytes is not None and f.size > self.max_bytes:
                raise InvalidInputError(
                    f"{f.name} supera el tamaño máximo de {self.max_bytes // 1024} KB", code="FILE_TOO_LARGE"
                )
        self._files = tuple(files)
        return self._files

    def clear(self):
        self._files = ()

    @property
    def files(self) -> Tuple[SelectedFile, ...]:
        return self._files

    @property
    def is_empty(self) -> bool:
        return not self._files

    def require_files(self) -> Tuple[SelectedFile, ...]:
        if not self._files:
            raise InvalidInputError("Debes seleccionar un archivo", code="VALIDATION_ERROR")
        return self._files
