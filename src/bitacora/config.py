from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONSENT_STATEMENT = (
    "El usuario consiente el uso de su firma manuscrita digital para este documento."
)


class Settings(BaseSettings):
    # Backend
    database_url: str = "sqlite:///./bitacora.db"
    allowed_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    log_level: str = "INFO"
    seed_demo_data: bool = True

    # Client
    api_url: str = "http://localhost:8000"
    request_timeout: float = 30.0

    # Firma
    default_consent_statement: str = DEFAULT_CONSENT_STATEMENT
    signature_max_bytes: int = 2 * 1024 * 1024  # 2 MB
    signature_kdf_iterations: int = 390_000

    # Fotos: el mismo selector de archivos sirve para una o varias fotos
    photo_upload_multiple: bool = True

    model_config = SettingsConfigDict(
        env_prefix="BITACORA_",
        env_file=".env",
        extra="ignore",
    )

    def get_origins_list(self) -> List[str]:
        """Parse comma-separated origins into a list."""
        if not self.allowed_origins:
            return ["*"]
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
