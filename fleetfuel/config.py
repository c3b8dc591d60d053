from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Request store
    database_url: str = "sqlite:///./fleetfuel.sqlite3"
    db_timeout_seconds: float = 5.0
    seed_vehicle_types: bool = True

    # Justification attachments
    blob_backend: str = "filesystem"
    attachments_dir: str = "./attachments"
    blob_base_url: str = "http://127.0.0.1:8002/v1/blobs"
    max_attachment_bytes: int = 5 * 1024 * 1024
    allowed_attachment_types: list[str] = ["image/jpeg", "image/png", "application/pdf"]

    # Identity
    allow_self_assigned_roles: bool = True

    # HTTP server
    host: str = "127.0.0.1"
    port: int = 8000

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_prefix="FLEETFUEL_")


@lru_cache
def get_settings() -> Settings:
    return Settings()
