# Filename: treedrive/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from pathlib import Path
from typing import Literal


class Settings(BaseSettings):
    # Core
    debug: bool = False
    app_name: str = "TreeDrive"
    app_version: str = "0.1.0"

    secret_key: str = Field(..., description="JWT secret key - required")
    access_token_expire_minutes: int = 1440
    jwt_algorithm: str = "HS256"

    database_url: str = Field(..., description="Database connection string")

    # per-user trees live under storage_path/files/<user id>
    storage_path: Path = Path("./data")
    max_upload_size_mb: int = 500
    preview_max_bytes: int = 1024 * 1024

    cors_allow_origins: str = "*"
    cors_allow_credentials: bool = True
    cors_allow_methods: str = "*"
    cors_allow_headers: str = "*"

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="TREEDRIVE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def files_root(self) -> Path:
        return self.storage_path / "files"

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024


settings = Settings()
