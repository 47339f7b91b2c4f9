import os
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Virtual hosts discovery
    folder: str = Field(default_factory=os.getcwd)
    debug: bool = False
    scan_on_startup: bool = True

    # Status endpoints, served only on this host name when set
    admin_host: Optional[str] = None

    # Request security controls
    trusted_hosts: list[str] = []

    model_config = SettingsConfigDict(
        env_prefix="VHOSTS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("folder")
    @classmethod
    def validate_folder(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("VHOSTS_FOLDER must not be empty")
        return value

    @field_validator("admin_host")
    @classmethod
    def normalize_admin_host(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        normalized = value.strip().lower()
        return normalized or None


settings = Settings()
