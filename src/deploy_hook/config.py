"""Configuration management using Pydantic settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Required settings
    github_webhook_secret: str = Field(
        ...,
        min_length=1,
        description="Secret for validating GitHub webhook signatures",
    )

    # Optional settings
    github_webhook_hash_id: str | None = Field(
        default=None,
        description="Extra token that must match the hash_id query parameter when set",
    )
    github_host: str = Field(
        default="github.com",
        description="Host used to build the HTTPS and SSH repository URLs",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    # Server settings
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")

    # Deployer settings
    deployer_dir: Path = Field(
        default=Path("/home/admin/deployer"),
        description="Deployer installation holding vendor/bin/dep and deploy.php",
    )
    deployer_sites_file: Path | None = Field(
        default=None,
        description="JSON site table, defaults to sites.json in the deployer directory",
    )
    deployer_task: str = Field(
        default="derafu:deploy:single",
        description="Deployer task that deploys a single site",
    )
    deployer_log_file: Path = Field(
        default=Path("/var/log/deployer.log"),
        description="File receiving the output of background deployments",
    )
    deploy_mode: Literal["at", "detached", "sync"] = Field(
        default="at",
        description="How deployments are launched",
    )
    deploy_timeout: float = Field(
        default=600.0,
        description="Timeout in seconds for synchronous deployments",
    )

    @field_validator("github_webhook_hash_id", "deployer_sites_file", mode="before")
    @classmethod
    def _empty_as_unset(cls, value: object) -> object:
        """Treat an empty environment value as not set."""
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def sites_file(self) -> Path:
        """Resolved path of the site table."""
        return self.deployer_sites_file or self.deployer_dir / "sites.json"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()  # type: ignore[call-arg]
