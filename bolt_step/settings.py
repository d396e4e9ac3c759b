from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Workspace
    workdir: Path = Path("/workspace")

    # External commands
    bolt_command: str = "bolt"
    git_command: str = "git"
    ssh_command: str = "ssh"

    # Job spec and output service
    metadata_api_url: Optional[str] = None
    spec_file: Optional[Path] = None

    # HTTP
    download_timeout: int = 300

    # Logging / tracing
    log_level: str = "INFO"
    otel_exporter_otlp_endpoint: Optional[str] = None
    otel_service_name: str = "bolt-step"


def validate_environment() -> Settings:
    """
    Load settings and check that a job spec source is configured.

    Returns:
        Settings loaded from the environment

    Raises:
        ValueError: If neither METADATA_API_URL nor SPEC_FILE is set
    """
    settings = Settings()

    if not settings.metadata_api_url and not settings.spec_file:
        raise ValueError(
            "Missing required environment variables: set METADATA_API_URL or SPEC_FILE"
        )

    return settings
