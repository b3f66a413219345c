"""Process-level settings: env-driven.

Centralized config using pydantic-settings.  Reads from a .env file and
SDKFORGE_* environment variables.  Per-workspace package pins live in
``sdkforge.yaml`` instead (see ``sdkforge.core.config_store``).
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class ForgeSettings(BaseSettings):
    """sdkforge settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export SDKFORGE_LOG_LEVEL=DEBUG
        export SDKFORGE_GLOBAL_DIRECTORY=/data/sdkforge-cache

    Or via .env file::

        SDKFORGE_NUGET_INDEX_URL=https://nuget.example.com/v3-flatcontainer
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SDKFORGE_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "WARNING"
    debug: bool = False

    # Workspace layout
    global_directory: Path = Path.home() / ".sdkforge"
    local_directory_name: str = ".sdkforge"
    config_file_name: str = "sdkforge.yaml"

    # Package registry
    nuget_index_url: str = "https://api.nuget.org/v3-flatcontainer"
    nuget_executable: str = "nuget"
    request_timeout_seconds: float = 30.0

    # Development certificate defaults
    default_certificate_name: str = "devcert.pfx"
    default_certificate_password: str = "password"
    default_certificate_valid_days: int = 365

    # Host tooling
    powershell_executable: str = "powershell"


# Module-level singleton: import as `from sdkforge.config import settings`
settings = ForgeSettings()
