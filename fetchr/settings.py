from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import DotEnvSettingsSource, PydanticBaseSettingsSource


class Settings(BaseSettings):
    """
    Global defaults for fetchr requests.

    Values are loaded from environment variables and seed the defaults of
    ``RequestOptions`` and ``RetryConfig`` whenever a caller leaves a field out.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="allow")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """
        Customize settings source precedence to include a user-level env file.

        Precedence (highest to lowest):
        - init_settings (explicit kwargs)
        - env_settings (process environment)
        - dotenv_settings (project .env)
        - user_dotenv_settings (~/.fetchr/.env)
        - file_secret_settings
        """

        user_env_path = Path.home() / ".fetchr" / ".env"
        user_dotenv_settings = DotEnvSettingsSource(
            settings_cls,
            env_file=user_env_path,
            env_file_encoding="utf-8",
        )

        return (
            init_settings,
            env_settings,
            dotenv_settings,
            user_dotenv_settings,
            file_secret_settings,
        )

    timeout: float = Field(
        default=3.0,
        gt=0,
        description="Per-attempt timeout in seconds",
        validation_alias="FETCHR_TIMEOUT",
    )

    max_retries: int = Field(
        default=0,
        ge=0,
        description="Retries allowed after the first attempt",
        validation_alias="FETCHR_MAX_RETRIES",
    )

    retry_interval: float = Field(
        default=0.2,
        ge=0,
        description="Base interval in seconds for exponential backoff",
        validation_alias="FETCHR_RETRY_INTERVAL",
    )

    retry_on_post: bool = Field(
        default=False,
        description="Allow retrying POST requests",
        validation_alias="FETCHR_RETRY_ON_POST",
    )

    retry_status_codes: list[int] = Field(
        default=[0, 408, 999],
        description="Statuses eligible for retry; 0 stands for timeouts and network errors",
        validation_alias="FETCHR_RETRY_STATUS_CODES",
    )


# Create a singleton instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings
