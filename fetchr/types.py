from __future__ import annotations

from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from fetchr.settings import settings

Credentials = Literal["omit", "same-origin", "include"]


class RetryConfig(BaseModel):
    """
    Retry behaviour of a logical request.

    A status code of ``0`` stands for failures that never produced a response
    (timeouts and network errors); include it in ``status_codes`` to retry them.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    max_retries: int = Field(
        default_factory=lambda: settings.max_retries,
        ge=0,
        validation_alias=AliasChoices("max_retries", "maxRetries"),
    )
    interval: float = Field(
        default_factory=lambda: settings.retry_interval,
        ge=0,
        description="Base interval in seconds for exponential backoff",
    )
    retry_on_post: bool = Field(
        default_factory=lambda: settings.retry_on_post,
        validation_alias=AliasChoices("retry_on_post", "retryOnPost"),
    )
    status_codes: frozenset[int] = Field(
        default_factory=lambda: frozenset(settings.retry_status_codes),
        validation_alias=AliasChoices("status_codes", "statusCodes"),
    )


class RequestOptions(BaseModel):
    """
    Options of one logical request.

    Example:
        RequestOptions(
            url="https://api.example.com/items",
            method="GET",
            timeout=1.5,
            retry={"max_retries": 2, "interval": 0.1, "status_codes": {0, 503}},
        )
    """

    model_config = ConfigDict(frozen=True)

    url: str
    method: str = "GET"
    headers: dict[str, str] = Field(default_factory=dict)
    body: str | bytes | None = None
    credentials: Credentials = "same-origin"
    timeout: float = Field(default_factory=lambda: settings.timeout, gt=0)
    retry: RetryConfig = Field(default_factory=RetryConfig)

    @field_validator("method")
    @classmethod
    def normalize_method(cls, v: str) -> str:
        """Upper-case the HTTP method so comparisons are case-insensitive."""
        return v.upper()
