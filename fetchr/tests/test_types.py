"""Tests for request option models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from fetchr.settings import settings
from fetchr.types import RequestOptions, RetryConfig


def test_defaults_come_from_settings():
    options = RequestOptions(url="https://api.test.com")

    assert options.method == "GET"
    assert options.headers == {}
    assert options.body is None
    assert options.credentials == "same-origin"
    assert options.timeout == settings.timeout
    assert options.retry.max_retries == settings.max_retries
    assert options.retry.interval == settings.retry_interval
    assert options.retry.retry_on_post is settings.retry_on_post
    assert options.retry.status_codes == frozenset(settings.retry_status_codes)


def test_method_is_upper_cased():
    assert RequestOptions(url="https://api.test.com", method="post").method == "POST"


def test_retry_accepts_camel_case():
    options = RequestOptions.model_validate(
        {
            "url": "https://api.test.com",
            "retry": {"maxRetries": 2, "interval": 0.1, "retryOnPost": True, "statusCodes": [503]},
        }
    )

    assert options.retry == RetryConfig(
        max_retries=2, interval=0.1, retry_on_post=True, status_codes={503}
    )


def test_options_are_immutable():
    options = RequestOptions(url="https://api.test.com")
    with pytest.raises(ValidationError):
        options.url = "https://other.test.com"  # type: ignore[misc]


@pytest.mark.parametrize(
    "data",
    [
        {"url": "https://api.test.com", "timeout": 0},
        {"url": "https://api.test.com", "credentials": "sometimes"},
        {"url": "https://api.test.com", "retry": {"max_retries": -1}},
        {"url": "https://api.test.com", "retry": {"interval": -0.5}},
        {"method": "GET"},
    ],
)
def test_invalid_options(data):
    with pytest.raises(ValidationError):
        RequestOptions.model_validate(data)


def test_bytes_body():
    options = RequestOptions(url="https://api.test.com", method="PUT", body=b"\x00\x01")
    assert options.body == b"\x00\x01"
