"""Retry policy for fetchr requests."""

from __future__ import annotations

from .policy import RetryPolicy

__all__ = ["RetryPolicy"]
