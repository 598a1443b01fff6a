from __future__ import annotations

from typing import Optional

from app.core.config import get_settings


class QuotaError(ValueError):
    pass


def enforce_source_length(source: str, limit: Optional[int] = None) -> None:
    max_chars = limit if limit is not None else get_settings().max_code_length
    if not source or not source.strip():
        raise QuotaError("missing_source: code must not be empty")
    if len(source) > max_chars:
        raise QuotaError(f"payload_too_large: code exceeds maximum length of {max_chars} characters")


__all__ = ["enforce_source_length", "QuotaError"]
