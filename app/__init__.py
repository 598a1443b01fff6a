"""Judge orchestrator API.

``app.app`` resolves to the FastAPI application on first access so that
configuration and migrations can import ``app.core`` without building it."""

from __future__ import annotations

__all__ = ["app"]


def __getattr__(name: str):
    if name == "app":
        from .main import app as fastapi_app
        return fastapi_app
    raise AttributeError(f"module {__name__} has no attribute {name!r}")
