"""Application error taxonomy and the FastAPI handlers that render it."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.common.quota import QuotaError

logger = logging.getLogger("app.errors")


class AppError(Exception):
    """Base error carrying an HTTP-equivalent status and a stable code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal_error"
    default_detail: str = "An unexpected error occurred"

    def __init__(
        self,
        detail: Optional[Union[str, Dict[str, Any]]] = None,
        *,
        debug_info: Optional[str] = None,
    ) -> None:
        self.detail = detail if detail is not None else self.default_detail
        # Backend bodies and similar diagnostics; only rendered in debug mode.
        self.debug_info = debug_info
        super().__init__(self.detail if isinstance(self.detail, str) else self.code)


class UnsupportedLanguage(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "unsupported_language"
    default_detail = "Unsupported language"


class ProblemNotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "problem_not_found"
    default_detail = "Problem not found"


class NoTestCases(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "no_test_cases"
    default_detail = "No test cases available for this problem"


class BackendUnavailable(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "backend_unavailable"
    default_detail = "Code execution service unavailable"


class InvalidResponse(AppError):
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "invalid_backend_response"
    default_detail = "Code execution service returned an invalid response"


class ExecutionTimeout(AppError):
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    code = "execution_timeout"
    default_detail = "Code execution did not finish in time"


class ReferenceSolutionRejected(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "reference_solution_rejected"
    default_detail = "Reference solution validation failed"


def _payload(code: str, detail: Any, debug_info: Optional[str] = None) -> Dict[str, Any]:
    from app.core.config import get_settings

    body: Dict[str, Any] = {"detail": detail, "code": code}
    if debug_info and get_settings().debug:
        body["debug"] = debug_info
    return body


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.info
    log("%s: %s (status=%d)", exc.code, exc.detail, exc.status_code)
    return JSONResponse(
        status_code=exc.status_code,
        content=_payload(exc.code, exc.detail, exc.debug_info),
    )


async def quota_error_handler(request: Request, exc: QuotaError) -> JSONResponse:
    logger.info("quota rejected request: %s", exc)
    code, _, message = str(exc).partition(": ")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_payload(code if message else "invalid_payload", message or str(exc)),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(QuotaError, quota_error_handler)


__all__ = [
    "AppError",
    "UnsupportedLanguage",
    "ProblemNotFound",
    "NoTestCases",
    "BackendUnavailable",
    "InvalidResponse",
    "ExecutionTimeout",
    "ReferenceSolutionRejected",
    "register_exception_handlers",
]
