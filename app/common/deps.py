"""Shared FastAPI dependencies for caller identity and service wiring."""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Header, HTTPException, Request, status
from pydantic import BaseModel

from app.core.config import get_settings
from app.features.judge0.service import Judge0Service
from app.features.problems.repository import problems_repository
from app.features.problems.service import ProblemValidationService
from app.features.profiles.repository import profile_repository
from app.features.profiles.streaks import StreakUpdater
from app.features.submissions.repository import submissions_repository
from app.features.submissions.service import SubmissionsService

logger = logging.getLogger("auth.deps")


class CurrentUser(BaseModel):
    """Minimal user identity shared across endpoints."""
    id: str


async def get_current_user(
    request: Request,
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
) -> CurrentUser:
    """Caller identity as asserted by the upstream auth gateway."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing user identity")
    current = CurrentUser(id=x_user_id.strip())
    request.state.user_id = current.id
    return current


@lru_cache()
def get_judge0_service() -> Judge0Service:
    return Judge0Service(get_settings())


@lru_cache()
def get_submissions_service() -> SubmissionsService:
    return SubmissionsService(
        judge0=get_judge0_service(),
        problems=problems_repository,
        submissions=submissions_repository,
        users=profile_repository,
        streaks=StreakUpdater(profile_repository),
        settings=get_settings(),
    )


@lru_cache()
def get_problem_validation_service() -> ProblemValidationService:
    return ProblemValidationService(judge0=get_judge0_service(), settings=get_settings())


__all__ = [
    "CurrentUser",
    "get_current_user",
    "get_judge0_service",
    "get_submissions_service",
    "get_problem_validation_service",
]
