# app/features/submissions/endpoints.py
from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, status

from app.common.deps import CurrentUser, get_current_user, get_submissions_service
from app.features.submissions.schemas import CodePayload, RunResult, SubmissionRecord, SubmitResult
from app.features.submissions.service import SubmissionsService

logger = logging.getLogger("submissions")

router = APIRouter(prefix="/submissions", tags=["submissions"])


@router.post("/run/{problem_id}", response_model=RunResult)
async def run_code(
    problem_id: str,
    payload: CodePayload,
    current_user: CurrentUser = Depends(get_current_user),
    service: SubmissionsService = Depends(get_submissions_service),
):
    """Run code against the problem's visible test cases. Nothing is stored."""
    return await service.run(
        user_id=current_user.id,
        problem_id=problem_id,
        code=payload.code,
        language=payload.language,
    )


@router.post("/submit/{problem_id}", response_model=SubmitResult, status_code=status.HTTP_201_CREATED)
async def submit_code(
    problem_id: str,
    payload: CodePayload,
    current_user: CurrentUser = Depends(get_current_user),
    service: SubmissionsService = Depends(get_submissions_service),
):
    """Grade code against the hidden test cases and record the submission."""
    return await service.submit(
        user_id=current_user.id,
        problem_id=problem_id,
        code=payload.code,
        language=payload.language,
    )


@router.get("/history/{problem_id}", response_model=List[SubmissionRecord])
async def submission_history(
    problem_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: SubmissionsService = Depends(get_submissions_service),
):
    return await service.history(user_id=current_user.id, problem_id=problem_id)
