from __future__ import annotations

from fastapi import APIRouter, Depends

from app.common.deps import get_problem_validation_service
from app.features.problems.schemas import ProblemDraft, ReferenceValidationResponse
from app.features.problems.service import ProblemValidationService

router = APIRouter(prefix="/problems", tags=["problems"])


@router.post("/validate", response_model=ReferenceValidationResponse)
async def validate_problem(
    draft: ProblemDraft,
    service: ProblemValidationService = Depends(get_problem_validation_service),
):
    checks = await service.validate_reference_solutions(draft)
    return ReferenceValidationResponse(valid=True, checks=checks)
