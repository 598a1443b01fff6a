from __future__ import annotations

from typing import List

from fastapi import APIRouter

from app.features.judge0.languages import language_table
from app.features.judge0.schemas import Judge0Status, LanguageInfo
from app.features.judge0.service import Judge0Service

public_router = APIRouter(prefix="/judge0", tags=["judge0-public"])


@public_router.get("/languages", response_model=List[LanguageInfo])
async def get_supported_languages():
    return [LanguageInfo(**row) for row in language_table()]


@public_router.get("/statuses", response_model=List[Judge0Status])
async def get_submission_statuses():
    return Judge0Service.get_statuses()
