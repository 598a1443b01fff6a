from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException

from app.common.deps import CurrentUser, get_current_user
from app.features.profiles.repository import profile_repository
from app.features.profiles.schemas import StreakResponse
from app.features.profiles.streaks import calculate_streak, streak_calendar

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/me/streak", response_model=StreakResponse)
async def get_my_streak(current_user: CurrentUser = Depends(get_current_user)):
    user = await profile_repository.get_by_id(current_user.id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    today = date.today()
    streak = calculate_streak(user.streak_data, today)
    return StreakResponse(
        current_streak=streak.current_streak,
        longest_streak=streak.longest_streak,
        last_submission_date=streak.last_submission_date,
        streak_calendar=streak_calendar(user.streak_data, today),
    )
