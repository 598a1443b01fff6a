from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field


class StreakData(BaseModel):
    current_streak: int = 0
    longest_streak: int = 0
    last_submission_date: Optional[date] = None
    streak_dates: List[date] = Field(default_factory=list)


class ProfileStats(BaseModel):
    easy_problems: int = 0
    medium_problems: int = 0
    hard_problems: int = 0
    total_submissions: int = 0
    accepted_submissions: int = 0


class UserRecord(BaseModel):
    id: str
    problem_solved: List[str] = Field(default_factory=list)
    profile_stats: ProfileStats = Field(default_factory=ProfileStats)
    streak_data: StreakData = Field(default_factory=StreakData)


class CalendarDay(BaseModel):
    date: date
    has_submission: bool
    day_of_week: int
    day_of_month: int


class StreakResponse(BaseModel):
    current_streak: int
    longest_streak: int
    last_submission_date: Optional[date] = None
    streak_calendar: List[CalendarDay]
