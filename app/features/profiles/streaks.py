"""Daily solving streaks."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import List, Optional

from .repository import ProfileRepository, profile_repository
from .schemas import CalendarDay, StreakData

logger = logging.getLogger("profiles.streaks")


def update_streak(streak: StreakData, today: date) -> StreakData:
    """Return the streak after a problem is newly solved on ``today``."""
    last = streak.last_submission_date
    if last == today:
        return streak

    current = streak.current_streak
    if last is None or (today - last).days == 1:
        current += 1
    else:
        current = 1

    dates = list(streak.streak_dates)
    if today not in dates:
        dates.append(today)

    return StreakData(
        current_streak=current,
        longest_streak=max(current, streak.longest_streak),
        last_submission_date=today,
        streak_dates=dates,
    )


def calculate_streak(streak: StreakData, today: date) -> StreakData:
    """Streak as displayed on ``today``: a gap of more than a day means it is broken."""
    last = streak.last_submission_date
    if last is None:
        return StreakData(longest_streak=streak.longest_streak, streak_dates=streak.streak_dates)
    if (today - last).days <= 1:
        return streak
    return streak.model_copy(update={"current_streak": 0})


def streak_calendar(streak: StreakData, today: date, days: int = 30) -> List[CalendarDay]:
    solved = set(streak.streak_dates)
    calendar: List[CalendarDay] = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        calendar.append(
            CalendarDay(
                date=day,
                has_submission=day in solved,
                day_of_week=day.isoweekday() % 7,
                day_of_month=day.day,
            )
        )
    return calendar


class StreakUpdater:
    def __init__(self, profiles: Optional[ProfileRepository] = None) -> None:
        self.profiles = profiles or profile_repository

    async def update(self, user_id: str, today: Optional[date] = None) -> Optional[StreakData]:
        user = await self.profiles.get_by_id(user_id)
        if user is None:
            logger.warning("streak update skipped, unknown user %s", user_id)
            return None
        updated = update_streak(user.streak_data, today or date.today())
        if updated != user.streak_data:
            await self.profiles.save_streak(user_id, updated)
        return updated


__all__ = ["update_streak", "calculate_streak", "streak_calendar", "StreakUpdater"]
