from __future__ import annotations

import logging
from typing import Optional

from app.db.supabase import execute, get_supabase
from .schemas import StreakData, UserRecord

logger = logging.getLogger("profiles.repository")


class ProfileRepository:
    """User record store: solved set, counters and streak data.

    Solved-set crediting and the submission counter run as single database
    statements (RPCs) so concurrent submissions never double count.
    """

    _TABLE = "profiles"

    async def get_by_id(self, user_id: str) -> Optional[UserRecord]:
        client = await get_supabase()
        resp = await execute(
            client.table(self._TABLE)
            .select("id,problem_solved,profile_stats,streak_data")
            .eq("id", user_id)
            .limit(1)
            .execute(),
            op="profiles.select_by_id",
        )
        rows = getattr(resp, "data", None) or []
        if not rows:
            return None
        row = rows[0]
        return UserRecord(
            id=str(row["id"]),
            problem_solved=[str(p) for p in row.get("problem_solved") or []],
            profile_stats=row.get("profile_stats") or {},
            streak_data=row.get("streak_data") or {},
        )

    async def credit_solved_problem(self, user_id: str, problem_id: str, difficulty: str) -> bool:
        """Append ``problem_id`` to the solved set if absent and bump counters.

        Returns True only for the call that actually added the problem.
        """
        client = await get_supabase()
        resp = await execute(
            client.rpc(
                "credit_solved_problem",
                {"p_user_id": user_id, "p_problem_id": problem_id, "p_difficulty": difficulty},
            ).execute(),
            op="profiles.credit_solved_problem",
        )
        return bool(getattr(resp, "data", False))

    async def increment_total_submissions(self, user_id: str) -> None:
        client = await get_supabase()
        await execute(
            client.rpc("increment_total_submissions", {"p_user_id": user_id}).execute(),
            op="profiles.increment_total_submissions",
        )

    async def save_streak(self, user_id: str, streak: StreakData) -> None:
        client = await get_supabase()
        await execute(
            client.table(self._TABLE)
            .update({"streak_data": streak.model_dump(mode="json")})
            .eq("id", user_id)
            .execute(),
            op="profiles.update_streak",
        )


profile_repository = ProfileRepository()

__all__ = ["profile_repository", "ProfileRepository"]
