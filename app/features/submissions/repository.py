from __future__ import annotations

import logging
from typing import Any, Dict, List

from app.db.supabase import execute, get_supabase
from .schemas import SubmissionFinalFields, SubmissionRecord

logger = logging.getLogger("submissions.repository")


class SubmissionsRepository:
    """Persistence for submission records."""

    _TABLE = "submissions"

    async def create(
        self,
        *,
        user_id: str,
        problem_id: str,
        code: str,
        language: str,
        test_cases_total: int,
    ) -> SubmissionRecord:
        client = await get_supabase()
        record: Dict[str, Any] = {
            "user_id": user_id,
            "problem_id": problem_id,
            "code": code,
            "language": language,
            "status": "pending",
            "test_cases_passed": 0,
            "test_cases_total": test_cases_total,
            "runtime": 0,
            "memory": 0,
        }
        resp = await execute(client.table(self._TABLE).insert(record).execute(), op="submissions.insert")
        rows = getattr(resp, "data", None) or []
        if not rows:
            raise RuntimeError("Failed to create submission record")
        row = rows[0]
        return SubmissionRecord(**{**row, "id": str(row["id"])})

    async def finalize(self, submission_id: str, fields: SubmissionFinalFields) -> bool:
        """Move a pending submission to its terminal status.

        The update only matches rows still in ``pending``; returns False when
        the record had already been finalised.
        """
        client = await get_supabase()
        resp = await execute(
            client.table(self._TABLE)
            .update(fields.model_dump())
            .eq("id", submission_id)
            .eq("status", "pending")
            .execute(),
            op="submissions.finalize",
        )
        updated = bool(getattr(resp, "data", None))
        if not updated:
            logger.warning("submission %s was not pending; final verdict not written", submission_id)
        return updated

    async def list_for_problem(self, user_id: str, problem_id: str, limit: int = 50) -> List[SubmissionRecord]:
        client = await get_supabase()
        resp = await execute(
            client.table(self._TABLE)
            .select("*")
            .eq("user_id", user_id)
            .eq("problem_id", problem_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute(),
            op="submissions.list_for_problem",
        )
        return [SubmissionRecord(**{**row, "id": str(row["id"])}) for row in getattr(resp, "data", None) or []]


submissions_repository = SubmissionsRepository()

__all__ = ["submissions_repository", "SubmissionsRepository"]
