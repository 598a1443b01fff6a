from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from app.db.supabase import execute, get_supabase
from .schemas import Problem

logger = logging.getLogger("problems.repository")


def _test_cases(rows: Any) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for row in rows or []:
        if not isinstance(row, dict):
            continue
        out.append({
            "input": row.get("input") or "",
            "output": row.get("output") or "",
            "explanation": row.get("explanation"),
        })
    return out


class ProblemsRepository:
    """Read-only access to authored problems."""

    _TABLE = "problems"
    _COLUMNS = "id,title,difficulty,visible_test_cases,hidden_test_cases,start_code,reference_solution"

    async def get_by_id(self, problem_id: str) -> Optional[Problem]:
        client = await get_supabase()
        resp = await execute(
            client.table(self._TABLE).select(self._COLUMNS).eq("id", problem_id).limit(1).execute(),
            op="problems.select_by_id",
        )
        rows = getattr(resp, "data", None) or []
        if not rows:
            return None
        row = rows[0]
        return Problem(
            id=str(row["id"]),
            title=row.get("title") or "",
            difficulty=(row.get("difficulty") or "easy").lower(),
            visible_test_cases=_test_cases(row.get("visible_test_cases")),
            hidden_test_cases=_test_cases(row.get("hidden_test_cases")),
            start_code=[
                {"language": s.get("language"), "initial_code": s.get("initial_code") or s.get("initialCode") or ""}
                for s in row.get("start_code") or []
                if isinstance(s, dict)
            ],
            reference_solution=[
                {"language": s.get("language"), "complete_code": s.get("complete_code") or s.get("completeCode") or ""}
                for s in row.get("reference_solution") or []
                if isinstance(s, dict)
            ],
        )


problems_repository = ProblemsRepository()

__all__ = ["problems_repository", "ProblemsRepository"]
