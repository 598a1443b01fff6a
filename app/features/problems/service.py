from __future__ import annotations

import logging
from typing import List, Optional

from app.common.errors import NoTestCases, ReferenceSolutionRejected
from app.core.config import Settings, get_settings
from app.features.judge0.languages import resolve_language
from app.features.judge0.service import Judge0Service
from app.features.submissions.service import build_requests
from app.features.submissions.verdict import aggregate
from .schemas import ProblemDraft, ReferenceCheck

logger = logging.getLogger("problems.service")


class ProblemValidationService:
    """Gate run before a problem is saved: every reference solution must pass
    every visible test case."""

    def __init__(self, *, judge0: Judge0Service, settings: Optional[Settings] = None) -> None:
        self.judge0 = judge0
        self.settings = settings or get_settings()

    async def validate_reference_solutions(self, draft: ProblemDraft) -> List[ReferenceCheck]:
        if not draft.visible_test_cases:
            raise NoTestCases("Visible test cases are required")
        if not draft.reference_solution:
            raise ReferenceSolutionRejected("At least one reference solution is required")

        checks: List[ReferenceCheck] = []
        for solution in draft.reference_solution:
            language_id = resolve_language(solution.language)
            results = await self.judge0.execute_batch(
                build_requests(solution.complete_code, language_id, draft.visible_test_cases),
                poll_interval_ms=self.settings.judge0_poll_interval_ms,
                max_wait_ms=self.settings.judge0_max_wait_ms,
            )
            check = ReferenceCheck(language=solution.language, verdict=aggregate(results))
            checks.append(check)
            if not check.passed:
                logger.info(
                    "reference solution rejected language=%s kind=%s",
                    solution.language,
                    check.verdict.kind.value,
                )
                raise ReferenceSolutionRejected(
                    {
                        "message": "Reference solution validation failed",
                        "language": solution.language,
                        "status": check.verdict.status,
                        "passed": check.verdict.test_cases_passed,
                        "total": check.verdict.test_cases_total,
                        "error_message": check.verdict.error_message,
                    }
                )
        return checks


__all__ = ["ProblemValidationService"]
