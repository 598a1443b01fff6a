from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from app.common.errors import (
    BackendUnavailable,
    ExecutionTimeout,
    InvalidResponse,
    NoTestCases,
    ProblemNotFound,
)
from app.common.quota import enforce_source_length
from app.core.config import Settings, get_settings
from app.features.judge0.languages import canonical_language, resolve_language
from app.features.judge0.schemas import ExecutionRequest, ExecutionResult
from app.features.judge0.service import Judge0Service
from app.features.problems.repository import ProblemsRepository
from app.features.problems.schemas import Problem, TestCase
from app.features.profiles.repository import ProfileRepository
from app.features.profiles.streaks import StreakUpdater
from .repository import SubmissionsRepository
from .schemas import (
    RunResult,
    SubmissionFinalFields,
    SubmissionRecord,
    SubmitResult,
)
from .verdict import aggregate, build_case_reports

logger = logging.getLogger("submissions.service")

BACKEND_FAILURE_MESSAGE = "Failed to execute code on judge server"


def build_requests(code: str, language_id: int, cases: Sequence[TestCase]) -> List[ExecutionRequest]:
    return [
        ExecutionRequest(
            source_code=code,
            language_id=language_id,
            stdin=case.input,
            expected_output=case.output,
        )
        for case in cases
    ]


class SubmissionsService:
    """Runs code against a problem's test cases and records submissions.

    ``run`` uses the visible cases and persists nothing. ``submit`` uses the
    hidden cases, records a pending submission before dispatch, finalises it
    with the verdict, and credits the user on a first accepted solve.
    """

    def __init__(
        self,
        *,
        judge0: Judge0Service,
        problems: ProblemsRepository,
        submissions: SubmissionsRepository,
        users: ProfileRepository,
        streaks: StreakUpdater,
        settings: Optional[Settings] = None,
    ) -> None:
        self.judge0 = judge0
        self.problems = problems
        self.submissions = submissions
        self.users = users
        self.streaks = streaks
        self.settings = settings or get_settings()

    async def _load_problem(self, problem_id: str) -> Problem:
        problem = await self.problems.get_by_id(problem_id)
        if problem is None:
            raise ProblemNotFound(f"Problem {problem_id} not found")
        return problem

    async def _execute(self, code: str, language_id: int, cases: Sequence[TestCase]) -> List[ExecutionResult]:
        return await self.judge0.execute_batch(
            build_requests(code, language_id, cases),
            poll_interval_ms=self.settings.judge0_poll_interval_ms,
            max_wait_ms=self.settings.judge0_max_wait_ms,
        )

    async def run(self, *, user_id: str, problem_id: str, code: str, language: str) -> RunResult:
        enforce_source_length(code, self.settings.max_code_length)
        language_id = resolve_language(language)
        problem = await self._load_problem(problem_id)
        cases = problem.visible_test_cases
        if not cases:
            raise NoTestCases("No test cases found for this problem")

        results = await self._execute(code, language_id, cases)
        verdict = aggregate(results)
        logger.info(
            "run finished status=%s passed=%d/%d",
            verdict.status,
            verdict.test_cases_passed,
            verdict.test_cases_total,
            extra={"user_id": user_id, "problem_id": problem_id},
        )
        return RunResult(verdict=verdict, test_cases=build_case_reports(cases, results))

    async def submit(self, *, user_id: str, problem_id: str, code: str, language: str) -> SubmitResult:
        enforce_source_length(code, self.settings.max_code_length)
        language_name = canonical_language(language)
        language_id = resolve_language(language_name)
        problem = await self._load_problem(problem_id)
        cases = problem.hidden_test_cases
        if not cases:
            raise NoTestCases()

        record = await self.submissions.create(
            user_id=user_id,
            problem_id=problem.id,
            code=code,
            language=language_name,
            test_cases_total=len(cases),
        )
        await self.users.increment_total_submissions(user_id)
        logger.info(
            "submission dispatched cases=%d",
            len(cases),
            extra={"user_id": user_id, "problem_id": problem.id, "submission_id": record.id},
        )

        try:
            results = await self._execute(code, language_id, cases)
        except (BackendUnavailable, InvalidResponse, ExecutionTimeout) as exc:
            await self._record_backend_failure(record, exc)
            raise

        verdict = aggregate(results)
        # If this write fails the record stays pending for reconciliation.
        await self.submissions.finalize(record.id, SubmissionFinalFields.from_verdict(verdict))

        newly_solved = False
        if verdict.accepted:
            newly_solved = await self.users.credit_solved_problem(user_id, problem.id, problem.difficulty)
            if newly_solved:
                await self.streaks.update(user_id)
                logger.info(
                    "problem newly solved difficulty=%s",
                    problem.difficulty,
                    extra={"user_id": user_id, "problem_id": problem.id},
                )

        logger.info(
            "submission finished status=%s passed=%d/%d",
            verdict.status,
            verdict.test_cases_passed,
            verdict.test_cases_total,
            extra={"user_id": user_id, "problem_id": problem.id, "submission_id": record.id},
        )
        return SubmitResult(
            submission_id=record.id,
            accepted=verdict.accepted,
            status=verdict.status,
            total_test_cases=verdict.test_cases_total,
            passed_test_cases=verdict.test_cases_passed,
            runtime=verdict.runtime,
            memory=verdict.memory,
            error_message=verdict.error_message,
            newly_solved=newly_solved,
        )

    async def _record_backend_failure(self, record: SubmissionRecord, exc: Exception) -> None:
        logger.error(
            "judge backend failed: %s",
            type(exc).__name__,
            extra={"submission_id": record.id, "problem_id": record.problem_id},
        )
        try:
            await self.submissions.finalize(
                record.id,
                SubmissionFinalFields(status="error", error_message=BACKEND_FAILURE_MESSAGE),
            )
        except Exception:
            # The backend error is what the caller sees; the record stays pending.
            logger.exception("could not mark submission %s as failed", record.id)

    async def history(self, *, user_id: str, problem_id: str) -> List[SubmissionRecord]:
        return await self.submissions.list_for_problem(user_id, problem_id)


__all__ = ["SubmissionsService", "build_requests", "BACKEND_FAILURE_MESSAGE"]
