"""Reduce per-test-case execution results to a single verdict.

The first non-accepted result decides the outcome and the error message;
results after it still count towards the totals but never replace it.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from app.features.judge0.schemas import ExecutionResult
from app.features.judge0.status import StatusKind
from app.features.problems.schemas import TestCase
from .schemas import CaseReport, Verdict


def _clean(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    text = text.strip()
    return text or None


def error_message_for(result: ExecutionResult) -> Optional[str]:
    kind = result.kind
    if kind is StatusKind.accepted:
        return None
    if kind is StatusKind.compile_error:
        return _clean(result.compile_output) or _clean(result.stderr) or "Compilation failed"
    if kind is StatusKind.time_limit_exceeded:
        return "Time limit exceeded"
    if kind is StatusKind.wrong_answer:
        expected = _clean(result.expected_output) or ""
        actual = _clean(result.stdout) or ""
        message = f"Wrong answer. Expected: {expected}, got: {actual}"
        stderr = _clean(result.stderr)
        if stderr:
            message = f"{message}\n{stderr}"
        return message
    return _clean(result.stderr) or _clean(result.message) or f"Runtime error ({result.status_description})"


def _verdict_status(kind: StatusKind) -> str:
    if kind is StatusKind.accepted:
        return "accepted"
    if kind is StatusKind.wrong_answer:
        return "wrong"
    return "error"


def aggregate(results: Sequence[ExecutionResult]) -> Verdict:
    passed = 0
    runtime = 0.0
    memory = 0
    failure: Optional[ExecutionResult] = None

    for result in results:
        if result.accepted:
            passed += 1
            runtime += result.time
            memory = max(memory, result.memory)
        elif failure is None:
            failure = result

    if failure is None:
        kind = StatusKind.accepted
        message = None
    else:
        kind = failure.kind
        message = error_message_for(failure)

    return Verdict(
        status=_verdict_status(kind),
        kind=kind,
        test_cases_passed=passed,
        test_cases_total=len(results),
        runtime=runtime,
        memory=memory,
        error_message=message,
    )


def build_case_reports(test_cases: Sequence[TestCase], results: Sequence[ExecutionResult]) -> List[CaseReport]:
    """Per-case table for the run flow, aligned with ``test_cases``."""
    reports: List[CaseReport] = []
    for idx, (case, result) in enumerate(zip(test_cases, results), start=1):
        reports.append(
            CaseReport(
                test_case=idx,
                input=case.input,
                expected_output=case.output,
                actual_output=result.stdout or "",
                passed=result.accepted,
                status=result.kind,
                runtime=result.time,
                memory=result.memory,
                error=error_message_for(result),
            )
        )
    return reports


__all__ = ["aggregate", "build_case_reports", "error_message_for"]
