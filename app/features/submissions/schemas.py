from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, model_validator

from app.features.judge0.status import StatusKind

SubmissionStatus = Literal["pending", "accepted", "wrong", "error"]
VerdictStatus = Literal["accepted", "wrong", "error"]


class Verdict(BaseModel):
    """Single reduced outcome for a run or a submission."""

    model_config = ConfigDict(frozen=True)

    status: VerdictStatus
    kind: StatusKind
    test_cases_passed: int = 0
    test_cases_total: int = 0
    runtime: float = 0.0
    memory: int = 0
    error_message: Optional[str] = None

    @model_validator(mode="after")
    def _check_counts(self) -> "Verdict":
        if self.test_cases_passed > self.test_cases_total:
            raise ValueError("test_cases_passed cannot exceed test_cases_total")
        return self

    @property
    def accepted(self) -> bool:
        return self.status == "accepted"


class CodePayload(BaseModel):
    code: str
    language: str


class CaseReport(BaseModel):
    test_case: int
    input: str
    expected_output: str
    actual_output: str
    passed: bool
    status: StatusKind
    runtime: float = 0.0
    memory: int = 0
    error: Optional[str] = None


class RunResult(BaseModel):
    verdict: Verdict
    test_cases: List[CaseReport]

    @property
    def success(self) -> bool:
        return self.verdict.accepted


class SubmissionRecord(BaseModel):
    id: str
    user_id: str
    problem_id: str
    code: str
    language: str
    status: SubmissionStatus = "pending"
    test_cases_passed: int = 0
    test_cases_total: int = 0
    runtime: float = 0.0
    memory: int = 0
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None


class SubmitResult(BaseModel):
    submission_id: str
    accepted: bool
    status: VerdictStatus
    total_test_cases: int
    passed_test_cases: int
    runtime: float
    memory: int
    error_message: Optional[str] = None
    newly_solved: bool = False


class SubmissionFinalFields(BaseModel):
    status: VerdictStatus
    test_cases_passed: int = 0
    runtime: float = 0.0
    memory: int = 0
    error_message: Optional[str] = None

    @classmethod
    def from_verdict(cls, verdict: Verdict) -> "SubmissionFinalFields":
        return cls(
            status=verdict.status,
            test_cases_passed=verdict.test_cases_passed,
            runtime=verdict.runtime,
            memory=verdict.memory,
            error_message=verdict.error_message,
        )


