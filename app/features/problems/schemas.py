from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.features.submissions.schemas import Verdict

Difficulty = Literal["easy", "medium", "hard"]


class TestCase(BaseModel):
    __test__ = False  # not a pytest class

    model_config = ConfigDict(frozen=True)

    input: str
    output: str
    explanation: Optional[str] = None


class StartCode(BaseModel):
    language: str
    initial_code: str


class ReferenceSolution(BaseModel):
    language: str
    complete_code: str


class Problem(BaseModel):
    id: str
    title: str
    difficulty: Difficulty
    visible_test_cases: List[TestCase] = Field(default_factory=list)
    hidden_test_cases: List[TestCase] = Field(default_factory=list)
    start_code: List[StartCode] = Field(default_factory=list)
    reference_solution: List[ReferenceSolution] = Field(default_factory=list)


class ProblemDraft(BaseModel):
    """Problem payload checked before it is saved by the authoring flow."""

    title: str
    difficulty: Difficulty
    visible_test_cases: List[TestCase]
    hidden_test_cases: List[TestCase] = Field(default_factory=list)
    reference_solution: List[ReferenceSolution]


class ReferenceCheck(BaseModel):
    language: str
    verdict: Verdict

    @property
    def passed(self) -> bool:
        return self.verdict.status == "accepted"


class ReferenceValidationResponse(BaseModel):
    valid: bool
    checks: List[ReferenceCheck]
