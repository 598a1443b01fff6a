import json
import os
import sys
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

# Ensure repo root on sys.path for imports like `app...`
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from app.core.config import Settings
from app.features.judge0.service import Judge0Service
from app.features.problems.schemas import Problem
from app.features.profiles.schemas import StreakData, UserRecord
from app.features.profiles.streaks import StreakUpdater
from app.features.submissions.schemas import SubmissionFinalFields, SubmissionRecord
from app.features.submissions.service import SubmissionsService


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def judge_by_expected(submission: Dict[str, Any]) -> Dict[str, Any]:
    """Default behaviour: the program prints stdin back; accepted if it matches."""
    stdout = submission.get("stdin") or ""
    expected = submission.get("expected_output")
    status_id = 3 if expected is None or stdout.strip() == expected.strip() else 4
    return {"status_id": status_id, "stdout": stdout, "time": "0.01", "memory": 1024}


class FakeJudge0Backend:
    """In-memory Judge0 batch API served through ``httpx.MockTransport``.

    ``verdict`` maps a submitted item to its terminal fields. Each token stays
    in processing for ``pending_rounds`` status queries before finishing.
    Batch status responses are returned in reverse order to exercise alignment.
    """

    def __init__(
        self,
        verdict: Callable[[Dict[str, Any]], Dict[str, Any]] = judge_by_expected,
        pending_rounds: int = 0,
    ) -> None:
        self.verdict = verdict
        self.pending_rounds = pending_rounds
        self.jobs: Dict[str, Dict[str, Any]] = {}
        self.polls: Dict[str, int] = {}
        self.submit_calls = 0
        self.status_calls: List[List[str]] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.method == "POST" and request.url.path == "/submissions/batch":
            self.submit_calls += 1
            body = json.loads(request.content)
            out = []
            for item in body["submissions"]:
                token = uuid.uuid4().hex
                self.jobs[token] = item
                self.polls[token] = 0
                out.append({"token": token})
            return httpx.Response(201, json=out)
        if request.method == "GET" and request.url.path == "/submissions/batch":
            tokens = request.url.params["tokens"].split(",")
            self.status_calls.append(tokens)
            items = []
            for tok in tokens:
                job = self.jobs.get(tok)
                if job is None:
                    items.append(None)
                    continue
                self.polls[tok] += 1
                if self.polls[tok] <= self.pending_rounds:
                    items.append({"token": tok, "status_id": 2, "status": {"id": 2, "description": "Processing"}})
                    continue
                items.append({"token": tok, "expected_output": job.get("expected_output"), **self.verdict(job)})
            return httpx.Response(200, json={"submissions": list(reversed(items))})
        return httpx.Response(404, json={"error": "not found"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class InMemoryProblems:
    def __init__(self, *problems: Problem) -> None:
        self.items = {p.id: p for p in problems}

    async def get_by_id(self, problem_id: str) -> Optional[Problem]:
        return self.items.get(problem_id)


class InMemorySubmissions:
    def __init__(self) -> None:
        self.items: Dict[str, SubmissionRecord] = {}
        self.fail_finalize = False

    async def create(self, *, user_id, problem_id, code, language, test_cases_total) -> SubmissionRecord:
        record = SubmissionRecord(
            id=str(uuid.uuid4()),
            user_id=user_id,
            problem_id=problem_id,
            code=code,
            language=language,
            status="pending",
            test_cases_total=test_cases_total,
            created_at=datetime.now(timezone.utc),
        )
        self.items[record.id] = record
        return record

    async def finalize(self, submission_id: str, fields: SubmissionFinalFields) -> bool:
        if self.fail_finalize:
            raise RuntimeError("Supabase submissions.finalize timed out after 5.0s")
        record = self.items[submission_id]
        if record.status != "pending":
            return False
        self.items[submission_id] = record.model_copy(update=fields.model_dump())
        return True

    async def list_for_problem(self, user_id: str, problem_id: str, limit: int = 50) -> List[SubmissionRecord]:
        rows = [r for r in self.items.values() if r.user_id == user_id and r.problem_id == problem_id]
        return rows[:limit]


class InMemoryProfiles:
    def __init__(self, *users: UserRecord) -> None:
        self.users = {u.id: u for u in users}

    async def get_by_id(self, user_id: str) -> Optional[UserRecord]:
        return self.users.get(user_id)

    async def credit_solved_problem(self, user_id: str, problem_id: str, difficulty: str) -> bool:
        user = self.users[user_id]
        if problem_id in user.problem_solved:
            return False
        stats = user.profile_stats
        counter = f"{difficulty}_problems"
        stats = stats.model_copy(
            update={
                counter: getattr(stats, counter) + 1,
                "accepted_submissions": stats.accepted_submissions + 1,
            }
        )
        self.users[user_id] = user.model_copy(
            update={"problem_solved": [*user.problem_solved, problem_id], "profile_stats": stats}
        )
        return True

    async def increment_total_submissions(self, user_id: str) -> None:
        user = self.users[user_id]
        stats = user.profile_stats.model_copy(update={"total_submissions": user.profile_stats.total_submissions + 1})
        self.users[user_id] = user.model_copy(update={"profile_stats": stats})

    async def save_streak(self, user_id: str, streak: StreakData) -> None:
        self.users[user_id] = self.users[user_id].model_copy(update={"streak_data": streak})


@pytest.fixture
def settings() -> Settings:
    s = Settings()
    s.judge0_api_url = "http://judge0.test"
    s.judge0_auth_token = ""
    s.judge0_api_key = ""
    s.judge0_host = ""
    s.judge0_poll_interval_ms = 100
    s.judge0_poll_max_interval_ms = 400
    s.judge0_poll_backoff = 2.0
    s.judge0_max_wait_ms = 5000
    s.max_code_length = 50000
    return s


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend() -> FakeJudge0Backend:
    return FakeJudge0Backend()


@pytest.fixture
def judge0(settings, backend, clock) -> Judge0Service:
    return Judge0Service(settings, transport=backend.transport(), sleep=clock.sleep, clock=clock)


@pytest.fixture
def problem() -> Problem:
    return Problem(
        id="p-sum",
        title="Echo",
        difficulty="medium",
        visible_test_cases=[{"input": "1", "output": "1"}, {"input": "2", "output": "2"}],
        hidden_test_cases=[{"input": "5", "output": "5"}, {"input": "6", "output": "6"}],
    )


@pytest.fixture
def user() -> UserRecord:
    return UserRecord(id="u-1")


@pytest.fixture
def stores(problem, user):
    profiles = InMemoryProfiles(user)
    return {
        "problems": InMemoryProblems(problem),
        "submissions": InMemorySubmissions(),
        "users": profiles,
    }


@pytest.fixture
def service(judge0, stores, settings) -> SubmissionsService:
    return SubmissionsService(
        judge0=judge0,
        problems=stores["problems"],
        submissions=stores["submissions"],
        users=stores["users"],
        streaks=StreakUpdater(stores["users"]),
        settings=settings,
    )
