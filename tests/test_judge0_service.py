import asyncio
import json
import time

import httpx
import pytest

from app.common.errors import BackendUnavailable, ExecutionTimeout, InvalidResponse
from app.features.judge0.schemas import ExecutionRequest
from app.features.judge0.service import Judge0Service

from conftest import FakeJudge0Backend


class _FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.text = json.dumps(payload)

    def json(self):
        return self._payload


def _requests(n):
    return [
        ExecutionRequest(source_code="print(input())", language_id=63, stdin=str(i), expected_output=str(i))
        for i in range(n)
    ]


def test_submit_batch_sends_one_call_with_all_items(settings, monkeypatch):
    service = Judge0Service(settings)
    captured = []

    async def fake_request(method, path, **kwargs):
        captured.append((method, path, kwargs))
        return _FakeResponse([{"token": "a"}, {"token": "b"}, {"token": "c"}], status_code=201)

    monkeypatch.setattr(service, "_request", fake_request)

    tokens = asyncio.run(service.submit_batch(_requests(3)))

    assert tokens == ["a", "b", "c"]
    assert len(captured) == 1
    method, path, kwargs = captured[0]
    assert method == "POST"
    assert path == "/submissions/batch"
    items = kwargs["json"]["submissions"]
    assert [i["stdin"] for i in items] == ["0", "1", "2"]
    assert items[1]["expected_output"] == "1"


@pytest.mark.parametrize(
    "payload",
    [
        [{"token": "a"}],
        [{"token": "a"}, {"language_id": ["language with id 999 doesn't exist"]}],
        [{"token": "a"}, {"token": ""}],
        {"token": "a"},
    ],
)
def test_submit_batch_rejects_malformed_responses(settings, monkeypatch, payload):
    service = Judge0Service(settings)

    async def fake_request(method, path, **kwargs):
        return _FakeResponse(payload, status_code=201)

    monkeypatch.setattr(service, "_request", fake_request)

    with pytest.raises(InvalidResponse):
        asyncio.run(service.submit_batch(_requests(2)))


def test_submit_batch_server_error_is_backend_unavailable(settings, monkeypatch):
    service = Judge0Service(settings)

    async def fake_request(method, path, **kwargs):
        return _FakeResponse({"error": "down"}, status_code=503)

    monkeypatch.setattr(service, "_request", fake_request)

    with pytest.raises(BackendUnavailable):
        asyncio.run(service.submit_batch(_requests(1)))


def test_connection_failure_is_backend_unavailable(settings):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    service = Judge0Service(settings, transport=httpx.MockTransport(handler))

    with pytest.raises(BackendUnavailable) as exc:
        asyncio.run(service.submit_batch(_requests(1)))
    assert "connection refused" in exc.value.debug_info
    assert "connection refused" not in str(exc.value.detail)


def test_missing_base_url_is_backend_unavailable(settings):
    settings.judge0_api_url = ""
    service = Judge0Service(settings)

    with pytest.raises(BackendUnavailable):
        asyncio.run(service.submit_batch(_requests(1)))


def test_empty_batch_makes_no_call(settings, monkeypatch):
    service = Judge0Service(settings)

    async def fake_request(method, path, **kwargs):
        raise AssertionError("no request expected")

    monkeypatch.setattr(service, "_request", fake_request)

    assert asyncio.run(service.submit_batch([])) == []
    assert asyncio.run(service.poll_until_done([])) == []


def test_poll_results_align_with_token_order(judge0, backend):
    async def _run():
        tokens = await judge0.submit_batch(_requests(4))
        return tokens, await judge0.poll_until_done(tokens)

    tokens, results = asyncio.run(_run())

    # The fake backend answers in reverse order
    assert [r.token for r in results] == tokens
    assert [r.stdout for r in results] == ["0", "1", "2", "3"]
    assert all(r.accepted for r in results)


def test_poll_requeries_only_pending_tokens(settings, clock):
    def verdict(job):
        return {"status_id": 3, "stdout": job["stdin"], "time": "0.01", "memory": 10}

    backend = FakeJudge0Backend(verdict=verdict, pending_rounds=2)
    service = Judge0Service(settings, transport=backend.transport(), sleep=clock.sleep, clock=clock)

    async def _run():
        tokens = await service.submit_batch(_requests(2))
        # finish the first token early
        backend.polls[tokens[0]] = 2
        return tokens, await service.poll_until_done(tokens)

    tokens, results = asyncio.run(_run())

    assert backend.submit_calls == 1
    assert backend.status_calls[0] == tokens
    assert backend.status_calls[1:] == [[tokens[1]], [tokens[1]]]
    assert [r.status_id for r in results] == [3, 3]


def test_poll_backs_off_between_rounds(settings, clock):
    backend = FakeJudge0Backend(pending_rounds=4)
    service = Judge0Service(settings, transport=backend.transport(), sleep=clock.sleep, clock=clock)

    async def _run():
        tokens = await service.submit_batch(_requests(1))
        return await service.poll_until_done(tokens)

    asyncio.run(_run())

    assert len(clock.sleeps) == 4
    assert 0.1 <= clock.sleeps[0] <= 0.15
    assert clock.sleeps[0] < clock.sleeps[1] < clock.sleeps[2]
    # capped by judge0_poll_max_interval_ms (0.4s) plus at most 50ms jitter
    assert max(clock.sleeps) <= 0.45


def test_poll_times_out_instead_of_hanging(settings, clock):
    backend = FakeJudge0Backend(pending_rounds=10_000)
    service = Judge0Service(settings, transport=backend.transport(), sleep=clock.sleep, clock=clock)

    async def _run():
        tokens = await service.submit_batch(_requests(2))
        return await service.poll_until_done(tokens, poll_interval_ms=100, max_wait_ms=1000)

    with pytest.raises(ExecutionTimeout):
        asyncio.run(_run())

    assert clock.now == pytest.approx(1.0)
    assert len(backend.status_calls) < 20


def test_poll_unknown_token_is_invalid_response(judge0):
    with pytest.raises(InvalidResponse):
        asyncio.run(judge0.poll_until_done(["never-issued"]))


def test_poll_entry_without_token_is_invalid_response(settings, monkeypatch):
    service = Judge0Service(settings)

    async def fake_request(method, path, **kwargs):
        return _FakeResponse({"submissions": [{"status_id": 3, "stdout": "1"}]})

    monkeypatch.setattr(service, "_request", fake_request)

    with pytest.raises(InvalidResponse):
        asyncio.run(service.poll_until_done(["a"]))


def test_poll_accepts_nested_status_object(settings, monkeypatch):
    service = Judge0Service(settings)

    async def fake_request(method, path, **kwargs):
        return _FakeResponse(
            {
                "submissions": [
                    {
                        "token": "a",
                        "status": {"id": 6, "description": "Compilation Error"},
                        "compile_output": "main.cpp:3: error",
                        "time": None,
                        "memory": None,
                    }
                ]
            }
        )

    monkeypatch.setattr(service, "_request", fake_request)

    [result] = asyncio.run(service.poll_until_done(["a"]))

    assert result.status_id == 6
    assert result.status_description == "Compilation Error"
    assert result.time == 0.0
    assert result.memory == 0


def test_execute_batch_fills_expected_output_from_requests(settings, clock):
    def verdict(job):
        return {"status_id": 4, "stdout": "nope", "time": "0.01", "memory": 10}

    backend = FakeJudge0Backend(verdict=verdict)

    def without_expected(request):
        response = backend.handler(request)
        if request.method == "GET":
            payload = json.loads(response.content)
            for item in payload["submissions"]:
                item.pop("expected_output", None)
            return httpx.Response(200, json=payload)
        return response

    service = Judge0Service(settings, transport=httpx.MockTransport(without_expected), sleep=clock.sleep, clock=clock)

    results = asyncio.run(service.execute_batch(_requests(2)))

    assert [r.expected_output for r in results] == ["0", "1"]


def test_auth_headers(settings):
    settings.judge0_auth_token = "secret"
    settings.judge0_api_key = "rapid"
    settings.judge0_host = "judge0-ce.p.rapidapi.com"

    service = Judge0Service(settings)

    assert service.headers["X-Auth-Token"] == "secret"
    assert service.headers["X-RapidAPI-Key"] == "rapid"
    assert service.headers["X-RapidAPI-Host"] == "judge0-ce.p.rapidapi.com"


def test_base_url_defaults_scheme_and_port(settings):
    settings.judge0_api_url = "judge0.internal/"

    assert Judge0Service(settings).base_url == "http://judge0.internal:2358"


def test_poll_deadline_cuts_off_a_hanging_status_query(settings):
    async def handler(request):
        await asyncio.sleep(2)
        return httpx.Response(200, json={"submissions": [{"token": "a", "status_id": 2}]})

    service = Judge0Service(settings, transport=httpx.MockTransport(handler))

    started = time.monotonic()
    with pytest.raises(ExecutionTimeout):
        asyncio.run(service.poll_until_done(["a"], poll_interval_ms=50, max_wait_ms=300))

    assert time.monotonic() - started < 1.5


def test_execute_batch_budget_covers_the_submit_call(settings):
    async def handler(request):
        await asyncio.sleep(2)
        return httpx.Response(201, json=[{"token": "a"}])

    service = Judge0Service(settings, transport=httpx.MockTransport(handler))

    started = time.monotonic()
    with pytest.raises(ExecutionTimeout):
        asyncio.run(service.execute_batch(_requests(1), max_wait_ms=300))

    assert time.monotonic() - started < 1.5


def test_poll_entry_without_status_is_invalid_response(settings, monkeypatch):
    service = Judge0Service(settings)
    calls = []

    async def fake_request(method, path, **kwargs):
        calls.append(path)
        return _FakeResponse({"submissions": [{"token": "a", "stdout": "1"}]})

    monkeypatch.setattr(service, "_request", fake_request)

    with pytest.raises(InvalidResponse):
        asyncio.run(service.poll_until_done(["a"]))
    assert len(calls) == 1
