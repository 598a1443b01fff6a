from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence
from urllib.parse import urlparse, urlunparse

import httpx

from app.common.errors import BackendUnavailable, ExecutionTimeout, InvalidResponse
from app.core.config import Settings, get_settings
from .schemas import ExecutionRequest, ExecutionResult, Judge0Status
from .status import STATUS_DESCRIPTIONS, is_terminal

RESULT_FIELDS = "token,status_id,status,stdout,stderr,compile_output,message,time,memory,expected_output"


def _mask_headers(h: dict) -> dict:
    masked = {}
    for k, v in (h or {}).items():
        if k.lower() in ("x-rapidapi-key", "x-auth-token"):
            masked[k] = "[REDACTED]"
        else:
            masked[k] = v
    return masked


def _status_id(payload: Dict[str, Any]) -> Optional[int]:
    status_id = payload.get("status_id")
    if status_id is None and isinstance(payload.get("status"), dict):
        status_id = payload["status"].get("id")
    try:
        return int(status_id) if status_id is not None else None
    except (TypeError, ValueError):
        return None


class Judge0Service:
    """Batch submitter and result poller for a Judge0-compatible backend.

    No call is retried: a batch submit creates new jobs every time, so
    failures are surfaced to the caller as they happen.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings or get_settings()
        base = (self.settings.judge0_api_url or "").strip()
        if base and not base.startswith("http://") and not base.startswith("https://"):
            # assume http if scheme omitted
            base = "http://" + base
        # If no explicit port provided, default to 2358 (common Judge0 CE port)
        if base:
            parsed = urlparse(base)
            if ":" not in parsed.netloc and parsed.scheme == "http":
                parsed = parsed._replace(netloc=f"{parsed.netloc}:2358")
                base = urlunparse(parsed)
        self.base_url = base.rstrip("/")
        self.headers = {"Content-Type": "application/json"}
        if self.settings.judge0_auth_token:
            self.headers["X-Auth-Token"] = self.settings.judge0_auth_token
        if self.settings.judge0_api_key and self.settings.judge0_host:
            self.headers.update({
                "X-RapidAPI-Key": self.settings.judge0_api_key,
                "X-RapidAPI-Host": self.settings.judge0_host,
            })
        self._transport = transport
        self._sleep = sleep
        self._clock = clock
        self._logger = logging.getLogger("judge0.service")

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Perform one HTTP request against the backend.

        Connection failures and HTTP timeouts become ``BackendUnavailable``.
        """
        if not self.base_url:
            raise BackendUnavailable(debug_info="Judge0 base URL is not configured (JUDGE0_BASE_URL).")
        if not path.startswith("/"):
            path = "/" + path
        url = self.base_url + path
        self._logger.debug("Judge0 request: %s %s headers=%s", method, url, _mask_headers(self.headers))
        timeout = httpx.Timeout(connect=3.0, read=self.settings.judge0_timeout_s, write=5.0, pool=5.0)
        limits = httpx.Limits(max_connections=20, max_keepalive_connections=10)
        try:
            async with httpx.AsyncClient(timeout=timeout, limits=limits, transport=self._transport) as client:
                return await client.request(method, url, headers=self.headers, **kwargs)
        except httpx.TimeoutException as e:
            raise BackendUnavailable(debug_info=f"Judge0 request timed out: {e!r}") from e
        except httpx.TransportError as e:
            raise BackendUnavailable(debug_info=f"Failed to connect to Judge0 at {self.base_url}: {e!r}") from e

    def _decode(self, resp: httpx.Response, op: str, expected: Sequence[int]) -> Any:
        if resp.status_code >= 500 or resp.status_code == 429:
            self._logger.warning("judge0 %s failed status=%d", op, resp.status_code)
            raise BackendUnavailable(debug_info=f"{op}: {resp.status_code} {resp.text[:200]}")
        if resp.status_code not in expected:
            self._logger.error("judge0 %s unexpected status=%d", op, resp.status_code)
            raise InvalidResponse(debug_info=f"{op}: {resp.status_code} {resp.text[:200]}")
        try:
            return resp.json()
        except ValueError as e:
            raise InvalidResponse(debug_info=f"{op}: body is not JSON: {resp.text[:200]}") from e

    # -------- Batch operations --------
    async def submit_batch(self, requests: Sequence[ExecutionRequest]) -> List[str]:
        """Submit every request in one call; returns tokens in the same order."""
        if not requests:
            return []
        payload = {"submissions": [r.model_dump(exclude_none=True) for r in requests]}
        resp = await self._request(
            "POST",
            "/submissions/batch",
            params={"base64_encoded": "false"},
            json=payload,
        )
        data = self._decode(resp, "batch submit", expected=(200, 201))
        if not isinstance(data, list):
            raise InvalidResponse(debug_info=f"batch submit: expected a list, got {type(data).__name__}")
        if len(data) != len(requests):
            raise InvalidResponse(
                debug_info=f"batch submit: {len(data)} tokens for {len(requests)} submissions"
            )
        tokens: List[str] = []
        for idx, item in enumerate(data):
            tok = item.get("token") if isinstance(item, dict) else None
            if not isinstance(tok, str) or not tok:
                # Judge0 reports per-item validation errors in place of the token
                raise InvalidResponse(debug_info=f"batch submit: item {idx} has no token: {item!r}"[:300])
            tokens.append(tok)
        self._logger.info("judge0 batch submitted count=%d", len(tokens))
        return tokens

    async def get_batch_results(self, tokens: Sequence[str]) -> Dict[str, Dict[str, Any]]:
        """Fetch the current state of ``tokens`` in one call (token -> raw payload)."""
        if not tokens:
            return {}
        resp = await self._request(
            "GET",
            "/submissions/batch",
            params={"tokens": ",".join(tokens), "base64_encoded": "false", "fields": RESULT_FIELDS},
        )
        data = self._decode(resp, "batch status", expected=(200,))
        # Judge0 batch GET returns {"submissions": [...]}
        arr = data.get("submissions") if isinstance(data, dict) else data
        if not isinstance(arr, list):
            raise InvalidResponse(debug_info="batch status: missing submissions list")
        wanted = set(tokens)
        results: Dict[str, Dict[str, Any]] = {}
        for item in arr:
            if not isinstance(item, dict):
                # null entries stand for tokens the backend does not know
                raise InvalidResponse(debug_info="batch status: backend returned an unknown token entry")
            tok = item.get("token")
            if tok not in wanted:
                raise InvalidResponse(debug_info=f"batch status: unexpected token {tok!r}")
            results[tok] = item
        missing = [t for t in tokens if t not in results]
        if missing:
            raise InvalidResponse(debug_info=f"batch status: no entry for {len(missing)} token(s)")
        return results

    async def poll_until_done(
        self,
        tokens: Sequence[str],
        poll_interval_ms: Optional[int] = None,
        max_wait_ms: Optional[int] = None,
    ) -> List[ExecutionResult]:
        """Poll until every token is terminal; results are aligned with ``tokens``.

        Only tokens still queued or processing are re-queried. The wait between
        rounds grows by ``judge0_poll_backoff`` up to ``judge0_poll_max_interval_ms``
        and never sleeps past the deadline. Raises ``ExecutionTimeout`` once
        ``max_wait_ms`` has elapsed with work outstanding.
        """
        tokens = list(tokens)
        if not tokens:
            return []
        return await self._poll(tokens, poll_interval_ms, self._deadline(max_wait_ms))

    def _deadline(self, max_wait_ms: Optional[int]) -> float:
        budget = (max_wait_ms if max_wait_ms is not None else self.settings.judge0_max_wait_ms) / 1000.0
        return self._clock() + budget

    async def _within(self, awaitable: Awaitable[Any], deadline: float, detail: str) -> Any:
        """Await ``awaitable`` but give up with ``ExecutionTimeout`` at ``deadline``."""
        remaining = deadline - self._clock()
        if remaining <= 0:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise ExecutionTimeout(debug_info=detail)
        try:
            return await asyncio.wait_for(awaitable, timeout=remaining)
        except asyncio.TimeoutError as e:
            raise ExecutionTimeout(debug_info=detail) from e

    async def _poll(
        self,
        tokens: List[str],
        poll_interval_ms: Optional[int],
        deadline: float,
    ) -> List[ExecutionResult]:
        interval = (poll_interval_ms if poll_interval_ms is not None else self.settings.judge0_poll_interval_ms) / 1000.0
        max_interval = max(interval, self.settings.judge0_poll_max_interval_ms / 1000.0)

        done: Dict[str, ExecutionResult] = {}
        pending = list(dict.fromkeys(tokens))
        rounds = 0
        while pending:
            rounds += 1
            try:
                payloads = await self._within(
                    self.get_batch_results(pending),
                    deadline,
                    f"{len(pending)} of {len(tokens)} executions still pending",
                )
            except ExecutionTimeout:
                self._logger.warning(
                    "judge0 poll timed out pending=%d total=%d rounds=%d", len(pending), len(tokens), rounds
                )
                raise
            for tok in pending:
                payload = payloads[tok]
                status_id = _status_id(payload)
                if status_id is None:
                    raise InvalidResponse(debug_info=f"batch status: token {tok!r} has no status")
                if is_terminal(status_id):
                    done[tok] = ExecutionResult.from_backend({**payload, "token": tok})
            pending = [t for t in pending if t not in done]
            if not pending:
                break
            remaining = deadline - self._clock()
            if remaining <= 0:
                self._logger.warning(
                    "judge0 poll timed out pending=%d total=%d rounds=%d", len(pending), len(tokens), rounds
                )
                raise ExecutionTimeout(debug_info=f"{len(pending)} of {len(tokens)} executions still pending")
            jitter = random.uniform(0.0, 0.05)
            await self._sleep(min(interval + jitter, remaining))
            interval = min(interval * self.settings.judge0_poll_backoff, max_interval)

        self._logger.debug("judge0 poll finished count=%d rounds=%d", len(tokens), rounds)
        return [done[t] for t in tokens]

    async def execute_batch(
        self,
        requests: Sequence[ExecutionRequest],
        *,
        poll_interval_ms: Optional[int] = None,
        max_wait_ms: Optional[int] = None,
    ) -> List[ExecutionResult]:
        """Submit a batch then poll until all finished; returns list aligned to original order.

        ``max_wait_ms`` covers the submit call and the polling together.
        """
        if not requests:
            return []
        deadline = self._deadline(max_wait_ms)
        tokens = await self._within(
            self.submit_batch(requests),
            deadline,
            f"batch submit of {len(requests)} executions did not return in time",
        )
        results = await self._poll(tokens, poll_interval_ms, deadline)
        aligned: List[ExecutionResult] = []
        for req, res in zip(requests, results):
            if res.expected_output is None and req.expected_output is not None:
                res = res.model_copy(update={"expected_output": req.expected_output})
            aligned.append(res)
        return aligned

    @staticmethod
    def get_statuses() -> List[Judge0Status]:
        return [Judge0Status(id=k, description=v) for k, v in sorted(STATUS_DESCRIPTIONS.items())]


__all__ = ["Judge0Service", "RESULT_FIELDS"]
