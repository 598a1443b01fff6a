"""Unified async Supabase client (single entry point).

Import using: from app.db.supabase import get_supabase
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Optional

from supabase import AsyncClient, create_async_client

from app.core.config import get_settings

logger = logging.getLogger("db.supabase")

_client: Optional[AsyncClient] = None
_lock = asyncio.Lock()


async def get_supabase() -> AsyncClient:
    global _client
    if _client is not None:
        return _client
    async with _lock:
        if _client is None:
            settings = get_settings()
            _client = await create_async_client(settings.supabase_url, settings.supabase_key)
    return _client


async def execute(awaitable: Awaitable[Any], op: str) -> Any:
    """Await a Supabase query under the configured timeout, logging slow calls."""
    timeout = get_settings().supabase_query_timeout_s
    t0 = time.perf_counter()
    try:
        resp = await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError:
        raise RuntimeError(f"Supabase {op} timed out after {timeout}s")
    ms = int((time.perf_counter() - t0) * 1000)
    if ms > 50:
        logger.info("supabase_%s_ms=%d", op, ms)
    return resp


__all__ = ["get_supabase", "execute"]
