"""
Axiom shipping for blog API request events.

Events are buffered in memory and posted as NDJSON in batches. The buffer
is bounded: while ingest keeps failing the oldest events are dropped, and
no new attempt starts until the backoff window has passed.
"""

import asyncio
import json
import logging
import os
import time
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Any

import httpx

from quizzy.config import SITE_NAME

logger = logging.getLogger(__name__)


@dataclass
class RequestEvent:
    timestamp: str
    site: str
    method: str
    route: str
    path: str
    status: int
    duration_ms: float
    ip: str
    user_agent: str
    blog_slug: str | None = None
    blog_id: str | None = None
    view_counted: bool | None = None
    admin_id: str | None = None
    suspicious: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


class AxiomClient:
    def __init__(
        self,
        token: str | None = None,
        dataset: str = "requests",
        batch_size: int = 100,
        flush_interval: float = 10.0,
        max_buffer: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.token = token if token is not None else os.getenv("AXIOM_TOKEN", "")
        self.dataset = dataset
        self.batch_size = batch_size
        self.flush_interval = flush_interval
        self.max_buffer = max_buffer or batch_size * 10
        self.ingest_url = f"https://api.axiom.co/v1/datasets/{dataset}/ingest"
        self._transport = transport
        self._buffer: list[dict] = []
        self._last_flush = time.time()
        self._retry_after = 0.0
        self._flush_task: asyncio.Task | None = None
        self.events_sent = 0
        self.events_failed = 0
        self.events_dropped = 0

    @property
    def is_enabled(self) -> bool:
        return bool(self.token)

    @property
    def flushing(self) -> bool:
        return self._flush_task is not None and not self._flush_task.done()

    def _buffer_events(self, events: list[dict]) -> None:
        self._buffer.extend(events)
        overflow = len(self._buffer) - self.max_buffer
        if overflow > 0:
            del self._buffer[:overflow]
            self.events_dropped += overflow

    def _due(self, now: float) -> bool:
        if now < self._retry_after:
            return False
        return (
            len(self._buffer) >= self.batch_size
            or now - self._last_flush >= self.flush_interval
        )

    async def log_event(self, event: RequestEvent) -> None:
        if not self.is_enabled:
            return
        self._buffer_events([event.to_dict()])
        if not self.flushing and self._due(time.time()):
            self._flush_task = asyncio.create_task(self.flush())
            self._flush_task.add_done_callback(self._flush_done)

    def _flush_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Axiom flush crashed: {exc!r}")

    async def flush(self) -> None:
        if not self._buffer or not self.is_enabled:
            return
        events, self._buffer = self._buffer, []
        self._last_flush = time.time()
        body = "\n".join(json.dumps(e) for e in events)
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/x-ndjson",
        }
        try:
            async with httpx.AsyncClient(timeout=5.0, transport=self._transport) as client:
                response = await client.post(self.ingest_url, headers=headers, content=body)
            ok = response.status_code == 200
            reason = f"HTTP {response.status_code}"
        except httpx.HTTPError as e:
            ok, reason = False, str(e)

        if ok:
            self.events_sent += len(events)
            self._retry_after = 0.0
            return

        logger.warning(f"Axiom ingest failed for {len(events)} events: {reason}")
        self.events_failed += len(events)
        self._retry_after = time.time() + self.flush_interval
        # Failed batch goes back in front of anything logged meanwhile
        pending, self._buffer = self._buffer, []
        self._buffer_events(events + pending)

    async def aclose(self) -> None:
        if self.flushing:
            await self._flush_task
        await self.flush()


_axiom_client: AxiomClient | None = None


def get_axiom_client() -> AxiomClient:
    global _axiom_client
    if _axiom_client is None:
        _axiom_client = AxiomClient(dataset=os.getenv("AXIOM_DATASET", "requests"))
    return _axiom_client


def create_event(
    *,
    method: str,
    route: str,
    path: str,
    status: int,
    duration_ms: float,
    ip: str,
    user_agent: str,
    site: str = SITE_NAME,
    **blog_fields: Any,
) -> RequestEvent:
    return RequestEvent(
        timestamp=datetime.now(timezone.utc).isoformat(),
        site=site,
        method=method,
        route=route,
        path=path,
        status=status,
        duration_ms=duration_ms,
        ip=ip,
        user_agent=user_agent or "Unknown",
        **blog_fields,
    )
