"""Fakes and response builders shared by the test modules."""

import asyncio
import json
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Callable, Optional

from netatmo.dispatcher import RequestDispatcher
from netatmo.models import RawResponse
from netatmo.scheduler import Scheduler, TimerHandle
from netatmo.types import HttpMethod

NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)

CREDENTIALS = {
    "client_id": "c",
    "client_secret": "s",
    "username": "u",
    "password": "p",
}


def json_response(data: Any, status: int = 200) -> RawResponse:
    return RawResponse(
        status_code=status,
        headers={"Content-Type": "application/json; charset=utf-8"},
        content=json.dumps(data).encode(),
    )


def text_response(
    content: bytes, status: int = 200, content_type: str = "text/html"
) -> RawResponse:
    return RawResponse(
        status_code=status, headers={"Content-Type": content_type}, content=content
    )


class FakeDispatcher(RequestDispatcher):
    """Returns queued responses in order and records every call.

    A queued exception is raised instead of returned. A queued
    asyncio.Future is awaited first, which keeps the call pending until
    the test resolves it.
    """

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.calls: list[SimpleNamespace] = []
        self.closed = False

    async def dispatch(
        self,
        method: HttpMethod,
        url: str,
        *,
        body: Optional[dict[str, Any]] = None,
        query: Optional[dict[str, Any]] = None,
    ) -> RawResponse:
        self.calls.append(
            SimpleNamespace(method=HttpMethod(method), url=url, body=body, query=query)
        )
        result = self.responses.pop(0)
        if isinstance(result, asyncio.Future):
            result = await result
        if isinstance(result, Exception):
            raise result
        return result

    async def close(self) -> None:
        self.closed = True


class FakeTimer(TimerHandle):
    def __init__(
        self, when: float, delay: float, callback: Callable[..., Any], args: tuple
    ) -> None:
        self.when = when
        self.delay = delay
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler(Scheduler):
    """Scheduler with a manual clock, advanced explicitly by tests."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[FakeTimer] = []

    def call_later(
        self, delay: float, callback: Callable[..., Any], *args: Any
    ) -> TimerHandle:
        timer = FakeTimer(self.now + delay, delay, callback, args)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def advance(self, seconds: float) -> None:
        self.now += seconds
        for timer in self.pending:
            if timer.when <= self.now:
                timer.fired = True
                timer.callback(*timer.args)
