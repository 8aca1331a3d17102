"""Scriptable in-memory transport for development and testing.

Responses are registered per ``(method, path)``. When several responses are
stubbed for the same route they are served in order and the last one repeats.
A stub may also be an exception (raised from ``send``) or a callable that
receives the request and returns a response, which is how tests emulate a
backend that looks at the bearer token.
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import Any

from shared.transport.port import HttpRequest, HttpResponse, Transport

Responder = HttpResponse | BaseException | Callable[[HttpRequest], HttpResponse | Awaitable[HttpResponse]]


class FakeTransport(Transport):
    """Configurable fake transport that records every request."""

    def __init__(self) -> None:
        self.calls: list[HttpRequest] = []
        self._routes: dict[tuple[str, str], list[Responder]] = {}

    def stub(self, method: str, path: str, *responses: Responder) -> None:
        """Replace the scripted responses for a route."""
        self._routes[(method.upper(), path)] = list(responses)

    def respond(self, method: str, path: str, status_code: int = 200, body: Any = None) -> None:
        self.stub(method, path, HttpResponse(status_code=status_code, body=body))

    def calls_to(self, method: str, path: str) -> list[HttpRequest]:
        return [c for c in self.calls if c.method.upper() == method.upper() and c.path == path]

    def reset_calls(self) -> None:
        self.calls = []

    async def send(self, request: HttpRequest) -> HttpResponse:
        self.calls.append(request)
        # Yield like a real network round-trip would
        await asyncio.sleep(0)

        queue = self._routes.get((request.method.upper(), request.path))
        if not queue:
            return HttpResponse(status_code=404, body={"detail": "Not Found"})

        responder = queue.pop(0) if len(queue) > 1 else queue[0]

        if isinstance(responder, BaseException):
            raise responder
        if isinstance(responder, HttpResponse):
            return responder

        result = responder(request)
        if inspect.isawaitable(result):
            result = await result
        return result
