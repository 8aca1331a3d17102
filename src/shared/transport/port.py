"""HTTP transport port (abstract interface).

The session layer talks to the backend only through ``Transport.send``. This
keeps the refresh-and-retry logic independent of the HTTP library and lets
tests script responses with ``FakeTransport``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class HttpRequest:
    method: str
    path: str
    json: Any = None
    params: dict[str, Any] | None = None
    headers: dict[str, str] = field(default_factory=dict)

    def with_bearer(self, token: str | None) -> "HttpRequest":
        """Return a copy carrying ``token`` as the Authorization header."""
        headers = {k: v for k, v in self.headers.items() if k.lower() != "authorization"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return HttpRequest(
            method=self.method,
            path=self.path,
            json=self.json,
            params=self.params,
            headers=headers,
        )

    @property
    def bearer(self) -> str | None:
        for key, value in self.headers.items():
            if key.lower() == "authorization" and value.startswith("Bearer "):
                return value[len("Bearer ") :]
        return None


@dataclass(frozen=True)
class HttpResponse:
    status_code: int
    body: Any = None
    text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def unauthorized(self) -> bool:
        return self.status_code == 401


class Transport(ABC):
    """Abstract HTTP transport."""

    @abstractmethod
    async def send(self, request: HttpRequest) -> HttpResponse:
        """Send a request and return the response.

        Raises ``NetworkError`` when no response could be obtained.
        Error statuses are returned, not raised.
        """
        ...

    async def aclose(self) -> None:  # noqa: B027
        """Release any pooled connections."""
