"""HTTP transport used by every backend call.

- HttpxTransport talks to the real backend
- FakeTransport serves scripted responses for development and tests
"""

from shared.transport.fake_adapter import FakeTransport
from shared.transport.httpx_adapter import HttpxTransport
from shared.transport.port import HttpRequest, HttpResponse, Transport

__all__ = ["FakeTransport", "HttpRequest", "HttpResponse", "HttpxTransport", "Transport"]
