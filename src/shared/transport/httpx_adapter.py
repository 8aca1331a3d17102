"""httpx-backed transport for the commerce backend."""

import asyncio

import httpx
import structlog

from shared.errors import NetworkError
from shared.transport.port import HttpRequest, HttpResponse, Transport

logger = structlog.get_logger(__name__)


class HttpxTransport(Transport):
    """Sends requests through a shared ``httpx.AsyncClient``.

    Every exchange is bounded by ``timeout`` seconds in total. Passing
    ``transport`` (for example ``httpx.ASGITransport``) routes requests to an
    in-process app instead of the network.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            transport=transport,
        )

    async def send(self, request: HttpRequest) -> HttpResponse:
        try:
            async with asyncio.timeout(self.timeout):
                response = await self._client.request(
                    request.method,
                    request.path,
                    json=request.json,
                    params=request.params,
                    headers=request.headers,
                )
        except (TimeoutError, httpx.TimeoutException) as exc:
            logger.warning("Request timed out", method=request.method, path=request.path)
            raise NetworkError(f"Request to {request.path} timed out") from exc
        except httpx.RequestError as exc:
            logger.warning(
                "Request failed",
                method=request.method,
                path=request.path,
                error=str(exc),
            )
            raise NetworkError(f"Could not reach the server: {exc}") from exc

        return _to_response(response)

    async def aclose(self) -> None:
        await self._client.aclose()


def _to_response(response: httpx.Response) -> HttpResponse:
    try:
        body = response.json() if response.content else None
    except ValueError:
        body = None
    return HttpResponse(status_code=response.status_code, body=body, text=response.text)
