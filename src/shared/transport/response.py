"""Error extraction for backend responses.

Handles the error body shapes the commerce backend produces:

- FastAPI HTTPException: {"detail": "msg"}
- Pydantic validation (422): {"detail": [{"loc": [...], "msg": "...", "type": "..."}]}
- Domain errors: {"error": "msg"} or {"error": {"field": "msg"}}
"""

from typing import Any

from shared.errors import AuthExpiredError, ServerRejection
from shared.transport.port import HttpResponse


def extract_error_detail(response: HttpResponse, fallback: str | None = None) -> str:
    """Extract a human-readable error message from an API error response.

    Returns ``fallback`` (or a generic status message) when the body carries
    nothing useful.
    """
    body = response.body
    default = fallback or f"Request failed with status {response.status_code}"

    if not isinstance(body, dict):
        # Not a JSON object: prefer the caller's message over raw text
        text = (response.text or "").strip()
        if fallback is None and text:
            return text[:300]
        return default

    detail = body.get("detail")
    if isinstance(detail, str) and detail:
        return detail

    if isinstance(detail, list):
        parts = []
        for err in detail:
            if not isinstance(err, dict):
                parts.append(str(err))
                continue
            loc = ".".join(str(p) for p in err.get("loc", []))
            msg = err.get("msg", str(err))
            parts.append(f"{loc}: {msg}" if loc else msg)
        if parts:
            return " | ".join(parts)

    if "error" in body:
        error = body["error"]
        if isinstance(error, dict):
            return " | ".join(f"{k}: {v}" for k, v in error.items())
        return str(error)

    message = body.get("message")
    if isinstance(message, str) and message:
        return message

    return default


def expect_success(response: HttpResponse, fallback: str | None = None) -> Any:
    """Return the response body, or raise ``ServerRejection`` for error statuses."""
    if response.ok:
        return response.body
    detail = extract_error_detail(response, fallback)
    if response.unauthorized:
        raise AuthExpiredError(detail)
    raise ServerRejection(response.status_code, detail)
