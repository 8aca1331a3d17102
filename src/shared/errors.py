"""Error taxonomy for the storefront client.

Local, field-level problems are reported with Protean's ``ValidationError``
(``{"field": ["message", ...]}``) so that callers can render them inline.
Everything that comes back from, or fails on the way to, the backend is a
``StorefrontError`` subclass.
"""


class StorefrontError(Exception):
    """Base class for client-side failures."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NetworkError(StorefrontError):
    """The request never produced a response (connection failure or timeout)."""


class ServerRejection(StorefrontError):
    """The backend answered with an error status."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(detail)


class AuthExpiredError(ServerRejection):
    """The backend rejected the access token (HTTP 401)."""

    def __init__(self, detail: str = "Not authenticated"):
        super().__init__(401, detail)


class ForcedLogout(StorefrontError):
    """The session could not be recovered and has been cleared."""

    def __init__(self, message: str = "Your session has expired. Please sign in again."):
        super().__init__(message)


class ClaimsDecodeError(StorefrontError):
    """An access token's payload segment could not be decoded."""


class PaymentInitiationError(StorefrontError):
    """A mobile-money push could not be started. The order itself still exists."""
