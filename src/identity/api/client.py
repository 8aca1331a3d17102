"""Client for the backend's authentication endpoints.

These calls either need no credentials or carry an explicit token chosen by
the caller (the refresh token for ``refresh``), so they go straight to the
transport instead of through the session's retrying wrapper.
"""

from typing import TypeVar
from urllib.parse import quote

from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from identity.api.schemas import (
    AccessTokenResponse,
    Credentials,
    MessageResponse,
    PasswordResetConfirmation,
    PasswordResetRequest,
    SignupRequest,
    TokenPair,
)
from shared.config import Settings
from shared.errors import ServerRejection
from shared.transport.port import HttpRequest, HttpResponse, Transport
from shared.transport.response import expect_success

M = TypeVar("M", bound=BaseModel)


def parse_body(model: type[M], response: HttpResponse) -> M:
    """Validate a response body, reporting a malformed one as a rejection."""
    try:
        return model.model_validate(response.body if response.body is not None else {})
    except SchemaError as exc:
        raise ServerRejection(
            response.status_code,
            f"Malformed {model.__name__} response from server",
        ) from exc


class AuthApi:
    LOGIN = "auth/login"
    SIGNUP = "auth/signup"
    LOGOUT = "auth/logout"
    REFRESH = "auth/refresh-token"
    CURRENT_USER = "auth/user/me"
    RESET_PASSWORD = "auth/reset-password"
    CONFIRM_RESET_PASSWORD = "auth/confirm-reset-password/{token}"
    VERIFY_ACCOUNT = "auth/verify-account/{token}"
    REQUEST_VERIFICATION_LINK = "auth/request-verification-link"

    def __init__(self, transport: Transport, settings: Settings) -> None:
        self.transport = transport
        self.settings = settings

    def path(self, template: str, **params: str) -> str:
        quoted = {k: quote(str(v), safe="") for k, v in params.items()}
        return self.settings.endpoint(template.format(**quoted))

    async def _call(self, request: HttpRequest, fallback: str) -> HttpResponse:
        response = await self.transport.send(request)
        expect_success(response, fallback)
        return response

    async def login(self, credentials: Credentials) -> TokenPair:
        response = await self._call(
            HttpRequest("POST", self.path(self.LOGIN), json=credentials.model_dump()),
            "Login failed. Please try again.",
        )
        return parse_body(TokenPair, response)

    async def refresh(self, refresh_token: str) -> AccessTokenResponse:
        request = HttpRequest("GET", self.path(self.REFRESH)).with_bearer(refresh_token)
        response = await self._call(request, "Session refresh failed")
        return parse_body(AccessTokenResponse, response)

    async def logout(self, access_token: str | None) -> None:
        request = HttpRequest("POST", self.path(self.LOGOUT)).with_bearer(access_token)
        await self._call(request, "Logout failed")

    async def signup(self, data: SignupRequest) -> MessageResponse:
        response = await self._call(
            HttpRequest("POST", self.path(self.SIGNUP), json=data.model_dump(exclude_none=True)),
            "Signup failed. Please try again.",
        )
        return parse_body(MessageResponse, response)

    async def request_password_reset(self, email: str) -> MessageResponse:
        payload = PasswordResetRequest(email=email.strip())
        response = await self._call(
            HttpRequest("POST", self.path(self.RESET_PASSWORD), json=payload.model_dump()),
            "Failed to send reset link",
        )
        return parse_body(MessageResponse, response)

    async def confirm_password_reset(self, token: str, passwords: PasswordResetConfirmation) -> MessageResponse:
        response = await self._call(
            HttpRequest(
                "POST",
                self.path(self.CONFIRM_RESET_PASSWORD, token=token),
                json=passwords.model_dump(),
            ),
            "Failed to reset password",
        )
        return parse_body(MessageResponse, response)

    async def verify_email(self, token: str) -> MessageResponse:
        response = await self._call(
            HttpRequest("GET", self.path(self.VERIFY_ACCOUNT, token=token)),
            "Failed to verify email",
        )
        return parse_body(MessageResponse, response)

    async def request_verification_link(self, email: str) -> MessageResponse:
        payload = PasswordResetRequest(email=email.strip())
        response = await self._call(
            HttpRequest("POST", self.path(self.REQUEST_VERIFICATION_LINK), json=payload.model_dump()),
            "Failed to send verification link",
        )
        return parse_body(MessageResponse, response)
