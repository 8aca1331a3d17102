"""Session manager: login, logout, token refresh and the authenticated request wrapper.

State machine:
    ANONYMOUS --login ok--> AUTHENTICATED
    AUTHENTICATED --refresh failure | logout--> ANONYMOUS
    AUTHENTICATED --401 + refresh ok--> AUTHENTICATED

Every backend call that needs credentials goes through
``authenticated_request``. A 401 triggers at most one refresh for that
request, and concurrent 401s share a single in-flight refresh task, so the
refresh token is never presented twice in parallel. The retried request is
sent exactly once; a second 401 ends the session.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import ValidationError as SchemaError

from identity.api.client import AuthApi, parse_body
from identity.api.schemas import (
    Credentials,
    MessageResponse,
    PasswordResetConfirmation,
    SignupRequest,
    UserProfile,
)
from identity.session.claims import ClaimsDecodeFailure, DecodedClaims, decode_claims
from identity.session.tokens import StoredTokens, TokenStore
from identity.utils.logging import logger
from shared.config import Settings
from shared.errors import ForcedLogout, NetworkError, ServerRejection, StorefrontError
from shared.result import FORCED_LOGOUT, NETWORK, REJECTED, VALIDATION, OperationResult
from shared.transport.port import HttpRequest, HttpResponse, Transport
from shared.transport.response import expect_success


class SessionState(Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


class SessionEvent(Enum):
    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"
    FORCED_LOGOUT = "forced_logout"
    TOKEN_REFRESHED = "token_refreshed"


@dataclass(frozen=True)
class Session:
    access_token: str | None = None
    refresh_token: str | None = None
    role: str | None = None
    user: UserProfile | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token) and self.user is not None


SessionListener = Callable[[SessionEvent], None]


def _failure(exc: StorefrontError) -> OperationResult:
    code = NETWORK if isinstance(exc, NetworkError) else REJECTED
    return OperationResult.fail(exc.message, code=code)


class SessionManager:
    """Owns the client session. Construct one per application session."""

    def __init__(
        self,
        transport: Transport,
        token_store: TokenStore,
        settings: Settings,
        auth_api: AuthApi | None = None,
    ) -> None:
        self.transport = transport
        self.tokens = token_store
        self.settings = settings
        self.auth = auth_api or AuthApi(transport, settings)

        self._state = SessionState.ANONYMOUS
        self._user: UserProfile | None = None
        self._listeners: list[SessionListener] = []
        self._refresh_task: asyncio.Task[bool] | None = None
        # Bumped on every local clear; results fetched under an older epoch are dropped
        self._epoch = 0

    # -------------------------------------------------------------------
    # Read-only view
    # -------------------------------------------------------------------
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_authenticated(self) -> bool:
        return self._state is SessionState.AUTHENTICATED

    @property
    def user(self) -> UserProfile | None:
        return self._user

    @property
    def role(self) -> str | None:
        return self.tokens.role or (self._user.role if self._user else None)

    @property
    def session(self) -> Session:
        stored = self.tokens.load()
        return Session(
            access_token=stored.access_token,
            refresh_token=stored.refresh_token,
            role=self.role,
            user=self._user,
        )

    def has_role(self, *roles: str) -> bool:
        """True when authenticated with any of ``roles`` (case-insensitive)."""
        role = self.role
        if not self.is_authenticated or role is None:
            return False
        return role.lower() in {r.lower() for r in roles}

    @property
    def is_admin(self) -> bool:
        return self.has_role("admin")

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Call ``listener`` on every session event. Returns an idempotent unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: SessionEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    # -------------------------------------------------------------------
    # Login / logout
    # -------------------------------------------------------------------
    async def login(self, credentials: Credentials | dict[str, Any]) -> OperationResult:
        try:
            creds = Credentials.model_validate(credentials)
        except SchemaError:
            return OperationResult.fail("Email and password are required", code=VALIDATION)

        try:
            pair = await self.auth.login(creds)
        except StorefrontError as exc:
            logger.info("Login rejected", error=exc.message)
            return _failure(exc)

        claims = decode_claims(pair.access_token)
        if isinstance(claims, ClaimsDecodeFailure):
            error = claims.as_error()
            logger.warning("Login returned an undecodable access token", reason=claims.reason)
            self._clear_local()
            return OperationResult.fail(error.message, code=REJECTED)

        self.tokens.save(
            StoredTokens(
                access_token=pair.access_token,
                refresh_token=pair.refresh_token,
                role=claims.role,
            )
        )

        try:
            user = await self._load_user()
        except ForcedLogout as exc:
            return OperationResult.fail(exc.message, code=FORCED_LOGOUT)
        except StorefrontError as exc:
            logger.warning("Could not load profile after login", error=exc.message)
            self._clear_local()
            return _failure(exc)

        self._authenticate(user)
        logger.info("Signed in", user_id=str(user.id), role=self.role)
        return OperationResult.ok("Login successful!", data=user)

    async def logout(self) -> OperationResult:
        """Best-effort server logout, then an unconditional local clear."""
        access_token = self.tokens.access_token
        try:
            if access_token:
                await self.auth.logout(access_token)
        except StorefrontError as exc:
            logger.info("Server logout failed, clearing local session anyway", error=exc.message)
        finally:
            self._clear_local()
            self._emit(SessionEvent.SIGNED_OUT)

        return OperationResult.ok("Logged out successfully")

    async def restore(self) -> bool:
        """Rebuild the session from stored tokens, e.g. on application start."""
        if not self.tokens.access_token:
            return False

        try:
            user = await self._load_user()
        except ForcedLogout:
            return False
        except StorefrontError as exc:
            logger.warning("Could not restore session", error=exc.message)
            return False

        self._authenticate(user)
        return True

    async def _load_user(self) -> UserProfile:
        response = await self.authenticated_request("GET", self.auth.path(AuthApi.CURRENT_USER))
        expect_success(response, "Could not load your profile")
        return parse_body(UserProfile, response)

    def _authenticate(self, user: UserProfile) -> None:
        self._user = user
        stored = self.tokens.load()
        if stored.role is None and user.role:
            self.tokens.save(
                StoredTokens(
                    access_token=stored.access_token,
                    refresh_token=stored.refresh_token,
                    role=user.role,
                )
            )
        self._state = SessionState.AUTHENTICATED
        self._emit(SessionEvent.SIGNED_IN)

    def _clear_local(self) -> None:
        self._epoch += 1
        self.tokens.clear()
        self._user = None
        self._state = SessionState.ANONYMOUS

    def _expire(self, reason: str) -> None:
        was_authenticated = self.is_authenticated
        logger.info("Session cleared", reason=reason)
        self._clear_local()
        if was_authenticated:
            self._emit(SessionEvent.FORCED_LOGOUT)

    # -------------------------------------------------------------------
    # Refresh
    # -------------------------------------------------------------------
    async def refresh(self) -> bool:
        """Mint a new access token. Concurrent callers share one attempt."""
        if self._refresh_task is None:
            task = asyncio.ensure_future(self._do_refresh())
            task.add_done_callback(self._refresh_finished)
            self._refresh_task = task
        return await asyncio.shield(self._refresh_task)

    def _refresh_finished(self, task: asyncio.Task[bool]) -> None:
        if self._refresh_task is task:
            self._refresh_task = None

    async def _do_refresh(self) -> bool:
        stored = self.tokens.load()
        if not stored.refresh_token:
            self._expire("No refresh token available")
            return False

        epoch = self._epoch
        try:
            response = await self.auth.refresh(stored.refresh_token)
        except StorefrontError as exc:
            logger.warning("Token refresh failed", error=exc.message)
            self._expire("Token refresh failed")
            return False

        if self._epoch != epoch:
            logger.info("Session cleared while refreshing, discarding new token")
            return False

        claims = decode_claims(response.access_token)
        if isinstance(claims, ClaimsDecodeFailure):
            logger.warning("Refresh returned an undecodable access token", reason=claims.reason)
            self._expire("Malformed access token")
            return False

        self.tokens.save(
            StoredTokens(
                access_token=response.access_token,
                refresh_token=response.refresh_token or stored.refresh_token,
                role=self._derive_role(claims),
            )
        )
        logger.debug("Access token refreshed")
        self._emit(SessionEvent.TOKEN_REFRESHED)
        return True

    def _derive_role(self, claims: DecodedClaims) -> str | None:
        if claims.role is not None:
            return claims.role
        return self._user.role if self._user else None

    # -------------------------------------------------------------------
    # Authenticated requests
    # -------------------------------------------------------------------
    async def authenticated_request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> HttpResponse:
        """Send a request with the access token, refreshing once on a 401.

        Returns the response for any non-401 status. Raises ``NetworkError``
        when the backend is unreachable and ``ForcedLogout`` when the session
        could not be recovered.
        """
        request = HttpRequest(method=method, path=path, json=json, params=params)

        epoch = self._epoch
        sent_with = self.tokens.access_token
        response = await self.transport.send(request.with_bearer(sent_with))
        if not response.unauthorized:
            return response

        logger.info("Access token rejected", method=method, path=path)
        if not await self._recover(sent_with):
            raise ForcedLogout()
        if self._epoch != epoch:
            # Signed out while recovering; never replay for a cleared session
            raise ForcedLogout()

        response = await self.transport.send(request.with_bearer(self.tokens.access_token))
        if response.unauthorized:
            self._expire("Access token rejected after refresh")
            raise ForcedLogout()
        return response

    async def _recover(self, rejected_token: str | None) -> bool:
        current = self.tokens.access_token
        if current and current != rejected_token:
            # Rotated by another caller while this request was in flight
            return True
        return await self.refresh()

    # -------------------------------------------------------------------
    # Account flows that need no session
    # -------------------------------------------------------------------
    async def _account_call(
        self,
        call: Callable[[], Awaitable[MessageResponse]],
        success_message: str,
    ) -> OperationResult:
        try:
            response = await call()
        except StorefrontError as exc:
            return _failure(exc)
        return OperationResult.ok(response.message or success_message)

    async def signup(self, data: SignupRequest | dict[str, Any]) -> OperationResult:
        try:
            request = SignupRequest.model_validate(data)
        except SchemaError:
            return OperationResult.fail("Email and password are required", code=VALIDATION)
        return await self._account_call(lambda: self.auth.signup(request), "Account created successfully!")

    async def request_password_reset(self, email: str) -> OperationResult:
        return await self._account_call(
            lambda: self.auth.request_password_reset(email),
            "Password reset link sent to your email",
        )

    async def confirm_password_reset(
        self,
        token: str,
        passwords: PasswordResetConfirmation | dict[str, Any],
    ) -> OperationResult:
        try:
            confirmation = PasswordResetConfirmation.model_validate(passwords)
        except SchemaError:
            return OperationResult.fail("Both password fields are required", code=VALIDATION)
        return await self._account_call(
            lambda: self.auth.confirm_password_reset(token, confirmation),
            "Password reset successfully",
        )

    async def verify_email(self, token: str) -> OperationResult:
        return await self._account_call(lambda: self.auth.verify_email(token), "Email verified successfully")

    async def request_verification_link(self, email: str) -> OperationResult:
        return await self._account_call(
            lambda: self.auth.request_verification_link(email),
            "Verification link sent to your email",
        )
