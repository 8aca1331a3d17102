"""Storefront application: builds and wires the client services.

Usage:
    app = StorefrontApp.from_settings()
    await app.start()
    await app.login({"email": "jane@example.com", "password": "secret"})
    checkout = app.checkout()
    ...
    await app.aclose()

One ``StorefrontApp`` per application session. Every service receives its
collaborators from here.
"""

import structlog

from identity.api.schemas import Credentials
from identity.session.manager import SessionEvent, SessionManager
from identity.session.tokens import FileTokenStore, InMemoryTokenStore, TokenStore
from ordering.cart.synchronizer import CartSynchronizer
from ordering.checkout.orchestrator import CheckoutOrchestrator
from payments.gateway import MobileMoneyGateway, MpesaGateway
from shared.config import Settings, get_settings
from shared.errors import ForcedLogout
from shared.notifications import NotificationCenter
from shared.result import OperationResult
from shared.transport import HttpxTransport, Transport
from shared.utils.logging import configure_logging

logger = structlog.get_logger(__name__)


class StorefrontApp:
    def __init__(
        self,
        settings: Settings,
        transport: Transport,
        token_store: TokenStore,
        gateway: MobileMoneyGateway | None = None,
        notifications: NotificationCenter | None = None,
    ) -> None:
        self.settings = settings
        self.transport = transport
        self.notifications = notifications or NotificationCenter()
        self.session = SessionManager(transport, token_store, settings)
        self.gateway = gateway or MpesaGateway(self.session)
        self.cart = CartSynchronizer(self.session, self.notifications)

        # Set when the session ends without the customer asking for it
        self.sign_in_required = False
        self._unsubscribe = self.session.subscribe(self._on_session_event)

    @classmethod
    def from_settings(cls, settings: Settings | None = None, transport: Transport | None = None) -> "StorefrontApp":
        settings = settings or get_settings()
        configure_logging(settings.environment, settings.log_level)

        if transport is None:
            transport = HttpxTransport(settings.base_url, timeout=settings.request_timeout)
        if settings.token_store_path is not None:
            token_store: TokenStore = FileTokenStore(settings.token_store_path)
        else:
            token_store = InMemoryTokenStore()
        return cls(settings, transport, token_store)

    def _on_session_event(self, event: SessionEvent) -> None:
        if event is SessionEvent.FORCED_LOGOUT:
            self.sign_in_required = True
            self.notifications.warning(ForcedLogout().message)
        elif event is SessionEvent.SIGNED_IN:
            self.sign_in_required = False

    async def start(self) -> bool:
        """Resume a stored session, loading its cart. Returns True when signed in."""
        restored = await self.session.restore()
        if restored:
            await self.cart.refresh()
        return restored

    async def login(self, credentials: Credentials | dict) -> OperationResult:
        result = await self.session.login(credentials)
        if result.success:
            self.notifications.success(result.message)
            await self.cart.refresh()
        else:
            self.notifications.error(result.message)
        return result

    async def logout(self) -> OperationResult:
        result = await self.session.logout()
        self.notifications.info(result.message)
        return result

    def checkout(self) -> CheckoutOrchestrator:
        """A fresh orchestrator for one visit to checkout."""
        return CheckoutOrchestrator(
            self.session,
            self.cart,
            self.gateway,
            notifications=self.notifications,
            settings=self.settings,
        )

    async def aclose(self) -> None:
        self._unsubscribe()
        self.cart.close()
        await self.transport.aclose()
        logger.debug("Storefront closed")
