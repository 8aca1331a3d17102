"""Server-synchronized cart.

The server is authoritative: every mutation is followed by a refetch, except
``clear()`` whose outcome is known. Operations never raise; they return an
``OperationResult`` and post a notification where the customer should see one.

Overlapping calls are not serialized here. Callers should check
``is_loading`` before starting a mutation so that a slow refresh cannot
overwrite the effect of a newer one.
"""

from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager

from identity.session.manager import SessionEvent, SessionManager
from ordering.api.client import CartApi
from ordering.cart.cart import Cart
from ordering.utils.logging import logger
from shared.errors import ForcedLogout, NetworkError, StorefrontError
from shared.notifications import NotificationCenter
from shared.result import FORCED_LOGOUT, NETWORK, REJECTED, SIGN_IN_REQUIRED, VALIDATION, OperationResult


class CartSynchronizer:
    def __init__(
        self,
        session: SessionManager,
        notifications: NotificationCenter | None = None,
        api: CartApi | None = None,
    ) -> None:
        self.session = session
        self.api = api or CartApi(session)
        self.notifications = notifications or NotificationCenter()

        self._cart: Cart | None = None
        self._item_count = 0
        self._pending = 0
        # Bumped on every reset; results fetched under an older value are dropped
        self._generation = 0
        self._unsubscribe = session.subscribe(self._on_session_event)

    # -------------------------------------------------------------------
    # Snapshot
    # -------------------------------------------------------------------
    @property
    def cart(self) -> Cart | None:
        return self._cart

    @property
    def item_count(self) -> int:
        return self._item_count

    @property
    def is_loading(self) -> bool:
        return self._pending > 0

    def _on_session_event(self, event: SessionEvent) -> None:
        if event is not SessionEvent.TOKEN_REFRESHED:
            self.reset()

    def reset(self) -> None:
        """Forget the local snapshot and discard any in-flight results."""
        self._generation += 1
        self._cart = None
        self._item_count = 0

    def close(self) -> None:
        """Detach from the session. Late responses are discarded."""
        self._unsubscribe()
        self.reset()

    def _apply(self, cart: Cart, generation: int) -> bool:
        if generation != self._generation:
            logger.debug("Discarding cart fetched before a reset")
            return False
        self._cart = cart
        self._item_count = cart.item_count
        return True

    @contextmanager
    def _loading(self) -> Iterator[None]:
        self._pending += 1
        try:
            yield
        finally:
            self._pending -= 1

    def _failure(self, exc: StorefrontError, notify: bool = True) -> OperationResult:
        if isinstance(exc, ForcedLogout):
            # The application surfaces forced logout once, not per operation
            return OperationResult.fail(exc.message, code=FORCED_LOGOUT)
        if notify:
            self.notifications.error(exc.message)
        code = NETWORK if isinstance(exc, NetworkError) else REJECTED
        return OperationResult.fail(exc.message, code=code)

    def _sign_in_required(self, message: str, notify: bool = False) -> OperationResult:
        if notify:
            self.notifications.error(message)
        return OperationResult.fail(message, code=SIGN_IN_REQUIRED)

    # -------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------
    async def refresh(self) -> OperationResult:
        """Refetch the cart. A missing cart on the server is an empty cart."""
        if not self.session.is_authenticated:
            self.reset()
            return self._sign_in_required("Please login to view your cart")

        generation = self._generation
        with self._loading():
            try:
                cart = await self.api.fetch()
            except StorefrontError as exc:
                logger.warning("Error fetching cart", error=exc.message)
                return self._failure(exc, notify=False)

        self._apply(cart, generation)
        return OperationResult.ok(data=self._cart)

    async def _mutate(
        self,
        call: Callable[[], Awaitable[None]],
        action: str,
        success_message: str | None = None,
    ) -> OperationResult:
        with self._loading():
            try:
                await call()
            except StorefrontError as exc:
                logger.warning("Cart update failed", action=action, error=exc.message)
                return self._failure(exc)

            refreshed = await self.refresh()
            if not refreshed.success:
                logger.warning("Cart changed but could not be reloaded", action=action, error=refreshed.message)

        if success_message:
            self.notifications.success(success_message)
        return OperationResult.ok(success_message, data=self._cart)

    async def add_item(self, product_id: str, quantity: int = 1) -> OperationResult:
        if not self.session.is_authenticated:
            return self._sign_in_required("Please login to add items to cart", notify=True)
        if quantity < 1:
            return OperationResult.fail("Quantity must be at least 1", code=VALIDATION)

        logger.info("Adding item to cart", product_id=str(product_id), quantity=quantity)
        return await self._mutate(lambda: self.api.add_item(product_id, quantity), "add_item")

    async def set_quantity(self, item_id: str, quantity: int) -> OperationResult:
        if not self.session.is_authenticated:
            return self._sign_in_required("Please login to update your cart")
        if quantity < 1:
            return OperationResult.fail("Quantity must be at least 1", code=VALIDATION)

        return await self._mutate(lambda: self.api.set_quantity(item_id, quantity), "set_quantity")

    async def remove_item(self, item_id: str) -> OperationResult:
        if not self.session.is_authenticated:
            return self._sign_in_required("Please login to update your cart")

        return await self._mutate(lambda: self.api.remove_item(item_id), "remove_item", "Item removed from cart")

    async def clear(self, quiet: bool = False) -> OperationResult:
        """Empty the cart on the server, then locally without a refetch."""
        if not self.session.is_authenticated:
            return self._sign_in_required("Please login to update your cart")

        generation = self._generation
        with self._loading():
            try:
                await self.api.clear()
            except StorefrontError as exc:
                logger.warning("Error clearing cart", error=exc.message)
                return self._failure(exc, notify=not quiet)

        self._apply(Cart.empty(), generation)
        if not quiet:
            self.notifications.success("Cart cleared successfully")
        return OperationResult.ok("Cart cleared successfully", data=self._cart)

    async def apply_coupon(self, code: str) -> OperationResult:
        """Apply a coupon. A rejection leaves the cart as it was."""
        if not self.session.is_authenticated:
            return self._sign_in_required("Please login to apply a coupon")

        code = (code or "").strip()
        if not code:
            return OperationResult.fail("Enter a coupon code", code=VALIDATION)

        logger.info("Applying coupon", coupon_code=code)
        return await self._mutate(lambda: self.api.apply_coupon(code), "apply_coupon", "Coupon applied successfully!")
