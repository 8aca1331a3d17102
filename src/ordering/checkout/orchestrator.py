"""Checkout orchestrator: drives the wizard, places the order, follows up on payment.

Order placement:
    1. Guard: every step valid, non-empty cart, signed in, not already submitting
    2. POST the order
    3. For mobile money, send an STK push (failure is a soft warning)
    4. Clear the cart
    5. Move to CONFIRMATION with an ``OrderConfirmation``

A failed order leaves the wizard on PAYMENT and the cart untouched. A failed
push never undoes the order; the confirmation records that payment is still
owed and the customer can retry the push or pay through the paybill.
"""

import asyncio
from dataclasses import replace

from protean.exceptions import InvalidOperationError, ValidationError
from pydantic import ValidationError as SchemaError

from identity.session.manager import SessionManager
from ordering.api.client import OrderApi
from ordering.api.schemas import CreateOrderRequest, OrderResponse
from ordering.cart.cart import Cart
from ordering.cart.synchronizer import CartSynchronizer
from ordering.checkout.confirmation import (
    OrderConfirmation,
    PaybillInstructions,
    PaymentStatus,
    payable_amount,
)
from ordering.checkout.forms import Address, CheckoutForm, PaymentMethod
from ordering.checkout.wizard import CheckoutStep, WizardEvent, step_errors, transition
from ordering.utils.logging import logger
from payments.gateway.port import (
    STATUS_CANCELLED,
    STATUS_FAILED,
    STATUS_SUCCESS,
    MobileMoneyGateway,
)
from payments.payment.phone import normalize_msisdn
from shared.config import Settings
from shared.errors import ForcedLogout, NetworkError, StorefrontError
from shared.notifications import NotificationCenter
from shared.result import BUSY, FORCED_LOGOUT, NETWORK, REJECTED, SIGN_IN_REQUIRED, VALIDATION, OperationResult

_POLL_OUTCOMES = {
    STATUS_SUCCESS: (PaymentStatus.SUCCEEDED, "Payment completed successfully!"),
    STATUS_FAILED: (PaymentStatus.FAILED, "STK Push failed. You can use the manual payment option below."),
    STATUS_CANCELLED: (PaymentStatus.CANCELLED, "Payment was cancelled. You can use the manual payment option below."),
}
_POLL_TIMEOUT_MESSAGE = "STK Push timed out. Please use the manual payment option below."

# Address fields that may be left unset
_OPTIONAL_ADDRESS_FIELDS = {"line2", "postal_code"}

# Statuses from which a new push may be sent for the same order
_RETRYABLE = {
    PaymentStatus.INITIATION_FAILED,
    PaymentStatus.FAILED,
    PaymentStatus.CANCELLED,
    PaymentStatus.TIMED_OUT,
}


class CheckoutOrchestrator:
    """One checkout attempt. Build a fresh instance for every visit to checkout."""

    def __init__(
        self,
        session: SessionManager,
        cart: CartSynchronizer,
        gateway: MobileMoneyGateway,
        notifications: NotificationCenter | None = None,
        settings: Settings | None = None,
        orders: OrderApi | None = None,
    ) -> None:
        self.session = session
        self.cart = cart
        self.gateway = gateway
        self.notifications = notifications or cart.notifications
        self.settings = settings or session.settings
        self.orders = orders or OrderApi(session)

        self.form = CheckoutForm()
        self.errors: dict[str, list[str]] = {}
        self.is_submitting = False
        self.is_polling = False
        self.poll_attempt = 0
        self.confirmation: OrderConfirmation | None = None
        self._step = CheckoutStep.SHIPPING
        self._prefill()

    def _prefill(self) -> None:
        user = self.session.user
        if user is None:
            return
        self.form.shipping.full_name = user.full_name
        self.form.shipping.email = user.email or ""
        self.form.shipping.phone = user.phone or ""

    # -------------------------------------------------------------------
    # Wizard
    # -------------------------------------------------------------------
    @property
    def current_step(self) -> CheckoutStep:
        return self._step

    @property
    def validation_error(self) -> str | None:
        """The first field error, for a single-line summary."""
        for messages in self.errors.values():
            if messages:
                return messages[0]
        return None

    def _touch(self, *fields: str) -> None:
        for field in fields:
            self.errors.pop(field, None)

    def _assign(self, address: Address, fields: dict[str, str | None], prefix: str = "") -> OperationResult:
        unknown = sorted(set(fields) - set(Address.model_fields))
        if unknown:
            return OperationResult.fail(f"Unknown address field: {', '.join(unknown)}", code=VALIDATION)

        errors: dict[str, list[str]] = {}
        for name, value in fields.items():
            if value is None and name not in _OPTIONAL_ADDRESS_FIELDS:
                value = ""
            try:
                setattr(address, name, value)
            except SchemaError:
                errors[f"{prefix}{name}"] = ["Invalid value"]
            else:
                self.errors.pop(f"{prefix}{name}", None)

        if errors:
            self.errors.update(errors)
            return OperationResult.fail("Invalid value", code=VALIDATION, data=errors)
        return OperationResult.ok()

    def set_shipping(self, **fields: str | None) -> OperationResult:
        return self._assign(self.form.shipping, fields)

    def set_billing(self, **fields: str | None) -> OperationResult:
        return self._assign(self.form.billing, fields, prefix="billing_")

    def set_same_as_shipping(self, same: bool) -> None:
        self.form.same_as_shipping = bool(same)
        if same:
            self.errors = {k: v for k, v in self.errors.items() if not k.startswith("billing_")}

    def _set_payment(self, name: str, value: object) -> OperationResult:
        try:
            setattr(self.form.payment, name, value)
        except SchemaError:
            return OperationResult.fail("Invalid value", code=VALIDATION)
        return OperationResult.ok()

    def set_payment_method(self, method: PaymentMethod | str) -> OperationResult:
        try:
            method = PaymentMethod(method)
        except ValueError:
            return OperationResult.fail(f"Unsupported payment method: {method}", code=VALIDATION)
        self._touch("mobile_money_phone")
        return self._set_payment("method", method)

    def set_mobile_money_phone(self, phone: str | None) -> OperationResult:
        self._touch("mobile_money_phone")
        return self._set_payment("mobile_money_phone", phone)

    def set_notes(self, notes: str | None) -> OperationResult:
        return self._set_payment("notes", notes)

    def _fire(self, event: WizardEvent) -> OperationResult:
        try:
            target = transition(self._step, event, self.form)
        except ValidationError as exc:
            self.errors = dict(exc.messages)
            return OperationResult.fail(self.validation_error or "Please fix the form errors", code=VALIDATION)
        except InvalidOperationError as exc:
            return OperationResult.fail(str(exc.messages), code=REJECTED)

        if self._step is CheckoutStep.BILLING and event is WizardEvent.NEXT and self.form.same_as_shipping:
            self.form.billing = self.form.shipping.model_copy()
        self._step = target
        self.errors = {}
        return OperationResult.ok(data=target)

    def next(self) -> OperationResult:
        return self._fire(WizardEvent.NEXT)

    def back(self) -> OperationResult:
        return self._fire(WizardEvent.BACK)

    # -------------------------------------------------------------------
    # Order placement
    # -------------------------------------------------------------------
    def _all_errors(self) -> dict[str, list[str]]:
        errors: dict[str, list[str]] = {}
        for step in (CheckoutStep.SHIPPING, CheckoutStep.BILLING, CheckoutStep.PAYMENT):
            errors.update(step_errors(step, self.form))
        return errors

    async def submit_order(self) -> OperationResult:
        if self.is_submitting:
            return OperationResult.fail("Your order is already being placed", code=BUSY)
        if self._step is not CheckoutStep.PAYMENT:
            return OperationResult.fail("Complete the previous steps first", code=REJECTED)
        if not self.session.is_authenticated:
            return OperationResult.fail("Please login to place an order", code=SIGN_IN_REQUIRED)

        errors = self._all_errors()
        if errors:
            self.errors = errors
            self.notifications.error("Please fix the form errors")
            return OperationResult.fail(self.validation_error or "Please fix the form errors", code=VALIDATION)
        target = transition(self._step, WizardEvent.ORDER_PLACED, self.form)

        self.is_submitting = True
        try:
            cart = self.cart.cart
            if cart is None:
                await self.cart.refresh()
                cart = self.cart.cart
            if cart is None or cart.is_empty:
                return OperationResult.fail("Your cart is empty", code=VALIDATION)
            return await self._place(cart, target)
        finally:
            self.is_submitting = False

    def _order_request(self) -> CreateOrderRequest:
        shipping = self.form.shipping
        payment = self.form.payment
        return CreateOrderRequest(
            shipping_address=shipping.to_schema(),
            billing_address=self.form.effective_billing.to_schema(),
            payment_method=payment.method.value,
            notes=payment.notes or f"Order from {shipping.full_name}",
        )

    async def _place(self, cart: Cart, target: CheckoutStep) -> OperationResult:
        method = self.form.payment.method
        try:
            order = await self.orders.create(self._order_request())
        except ForcedLogout as exc:
            return OperationResult.fail(exc.message, code=FORCED_LOGOUT)
        except StorefrontError as exc:
            logger.warning("Order creation failed", error=exc.message)
            self.notifications.error(exc.message)
            code = NETWORK if isinstance(exc, NetworkError) else REJECTED
            return OperationResult.fail(exc.message, code=code)

        logger.info("Order created", order_id=order.id, payment_method=method.value)
        confirmation = self._confirmation_for(order, cart, method)

        if confirmation.payment_status is PaymentStatus.PENDING:
            confirmation = await self._push(confirmation)
        else:
            self.notifications.success("Order placed successfully!")

        cleared = await self.cart.clear(quiet=True)
        if not cleared.success:
            logger.warning("Order placed but the cart could not be cleared", order_id=order.id, error=cleared.message)

        self.confirmation = confirmation
        self._step = target
        return OperationResult.ok("Order placed successfully!", data=confirmation)

    def _confirmation_for(self, order: OrderResponse, cart: Cart, method: PaymentMethod) -> OrderConfirmation:
        total = order.total if order.total is not None else cart.total
        amount = payable_amount(cart.total)
        # Nothing to push for a fully discounted order
        owed = method is PaymentMethod.MOBILE_MONEY and amount > 0
        return OrderConfirmation(
            order_id=order.id,
            order_number=order.reference,
            total=total,
            amount=amount,
            payment_method=method,
            payment_status=PaymentStatus.PENDING if owed else PaymentStatus.NOT_REQUIRED,
        )

    async def _push(
        self,
        confirmation: OrderConfirmation,
        sent_message: str = "STK Push sent! Please check your phone to complete payment.",
    ) -> OrderConfirmation:
        phone = normalize_msisdn(self.form.payment.mobile_money_phone)
        result = await self.gateway.initiate_push(confirmation.order_id, phone, confirmation.amount)

        if result.success:
            self.notifications.info(sent_message)
            return replace(
                confirmation,
                payment_status=PaymentStatus.PENDING,
                transaction_id=result.transaction_id,
                checkout_request_id=result.checkout_request_id,
                payment_warning=None,
            )

        warning = result.failure_reason or "STK Push failed"
        logger.warning("Order placed but payment was not initiated", order_id=confirmation.order_id, reason=warning)
        self.notifications.warning(f"{warning}. Please use the manual payment option.")
        return replace(
            confirmation,
            payment_status=PaymentStatus.INITIATION_FAILED,
            checkout_request_id=None,
            payment_warning=warning,
        )

    # -------------------------------------------------------------------
    # Payment follow-up
    # -------------------------------------------------------------------
    async def poll_payment_status(self) -> OperationResult:
        """Check the push status until it is final or the attempts run out."""
        confirmation = self.confirmation
        if confirmation is None or confirmation.payment_status is not PaymentStatus.PENDING:
            return OperationResult.fail("There is no payment in progress", code=REJECTED)
        if not confirmation.checkout_request_id:
            return OperationResult.fail("There is no payment in progress", code=REJECTED)
        if self.is_polling:
            return OperationResult.fail("Already checking the payment status", code=BUSY)

        self.is_polling = True
        try:
            return await self._poll(confirmation.checkout_request_id)
        finally:
            self.is_polling = False

    async def _poll(self, checkout_request_id: str) -> OperationResult:
        for attempt in range(1, self.settings.payment_poll_attempts + 1):
            self.poll_attempt = attempt
            await asyncio.sleep(self.settings.payment_poll_interval)
            if not self.session.is_authenticated:
                return OperationResult.fail("Please login to check your payment", code=SIGN_IN_REQUIRED)

            result = await self.gateway.check_status(checkout_request_id)
            outcome = _POLL_OUTCOMES.get(result.status)
            if outcome is None:
                continue

            status, message = outcome
            self._set_payment_status(status)
            logger.info("Payment status resolved", order_id=self.confirmation.order_id, status=status.value)
            if status is PaymentStatus.SUCCEEDED:
                self.notifications.success(message)
                return OperationResult.ok(message, data=self.confirmation)
            self.notifications.warning(message)
            return OperationResult.fail(message, code=REJECTED, data=self.confirmation)

        self._set_payment_status(PaymentStatus.TIMED_OUT)
        logger.info("Payment status polling timed out", order_id=self.confirmation.order_id)
        self.notifications.warning(_POLL_TIMEOUT_MESSAGE)
        return OperationResult.fail(_POLL_TIMEOUT_MESSAGE, code=REJECTED, data=self.confirmation)

    def _set_payment_status(self, status: PaymentStatus) -> None:
        self.confirmation = replace(self.confirmation, payment_status=status)

    async def retry_push_payment(self, phone: str | None = None) -> OperationResult:
        """Send a new STK push for the placed order, optionally to another number."""
        confirmation = self.confirmation
        if confirmation is None or confirmation.payment_method is not PaymentMethod.MOBILE_MONEY:
            return OperationResult.fail("There is no M-Pesa payment to retry", code=REJECTED)
        if confirmation.payment_status not in _RETRYABLE:
            return OperationResult.fail("This payment can no longer be retried", code=REJECTED)
        if self.is_submitting or self.is_polling:
            return OperationResult.fail("A payment request is already in progress", code=BUSY)

        if phone is not None:
            updated = self.set_mobile_money_phone(phone)
            if not updated.success:
                return updated
        errors = step_errors(CheckoutStep.PAYMENT, self.form)
        if errors:
            self.errors = errors
            return OperationResult.fail(self.validation_error, code=VALIDATION)

        self.is_submitting = True
        try:
            self.poll_attempt = 0
            self.confirmation = await self._push(confirmation, "New STK Push sent! Please check your phone.")
        finally:
            self.is_submitting = False

        if self.confirmation.payment_status is PaymentStatus.PENDING:
            return OperationResult.ok("New STK Push sent! Please check your phone.", data=self.confirmation)
        return OperationResult.fail(self.confirmation.payment_warning, code=REJECTED, data=self.confirmation)

    async def confirm_manual_payment(self, reference: str) -> OperationResult:
        """Submit the M-Pesa reference of a paybill payment for verification."""
        confirmation = self.confirmation
        if confirmation is None or confirmation.payment_method is not PaymentMethod.MOBILE_MONEY:
            return OperationResult.fail("There is no M-Pesa payment to confirm", code=REJECTED)
        if confirmation.payment_status is PaymentStatus.SUCCEEDED:
            return OperationResult.fail("This order is already paid", code=REJECTED)
        if confirmation.payment_status is PaymentStatus.NOT_REQUIRED:
            return OperationResult.fail("This order needs no payment", code=REJECTED)

        reference = (reference or "").strip()
        if not reference:
            message = "Please enter the M-Pesa reference number"
            self.notifications.error(message)
            return OperationResult.fail(message, code=VALIDATION)

        result = await self.gateway.confirm_manual(confirmation.order_id, reference, confirmation.amount)
        if not result.success:
            message = "Failed to submit payment confirmation. Please try again."
            self.notifications.error(message)
            return OperationResult.fail(message, code=REJECTED)

        self._set_payment_status(PaymentStatus.MANUAL_SUBMITTED)
        message = "Payment confirmation submitted! We will verify and update your order status."
        self.notifications.success(message)
        return OperationResult.ok(message, data=self.confirmation)

    def paybill_instructions(self) -> PaybillInstructions | None:
        """Paybill details for paying by hand; the order number is the account."""
        if self.confirmation is None:
            return None
        return PaybillInstructions(
            business_number=self.settings.paybill_business_number,
            business_name=self.settings.paybill_business_name,
            account_number=self.confirmation.order_number,
            amount=self.confirmation.amount,
        )
