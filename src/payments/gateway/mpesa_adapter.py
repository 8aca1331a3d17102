"""M-Pesa gateway adapter over the storefront backend.

The backend owns the Daraja integration; this adapter only calls its
payment endpoints through the customer's session.
"""

from urllib.parse import quote

from pydantic import ValidationError as SchemaError

from identity.api.client import parse_body
from identity.session.manager import SessionManager
from payments.api.schemas import (
    ManualConfirmationRequest,
    PaymentStatusResponse,
    StkPushRequest,
    StkPushResponse,
)
from payments.gateway.port import (
    STATUS_UNKNOWN,
    ManualConfirmationResult,
    MobileMoneyGateway,
    PaymentStatusResult,
    PushResult,
)
from payments.utils.logging import logger
from shared.errors import PaymentInitiationError, StorefrontError
from shared.transport.response import expect_success


class MpesaGateway(MobileMoneyGateway):
    ORDER_PAYMENT = "payments/mpesa/order-payment"
    STATUS = "payments/mpesa/status/{checkout_request_id}"
    MANUAL_CONFIRMATION = "payments/manual-confirmation"

    def __init__(self, session: SessionManager) -> None:
        self.session = session

    def _path(self, path: str) -> str:
        return self.session.settings.endpoint(path)

    async def initiate_push(self, order_id: str, phone_number: str, amount: int) -> PushResult:
        try:
            body = StkPushRequest(order_id=str(order_id), phone_number=phone_number, amount=amount)
        except SchemaError:
            return PushResult(success=False, failure_reason="Invalid M-Pesa payment details")

        try:
            push = await self._request_push(body)
        except StorefrontError as exc:
            logger.warning("STK push not sent", order_id=str(order_id), error=exc.message)
            return PushResult(success=False, failure_reason=exc.message)

        logger.info("STK push sent", order_id=str(order_id), checkout_request_id=push.checkout_request_id)
        return PushResult(
            success=True,
            transaction_id=push.transaction_id,
            checkout_request_id=push.checkout_request_id,
            message=push.message,
        )

    async def _request_push(self, body: StkPushRequest) -> StkPushResponse:
        response = await self.session.authenticated_request(
            "POST", self._path(self.ORDER_PAYMENT), json=body.model_dump()
        )
        expect_success(response, "Failed to initiate M-Pesa payment")
        push = parse_body(StkPushResponse, response)
        if not push.success:
            # The backend answered but Daraja refused the push
            raise PaymentInitiationError(push.message or "STK push failed")
        return push

    async def check_status(self, checkout_request_id: str) -> PaymentStatusResult:
        path = self._path(self.STATUS.format(checkout_request_id=quote(str(checkout_request_id), safe="")))
        try:
            response = await self.session.authenticated_request("GET", path)
            expect_success(response, "Failed to check payment status")
            status = parse_body(PaymentStatusResponse, response)
        except StorefrontError as exc:
            logger.debug("Payment status unavailable", checkout_request_id=checkout_request_id, error=exc.message)
            return PaymentStatusResult(status=STATUS_UNKNOWN, failure_reason=exc.message)

        return PaymentStatusResult(status=status.status)

    async def confirm_manual(self, order_id: str, reference: str, amount: int) -> ManualConfirmationResult:
        try:
            body = ManualConfirmationRequest(order_id=str(order_id), mpesa_reference=reference, amount=amount)
        except SchemaError:
            return ManualConfirmationResult(success=False, failure_reason="Please enter the M-Pesa reference number")

        try:
            response = await self.session.authenticated_request(
                "POST", self._path(self.MANUAL_CONFIRMATION), json=body.model_dump()
            )
            expect_success(response, "Failed to submit payment confirmation. Please try again.")
        except StorefrontError as exc:
            logger.warning("Manual payment confirmation failed", order_id=str(order_id), error=exc.message)
            return ManualConfirmationResult(success=False, failure_reason=exc.message)

        logger.info("Manual payment confirmation submitted", order_id=str(order_id))
        return ManualConfirmationResult(success=True, message="Payment confirmation received")
