"""Configurable fake mobile-money gateway for development and testing.

This adapter simulates the M-Pesa endpoints without any network calls.
It can be configured at runtime to succeed or fail, and to walk through a
scripted sequence of push statuses, making it useful for:
- Automated tests with predictable outcomes
- Running the checkout flow without a payments backend
"""

from uuid import uuid4

from payments.gateway.port import (
    STATUS_SUCCESS,
    ManualConfirmationResult,
    MobileMoneyGateway,
    PaymentStatusResult,
    PushResult,
)


class FakeGateway(MobileMoneyGateway):
    """Configurable fake mobile-money gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "STK push failed"
        self.statuses: list[str] = [STATUS_SUCCESS]
        self.calls: list[dict] = []

    def configure(
        self,
        should_succeed: bool,
        failure_reason: str = "STK push failed",
        statuses: list[str] | None = None,
    ) -> None:
        """Configure gateway behavior at runtime.

        ``statuses`` are returned by successive ``check_status`` calls; the
        last one repeats once the list is exhausted.
        """
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        if statuses is not None:
            self.statuses = list(statuses)

    def calls_to(self, method: str) -> list[dict]:
        return [call for call in self.calls if call["method"] == method]

    async def initiate_push(self, order_id: str, phone_number: str, amount: int) -> PushResult:
        self.calls.append(
            {
                "method": "initiate_push",
                "order_id": order_id,
                "phone_number": phone_number,
                "amount": amount,
            }
        )

        if self.should_succeed:
            return PushResult(
                success=True,
                transaction_id=f"fake_txn_{uuid4().hex[:12]}",
                checkout_request_id=f"ws_CO_{uuid4().hex[:12]}",
                message="STK push sent",
            )
        return PushResult(success=False, failure_reason=self.failure_reason)

    async def check_status(self, checkout_request_id: str) -> PaymentStatusResult:
        attempt = len(self.calls_to("check_status"))
        self.calls.append({"method": "check_status", "checkout_request_id": checkout_request_id})

        status = self.statuses[min(attempt, len(self.statuses) - 1)]
        return PaymentStatusResult(status=status)

    async def confirm_manual(self, order_id: str, reference: str, amount: int) -> ManualConfirmationResult:
        self.calls.append(
            {
                "method": "confirm_manual",
                "order_id": order_id,
                "reference": reference,
                "amount": amount,
            }
        )

        if self.should_succeed:
            return ManualConfirmationResult(success=True, message="Payment confirmation received")
        return ManualConfirmationResult(success=False, failure_reason=self.failure_reason)
