"""What the customer sees once the order exists."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from ordering.checkout.forms import PaymentMethod


class PaymentStatus(Enum):
    NOT_REQUIRED = "not_required"  # Paid on delivery or by bank transfer
    PENDING = "pending"  # Push sent, waiting for the customer's PIN
    INITIATION_FAILED = "initiation_failed"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"
    MANUAL_SUBMITTED = "manual_submitted"  # Paybill reference awaiting verification


# Mobile-money states in which the paybill fallback is offered
PAYBILL_FALLBACK_STATES = {
    PaymentStatus.INITIATION_FAILED,
    PaymentStatus.FAILED,
    PaymentStatus.CANCELLED,
    PaymentStatus.TIMED_OUT,
}


def payable_amount(total: float) -> int:
    """Whole shillings for the push: the cart total rounded half-up."""
    return int(Decimal(str(total)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class OrderConfirmation:
    order_id: str
    order_number: str
    total: float
    amount: int
    payment_method: PaymentMethod
    payment_status: PaymentStatus = PaymentStatus.NOT_REQUIRED
    transaction_id: str | None = None
    checkout_request_id: str | None = None
    payment_warning: str | None = None

    @property
    def payment_pending(self) -> bool:
        """True while a mobile-money payment is owed and not known to be paid."""
        return self.payment_status not in (PaymentStatus.NOT_REQUIRED, PaymentStatus.SUCCEEDED)

    @property
    def offers_paybill(self) -> bool:
        return self.payment_status in PAYBILL_FALLBACK_STATES


@dataclass(frozen=True)
class PaybillInstructions:
    business_number: str
    business_name: str
    account_number: str
    amount: int
