"""Mobile-money gateway port (abstract interface).

Defines the contract that all mobile-money adapters must implement.
This enables swapping between FakeGateway (dev/test) and MpesaGateway
(the storefront backend) without changing any checkout code.

Adapters never raise for backend or network failures; they report them in
the returned result.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

# Status values reported by the backend for an STK push
STATUS_SUCCESS = "SUCCESS"
STATUS_FAILED = "FAILED"
STATUS_CANCELLED = "CANCELLED"
STATUS_PENDING = "PENDING"
# The status could not be fetched this time
STATUS_UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class PushResult:
    """Result of an STK push attempt."""

    success: bool
    transaction_id: str | None = None
    checkout_request_id: str | None = None
    message: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class PaymentStatusResult:
    """Result of a single STK push status check."""

    status: str
    failure_reason: str | None = None

    @property
    def is_final(self) -> bool:
        return self.status in (STATUS_SUCCESS, STATUS_FAILED, STATUS_CANCELLED)


@dataclass(frozen=True)
class ManualConfirmationResult:
    """Result of submitting a paybill reference for verification."""

    success: bool
    message: str | None = None
    failure_reason: str | None = None


class MobileMoneyGateway(ABC):
    """Abstract mobile-money gateway interface."""

    @abstractmethod
    async def initiate_push(self, order_id: str, phone_number: str, amount: int) -> PushResult:
        """Ask the customer's phone to authorize ``amount`` for ``order_id``."""
        ...

    @abstractmethod
    async def check_status(self, checkout_request_id: str) -> PaymentStatusResult:
        """Report the current status of a previously initiated push."""
        ...

    @abstractmethod
    async def confirm_manual(self, order_id: str, reference: str, amount: int) -> ManualConfirmationResult:
        """Submit a paybill transaction reference for manual verification."""
        ...
