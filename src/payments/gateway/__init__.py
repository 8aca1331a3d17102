"""Mobile-money gateways.

- FakeGateway for development and testing
- MpesaGateway for the storefront backend

There is no module-level default: the application builds one gateway per
session and hands it to checkout.
"""

from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.mpesa_adapter import MpesaGateway
from payments.gateway.port import (
    ManualConfirmationResult,
    MobileMoneyGateway,
    PaymentStatusResult,
    PushResult,
)

__all__ = [
    "FakeGateway",
    "ManualConfirmationResult",
    "MobileMoneyGateway",
    "MpesaGateway",
    "PaymentStatusResult",
    "PushResult",
]
