"""Field-level checks for the checkout steps.

Each function returns a ``{field: [messages]}`` mapping, empty when the input
is acceptable. The wizard raises it as ``protean.exceptions.ValidationError``.
"""

import re

from ordering.checkout.forms import Address, PaymentMethod, PaymentSelection
from payments.payment.phone import is_valid_msisdn

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")

_REQUIRED_ADDRESS_FIELDS = {
    "full_name": "Full name is required",
    "phone": "Phone number is required",
    "email": "Email is required",
    "line1": "Address is required",
    "city": "City is required",
    "county": "County is required",
}


def address_errors(address: Address, prefix: str = "") -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for field, message in _REQUIRED_ADDRESS_FIELDS.items():
        value = getattr(address, field)
        if not value or not value.strip():
            errors[f"{prefix}{field}"] = [message]

    email_key = f"{prefix}email"
    if email_key not in errors and not EMAIL_PATTERN.search(address.email):
        errors[email_key] = ["Email is invalid"]
    return errors


def payment_errors(payment: PaymentSelection) -> dict[str, list[str]]:
    if payment.method is not PaymentMethod.MOBILE_MONEY:
        return {}
    phone = (payment.mobile_money_phone or "").strip()
    if not phone:
        return {"mobile_money_phone": ["M-Pesa phone number is required"]}
    if not is_valid_msisdn(phone):
        return {"mobile_money_phone": ["Enter a valid Safaricom number, e.g. 0712345678"]}
    return {}
