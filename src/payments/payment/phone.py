"""Phone number normalization for M-Pesa STK push.

The payment backend only accepts the international ``254XXXXXXXXX`` form.
Customers type numbers in any of the local shapes, with spaces, hyphens,
parentheses or a leading ``+``.
"""

import re

MSISDN_PATTERN = re.compile(r"^254\d{9}$")


def normalize_msisdn(phone: str | None) -> str:
    """Return ``phone`` in ``254XXXXXXXXX`` form, as far as it can be coerced.

    The result is not guaranteed to be valid; check it with ``is_valid_msisdn``.
    """
    digits = re.sub(r"\D", "", phone or "")

    if digits.startswith("0"):
        return "254" + digits[1:]
    if digits.startswith("254"):
        return digits
    if len(digits) == 9:
        # Bare subscriber number, e.g. 712345678
        return "254" + digits
    return digits


def is_valid_msisdn(phone: str | None) -> bool:
    return bool(MSISDN_PATTERN.match(normalize_msisdn(phone)))
