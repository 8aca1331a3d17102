"""Tests for checkout field validation."""

import pytest
from ordering.checkout.forms import Address, PaymentMethod, PaymentSelection
from ordering.checkout.validation import address_errors, payment_errors


def _address(**overrides):
    data = {
        "full_name": "Jane Wanjiku",
        "phone": "0712345678",
        "email": "a@b.com",
        "line1": "12 Moi Avenue",
        "city": "Nairobi",
        "county": "Nairobi",
    }
    data.update(overrides)
    return Address(**data)


class TestAddressValidation:
    def test_complete_address_is_valid(self):
        assert address_errors(_address()) == {}

    @pytest.mark.parametrize("field", ["full_name", "phone", "email", "line1", "city", "county"])
    def test_required_fields(self, field):
        errors = address_errors(_address(**{field: "  "}))
        assert field in errors

    def test_optional_fields(self):
        assert address_errors(_address(line2=None, postal_code=None)) == {}

    def test_invalid_email(self):
        errors = address_errors(_address(email="not-an-email"))
        assert errors == {"email": ["Email is invalid"]}

    def test_prefix_is_applied(self):
        errors = address_errors(_address(city=""), prefix="billing_")
        assert set(errors) == {"billing_city"}

    def test_blank_address_reports_every_required_field(self):
        errors = address_errors(Address())
        assert set(errors) == {"full_name", "phone", "email", "line1", "city", "county"}


class TestPaymentValidation:
    def test_mobile_money_needs_phone(self):
        errors = payment_errors(PaymentSelection(method=PaymentMethod.MOBILE_MONEY))
        assert errors == {"mobile_money_phone": ["M-Pesa phone number is required"]}

    def test_mobile_money_phone_must_normalize(self):
        errors = payment_errors(PaymentSelection(mobile_money_phone="12345"))
        assert "mobile_money_phone" in errors

    @pytest.mark.parametrize("phone", ["0712345678", "254712345678", "712345678", "+254 712 345 678"])
    def test_accepted_phone_shapes(self, phone):
        assert payment_errors(PaymentSelection(mobile_money_phone=phone)) == {}

    @pytest.mark.parametrize("method", [PaymentMethod.CASH_ON_DELIVERY, PaymentMethod.BANK_TRANSFER])
    def test_other_methods_need_nothing(self, method):
        assert payment_errors(PaymentSelection(method=method)) == {}
