"""Checkout form state: addresses and the payment selection.

Forms are mutable while the customer fills them in; nothing here checks
values. Validation lives in ``ordering.checkout.validation``.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ordering.api.schemas import AddressSchema


class PaymentMethod(Enum):
    MOBILE_MONEY = "mpesa"
    CASH_ON_DELIVERY = "cash_on_delivery"
    BANK_TRANSFER = "bank_transfer"


class Address(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    full_name: str = ""
    phone: str = ""
    email: str = ""
    line1: str = ""
    line2: str | None = None
    city: str = ""
    county: str = ""
    postal_code: str | None = None

    def to_schema(self) -> AddressSchema:
        return AddressSchema(**self.model_dump())


class PaymentSelection(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    method: PaymentMethod = PaymentMethod.MOBILE_MONEY
    mobile_money_phone: str | None = None
    notes: str | None = None


class CheckoutForm(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    shipping: Address = Field(default_factory=Address)
    billing: Address = Field(default_factory=Address)
    same_as_shipping: bool = True
    payment: PaymentSelection = Field(default_factory=PaymentSelection)

    @property
    def effective_billing(self) -> Address:
        """The billing address as submitted: shipping when they are the same."""
        return self.shipping if self.same_as_shipping else self.billing
