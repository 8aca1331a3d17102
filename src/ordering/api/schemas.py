"""Pydantic request/response schemas for the cart and order endpoints.

These are external contracts: wire names follow the backend, Python names
follow the client.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    full_name: str
    phone: str
    email: str
    line1: str = Field(serialization_alias="address")
    line2: str | None = Field(None, serialization_alias="address_line2")
    city: str
    county: str
    postal_code: str | None = None


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class CreateOrderRequest(BaseModel):
    shipping_address: AddressSchema
    billing_address: AddressSchema
    payment_method: str
    notes: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "shipping_address": {
                        "full_name": "Jane Wanjiku",
                        "phone": "0712345678",
                        "email": "jane@example.com",
                        "address": "12 Moi Avenue",
                        "city": "Nairobi",
                        "county": "Nairobi",
                        "postal_code": "00100",
                    },
                    "billing_address": {
                        "full_name": "Jane Wanjiku",
                        "phone": "0712345678",
                        "email": "jane@example.com",
                        "address": "12 Moi Avenue",
                        "city": "Nairobi",
                        "county": "Nairobi",
                        "postal_code": "00100",
                    },
                    "payment_method": "mpesa",
                    "notes": "Order from Jane Wanjiku",
                }
            ]
        }
    }

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    order_number: str | None = None
    total: float | None = Field(None, alias="total_amount")
    status: str | None = None

    @field_validator("id", "order_number", mode="before")
    @classmethod
    def _coerce_identifier(cls, value):
        return str(value) if value is not None else value

    @property
    def reference(self) -> str:
        """The number customers quote: the order number, else the id."""
        return self.order_number or self.id
