"""Pydantic request/response schemas for the M-Pesa payment endpoints.

These are external contracts (anti-corruption layer) between the payments
backend and the gateway results used by checkout.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Payment Request Schemas
# ---------------------------------------------------------------------------
class StkPushRequest(BaseModel):
    order_id: str
    payment_method: str = "mpesa"
    phone_number: str = Field(pattern=r"^254\d{9}$")
    amount: int = Field(gt=0)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "order_id": "42",
                    "payment_method": "mpesa",
                    "phone_number": "254712345678",
                    "amount": 1500,
                }
            ]
        }
    }


class ManualConfirmationRequest(BaseModel):
    order_id: str
    mpesa_reference: str = Field(min_length=1)
    amount: int = Field(ge=0)
    payment_method: str = "mpesa_manual"


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class StkPushResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    success: bool = True
    transaction_id: str | None = None
    checkout_request_id: str | None = None
    message: str | None = None

    @field_validator("transaction_id", "checkout_request_id", mode="before")
    @classmethod
    def _coerce_identifier(cls, value):
        return str(value) if value is not None else value


class PaymentStatusResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str = "PENDING"
    message: str | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _upper(cls, value):
        return str(value or "PENDING").upper()
