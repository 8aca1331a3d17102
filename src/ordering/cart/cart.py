"""Cart snapshot as returned by the backend.

The client never recomputes money: ``subtotal``, ``discount`` and ``total``
are whatever the server last said. Only ``item_count`` is derived locally.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CartItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: str
    product_id: str
    name: str = Field("", alias="product_name")
    unit_price: float = Field(0.0, alias="product_price")
    quantity: int = Field(..., ge=1)
    image_ref: str | None = Field(None, alias="product_image")

    @field_validator("id", "product_id", mode="before")
    @classmethod
    def _coerce_identifier(cls, value):
        return str(value) if value is not None else value

    @field_validator("image_ref", mode="before")
    @classmethod
    def _first_image(cls, value):
        """The backend sends a comma-separated list; keep the first entry."""
        if not value:
            return None
        first = str(value).split(",")[0].strip()
        return first or None

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


class Cart(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    items: list[CartItem] = Field(default_factory=list)
    subtotal: float = 0.0
    discount: float = 0.0
    total: float = 0.0
    applied_coupon_code: str | None = None

    @field_validator("items", mode="before")
    @classmethod
    def _none_is_empty(cls, value):
        return value or []

    @classmethod
    def empty(cls) -> "Cart":
        return cls()

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find(self, item_id: str) -> CartItem | None:
        return next((i for i in self.items if i.id == str(item_id)), None)
