"""Cart and order endpoints, called through the session's authenticated wrapper.

Each method either returns the parsed result or raises: ``ServerRejection``
for error statuses, ``NetworkError`` when the backend is unreachable and
``ForcedLogout`` when the session could not be recovered.
"""

from urllib.parse import quote

from identity.api.client import parse_body
from identity.session.manager import SessionManager
from ordering.api.schemas import AddToCartRequest, CreateOrderRequest, OrderResponse
from ordering.cart.cart import Cart
from shared.transport.response import expect_success


def _segment(value: str) -> str:
    return quote(str(value), safe="")


class CartApi:
    def __init__(self, session: SessionManager) -> None:
        self.session = session

    def _path(self, path: str) -> str:
        return self.session.settings.endpoint(path)

    async def fetch(self) -> Cart:
        response = await self.session.authenticated_request("GET", self._path("cart"))
        if response.status_code == 404:
            # No cart yet on the server
            return Cart.empty()
        expect_success(response, "Failed to load cart")
        return parse_body(Cart, response)

    async def add_item(self, product_id: str, quantity: int) -> None:
        body = AddToCartRequest(product_id=str(product_id), quantity=quantity)
        response = await self.session.authenticated_request("POST", self._path("cart/items"), json=body.model_dump())
        expect_success(response, "Failed to add item to cart")

    async def set_quantity(self, item_id: str, quantity: int) -> None:
        response = await self.session.authenticated_request(
            "PATCH",
            self._path(f"cart/items/{_segment(item_id)}"),
            params={"quantity": quantity},
        )
        expect_success(response, "Failed to update item quantity")

    async def remove_item(self, item_id: str) -> None:
        response = await self.session.authenticated_request("DELETE", self._path(f"cart/items/{_segment(item_id)}"))
        expect_success(response, "Failed to remove item from cart")

    async def clear(self) -> None:
        response = await self.session.authenticated_request("DELETE", self._path("cart"))
        expect_success(response, "Failed to clear cart")

    async def apply_coupon(self, code: str) -> None:
        response = await self.session.authenticated_request(
            "POST", self._path(f"cart/apply-coupon/{_segment(code)}")
        )
        expect_success(response, "Failed to apply coupon")


class OrderApi:
    def __init__(self, session: SessionManager) -> None:
        self.session = session

    async def create(self, order: CreateOrderRequest) -> OrderResponse:
        response = await self.session.authenticated_request(
            "POST",
            self.session.settings.endpoint("orders/"),
            json=order.to_wire(),
        )
        expect_success(response, "Failed to create order")
        return parse_body(OrderResponse, response)
