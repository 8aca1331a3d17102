"""End-to-end storefront flow against an in-process FastAPI backend.

The backend below stands in for the storefront API: it issues tokens, keeps
one cart, accepts orders and reports M-Pesa push statuses. The client side
is the real application wired through ``HttpxTransport``.
"""

import httpx
import pytest
from app import StorefrontApp
from fastapi import Depends, FastAPI, Header, HTTPException
from identity.session.tokens import InMemoryTokenStore
from ordering.checkout.confirmation import PaymentStatus
from ordering.checkout.wizard import CheckoutStep
from pydantic import BaseModel
from shared.notifications import NotificationLevel
from shared.result import FORCED_LOGOUT
from shared.transport import HttpxTransport

API = "/api/v1"

PRODUCTS = {
    "10": {"product_name": "Vitamin C 1000mg", "product_price": 750.0},
    "11": {"product_name": "Digital Thermometer", "product_price": 499.5},
}


class Backend:
    """In-memory state behind the fake API."""

    def __init__(self, make_token, user):
        self.make_token = make_token
        self.user = user
        self.issued = 0
        self.access_tokens: set[str] = set()
        self.refresh_tokens: set[str] = set()
        self.refresh_calls = 0
        self.cart: dict[str, int] = {"10": 2}
        self.orders: list[dict] = []
        self.pushes: list[dict] = []
        self.statuses = ["PENDING", "SUCCESS"]

    def issue_access_token(self) -> str:
        self.issued += 1
        token = self.make_token({"sub": str(self.user["id"]), "role": self.user["role"], "n": self.issued})
        self.access_tokens.add(token)
        return token

    def expire_access_tokens(self) -> None:
        self.access_tokens.clear()

    def expire_everything(self) -> None:
        self.access_tokens.clear()
        self.refresh_tokens.clear()

    def cart_body(self) -> dict:
        items = [
            {"id": int(product_id), "product_id": int(product_id), "quantity": quantity, **PRODUCTS[product_id]}
            for product_id, quantity in self.cart.items()
        ]
        total = sum(item["product_price"] * item["quantity"] for item in items)
        return {"items": items, "subtotal": total, "discount": 0.0, "total": total}


class AddItem(BaseModel):
    product_id: str
    quantity: int


def _bearer(authorization: str | None) -> str | None:
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer ") :]
    return None


def build_api(backend: Backend) -> FastAPI:
    api = FastAPI()

    def authenticated(authorization: str | None = Header(default=None)) -> str:
        token = _bearer(authorization)
        if token not in backend.access_tokens:
            raise HTTPException(status_code=401, detail="Could not validate credentials")
        return token

    @api.post(f"{API}/auth/login")
    async def login(credentials: dict):
        if credentials.get("password") != "secret":
            raise HTTPException(status_code=401, detail="Incorrect email or password")
        backend.refresh_tokens.add("refresh-1")
        return {"access_token": backend.issue_access_token(), "refresh_token": "refresh-1", "token_type": "bearer"}

    @api.get(f"{API}/auth/refresh-token")
    async def refresh(authorization: str | None = Header(default=None)):
        backend.refresh_calls += 1
        if _bearer(authorization) not in backend.refresh_tokens:
            raise HTTPException(status_code=401, detail="Refresh token expired")
        return {"access_token": backend.issue_access_token()}

    @api.get(f"{API}/auth/user/me")
    async def me(token: str = Depends(authenticated)):
        return backend.user

    @api.post(f"{API}/auth/logout")
    async def logout(token: str = Depends(authenticated)):
        backend.access_tokens.discard(token)
        return {"message": "Logged out"}

    @api.get(f"{API}/cart")
    async def get_cart(token: str = Depends(authenticated)):
        return backend.cart_body()

    @api.post(f"{API}/cart/items")
    async def add_item(item: AddItem, token: str = Depends(authenticated)):
        if item.product_id not in PRODUCTS:
            raise HTTPException(status_code=404, detail="Product not found")
        backend.cart[item.product_id] = backend.cart.get(item.product_id, 0) + item.quantity
        return {"message": "Item added to cart"}

    @api.delete(f"{API}/cart")
    async def clear_cart(token: str = Depends(authenticated)):
        backend.cart.clear()
        return {"message": "Cart cleared"}

    @api.post(f"{API}/orders/", status_code=201)
    async def create_order(order: dict, token: str = Depends(authenticated)):
        if not backend.cart:
            raise HTTPException(status_code=400, detail="Cart is empty")
        order_id = len(backend.orders) + 1
        backend.orders.append(order)
        return {
            "id": order_id,
            "order_number": f"ORD-{order_id:04d}",
            "total_amount": backend.cart_body()["total"],
            "status": "pending",
        }

    @api.post(f"{API}/payments/mpesa/order-payment")
    async def stk_push(payment: dict, token: str = Depends(authenticated)):
        backend.pushes.append(payment)
        return {
            "success": True,
            "transaction_id": len(backend.pushes),
            "checkout_request_id": f"ws_CO_{len(backend.pushes)}",
            "message": "STK push sent",
        }

    @api.get(f"{API}/payments/mpesa/status/{{checkout_request_id}}")
    async def push_status(checkout_request_id: str, token: str = Depends(authenticated)):
        status = backend.statuses.pop(0) if len(backend.statuses) > 1 else backend.statuses[0]
        return {"status": status.lower()}

    return api


@pytest.fixture()
def backend(make_token, user_body):
    return Backend(make_token, user_body)


@pytest.fixture()
async def storefront(backend, settings, notifications):
    transport = HttpxTransport(
        settings.base_url,
        timeout=settings.request_timeout,
        transport=httpx.ASGITransport(app=build_api(backend)),
    )
    app = StorefrontApp(settings, transport, InMemoryTokenStore(), notifications=notifications)
    yield app
    await app.aclose()


async def _login(storefront):
    result = await storefront.login({"email": "jane@example.com", "password": "secret"})
    assert result.success, result.message
    return result


async def test_sign_in_shop_and_pay_with_mpesa(storefront, backend):
    await _login(storefront)
    assert storefront.cart.item_count == 2

    added = await storefront.cart.add_item("11")
    assert added.success
    assert storefront.cart.item_count == 3
    assert storefront.cart.cart.total == 1999.5

    checkout = storefront.checkout()
    checkout.set_shipping(line1="12 Moi Avenue", city="Nairobi", county="Nairobi")
    assert checkout.next().success
    assert checkout.next().success
    checkout.set_mobile_money_phone("0712 345 678")

    placed = await checkout.submit_order()

    assert placed.success, placed.message
    assert checkout.current_step is CheckoutStep.CONFIRMATION
    assert checkout.confirmation.order_number == "ORD-0001"
    assert backend.orders[0]["shipping_address"]["address"] == "12 Moi Avenue"
    assert backend.orders[0]["payment_method"] == "mpesa"
    assert backend.pushes == [
        {"order_id": "1", "payment_method": "mpesa", "phone_number": "254712345678", "amount": 2000}
    ]
    assert backend.cart == {}
    assert storefront.cart.item_count == 0

    paid = await checkout.poll_payment_status()

    assert paid.success
    assert checkout.confirmation.payment_status is PaymentStatus.SUCCEEDED


async def test_wrong_password_is_reported(storefront, notifications):
    result = await storefront.login({"email": "jane@example.com", "password": "wrong"})

    assert not result.success
    assert result.message == "Incorrect email or password"
    assert notifications.messages(NotificationLevel.ERROR) == ["Incorrect email or password"]
    assert not storefront.session.is_authenticated


async def test_expired_access_token_is_refreshed_transparently(storefront, backend):
    await _login(storefront)
    backend.expire_access_tokens()

    result = await storefront.cart.refresh()

    assert result.success
    assert backend.refresh_calls == 1
    assert storefront.session.is_authenticated


async def test_unrecoverable_session_signs_the_customer_out(storefront, backend, notifications):
    await _login(storefront)
    backend.expire_everything()

    result = await storefront.cart.add_item("10")

    assert result.code == FORCED_LOGOUT
    assert not storefront.session.is_authenticated
    assert storefront.sign_in_required
    assert storefront.cart.cart is None
    assert notifications.messages(NotificationLevel.WARNING) == ["Your session has expired. Please sign in again."]

    await _login(storefront)
    assert not storefront.sign_in_required
