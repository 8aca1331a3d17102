import pytest
from ordering.cart.synchronizer import CartSynchronizer
from ordering.checkout.orchestrator import CheckoutOrchestrator
from payments.gateway import FakeGateway

API = "/api/v1"


@pytest.fixture()
def order_body():
    return {"id": 42, "order_number": "ORD-0042", "total_amount": 1999.5, "status": "pending"}


@pytest.fixture()
def cart(session, notifications):
    synchronizer = CartSynchronizer(session, notifications)
    yield synchronizer
    synchronizer.close()


@pytest.fixture()
async def loaded_cart(cart, transport, sign_in, cart_body):
    """A signed-in customer's cart holding two lines (three units)."""
    await sign_in()
    transport.respond("GET", f"{API}/cart", body=cart_body)
    await cart.refresh()
    transport.reset_calls()
    return cart


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def make_checkout(session, cart, gateway, notifications, settings):
    def _make():
        return CheckoutOrchestrator(session, cart, gateway, notifications=notifications, settings=settings)

    return _make
