import asyncio
import json
from pathlib import Path

import jwt
import pytest
from identity.session.manager import SessionManager
from identity.session.tokens import InMemoryTokenStore
from shared.config import Settings
from shared.notifications import NotificationCenter
from shared.transport import FakeTransport

API = "/api/v1"

USER = {
    "id": 7,
    "email": "jane@example.com",
    "first_name": "Jane",
    "last_name": "Wanjiku",
    "phone": "0712345678",
    "role": "customer",
}

CART = {
    "items": [
        {
            "id": 1,
            "product_id": 10,
            "product_name": "Vitamin C 1000mg",
            "product_price": 750.0,
            "quantity": 2,
            "product_image": "vitc-front.jpg,vitc-back.jpg",
        },
        {
            "id": 2,
            "product_id": 11,
            "product_name": "Digital Thermometer",
            "product_price": 499.5,
            "quantity": 1,
            "product_image": None,
        },
    ],
    "subtotal": 1999.5,
    "discount": 0.0,
    "total": 1999.5,
    "applied_coupon_code": None,
}


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        # Get the test file path relative to the tests directory
        test_path = Path(item.fspath)

        # Mark tests based on their directory
        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path) or "/bdd/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


def make_jwt(claims: dict) -> str:
    """A JWT carrying ``claims``, signed with a key the client never sees."""
    return jwt.encode(claims, "backend-only-secret-for-test-tokens", algorithm="HS256")


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def make_token():
    return make_jwt


@pytest.fixture()
def user_body():
    return dict(USER)


@pytest.fixture()
def cart_body():
    return json.loads(json.dumps(CART))


# ---------------------------------------------------------------------------
# Service fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def settings():
    return Settings(
        _env_file=None,
        base_url="http://testserver",
        payment_poll_interval=0,
        payment_poll_attempts=3,
        environment="test",
    )


@pytest.fixture()
def transport():
    return FakeTransport()


@pytest.fixture()
def token_store():
    return InMemoryTokenStore()


@pytest.fixture()
def notifications():
    return NotificationCenter()


@pytest.fixture()
def session(transport, token_store, settings):
    return SessionManager(transport, token_store, settings)


@pytest.fixture()
def sign_in(session, transport, user_body):
    """Sign ``session`` in against the fake transport and forget the calls made."""

    async def _sign_in(role="customer", refresh_token="refresh-1"):
        transport.respond(
            "POST",
            f"{API}/auth/login",
            body={
                "access_token": make_jwt({"sub": "7", "role": role}),
                "refresh_token": refresh_token,
                "token_type": "bearer",
            },
        )
        transport.respond("GET", f"{API}/auth/user/me", body=dict(user_body, role=role))
        result = await session.login({"email": "jane@example.com", "password": "secret"})
        assert result.success, result.message
        transport.reset_calls()
        return result

    return _sign_in


# ---------------------------------------------------------------------------
# BDD helpers
# ---------------------------------------------------------------------------
@pytest.fixture()
def run():
    """Drive coroutines from synchronous step functions."""
    loop = asyncio.new_event_loop()
    yield loop.run_until_complete
    loop.close()


@pytest.fixture()
def outcome():
    """Container for what a When step produced."""
    return {"response": None, "exc": None, "result": None}
