"""Shared BDD steps for the ordering context."""

from pytest_bdd import given, parsers

API = "/api/v1"


@given(parsers.cfparse("a signed-in customer with {count:d} items in their cart"))
def signed_in_with_cart(run, sign_in, transport, cart, cart_body, count):
    run(sign_in())
    transport.respond("GET", f"{API}/cart", body=cart_body)
    run(cart.refresh())
    assert cart.item_count == count
    transport.reset_calls()
