"""Tests for the cart snapshot models."""

from ordering.cart.cart import Cart, CartItem


def test_parses_backend_wire_names(cart_body):
    cart = Cart.model_validate(cart_body)

    first = cart.items[0]
    assert first.id == "1"
    assert first.product_id == "10"
    assert first.name == "Vitamin C 1000mg"
    assert first.unit_price == 750.0
    assert first.image_ref == "vitc-front.jpg"
    assert cart.items[1].image_ref is None


def test_item_count_is_sum_of_quantities(cart_body):
    assert Cart.model_validate(cart_body).item_count == 3


def test_totals_are_taken_from_the_server(cart_body):
    cart_body["total"] = 1234.0
    cart = Cart.model_validate(cart_body)

    # Never recomputed from the line items
    assert cart.total == 1234.0
    assert cart.subtotal == 1999.5


def test_null_items_means_empty():
    cart = Cart.model_validate({"items": None, "total": 0})

    assert cart.is_empty
    assert cart.item_count == 0


def test_empty_cart():
    cart = Cart.empty()

    assert cart.items == []
    assert cart.total == 0.0
    assert cart.applied_coupon_code is None


def test_find_by_id(cart_body):
    cart = Cart.model_validate(cart_body)

    assert cart.find(2).name == "Digital Thermometer"
    assert cart.find("99") is None


def test_line_total():
    item = CartItem(id="1", product_id="10", product_name="Soap", product_price=120.0, quantity=3)
    assert item.line_total == 360.0
