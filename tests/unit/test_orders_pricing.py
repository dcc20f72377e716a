from decimal import Decimal

from backend.orders import pricing


def test_totals_above_free_shipping_threshold():
    totals = pricing.compute_totals(6000)
    assert totals["subtotal"] == Decimal("6000.00")
    assert totals["shipping_cost"] == Decimal("0.00")
    assert totals["tax"] == Decimal("780.00")
    assert totals["total"] == Decimal("6780.00")


def test_totals_below_threshold_pay_flat_shipping():
    totals = pricing.compute_totals(1000)
    assert totals["shipping_cost"] == Decimal("200.00")
    assert totals["tax"] == Decimal("130.00")
    assert totals["total"] == Decimal("1330.00")


def test_threshold_is_strictly_greater_than():
    assert pricing.compute_totals(5000)["shipping_cost"] == Decimal("200.00")
    assert pricing.compute_totals("5000.01")["shipping_cost"] == Decimal("0.00")


def test_tax_is_rounded_half_up_to_cents():
    # 10.05 * 0.13 = 1.3065
    totals = pricing.compute_totals("10.05")
    assert totals["tax"] == Decimal("1.31")
    assert totals["total"] == Decimal("211.36")


def test_to_minor_units():
    assert pricing.to_minor_units(Decimal("1330.00")) == 133000
    assert pricing.to_minor_units("19.995") == 2000
    assert pricing.to_minor_units(0) == 0


def test_build_order_uses_snapshot_prices_and_defaults():
    cart = {
        "id": "c1",
        "user_id": "u1",
        "items": [
            {
                "id": "l1", "product_id": "p1", "quantity": 2, "size": "42", "color": "red", "price": 500,
                "product": {"id": "p1", "name": "Air Max", "price": 999, "image": "/img/a.png"},
            },
        ],
    }
    order = pricing.build_order(cart, {"street": "1 Mall Road", "city": "Lahore", "country": "PK"})

    assert order["user_id"] == "u1"
    assert order["subtotal"] == 1000.0
    assert order["shipping_cost"] == 200.0
    assert order["tax"] == 130.0
    assert order["total"] == 1330.0
    assert order["items"] == [
        {"product_id": "p1", "quantity": 2, "size": "42", "color": "red", "price": 500.0, "name": "Air Max", "image": "/img/a.png"}
    ]
    assert order["payment_method"] == "cash_on_delivery"
    assert order["payment_status"] == "pending"
    assert order["order_status"] == "pending"
    assert order["stripe_payment_id"] is None
    assert order["tracking_number"] is None


def test_build_order_payment_overrides():
    cart = {"user_id": "u1", "items": [{"product_id": "p1", "quantity": 1, "price": 10}]}
    order = pricing.build_order(
        cart, {}, {"payment_method": "stripe", "payment_status": "completed", "order_status": "confirmed", "stripe_payment_id": "pi_1"}
    )
    assert (order["payment_method"], order["payment_status"], order["order_status"]) == ("stripe", "completed", "confirmed")
    assert order["stripe_payment_id"] == "pi_1"
    assert order["items"][0]["name"] == ""
