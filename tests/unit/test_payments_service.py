import json

import pytest

from backend.cart import service as cart_service
from backend.orders import service as orders_service
from backend.payments import service as payments_service
from backend.payments import stripe_client
from backend.payments.metadata import make_intent_metadata
from backend.orders.models import ShippingAddress
from backend.utils.errors import EmptyCart, InsufficientStock, NotFound, PaymentIncomplete, ValidationError

USER = "u-pay"


@pytest.fixture
def fake_stripe(monkeypatch):
    """Capture les appels PaymentIntent sans réseau."""
    calls = {"create": [], "intents": {}}

    def _create(*, amount, metadata, currency="pkr"):
        calls["create"].append({"amount": amount, "metadata": metadata, "currency": currency})
        return {"id": "pi_123", "client_secret": "pi_123_secret_abc", "status": "requires_payment_method", "amount": amount}

    def _retrieve(payment_intent_id):
        return calls["intents"].get(payment_intent_id, {"id": payment_intent_id, "status": "requires_payment_method", "amount": 0})

    monkeypatch.setattr(stripe_client, "create_payment_intent", _create)
    monkeypatch.setattr(stripe_client, "retrieve_payment_intent", _retrieve)
    return calls


def _succeeded_event(intent_id, user_id, cart_id, address, notes=""):
    return {
        "id": "evt_1",
        "type": "payment_intent.succeeded",
        "data": {"object": {"id": intent_id, "metadata": make_intent_metadata(user_id, cart_id, address, notes)}},
    }


def test_create_payment_intent_sends_minor_units_and_metadata(make_product, store, stock_of, fake_stripe, shipping_address):
    product = make_product(price=1000, stock=5)
    cart = cart_service.add_item(USER, product["id"], 1)

    result = payments_service.create_payment_intent(USER, shipping_address, "leave at door")

    assert result == {"client_secret": "pi_123_secret_abc", "payment_intent_id": "pi_123", "amount": 1330.0}
    [call] = fake_stripe["create"]
    assert call["amount"] == 133000
    assert call["metadata"]["user_id"] == USER
    assert call["metadata"]["cart_id"] == cart["id"]
    assert json.loads(call["metadata"]["shipping_address"]) == shipping_address
    # aucune écriture: ni commande ni décrément
    assert store.rows("orders") == []
    assert stock_of(product["id"]) == 5


def test_create_payment_intent_preconditions(make_product, store, fake_stripe, shipping_address):
    with pytest.raises(EmptyCart):
        payments_service.create_payment_intent(USER, shipping_address)

    product = make_product(stock=2)
    cart_service.add_item(USER, product["id"], 2)
    store.rows("products")[0]["stock"] = 1
    with pytest.raises(InsufficientStock):
        payments_service.create_payment_intent(USER, shipping_address)
    assert fake_stripe["create"] == []


def test_succeeded_event_creates_confirmed_order_with_checkout_totals(make_product, store, stock_of, shipping_address):
    product = make_product(price=1200, stock=10)
    cart = cart_service.add_item(USER, product["id"], 3, "42", "black")
    cart_service.add_item("direct-buyer", product["id"], 3, "42", "black")

    ack = payments_service.handle_event(_succeeded_event("pi_ok", USER, cart["id"], shipping_address, "gift"))
    direct = orders_service.create_order("direct-buyer", shipping_address, "cash_on_delivery")

    assert ack == {"received": True}
    [paid] = [o for o in store.rows("orders") if o["user_id"] == USER]
    assert paid["payment_method"] == "stripe"
    assert paid["payment_status"] == "completed"
    assert paid["order_status"] == "confirmed"
    assert paid["stripe_payment_id"] == "pi_ok"
    assert paid["notes"] == "gift"
    assert paid["shipping_address"] == shipping_address
    for key in ("subtotal", "shipping_cost", "tax", "total"):
        assert paid[key] == direct[key]
    assert stock_of(product["id"]) == 4
    assert next(c for c in store.rows("carts") if c["user_id"] == USER)["items"] == []


def test_failed_and_unknown_events_change_nothing(make_product, store, stock_of, shipping_address):
    product = make_product(stock=5)
    cart = cart_service.add_item(USER, product["id"], 1)
    failed = _succeeded_event("pi_ko", USER, cart["id"], shipping_address)
    failed["type"] = "payment_intent.payment_failed"

    assert payments_service.handle_event(failed) == {"received": True}
    assert payments_service.handle_event({"type": "charge.refunded", "data": {"object": {}}}) == {"received": True}
    assert store.rows("orders") == []
    assert stock_of(product["id"]) == 5
    assert len(store.rows("carts")[0]["items"]) == 1


def test_succeeded_event_with_unknown_cart_is_acknowledged(store, shipping_address):
    ack = payments_service.handle_event(_succeeded_event("pi_x", USER, "no-such-cart", shipping_address))
    assert ack == {"received": True}
    assert store.rows("orders") == []


def test_succeeded_event_with_stock_shortage_is_logged_not_raised(make_product, store, shipping_address, caplog):
    product = make_product("Cap", stock=3)
    cart = cart_service.add_item(USER, product["id"], 3)
    store.rows("products")[0]["stock"] = 0

    ack = payments_service.handle_event(_succeeded_event("pi_short", USER, cart["id"], shipping_address))

    assert ack == {"received": True}
    assert store.rows("orders") == []
    assert "INSUFFICIENT_STOCK" in caplog.text


def test_replayed_event_hits_empty_cart(make_product, store, shipping_address):
    product = make_product(stock=5)
    cart = cart_service.add_item(USER, product["id"], 1)
    event = _succeeded_event("pi_replay", USER, cart["id"], shipping_address)

    payments_service.handle_event(event)
    payments_service.handle_event(event)

    assert len(store.rows("orders")) == 1


def test_get_payment_order(make_product, fake_stripe, shipping_address):
    product = make_product(stock=5)
    cart = cart_service.add_item(USER, product["id"], 1)

    with pytest.raises(PaymentIncomplete):
        payments_service.get_payment_order(USER, "pi_done")

    fake_stripe["intents"]["pi_done"] = {"id": "pi_done", "status": "succeeded", "amount": 133000}
    with pytest.raises(NotFound):
        payments_service.get_payment_order(USER, "pi_done")

    payments_service.handle_event(_succeeded_event("pi_done", USER, cart["id"], shipping_address))
    order = payments_service.get_payment_order(USER, "pi_done")
    assert order["stripe_payment_id"] == "pi_done"
    assert order["items"][0]["product"]["id"] == product["id"]
    with pytest.raises(NotFound):
        payments_service.get_payment_order("other-user", "pi_done")


def _largest_address(**overrides):
    """Adresse dont chaque champ atteint sa longueur maximale acceptée par l'API."""
    limits = {"full_name": 80, "street": 100, "city": 60, "state": 60, "postal_code": 20, "country": 56, "phone": 30}
    values = {name: "ü" * size for name, size in limits.items()}
    values.update(overrides)
    return ShippingAddress(**values).model_dump()


def test_largest_address_reaches_the_paid_order_intact(make_product, store, fake_stripe):
    address = _largest_address()
    product = make_product(stock=5)
    cart_service.add_item(USER, product["id"], 1)

    payments_service.create_payment_intent(USER, address, "n" * 300)
    [call] = fake_stripe["create"]
    assert len(call["metadata"]["shipping_address"]) <= 500

    event = {"id": "evt_big", "type": "payment_intent.succeeded", "data": {"object": {"id": "pi_big", "metadata": call["metadata"]}}}
    payments_service.handle_event(event)

    [order] = store.rows("orders")
    assert order["shipping_address"] == address
    assert order["payment_status"] == "completed"


def test_address_too_long_for_metadata_is_rejected_before_stripe(make_product, store, fake_stripe):
    # les guillemets sont échappés: le JSON dépasse la limite malgré des champs valides
    address = _largest_address(street='"' * 100)
    product = make_product(stock=5)
    cart_service.add_item(USER, product["id"], 1)

    with pytest.raises(ValidationError) as exc:
        payments_service.create_payment_intent(USER, address)

    assert exc.value.message == "Shipping address is too long"
    assert exc.value.extra["max_length"] == 500
    assert fake_stripe["create"] == []
    assert store.rows("orders") == []


def test_unreadable_address_is_reported_when_finalizing(make_product, store, caplog):
    product = make_product(stock=5)
    cart = cart_service.add_item(USER, product["id"], 1)
    intent = {"id": "pi_bad_addr", "metadata": {"user_id": USER, "cart_id": cart["id"], "shipping_address": '{"street":"Blo'}}

    payments_service.handle_event({"type": "payment_intent.succeeded", "data": {"object": intent}})

    [order] = store.rows("orders")
    assert order["shipping_address"] == {}
    assert "missing or unreadable shipping address pi=pi_bad_addr" in caplog.text
