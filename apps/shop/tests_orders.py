from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.catalog.models import Product
from apps.core.exceptions import (
    EmptyOrderError, OutOfStockError, PriceMismatchError, ResourceNotFound, TotalMismatchError,
)

from . import services
from .models import IdempotencyKey, Order, OrderItem
from .services import LineRequest, create_order

pytestmark = pytest.mark.django_db


def _payload(address, items, total, method="COD"):
    return {"items": items, "totalAmount": total, "shippingAddressId": address.pk, "paymentMethod": method}


def test_checkout_scenario_single_line(shop_api, customer, make_address):
    Product.objects.create(id=7, name="Lamp", price=Decimal("150.00"), stock=10)
    address = make_address(customer)

    res = shop_api.post("/api/checkout", _payload(address, [{"productId": 7, "quantity": 2, "price": 150}], 300))

    assert res.status_code == 201, res.content
    body = res.json()
    assert body["totalAmount"] == "300.00"
    assert body["status"] == "PENDING"
    assert res["Location"] == f"/api/orders/{body['id']}"
    assert [(i["productId"], i["quantity"], i["price"]) for i in body["items"]] == [(7, 2, "150.00")]
    assert Product.objects.get(pk=7).stock == 8


def test_one_order_and_n_items_with_matching_total(customer, make_product, make_address):
    address = make_address(customer)
    a = make_product("A", "3.50", stock=5)
    b = make_product("B", "12.25", stock=5)
    c = make_product("C", "1.00", stock=5)

    order = create_order(
        user=customer,
        lines=[LineRequest(a.pk, 2), LineRequest(b.pk, 1), LineRequest(c.pk, 4)],
        shipping_address_id=address.pk,
        payment_method="COD",
    )

    assert Order.objects.count() == 1
    items = list(OrderItem.objects.filter(order=order))
    assert len(items) == 3
    assert order.total_amount == sum(i.price * i.quantity for i in items) == Decimal("23.25")


def test_price_snapshot_survives_catalog_change(customer, make_product, make_address):
    address = make_address(customer)
    product = make_product(price="20.00")
    order = create_order(user=customer, lines=[LineRequest(product.pk, 1)],
                         shipping_address_id=address.pk, payment_method="COD")

    Product.objects.filter(pk=product.pk).update(price=Decimal("99.00"))

    item = order.items.get()
    item.refresh_from_db()
    order.refresh_from_db()
    assert item.price == Decimal("20.00")
    assert order.total_amount == Decimal("20.00")


def test_empty_items_rejected_before_any_order(shop_api, customer, make_address):
    address = make_address(customer)
    res = shop_api.post("/api/checkout", _payload(address, [], 0))

    assert res.status_code == 400
    assert "items" in res.json()["details"]
    assert Order.objects.count() == 0

    with pytest.raises(EmptyOrderError):
        create_order(user=customer, lines=[], shipping_address_id=address.pk, payment_method="COD")
    assert Order.objects.count() == 0


def test_create_order_rolls_back_on_stock_failure(customer, make_product, make_address):
    address = make_address(customer)
    plenty = make_product("Plenty", "1.00", stock=10)
    scarce = make_product("Scarce", "3.50", stock=1)

    with pytest.raises(OutOfStockError):
        create_order(user=customer, lines=[LineRequest(plenty.pk, 2), LineRequest(scarce.pk, 2)],
                     shipping_address_id=address.pk, payment_method="COD")

    assert Order.objects.count() == 0
    assert Product.objects.get(pk=plenty.pk).stock == 10


def test_stale_client_price_rejected(customer, make_product, make_address):
    address = make_address(customer)
    product = make_product(price="10.00")
    with pytest.raises(PriceMismatchError):
        create_order(user=customer, lines=[LineRequest(product.pk, 1, Decimal("9.00"))],
                     shipping_address_id=address.pk, payment_method="COD")


def test_total_must_match_items(shop_api, customer, make_product, make_address):
    address = make_address(customer)
    product = make_product(price="10.00")

    res = shop_api.post("/api/checkout", _payload(address, [{"productId": product.pk, "quantity": 2, "price": 10}], 15))

    assert res.status_code == 400
    assert "totalAmount" in res.json()["details"]
    assert Order.objects.count() == 0
    with pytest.raises(TotalMismatchError):
        create_order(user=customer, lines=[LineRequest(product.pk, 2)], shipping_address_id=address.pk,
                     payment_method="COD", total_amount=Decimal("15.00"))


def test_address_of_another_user_is_not_found(shop_api, staff, make_product, make_address):
    foreign = make_address(staff)
    product = make_product(price="10.00")
    res = shop_api.post("/api/checkout", _payload(foreign, [{"productId": product.pk, "quantity": 1, "price": 10}], 10))
    assert res.status_code == 404
    assert Order.objects.count() == 0


def test_unknown_product_is_not_found(customer, make_address):
    address = make_address(customer)
    with pytest.raises(ResourceNotFound):
        create_order(user=customer, lines=[LineRequest(999, 1)], shipping_address_id=address.pk,
                     payment_method="COD")


def test_checkout_requires_shop_session(api, staff_api, customer, make_product, make_address):
    address = make_address(customer)
    product = make_product(price="10.00")
    payload = _payload(address, [{"productId": product.pk, "quantity": 1, "price": 10}], 10)

    assert api.post("/api/checkout", payload).status_code == 401
    # an admin session does not grant the shop scope
    assert staff_api.post("/api/checkout", payload).status_code == 401


def test_unknown_payment_method_is_a_validation_error(shop_api, customer, make_product, make_address):
    address = make_address(customer)
    product = make_product(price="10.00")
    res = shop_api.post("/api/checkout", _payload(
        address, [{"productId": product.pk, "quantity": 1, "price": 10}], 10, method="BARTER"))
    assert res.status_code == 400
    assert "paymentMethod" in res.json()["details"]


def test_idempotency_key_replays_without_duplicate_order(shop_api, customer, make_product, make_address):
    address = make_address(customer)
    product = make_product(price="10.00", stock=5)
    payload = _payload(address, [{"productId": product.pk, "quantity": 1, "price": 10}], 10)

    first = shop_api.post("/api/checkout", payload, HTTP_IDEMPOTENCY_KEY="abc-123")
    again = shop_api.post("/api/checkout", payload, HTTP_IDEMPOTENCY_KEY="abc-123")

    assert first.status_code == again.status_code == 201
    assert first.json()["id"] == again.json()["id"]
    assert Order.objects.count() == 1
    assert Product.objects.get(pk=product.pk).stock == 4


def test_idempotency_key_reused_with_other_body(shop_api, customer, make_product, make_address):
    address = make_address(customer)
    product = make_product(price="10.00", stock=5)
    shop_api.post("/api/checkout", _payload(address, [{"productId": product.pk, "quantity": 1, "price": 10}], 10),
                  HTTP_IDEMPOTENCY_KEY="k1")

    res = shop_api.post("/api/checkout", _payload(address, [{"productId": product.pk, "quantity": 2, "price": 10}], 20),
                        HTTP_IDEMPOTENCY_KEY="k1")
    assert res.status_code == 400
    assert Order.objects.count() == 1


def test_confirmation_mail_sent_on_commit(customer, make_product, make_address,
                                          django_capture_on_commit_callbacks, mailoutbox):
    address = make_address(customer)
    product = make_product(price="5.00")
    with django_capture_on_commit_callbacks(execute=True):
        order = create_order(user=customer, lines=[LineRequest(product.pk, 3)],
                             shipping_address_id=address.pk, payment_method="COD")

    assert len(mailoutbox) == 1
    assert mailoutbox[0].to == [customer.email]
    assert str(order.pk) in mailoutbox[0].subject


def test_order_history_is_scoped_to_owner(shop_api, customer, staff, make_product, make_address):
    mine = create_order(user=customer, lines=[LineRequest(make_product(price="1.00").pk, 1)],
                        shipping_address_id=make_address(customer).pk, payment_method="COD")
    theirs = create_order(user=staff, lines=[LineRequest(make_product(price="2.00").pk, 1)],
                          shipping_address_id=make_address(staff).pk, payment_method="COD")

    listed = shop_api.get("/api/orders").json()
    assert [o["id"] for o in listed] == [str(mine.pk)]
    assert shop_api.get(f"/api/orders/{mine.pk}").json()["shippingAddress"]["city"] == "Springfield"
    assert shop_api.get(f"/api/orders/{theirs.pk}").status_code == 404


def test_checkout_empties_the_session_cart(shop_api, customer, make_product, make_address):
    address = make_address(customer)
    product = make_product(price="10.00", stock=5)
    payload = _payload(address, [{"productId": product.pk, "quantity": 1, "price": 10}], 10)

    shop_api.post("/api/cart", {"productId": product.pk, "quantity": 1})
    assert shop_api.post("/api/checkout", payload).status_code == 201
    assert shop_api.get("/api/cart").json()["count"] == 0

    shop_api.post("/api/cart", {"productId": product.pk, "quantity": 1})
    assert shop_api.post("/api/checkout", payload, HTTP_IDEMPOTENCY_KEY="cart-1").status_code == 201
    assert shop_api.get("/api/cart").json()["count"] == 0


def test_failed_checkout_keeps_the_cart(shop_api, customer, make_product, make_address):
    address = make_address(customer)
    product = make_product(price="10.00", stock=0)
    shop_api.post("/api/cart", {"productId": product.pk, "quantity": 1})

    res = shop_api.post("/api/checkout", _payload(address, [{"productId": product.pk, "quantity": 1, "price": 10}], 10))
    assert res.status_code == 400
    assert shop_api.get("/api/cart").json()["count"] == 1


def test_unexpected_error_is_logged_and_hidden(shop_api, customer, make_product, make_address, monkeypatch, caplog):
    def boom(**kwargs):
        raise RuntimeError("database went away")

    monkeypatch.setattr(services, "create_order", boom)
    address = make_address(customer)
    product = make_product(price="10.00")

    res = shop_api.post("/api/checkout", _payload(address, [{"productId": product.pk, "quantity": 1, "price": 10}], 10))

    assert res.status_code == 500
    assert res.json() == {"error": "Internal server error"}
    record = next(r for r in caplog.records if r.name == "shop" and r.levelname == "ERROR")
    assert "database went away" in record.getMessage()
    assert record.exc_info is not None


def test_expired_idempotency_key_can_be_reused(shop_api, customer, make_product, make_address):
    address = make_address(customer)
    product = make_product(price="10.00", stock=5)
    first = shop_api.post("/api/checkout", _payload(address, [{"productId": product.pk, "quantity": 1, "price": 10}], 10),
                          HTTP_IDEMPOTENCY_KEY="old")
    IdempotencyKey.objects.update(created_at=timezone.now() - timedelta(days=2))

    again = shop_api.post("/api/checkout", _payload(address, [{"productId": product.pk, "quantity": 2, "price": 10}], 20),
                          HTTP_IDEMPOTENCY_KEY="old")

    assert again.status_code == 201
    assert again.json()["id"] != first.json()["id"]
    assert IdempotencyKey.objects.count() == 1
