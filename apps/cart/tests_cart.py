import pytest

from .cart import Cart, MemoryCartStorage


def test_add_upserts_single_line_per_product():
    cart = Cart(MemoryCartStorage())
    cart.add(7, 2)
    cart.add(7, 5)

    assert len(cart) == 1
    assert cart.quantity_of(7) == 5


def test_zero_quantity_removes_and_readding_restores_one_line():
    storage = MemoryCartStorage()
    cart = Cart(storage)
    cart.add(7, 2)
    cart.add(7, 0)
    assert cart.quantity_of(7) == 0
    assert cart.is_empty

    cart.add(7, 1)
    assert [line.as_dict() for line in cart] == [{"productId": 7, "quantity": 1}]
    assert storage.lines == [{"productId": 7, "quantity": 1}]


def test_negative_quantity_removes_line():
    cart = Cart(MemoryCartStorage([{"productId": 3, "quantity": 4}]))
    cart.add(3, -1)
    assert cart.is_empty


def test_clear_empties_storage():
    storage = MemoryCartStorage()
    cart = Cart(storage)
    cart.add(1, 1)
    cart.add(2, 3)
    cart.clear()

    assert len(cart) == 0
    assert storage.lines == []


def test_loading_drops_invalid_and_non_positive_lines():
    storage = MemoryCartStorage([
        {"productId": 1, "quantity": 2},
        {"productId": 2, "quantity": 0},
        {"productId": "x", "quantity": 1},
        {"quantity": 1},
    ])
    cart = Cart(storage)
    assert cart.as_list() == [{"productId": 1, "quantity": 2}]


def test_state_survives_a_new_cart_over_the_same_storage():
    storage = MemoryCartStorage()
    Cart(storage).add(9, 4)
    assert Cart(storage).quantity_of(9) == 4


@pytest.mark.django_db
def test_session_cart_endpoint(api):
    res = api.post("/api/cart", {"productId": 5, "quantity": 2})
    assert res.status_code == 200
    assert res.json()["items"] == [{"productId": 5, "quantity": 2}]

    api.post("/api/cart", {"productId": 6, "quantity": 1})
    api.post("/api/cart", {"productId": 5, "quantity": 0})
    assert api.get("/api/cart").json() == {"items": [{"productId": 6, "quantity": 1}], "count": 1}

    assert api.delete("/api/cart").status_code == 204
    assert api.get("/api/cart").json()["count"] == 0


@pytest.mark.django_db
def test_session_cart_rejects_bad_payload(api):
    res = api.post("/api/cart", {"productId": "abc", "quantity": 1})
    assert res.status_code == 400
    assert "productId" in res.json()["details"]
