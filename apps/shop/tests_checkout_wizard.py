import pytest

from apps.cart.cart import Cart, MemoryCartStorage
from apps.core.exceptions import EmptyOrderError

from .checkout import CheckoutStepError, CheckoutWizard, Step


class FakeOrder:
    pk = "order-1"


def _wizard_at_review():
    wizard = CheckoutWizard.start()
    wizard.select_address(11)
    wizard.advance()
    wizard.advance()
    return wizard


def test_starts_at_address_with_default_payment():
    wizard = CheckoutWizard.start()
    assert wizard.step is Step.ADDRESS
    assert wizard.payment_method == "COD"


def test_address_required_to_continue():
    wizard = CheckoutWizard.start()
    with pytest.raises(CheckoutStepError):
        wizard.advance()
    assert wizard.step is Step.ADDRESS


def test_payment_method_required_to_continue():
    wizard = CheckoutWizard.start()
    wizard.select_address(1)
    wizard.advance()
    wizard.select_payment_method("")
    with pytest.raises(CheckoutStepError):
        wizard.advance()
    assert wizard.step is Step.PAYMENT


def test_unknown_payment_method_rejected():
    wizard = CheckoutWizard.start()
    wizard.select_address(1)
    wizard.advance()
    with pytest.raises(CheckoutStepError):
        wizard.select_payment_method("BITCOIN")
    assert wizard.payment_method == "COD"


def test_back_and_forward():
    wizard = _wizard_at_review()
    assert wizard.step is Step.REVIEW
    wizard.back()
    assert wizard.step is Step.PAYMENT
    wizard.back()
    assert wizard.step is Step.ADDRESS
    with pytest.raises(CheckoutStepError):
        wizard.back()


def test_place_order_calls_submit_once_and_clears_cart():
    cart = Cart(MemoryCartStorage([{"productId": 1, "quantity": 2}]))
    calls = []

    def submit(w):
        calls.append(w.address_id)
        return FakeOrder()

    wizard = _wizard_at_review()
    wizard.place_order(cart, submit)

    assert calls == [11]
    assert cart.is_empty
    assert wizard.step is Step.SUBMITTED
    assert wizard.order_id == "order-1"
    with pytest.raises(CheckoutStepError):
        wizard.place_order(cart, submit)


def test_failed_submit_leaves_wizard_and_cart_untouched():
    cart = Cart(MemoryCartStorage([{"productId": 1, "quantity": 2}]))

    def submit(w):
        raise RuntimeError("db down")

    wizard = _wizard_at_review()
    with pytest.raises(RuntimeError):
        wizard.place_order(cart, submit)

    assert wizard.step is Step.REVIEW
    assert cart.quantity_of(1) == 2


def test_empty_cart_rejected_before_submit():
    wizard = _wizard_at_review()
    with pytest.raises(EmptyOrderError):
        wizard.place_order(Cart(MemoryCartStorage()), lambda w: pytest.fail("submit called"))


def test_place_order_only_from_review():
    wizard = CheckoutWizard.start()
    cart = Cart(MemoryCartStorage([{"productId": 1, "quantity": 1}]))
    with pytest.raises(CheckoutStepError):
        wizard.place_order(cart, lambda w: FakeOrder())


def test_round_trips_through_session_dict():
    wizard = _wizard_at_review()
    restored = CheckoutWizard.from_dict(wizard.as_dict())
    assert restored == wizard
    assert CheckoutWizard.from_dict({"step": "NOPE"}).step is Step.ADDRESS


@pytest.mark.django_db
def test_wizard_endpoint_places_order_from_session_cart(shop_api, customer, make_product, make_address):
    product = make_product(price="150.00", stock=5)
    address = make_address(customer)
    shop_api.post("/api/cart", {"productId": product.pk, "quantity": 2})

    assert shop_api.get("/api/checkout/wizard").json()["step"] == "ADDRESS"
    res = shop_api.post("/api/checkout/wizard", {"action": "continue"})
    assert res.status_code == 400

    shop_api.post("/api/checkout/wizard", {"action": "select_address", "addressId": address.pk})
    shop_api.post("/api/checkout/wizard", {"action": "continue"})
    res = shop_api.post("/api/checkout/wizard", {"action": "continue"})
    assert res.json()["step"] == "REVIEW"

    res = shop_api.post("/api/checkout/wizard", {"action": "place_order"})
    assert res.status_code == 200
    body = res.json()
    assert body["step"] == "SUBMITTED"
    assert body["cart"] == []
    assert body["order"]["totalAmount"] == "300.00"

    # reloading the page starts a fresh wizard
    assert shop_api.get("/api/checkout/wizard").json()["step"] == "ADDRESS"


@pytest.mark.django_db
def test_wizard_rejects_someone_elses_address(shop_api, staff, make_address):
    other = make_address(staff)
    shop_api.get("/api/checkout/wizard")
    res = shop_api.post("/api/checkout/wizard", {"action": "select_address", "addressId": other.pk})
    assert res.status_code == 404
