import pytest
from django.db import IntegrityError, transaction

from apps.core.exceptions import ResourceNotFound

from .models import Address
from .services import create_address, delete_address, set_default_address

pytestmark = pytest.mark.django_db

ADDRESS = {
    "fullName": "Una User",
    "phoneNumber": "555-0100",
    "addressLine1": "1 Main St",
    "city": "Springfield",
    "state": "IL",
    "postalCode": "62701",
}


def _fields(**extra):
    fields = {
        "full_name": "Una User",
        "phone_number": "555-0100",
        "address_line1": "1 Main St",
        "city": "Springfield",
        "state": "IL",
        "postal_code": "62701",
    }
    fields.update(extra)
    return fields


def _defaults(user):
    return list(Address.objects.filter(user=user, is_default=True).values_list("pk", flat=True))


def test_first_address_becomes_default(shop_api, customer):
    res = shop_api.post("/api/addresses", ADDRESS)
    assert res.status_code == 201, res.content
    assert res.json()["isDefault"] is True

    res = shop_api.post("/api/addresses", {**ADDRESS, "city": "Shelbyville"})
    assert res.json()["isDefault"] is False
    assert len(_defaults(customer)) == 1


def test_setting_default_twice_leaves_only_the_last(shop_api, customer):
    a = create_address(user=customer, **_fields(city="A"))
    b = create_address(user=customer, **_fields(city="B"))

    assert shop_api.post(f"/api/addresses/{a.pk}/default").status_code == 200
    assert shop_api.post(f"/api/addresses/{b.pk}/default").status_code == 200

    assert _defaults(customer) == [b.pk]


def test_new_address_can_take_over_default(customer):
    first = create_address(user=customer, **_fields())
    second = create_address(user=customer, is_default=True, **_fields(city="Capital City"))

    first.refresh_from_db()
    assert not first.is_default
    assert _defaults(customer) == [second.pk]


def test_deleting_default_promotes_newest_remaining(customer):
    oldest = create_address(user=customer, **_fields(city="Old"))
    newest = create_address(user=customer, **_fields(city="New"))
    assert _defaults(customer) == [oldest.pk]

    delete_address(user=customer, address_id=oldest.pk)

    assert _defaults(customer) == [newest.pk]


def test_deleting_last_address_leaves_none(shop_api, customer):
    address = create_address(user=customer, **_fields())
    assert shop_api.delete(f"/api/addresses/{address.pk}").status_code == 204
    assert not Address.objects.filter(user=customer).exists()


def test_other_label_requires_custom_label(shop_api):
    res = shop_api.post("/api/addresses", {**ADDRESS, "addressLabel": "OTHER"})
    assert res.status_code == 400
    assert "customLabel" in res.json()["details"]

    res = shop_api.post("/api/addresses", {**ADDRESS, "addressLabel": "OTHER", "customLabel": "Cabin"})
    assert res.status_code == 201
    assert res.json()["customLabel"] == "Cabin"


def test_update_address_fields(shop_api, customer):
    address = create_address(user=customer, **_fields())
    res = shop_api.patch(f"/api/addresses/{address.pk}", {"city": "Ogdenville"})
    assert res.status_code == 200
    assert res.json()["city"] == "Ogdenville"
    assert res.json()["isDefault"] is True


def test_addresses_of_others_are_invisible(shop_api, customer, staff, make_address):
    create_address(user=customer, **_fields())
    foreign = make_address(staff)

    assert [a["city"] for a in shop_api.get("/api/addresses").json()] == ["Springfield"]
    assert shop_api.get(f"/api/addresses/{foreign.pk}").status_code == 404
    assert shop_api.delete(f"/api/addresses/{foreign.pk}").status_code == 404
    assert shop_api.post(f"/api/addresses/{foreign.pk}/default").status_code == 404


def test_set_default_unknown_address(customer):
    with pytest.raises(ResourceNotFound):
        set_default_address(user=customer, address_id=12345)


def test_addresses_require_login(api):
    assert api.get("/api/addresses").status_code == 401


def test_database_allows_one_default_per_user(customer, staff, make_address):
    make_address(customer, is_default=True)
    make_address(staff, is_default=True)

    with pytest.raises(IntegrityError), transaction.atomic():
        make_address(customer, is_default=True, city="Second")

    assert len(_defaults(customer)) == 1
