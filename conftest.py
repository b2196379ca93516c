from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from apps.catalog.models import Product
from apps.shop.models import Address
from apps.users.models import Role

PASSWORD = "s3cret-pass"


@pytest.fixture
def api():
    return APIClient()


@pytest.fixture
def customer(db):
    return get_user_model().objects.create_user("u@test.com", PASSWORD, name="Una User")


@pytest.fixture
def staff(db):
    return get_user_model().objects.create_staff("admin@test.com", PASSWORD, role=Role.ADMIN, name="Ada Admin")


@pytest.fixture
def shop_api(customer):
    client = APIClient()
    res = client.post("/api/auth/login", {"email": customer.email, "password": PASSWORD})
    assert res.status_code == 200, res.content
    return client


@pytest.fixture
def staff_api(staff):
    client = APIClient()
    res = client.post("/api/admin/auth/login", {"email": staff.email, "password": PASSWORD})
    assert res.status_code == 200, res.content
    return client


@pytest.fixture
def make_product(db):
    def make(name="Widget", price="10.00", stock=10, **extra):
        return Product.objects.create(name=name, price=Decimal(price), stock=stock, **extra)
    return make


@pytest.fixture
def make_address(db):
    def make(user, **extra):
        fields = {
            "full_name": "Una User",
            "phone_number": "555-0100",
            "address_line1": "1 Main St",
            "city": "Springfield",
            "state": "IL",
            "postal_code": "62701",
        }
        fields.update(extra)
        return Address.objects.create(user=user, **fields)
    return make
