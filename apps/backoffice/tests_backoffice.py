from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model

from apps.catalog.models import Category, CategoryGrid, Product
from apps.shop.models import Order, OrderStatus
from apps.shop.services import LineRequest, create_order
from apps.users.models import Role

pytestmark = pytest.mark.django_db

PASSWORD = "s3cret-pass"


@pytest.fixture
def order(customer, make_product, make_address):
    product = make_product("Kettle", "25.00", stock=5)
    return create_order(user=customer, lines=[LineRequest(product.pk, 2)],
                        shipping_address_id=make_address(customer).pk, payment_method="COD")


@pytest.mark.parametrize("path", ["/api/admin/products", "/api/admin/orders", "/api/admin/dashboard",
                                  "/api/admin/customers", "/api/admin/staff"])
def test_requires_staff_session(api, path):
    res = api.get(path)
    assert res.status_code == 401
    assert res.json() == {"error": "Unauthorized"}


def test_product_create_and_update_with_categories(staff_api):
    lamps = Category.objects.create(name="Lamps", slug="lamps")
    desks = Category.objects.create(name="Desks", slug="desks")

    res = staff_api.post("/api/admin/products", {
        "name": "Desk Lamp",
        "price": "19.99",
        "stock": 4,
        "categoryIds": [lamps.pk],
        "defaultCategoryId": lamps.pk,
        "attributes": [{"name": "color", "value": "black"}],
    })
    assert res.status_code == 201, res.content
    body = res.json()
    assert body["slug"] == "desk-lamp"
    assert [c["slug"] for c in body["categories"]] == ["lamps"]
    assert body["defaultCategory"]["id"] == lamps.pk

    res = staff_api.patch(f"/api/admin/products/{body['id']}", {"categoryIds": [desks.pk], "attributes": []})
    assert res.status_code == 200
    assert [c["slug"] for c in res.json()["categories"]] == ["desks"]
    assert res.json()["attributes"] == []


def test_admin_product_list_includes_unpublished(staff_api, make_product):
    make_product("Draft", published=False)
    body = staff_api.get("/api/admin/products").json()
    assert [p["name"] for p in body["products"]] == ["Draft"]
    assert body["pagination"]["totalItems"] == 1


def test_product_in_an_order_cannot_be_deleted(staff_api, order):
    product_id = order.items.get().product_id
    res = staff_api.delete(f"/api/admin/products/{product_id}")
    assert res.status_code == 400
    assert Product.objects.filter(pk=product_id).exists()


def test_category_crud(staff_api):
    res = staff_api.post("/api/admin/categories", {"name": "Garden", "slug": "garden"})
    assert res.status_code == 201
    parent_id = res.json()["id"]

    res = staff_api.post("/api/admin/categories", {"name": "Tools", "slug": "tools", "parentId": parent_id})
    assert res.json()["parentId"] == parent_id

    res = staff_api.patch(f"/api/admin/categories/{parent_id}", {"parentId": parent_id})
    assert res.status_code == 400

    assert staff_api.delete(f"/api/admin/categories/{parent_id}").status_code == 204
    assert Category.objects.get(slug="tools").parent is None


def test_grid_reorder(staff_api):
    category = Category.objects.create(name="Toys", slug="toys")
    a = CategoryGrid.objects.create(category=category, order=0)
    b = CategoryGrid.objects.create(category=category, order=1)

    res = staff_api.post("/api/admin/category-grids/reorder", {"ids": [b.pk, a.pk]})
    assert res.status_code == 200
    assert [g["id"] for g in res.json()] == [b.pk, a.pk]

    res = staff_api.post("/api/admin/category-grids/reorder", {"ids": [a.pk, 999]})
    assert res.status_code == 400


def test_homepage_section_create(staff_api):
    category = Category.objects.create(name="Deals", slug="deals")
    res = staff_api.post("/api/admin/homepage-sections", {"name": "Top", "type": "grid", "categoryId": category.pk})
    assert res.status_code == 201
    assert res.json()["isActive"] is True


def test_order_status_any_to_any_with_restock(staff_api, order):
    product = order.items.get().product
    assert Product.objects.get(pk=product.pk).stock == 3

    url = f"/api/admin/orders/{order.pk}"
    for target in ["DELIVERED", "PENDING", "CANCELLED"]:
        res = staff_api.patch(url, {"status": target})
        assert res.status_code == 200
        assert res.json()["status"] == target
    assert Product.objects.get(pk=product.pk).stock == 5

    # leaving CANCELLED takes the stock again
    staff_api.patch(url, {"status": "PROCESSING"})
    assert Product.objects.get(pk=product.pk).stock == 3


def test_order_status_rejects_unknown_value(staff_api, order):
    res = staff_api.patch(f"/api/admin/orders/{order.pk}", {"status": "LOST"})
    assert res.status_code == 400
    order.refresh_from_db()
    assert order.status == OrderStatus.PENDING


def test_order_list_filters_by_status(staff_api, order, customer):
    body = staff_api.get("/api/admin/orders").json()
    assert body[0]["user"]["email"] == customer.email
    assert staff_api.get("/api/admin/orders", {"status": "DELIVERED"}).json() == []


def test_unknown_order_is_not_found(staff_api):
    assert staff_api.get("/api/admin/orders/00000000-0000-0000-0000-000000000000").status_code == 404


def test_dashboard_counts_and_best_sellers(staff_api, order, customer, make_product, make_address):
    blender = make_product("Blender", "40.00")
    second = create_order(user=customer, lines=[LineRequest(blender.pk, 5)],
                          shipping_address_id=make_address(customer).pk, payment_method="CARD")
    Order.objects.filter(pk=second.pk).update(status=OrderStatus.DELIVERED)

    body = staff_api.get("/api/admin/dashboard").json()
    assert body["totalOrders"] == 2
    assert body["pendingOrders"] == 1
    assert body["deliveredOrders"] == 1
    assert body["processingOrders"] == 0
    assert [(p["name"], p["quantity"]) for p in body["bestSellingProducts"]] == [("Blender", 5), ("Kettle", 2)]
    assert body["bestSellingProducts"][0]["price"] == str(Decimal("40.00"))


def test_customer_list_and_bulk_delete(staff_api, customer):
    other = get_user_model().objects.create_user("other@test.com", PASSWORD)

    emails = {c["email"] for c in staff_api.get("/api/admin/customers").json()}
    assert emails == {customer.email, other.email}

    res = staff_api.delete("/api/admin/customers/bulk-delete", {"ids": [other.pk, customer.pk]})
    assert res.json() == {"deleted": 2}
    assert not get_user_model().objects.customers().exists()


def test_staff_create_validates_role_and_password(staff_api):
    res = staff_api.post("/api/admin/staff", {"email": "new@test.com", "name": "New", "role": "CUSTOMER",
                                              "password": PASSWORD})
    assert res.status_code == 400
    assert "role" in res.json()["details"]

    res = staff_api.post("/api/admin/staff", {"email": "new@test.com", "name": "New", "role": "STAFF"})
    assert res.status_code == 400
    assert "password" in res.json()["details"]

    res = staff_api.post("/api/admin/staff", {"email": "new@test.com", "name": "New", "role": "STAFF",
                                              "password": PASSWORD})
    assert res.status_code == 201
    assert res.json()["status"] == "active"
    assert "password" not in res.json()
    assert get_user_model().objects.get(email="new@test.com").check_password(PASSWORD)


def test_staff_cannot_delete_themselves(staff_api, staff):
    assert staff_api.delete(f"/api/admin/staff/{staff.pk}").status_code == 400

    colleague = get_user_model().objects.create_staff("two@test.com", PASSWORD, role=Role.STAFF)
    res = staff_api.delete("/api/admin/staff/bulk-delete", {"ids": [staff.pk, colleague.pk]})
    assert res.json() == {"deleted": 1}
    assert get_user_model().objects.filter(pk=staff.pk).exists()


def test_staff_email_is_unique_regardless_of_case(staff_api, staff):
    res = staff_api.post("/api/admin/staff", {"email": "ADMIN@test.com", "name": "Dup", "role": "STAFF",
                                              "password": PASSWORD})
    assert res.status_code == 400
    assert "email" in res.json()["details"]

    colleague = get_user_model().objects.create_staff("two@test.com", PASSWORD, role=Role.STAFF)
    res = staff_api.patch(f"/api/admin/staff/{colleague.pk}", {"email": "Admin@Test.com"})
    assert res.status_code == 400
    assert "email" in res.json()["details"]

    res = staff_api.patch(f"/api/admin/staff/{colleague.pk}", {"email": "Two@Test.com"})
    assert res.status_code == 200
    assert res.json()["email"] == "two@test.com"


def test_staff_active_flag_is_camel_case(staff_api):
    colleague = get_user_model().objects.create_staff("two@test.com", PASSWORD, role=Role.STAFF)

    res = staff_api.patch(f"/api/admin/staff/{colleague.pk}", {"isActive": False})

    assert res.status_code == 200
    assert res.json()["isActive"] is False
    assert res.json()["status"] == "inactive"
    assert "is_active" not in res.json()
    colleague.refresh_from_db()
    assert not colleague.is_active
