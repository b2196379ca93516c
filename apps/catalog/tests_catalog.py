import pytest

from .models import Category, CategoryGrid, HomepageSection
from .pagination import paginate, positive_int

pytestmark = pytest.mark.django_db


def test_positive_int_falls_back_on_garbage():
    assert positive_int("3", 1) == 3
    assert positive_int("0", 1) == 1
    assert positive_int("-2", 5) == 5
    assert positive_int("abc", 7) == 7
    assert positive_int(None, 9) == 9


def test_product_list_is_paginated(api, make_product):
    for n in range(12):
        make_product(f"Item {n}")

    body = api.get("/api/products", {"page": 2}).json()
    assert body["pagination"] == {"currentPage": 2, "totalPages": 2, "totalItems": 12, "itemsPerPage": 10}
    assert len(body["products"]) == 2
    # newest first
    assert [p["name"] for p in body["products"]] == ["Item 1", "Item 0"]


def test_product_list_hides_unpublished_and_searches(api, make_product):
    make_product("Red Lamp")
    make_product("Blue Chair", description="goes well with a lamp")
    make_product("Hidden Lamp", published=False)

    names = {p["name"] for p in api.get("/api/products", {"search": "LAMP"}).json()["products"]}
    assert names == {"Red Lamp", "Blue Chair"}


def test_product_detail(api, make_product):
    product = make_product("Desk", price="99.90")
    body = api.get(f"/api/products/{product.pk}").json()
    assert body["price"] == "99.90"
    assert body["slug"] == "desk"

    hidden = make_product("Ghost", published=False)
    assert api.get(f"/api/products/{hidden.pk}").status_code == 404
    assert api.get("/api/products/424242").status_code == 404


def test_categories_with_children(api):
    root = Category.objects.create(name="Home", slug="home")
    Category.objects.create(name="Kitchen", slug="kitchen", parent=root, sort_order=1)

    body = api.get("/api/categories", {"limit": 1}).json()
    assert body["totalCount"] == 2
    assert body["limit"] == 1
    assert body["categories"][0]["name"] == "Home"
    assert [c["slug"] for c in body["categories"][0]["children"]] == ["kitchen"]


def test_category_products_include_default_category(api, make_product):
    category = Category.objects.create(name="Lighting", slug="lighting")
    tagged = make_product("Tagged", images=["https://img/1.png"])
    tagged.categories.add(category)
    make_product("By default", default_category=category)
    make_product("Elsewhere")

    body = api.get(f"/api/categories/{category.pk}/products").json()
    assert body["category"]["slug"] == "lighting"
    assert {p["name"] for p in body["products"]} == {"Tagged", "By default"}
    assert body["pagination"]["totalItems"] == 2
    card = next(p for p in body["products"] if p["name"] == "Tagged")
    assert card["images"] == [{"url": "https://img/1.png"}]


def test_search_requires_term(api, make_product):
    make_product("Garden Hose")
    assert api.get("/api/search").json() == {"products": []}
    assert api.get("/api/search", {"q": "   "}).json() == {"products": []}
    assert [p["name"] for p in api.get("/api/search", {"q": "hose"}).json()["products"]] == ["Garden Hose"]


def test_cart_products_lookup(api, make_product):
    a = make_product("A")
    make_product("B")

    res = api.post("/api/cart-products", {"productIds": [a.pk, "junk"]})
    assert res.status_code == 200
    assert [p["id"] for p in res.json()["products"]] == [a.pk]


@pytest.mark.parametrize("payload, error", [
    ({}, "Product IDs are required"),
    ({"productIds": []}, "Product IDs are required"),
    ({"productIds": "1,2"}, "Product IDs are required"),
    ({"productIds": ["x", None]}, "No valid product IDs provided"),
])
def test_cart_products_rejects_bad_ids(api, payload, error):
    res = api.post("/api/cart-products", payload)
    assert res.status_code == 400
    assert res.json() == {"error": error}


def test_category_grids_only_visible_in_order(api):
    category = Category.objects.create(name="Toys", slug="toys")
    CategoryGrid.objects.create(category=category, order=2, image_url="https://img/b.png")
    CategoryGrid.objects.create(category=category, order=1, image_url="https://img/a.png")
    CategoryGrid.objects.create(category=category, order=0, is_visible=False)

    body = api.get("/api/category-grids").json()
    assert [g["imageUrl"] for g in body] == ["https://img/a.png", "https://img/b.png"]


def test_homepage_sections_list_published_products(api, make_product):
    category = Category.objects.create(name="Deals", slug="deals")
    shown = make_product("Shown")
    hidden = make_product("Hidden", published=False)
    shown.categories.add(category)
    hidden.categories.add(category)
    HomepageSection.objects.create(name="Hot deals", category=category)
    HomepageSection.objects.create(name="Off", category=category, is_active=False)

    body = api.get("/api/homepage-sections").json()
    assert [s["name"] for s in body] == ["Hot deals"]
    assert [p["name"] for p in body[0]["products"]] == ["Shown"]


def test_paginate_past_the_end():
    Category.objects.create(name="Solo", slug="solo")
    items, meta = paginate(Category.objects.all(), page=3, limit=5)
    assert items == []
    assert meta["totalPages"] == 1
    assert meta["currentPage"] == 3
