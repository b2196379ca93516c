from django.urls import path

from . import views

urlpatterns = [
    path("products", views.product_list_view, name="product-list"),
    path("products/<int:product_id>", views.product_detail_view, name="product-detail"),
    path("categories", views.category_list_view, name="category-list"),
    path("categories/<int:category_id>/products", views.category_products_view, name="category-products"),
    path("search", views.search_view, name="search"),
    path("cart-products", views.cart_products_view, name="cart-products"),
    path("category-grids", views.category_grid_list_view, name="category-grids"),
    path("homepage-sections", views.homepage_sections_view, name="homepage-sections"),
]
