from django.urls import path

from apps.users import views as auth_views

from . import views

urlpatterns = [
    path("auth/login", auth_views.admin_login_view, name="admin-login"),
    path("auth/logout", auth_views.admin_logout_view, name="admin-logout"),
    path("auth/session", auth_views.admin_session_view, name="admin-session"),

    path("products", views.ProductListCreate.as_view(), name="admin-product-list"),
    path("products/<int:product_id>", views.ProductDetail.as_view(), name="admin-product-detail"),
    path("categories", views.CategoryListCreate.as_view(), name="admin-category-list"),
    path("categories/<int:category_id>", views.CategoryDetail.as_view(), name="admin-category-detail"),
    path("category-grids", views.CategoryGridListCreate.as_view(), name="admin-grid-list"),
    path("category-grids/reorder", views.category_grid_reorder_view, name="admin-grid-reorder"),
    path("category-grids/<int:grid_id>", views.CategoryGridDetail.as_view(), name="admin-grid-detail"),
    path("homepage-sections", views.HomepageSectionListCreate.as_view(), name="admin-section-list"),
    path("homepage-sections/<int:section_id>", views.HomepageSectionDetail.as_view(), name="admin-section-detail"),

    path("customers", views.CustomerList.as_view(), name="admin-customer-list"),
    path("customers/bulk-delete", views.CustomerBulkDelete.as_view(), name="admin-customer-bulk-delete"),
    path("customers/<int:customer_id>", views.CustomerDetail.as_view(), name="admin-customer-detail"),
    path("staff", views.StaffListCreate.as_view(), name="admin-staff-list"),
    path("staff/bulk-delete", views.StaffBulkDelete.as_view(), name="admin-staff-bulk-delete"),
    path("staff/<int:staff_id>", views.StaffDetail.as_view(), name="admin-staff-detail"),

    path("orders", views.order_list_view, name="admin-order-list"),
    path("orders/<uuid:order_id>", views.order_detail_view, name="admin-order-detail"),
    path("dashboard", views.dashboard_view, name="admin-dashboard"),
]
