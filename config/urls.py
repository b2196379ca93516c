from django.urls import include, path

urlpatterns = [
    path("api/auth/", include("apps.users.urls")),
    path("api/", include("apps.catalog.urls")),
    path("api/", include("apps.cart.urls")),
    path("api/", include("apps.shop.urls")),
    path("api/admin/", include("apps.backoffice.urls")),
]
