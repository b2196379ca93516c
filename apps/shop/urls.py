from django.urls import path

from . import views

urlpatterns = [
    path("addresses", views.address_list_view, name="address-list"),
    path("addresses/<int:address_id>", views.address_detail_view, name="address-detail"),
    path("addresses/<int:address_id>/default", views.address_default_view, name="address-default"),
    path("checkout", views.checkout_view, name="checkout"),
    path("checkout/wizard", views.checkout_wizard_view, name="checkout-wizard"),
    path("orders", views.order_list_view, name="order-list"),
    path("orders/<uuid:order_id>", views.order_detail_view, name="order-detail"),
]
