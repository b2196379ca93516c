import hashlib
import json

from django.conf import settings
from django.db import transaction
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.cart.cart import cart_for_request
from apps.catalog.models import Product
from apps.core.exceptions import IdempotencyConflictError, ResourceNotFound
from apps.users.authentication import ShopSessionAuthentication

from . import services
from .checkout import CheckoutWizard
from .models import Address, IdempotencyKey, Order
from .serializers import AddressSerializer, CheckoutIn, OrderOut, WizardActionIn


def _orders_for(user):
    return (Order.objects
            .filter(user=user)
            .prefetch_related("items__product")
            .order_by("-created_at"))


def _place(user, data) -> Order:
    return services.create_order(
        user=user,
        lines=[services.LineRequest(i["productId"], i["quantity"], i["price"]) for i in data["items"]],
        shipping_address_id=data["shippingAddressId"],
        payment_method=data["paymentMethod"],
        total_amount=data["totalAmount"],
    )


def _created(order: Order) -> Response:
    headers = {"Location": f"/api/orders/{order.pk}"}
    return Response(OrderOut(order).data, status=status.HTTP_201_CREATED, headers=headers)


# ---------------------------
# addresses
# ---------------------------
@api_view(["GET", "POST"])
@authentication_classes([ShopSessionAuthentication])
@permission_classes([IsAuthenticated])
def address_list_view(request):
    if request.method == "GET":
        return Response(AddressSerializer(Address.objects.filter(user=request.user), many=True).data)

    ser = AddressSerializer(data=request.data)
    ser.is_valid(raise_exception=True)
    address = services.create_address(user=request.user, **ser.validated_data)
    return Response(AddressSerializer(address).data, status=status.HTTP_201_CREATED)


@api_view(["GET", "PATCH", "DELETE"])
@authentication_classes([ShopSessionAuthentication])
@permission_classes([IsAuthenticated])
def address_detail_view(request, address_id: int):
    address = Address.objects.filter(pk=address_id, user=request.user).first()
    if address is None:
        raise ResourceNotFound("Address not found")

    if request.method == "GET":
        return Response(AddressSerializer(address).data)
    if request.method == "DELETE":
        services.delete_address(user=request.user, address_id=address.pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    ser = AddressSerializer(address, data=request.data, partial=True)
    ser.is_valid(raise_exception=True)
    address = services.update_address(user=request.user, address_id=address.pk, **ser.validated_data)
    return Response(AddressSerializer(address).data)


@api_view(["POST"])
@authentication_classes([ShopSessionAuthentication])
@permission_classes([IsAuthenticated])
def address_default_view(request, address_id: int):
    address = services.set_default_address(user=request.user, address_id=address_id)
    return Response(AddressSerializer(address).data)


# ---------------------------
# checkout / orders
# ---------------------------
@api_view(["POST"])
@authentication_classes([ShopSessionAuthentication])
@permission_classes([IsAuthenticated])
def checkout_view(request):
    ser = CheckoutIn(data=request.data)
    ser.is_valid(raise_exception=True)

    cart = cart_for_request(request._request)
    idem = request.headers.get("Idempotency-Key")
    if not idem:
        order = _place(request.user, ser.validated_data)
        cart.clear()
        return _created(order)

    body_hash = hashlib.sha256(
        json.dumps(ser.validated_data, sort_keys=True, default=str).encode()
    ).hexdigest()
    with transaction.atomic():
        services.prune_idempotency_keys(user=request.user)
        rec, created = IdempotencyKey.objects.select_for_update().get_or_create(
            key=idem, user=request.user,
            defaults={"request_hash": body_hash, "status_code": 0, "response_body": {}},
        )
        if not created and rec.status_code:
            if rec.request_hash != body_hash:
                raise IdempotencyConflictError("Idempotency-Key reused with a different request")
            return Response(rec.response_body, status=rec.status_code)

        order = _place(request.user, ser.validated_data)
        response = _created(order)
        rec.request_hash, rec.response_body, rec.status_code = body_hash, response.data, response.status_code
        rec.save(update_fields=["request_hash", "response_body", "status_code"])
    cart.clear()
    return response


@api_view(["GET"])
@authentication_classes([ShopSessionAuthentication])
@permission_classes([IsAuthenticated])
def order_list_view(request):
    return Response(OrderOut(_orders_for(request.user), many=True).data)


@api_view(["GET"])
@authentication_classes([ShopSessionAuthentication])
@permission_classes([IsAuthenticated])
def order_detail_view(request, order_id):
    order = _orders_for(request.user).filter(pk=order_id).first()
    if order is None:
        raise ResourceNotFound("Order not found")
    return Response(OrderOut(order).data)


# ---------------------------
# checkout wizard
# ---------------------------
def _wizard_response(wizard: CheckoutWizard, cart, **extra) -> Response:
    return Response({**wizard.as_dict(), "cart": cart.as_list(), **extra})


def _submit_from_cart(user, cart):
    def submit(wizard: CheckoutWizard) -> Order:
        prices = dict(Product.objects.filter(pk__in=[line.product_id for line in cart]).values_list("pk", "price"))
        lines = [services.LineRequest(line.product_id, line.quantity, prices.get(line.product_id)) for line in cart]
        return services.create_order(
            user=user,
            lines=lines,
            shipping_address_id=wizard.address_id,
            payment_method=wizard.payment_method,
        )
    return submit


@api_view(["GET", "POST"])
@authentication_classes([ShopSessionAuthentication])
@permission_classes([IsAuthenticated])
def checkout_wizard_view(request):
    session = request._request.session
    key = settings.SHOP["CHECKOUT_SESSION_KEY"]
    cart = cart_for_request(request._request)

    if request.method == "GET":
        # loading the checkout page always starts over
        wizard = CheckoutWizard.start()
        session[key] = wizard.as_dict()
        return _wizard_response(wizard, cart)

    wizard = CheckoutWizard.from_dict(session.get(key))
    ser = WizardActionIn(data=request.data)
    ser.is_valid(raise_exception=True)
    action = ser.validated_data["action"]

    extra = {}
    if action == "select_address":
        address_id = ser.validated_data.get("addressId")
        if address_id and not Address.objects.filter(pk=address_id, user=request.user).exists():
            raise ResourceNotFound("Address not found")
        wizard.select_address(address_id)
    elif action == "select_payment":
        wizard.select_payment_method(ser.validated_data.get("paymentMethod", ""))
    elif action == "continue":
        wizard.advance()
    elif action == "back":
        wizard.back()
    else:
        order = wizard.place_order(cart, _submit_from_cart(request.user, cart))
        extra["order"] = OrderOut(order).data

    session[key] = wizard.as_dict()
    return _wizard_response(wizard, cart, **extra)
