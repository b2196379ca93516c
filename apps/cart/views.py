from rest_framework import serializers, status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .cart import cart_for_request


class CartLineIn(serializers.Serializer):
    productId = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField()


def _cart_payload(cart):
    return {"items": cart.as_list(), "count": len(cart)}


@api_view(["GET", "POST", "DELETE"])
@authentication_classes([])
@permission_classes([AllowAny])
def cart_view(request):
    cart = cart_for_request(request._request)
    if request.method == "POST":
        ser = CartLineIn(data=request.data)
        ser.is_valid(raise_exception=True)
        cart.add(ser.validated_data["productId"], ser.validated_data["quantity"])
    elif request.method == "DELETE":
        cart.clear()
        return Response(status=status.HTTP_204_NO_CONTENT)
    return Response(_cart_payload(cart))
