from django.conf import settings
from rest_framework import serializers

from .models import Address, AddressLabel, Order, OrderItem, OrderStatus


class AddressSerializer(serializers.ModelSerializer):
    fullName = serializers.CharField(source="full_name", max_length=120)
    phoneNumber = serializers.CharField(source="phone_number", max_length=32)
    addressLine1 = serializers.CharField(source="address_line1", max_length=255)
    addressLine2 = serializers.CharField(source="address_line2", max_length=255, required=False, allow_blank=True)
    postalCode = serializers.CharField(source="postal_code", max_length=20)
    isDefault = serializers.BooleanField(source="is_default", required=False)
    addressLabel = serializers.ChoiceField(source="address_label", choices=AddressLabel.choices, required=False)
    customLabel = serializers.CharField(source="custom_label", max_length=60, required=False, allow_blank=True)

    class Meta:
        model = Address
        fields = [
            "id", "fullName", "phoneNumber", "addressLine1", "addressLine2", "city", "state", "postalCode",
            "isDefault", "addressLabel", "customLabel",
        ]

    def validate(self, attrs):
        label = attrs.get("address_label", getattr(self.instance, "address_label", AddressLabel.HOME))
        custom = attrs.get("custom_label", getattr(self.instance, "custom_label", ""))
        if label == AddressLabel.OTHER and not custom:
            raise serializers.ValidationError({"customLabel": ["Required when the label is OTHER."]})
        return attrs


class CheckoutItemIn(serializers.Serializer):
    productId = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1)
    price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)


class CheckoutIn(serializers.Serializer):
    items = CheckoutItemIn(many=True)
    totalAmount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    shippingAddressId = serializers.IntegerField(min_value=1)
    paymentMethod = serializers.ChoiceField(choices=settings.SHOP["PAYMENT_METHODS"])

    def validate_items(self, items):
        if not items:
            raise serializers.ValidationError("At least one item is required.")
        ids = [i["productId"] for i in items]
        if len(ids) != len(set(ids)):
            raise serializers.ValidationError("Each product may appear only once.")
        return items


class ProductRef(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    images = serializers.JSONField()


class OrderItemOut(serializers.ModelSerializer):
    productId = serializers.IntegerField(source="product_id")
    product = ProductRef()

    class Meta:
        model = OrderItem
        fields = ["id", "productId", "product", "quantity", "price"]


class OrderOut(serializers.ModelSerializer):
    userId = serializers.IntegerField(source="user_id")
    totalAmount = serializers.DecimalField(source="total_amount", max_digits=12, decimal_places=2)
    paymentMethod = serializers.CharField(source="payment_method")
    shippingAddressId = serializers.IntegerField(source="shipping_address_id", allow_null=True)
    shippingAddress = serializers.JSONField(source="shipping_snapshot")
    createdAt = serializers.DateTimeField(source="created_at")
    items = OrderItemOut(many=True)

    class Meta:
        model = Order
        fields = [
            "id", "userId", "totalAmount", "status", "paymentMethod", "shippingAddressId", "shippingAddress",
            "createdAt", "items",
        ]


class CustomerRef(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    email = serializers.EmailField()


class AdminOrderOut(OrderOut):
    user = CustomerRef()

    class Meta(OrderOut.Meta):
        fields = OrderOut.Meta.fields + ["user"]


class OrderStatusIn(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)


class WizardActionIn(serializers.Serializer):
    action = serializers.ChoiceField(choices=["select_address", "select_payment", "continue", "back", "place_order"])
    addressId = serializers.IntegerField(min_value=1, required=False)
    paymentMethod = serializers.CharField(required=False, allow_blank=True)
