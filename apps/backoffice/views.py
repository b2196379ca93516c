import logging

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Q, Sum
from rest_framework import generics, serializers
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.catalog import queries
from apps.catalog.models import CategoryGrid, HomepageSection, Product
from apps.catalog.pagination import paginate, positive_int
from apps.catalog.serializers import (
    CategoryGridSerializer, CategorySerializer, HomepageSectionSerializer, ProductSerializer,
)
from apps.shop import services
from apps.shop.models import Order, OrderItem, OrderStatus
from apps.shop.serializers import AdminOrderOut, OrderStatusIn
from apps.users.authentication import AdminSessionAuthentication, IsStaffMember
from apps.users.models import User
from apps.users.serializers import StaffSerializer, UserOut

logger = logging.getLogger("shop.backoffice")


class IdListIn(serializers.Serializer):
    ids = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=False)


class StaffOnly:
    authentication_classes = [AdminSessionAuthentication]
    permission_classes = [IsStaffMember]


# ---------------------------
# products
# ---------------------------
class ProductListCreate(StaffOnly, generics.ListCreateAPIView):
    serializer_class = ProductSerializer

    def list(self, request, *args, **kwargs):
        qs = queries.search_products(request.query_params.get("search", "")).order_by("-id")
        page = positive_int(request.query_params.get("page"), 1)
        limit = positive_int(request.query_params.get("limit"), settings.SHOP["PRODUCTS_PAGE_SIZE"])
        products, meta = paginate(qs, page=page, limit=limit)
        return Response({"products": self.get_serializer(products, many=True).data, "pagination": meta})

    def perform_create(self, serializer):
        product = serializer.save()
        logger.info(f"product created: {product.pk}")


class ProductDetail(StaffOnly, generics.RetrieveUpdateDestroyAPIView):
    serializer_class = ProductSerializer
    lookup_url_kwarg = "product_id"

    def get_queryset(self):
        return queries.product_queryset()


# ---------------------------
# categories
# ---------------------------
class CategoryListCreate(StaffOnly, generics.ListCreateAPIView):
    serializer_class = CategorySerializer

    def get_queryset(self):
        return queries.category_tree().order_by("sort_order", "name")


class CategoryDetail(StaffOnly, generics.RetrieveUpdateDestroyAPIView):
    serializer_class = CategorySerializer
    lookup_url_kwarg = "category_id"

    def get_queryset(self):
        return queries.category_tree()


# ---------------------------
# category grids / homepage sections
# ---------------------------
class CategoryGridListCreate(StaffOnly, generics.ListCreateAPIView):
    serializer_class = CategoryGridSerializer
    queryset = CategoryGrid.objects.select_related("category")


class CategoryGridDetail(StaffOnly, generics.RetrieveUpdateDestroyAPIView):
    serializer_class = CategoryGridSerializer
    lookup_url_kwarg = "grid_id"
    queryset = CategoryGrid.objects.select_related("category")


@api_view(["POST"])
@authentication_classes([AdminSessionAuthentication])
@permission_classes([IsStaffMember])
def category_grid_reorder_view(request):
    ser = IdListIn(data=request.data)
    ser.is_valid(raise_exception=True)
    ids = ser.validated_data["ids"]
    with transaction.atomic():
        grids = {g.pk: g for g in CategoryGrid.objects.select_for_update().filter(pk__in=ids)}
        missing = [pk for pk in ids if pk not in grids]
        if missing:
            raise serializers.ValidationError({"ids": [f"Unknown grid ids: {missing}"]})
        for position, pk in enumerate(ids):
            grids[pk].order = position
        CategoryGrid.objects.bulk_update(grids.values(), ["order"])
    qs = CategoryGrid.objects.select_related("category")
    return Response(CategoryGridSerializer(qs, many=True).data)


class HomepageSectionListCreate(StaffOnly, generics.ListCreateAPIView):
    serializer_class = HomepageSectionSerializer
    queryset = HomepageSection.objects.select_related("category")


class HomepageSectionDetail(StaffOnly, generics.RetrieveUpdateDestroyAPIView):
    serializer_class = HomepageSectionSerializer
    lookup_url_kwarg = "section_id"
    queryset = HomepageSection.objects.select_related("category")


# ---------------------------
# customers / staff
# ---------------------------
class CustomerList(StaffOnly, generics.ListAPIView):
    serializer_class = UserOut

    def get_queryset(self):
        return User.objects.customers().order_by("-created_at")


class CustomerDetail(StaffOnly, generics.RetrieveDestroyAPIView):
    serializer_class = UserOut
    lookup_url_kwarg = "customer_id"

    def get_queryset(self):
        return User.objects.customers()


class StaffListCreate(StaffOnly, generics.ListCreateAPIView):
    serializer_class = StaffSerializer

    def get_queryset(self):
        return User.objects.staff().order_by("-created_at")


class StaffDetail(StaffOnly, generics.RetrieveUpdateDestroyAPIView):
    serializer_class = StaffSerializer
    lookup_url_kwarg = "staff_id"

    def get_queryset(self):
        return User.objects.staff()

    def perform_destroy(self, instance):
        if instance.pk == self.request.user.pk:
            raise serializers.ValidationError({"id": ["You cannot delete your own account"]})
        instance.delete()


class BulkDelete(StaffOnly, APIView):
    """DELETE with a body of ``{"ids": [...]}``."""

    def get_queryset(self):
        raise NotImplementedError

    def delete(self, request):
        ser = IdListIn(data=request.data)
        ser.is_valid(raise_exception=True)
        qs = self.get_queryset().filter(pk__in=ser.validated_data["ids"]).exclude(pk=request.user.pk)
        with transaction.atomic():
            deleted = qs.count()
            qs.delete()
        logger.info(f"bulk delete {type(self).__name__}: {deleted}")
        return Response({"deleted": deleted})


class CustomerBulkDelete(BulkDelete):
    def get_queryset(self):
        return User.objects.customers()


class StaffBulkDelete(BulkDelete):
    def get_queryset(self):
        return User.objects.staff()


# ---------------------------
# orders
# ---------------------------
def _admin_orders():
    return (Order.objects
            .select_related("user")
            .prefetch_related("items__product")
            .order_by("-created_at"))


@api_view(["GET"])
@authentication_classes([AdminSessionAuthentication])
@permission_classes([IsStaffMember])
def order_list_view(request):
    qs = _admin_orders()
    wanted = request.query_params.get("status")
    if wanted:
        qs = qs.filter(status=wanted)
    return Response(AdminOrderOut(qs, many=True).data)


@api_view(["GET", "PATCH"])
@authentication_classes([AdminSessionAuthentication])
@permission_classes([IsStaffMember])
def order_detail_view(request, order_id):
    if request.method == "PATCH":
        ser = OrderStatusIn(data=request.data)
        ser.is_valid(raise_exception=True)
        services.set_order_status(order_id=order_id, status=ser.validated_data["status"])
    order = _admin_orders().get(pk=order_id)
    return Response(AdminOrderOut(order).data)


# ---------------------------
# dashboard
# ---------------------------
@api_view(["GET"])
@authentication_classes([AdminSessionAuthentication])
@permission_classes([IsStaffMember])
def dashboard_view(request):
    counts = Order.objects.aggregate(
        totalOrders=Count("pk"),
        pendingOrders=Count("pk", filter=Q(status=OrderStatus.PENDING)),
        processingOrders=Count("pk", filter=Q(status=OrderStatus.PROCESSING)),
        deliveredOrders=Count("pk", filter=Q(status=OrderStatus.DELIVERED)),
    )
    best = (OrderItem.objects
            .values("product_id")
            .annotate(quantity=Sum("quantity"))
            .order_by("-quantity", "product_id")[:5])
    products = Product.objects.in_bulk([row["product_id"] for row in best])

    best_sellers = []
    for row in best:
        product = products.get(row["product_id"])
        images = product.images if product and isinstance(product.images, list) else []
        best_sellers.append({
            "id": row["product_id"],
            "name": product.name if product else "Unknown Product",
            "quantity": row["quantity"] or 0,
            "price": str(product.price) if product else "0.00",
            "image": images[0] if images else None,
        })
    return Response({**counts, "bestSellingProducts": best_sellers})
