from django.conf import settings
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from . import queries
from .models import Category
from .pagination import paginate, positive_int
from .serializers import (
    CategoryGridSerializer, CategorySerializer, CategorySummary, ProductCard, ProductSerializer,
)


def _page(request):
    return positive_int(request.query_params.get("page"), 1)


@api_view(["GET"])
@authentication_classes([])
@permission_classes([AllowAny])
def product_list_view(request):
    limit = positive_int(request.query_params.get("limit"), settings.SHOP["PRODUCTS_PAGE_SIZE"])
    qs = queries.search_products(request.query_params.get("search", "")).filter(published=True).order_by("-id")
    products, meta = paginate(qs, page=_page(request), limit=limit)
    return Response({"products": ProductSerializer(products, many=True).data, "pagination": meta})


@api_view(["GET"])
@authentication_classes([])
@permission_classes([AllowAny])
def product_detail_view(request, product_id: int):
    product = get_object_or_404(queries.product_queryset(), pk=product_id, published=True)
    return Response(ProductSerializer(product).data)


@api_view(["GET"])
@authentication_classes([])
@permission_classes([AllowAny])
def category_list_view(request):
    page = _page(request)
    limit = positive_int(request.query_params.get("limit"), settings.SHOP["CATEGORIES_PAGE_SIZE"])
    categories, meta = paginate(queries.category_tree().order_by("sort_order", "name"), page=page, limit=limit)
    return Response({
        "categories": CategorySerializer(categories, many=True).data,
        "totalCount": meta["totalItems"],
        "page": page,
        "limit": limit,
    })


@api_view(["GET"])
@authentication_classes([])
@permission_classes([AllowAny])
def category_products_view(request, category_id: int):
    category = get_object_or_404(Category, pk=category_id, published=True)
    limit = positive_int(request.query_params.get("limit"), settings.SHOP["SEARCH_PAGE_SIZE"])
    products, meta = paginate(queries.products_in_category(category).order_by("id"), page=_page(request), limit=limit)
    return Response({
        "category": CategorySummary(category).data,
        "products": ProductCard(products, many=True).data,
        "pagination": meta,
    })


@api_view(["GET"])
@authentication_classes([])
@permission_classes([AllowAny])
def search_view(request):
    term = request.query_params.get("q", "").strip()
    if not term:
        return Response({"products": []})
    qs = queries.search_products(term, fields=("name", "description")).filter(published=True).order_by("id")
    products, _ = paginate(qs, page=_page(request), limit=settings.SHOP["SEARCH_PAGE_SIZE"])
    return Response({"products": ProductCard(products, many=True).data})


@api_view(["POST"])
@authentication_classes([])
@permission_classes([AllowAny])
def cart_products_view(request):
    raw_ids = request.data.get("productIds") if isinstance(request.data, dict) else None
    if not raw_ids or not isinstance(raw_ids, list):
        return Response({"error": "Product IDs are required"}, status=status.HTTP_400_BAD_REQUEST)
    qs = queries.products_by_ids(raw_ids)
    if qs is None:
        return Response({"error": "No valid product IDs provided"}, status=status.HTTP_400_BAD_REQUEST)
    return Response({"products": ProductSerializer(qs, many=True).data})


@api_view(["GET"])
@authentication_classes([])
@permission_classes([AllowAny])
def category_grid_list_view(request):
    return Response(CategoryGridSerializer(queries.visible_category_grids(), many=True).data)


@api_view(["GET"])
@authentication_classes([])
@permission_classes([AllowAny])
def homepage_sections_view(request):
    sections = []
    for section in queries.active_homepage_sections():
        sections.append({
            "id": section.id,
            "name": section.name,
            "type": section.type,
            "sortOrder": section.sort_order,
            "category": CategorySummary(section.category).data,
            "products": ProductCard(section.category.products.all(), many=True).data,
        })
    return Response(sections)
