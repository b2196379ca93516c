from django.db import transaction
from rest_framework import serializers

from .models import Category, CategoryGrid, HomepageSection, Product, ProductAttribute


class CategorySummary(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ["id", "name", "slug"]


class CategorySerializer(serializers.ModelSerializer):
    parentId = serializers.PrimaryKeyRelatedField(
        source="parent", queryset=Category.objects.all(), allow_null=True, required=False,
    )
    sortOrder = serializers.IntegerField(source="sort_order", required=False, default=0)
    children = CategorySummary(many=True, read_only=True)

    class Meta:
        model = Category
        fields = ["id", "name", "slug", "parentId", "sortOrder", "image", "published", "children"]

    def validate(self, attrs):
        parent = attrs.get("parent")
        if parent is not None and self.instance is not None and parent.pk == self.instance.pk:
            raise serializers.ValidationError({"parentId": ["A category cannot be its own parent"]})
        return attrs


class ProductAttributeSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductAttribute
        fields = ["name", "value"]


class ProductSerializer(serializers.ModelSerializer):
    price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    categories = CategorySummary(many=True, read_only=True)
    categoryIds = serializers.PrimaryKeyRelatedField(
        source="categories", queryset=Category.objects.all(), many=True, write_only=True, required=False,
    )
    defaultCategory = CategorySummary(source="default_category", read_only=True)
    defaultCategoryId = serializers.PrimaryKeyRelatedField(
        source="default_category", queryset=Category.objects.all(),
        allow_null=True, required=False, write_only=True,
    )
    attributes = ProductAttributeSerializer(many=True, required=False)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Product
        fields = [
            "id", "name", "slug", "description", "price", "stock", "images", "tags", "published",
            "categories", "categoryIds", "defaultCategory", "defaultCategoryId", "attributes", "createdAt",
        ]
        extra_kwargs = {"slug": {"required": False}}

    @transaction.atomic
    def create(self, validated_data):
        categories = validated_data.pop("categories", [])
        attributes = validated_data.pop("attributes", [])
        product = Product.objects.create(**validated_data)
        product.categories.set(categories)
        ProductAttribute.objects.bulk_create(ProductAttribute(product=product, **a) for a in attributes)
        return product

    @transaction.atomic
    def update(self, instance, validated_data):
        categories = validated_data.pop("categories", None)
        attributes = validated_data.pop("attributes", None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save()
        # categories and attributes are replaced wholesale when supplied
        if categories is not None:
            instance.categories.set(categories)
        if attributes is not None:
            instance.attributes.all().delete()
            ProductAttribute.objects.bulk_create(ProductAttribute(product=instance, **a) for a in attributes)
        return instance


class ProductCard(serializers.ModelSerializer):
    images = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = ["id", "name", "slug", "price", "stock", "images"]

    def get_images(self, obj):
        return [image if isinstance(image, dict) else {"url": image} for image in (obj.images or []) if image]


class CategoryGridSerializer(serializers.ModelSerializer):
    categoryId = serializers.PrimaryKeyRelatedField(source="category", queryset=Category.objects.all())
    category = CategorySummary(read_only=True)
    imageUrl = serializers.CharField(source="image_url", required=False, allow_blank=True)
    isVisible = serializers.BooleanField(source="is_visible", required=False, default=True)

    class Meta:
        model = CategoryGrid
        fields = ["id", "categoryId", "category", "imageUrl", "order", "isVisible"]


class HomepageSectionSerializer(serializers.ModelSerializer):
    categoryId = serializers.PrimaryKeyRelatedField(source="category", queryset=Category.objects.all())
    category = CategorySummary(read_only=True)
    sortOrder = serializers.IntegerField(source="sort_order", required=False, default=0)
    isActive = serializers.BooleanField(source="is_active", required=False, default=True)

    class Meta:
        model = HomepageSection
        fields = ["id", "name", "type", "categoryId", "category", "sortOrder", "isActive"]
