from django.db.models import Prefetch, Q

from .models import Category, CategoryGrid, HomepageSection, Product


def product_queryset():
    return (Product.objects
            .select_related("default_category")
            .prefetch_related("categories", "attributes"))


def search_products(term: str, *, fields=("name", "description", "slug")):
    """Case-insensitive substring match over ``fields``; a blank term matches everything."""
    qs = product_queryset()
    term = (term or "").strip()
    if not term:
        return qs
    condition = Q()
    for field in fields:
        condition |= Q(**{f"{field}__icontains": term})
    return qs.filter(condition)


def products_in_category(category: Category):
    return (product_queryset()
            .filter(published=True)
            .filter(Q(categories=category) | Q(default_category=category))
            .distinct())


def products_by_ids(raw_ids):
    """Drop ids that are not integers; return ``None`` when nothing usable is left."""
    ids = []
    for raw in raw_ids:
        try:
            ids.append(int(raw))
        except (TypeError, ValueError):
            continue
    if not ids:
        return None
    return product_queryset().filter(pk__in=ids)


def category_tree():
    return Category.objects.prefetch_related("children")


def visible_category_grids():
    return CategoryGrid.objects.select_related("category").filter(is_visible=True)


def active_homepage_sections():
    published = Product.objects.filter(published=True)
    return (HomepageSection.objects
            .filter(is_active=True)
            .select_related("category")
            .prefetch_related(Prefetch("category__products", queryset=published)))
