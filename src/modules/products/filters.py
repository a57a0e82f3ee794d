import django_filters

from modules.products.models import Product


class ProductFilter(django_filters.FilterSet):
    """Back-office product list filters."""

    name = django_filters.CharFilter(field_name="name", lookup_expr="icontains")
    sku = django_filters.CharFilter(field_name="sku", lookup_expr="iexact")
    category = django_filters.CharFilter(field_name="category", lookup_expr="iexact")
    status = django_filters.CharFilter(field_name="status", lookup_expr="iexact")
    min_price = django_filters.NumberFilter(field_name="list_price", lookup_expr="gte")
    max_price = django_filters.NumberFilter(field_name="list_price", lookup_expr="lte")

    class Meta:
        model = Product
        fields = ["name", "sku", "category", "status", "min_price", "max_price"]
