"""Catalog API views.

The public catalog (list / retrieve) is open to anonymous visitors and
priced for the authenticated viewer when a token is sent.  Writes and
the back-office list require the admin role.

Domain exceptions propagate to ``api_exception_handler``.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet, ViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.products.cache import CatalogCache
from modules.products.dtos import (
    CatalogQueryDTO,
    CreateDiscountDTO,
    CreateProductDTO,
    UpdateDiscountDTO,
    UpdateProductDTO,
)
from modules.products.filters import ProductFilter
from modules.products.models import Product
from modules.products.pricing import PricingEngine
from modules.products.repositories.django_repository import (
    DiscountDjangoRepository,
    ProductDjangoRepository,
)
from modules.products.serializers import (
    CatalogQuerySerializer,
    ProductSerializer,
    ProductWriteSerializer,
    SpecialPriceSerializer,
    SpecialPriceWriteSerializer,
    StockSerializer,
)
from modules.products.services import CatalogService, DiscountService, ProductService
from modules.users.permissions import IsAdminRole
from modules.users.repositories.django_repository import RoleDjangoRepository

PUBLIC_ACTIONS = {"list", "retrieve"}


def viewer_id(request: Request):
    user = request.user
    return user.id if user and user.is_authenticated else None


class ProductViewSet(GenericViewSet):
    """Catalog endpoints.

    Does **not** extend ``ModelViewSet``: all ORM access goes through the
    service/repository layer.
    """

    queryset = Product.objects.none()
    serializer_class = ProductSerializer
    filterset_class = ProductFilter
    filter_backends = [DjangoFilterBackend]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        repository = ProductDjangoRepository()
        cache = CatalogCache()
        self._products = ProductService(repository=repository, cache=cache)
        self._catalog = CatalogService(
            repository=repository,
            pricing=PricingEngine(RoleDjangoRepository(), DiscountDjangoRepository()),
            cache=cache,
        )

    def get_permissions(self):
        if self.action in PUBLIC_ACTIONS:
            return [AllowAny()]
        return [IsAdminRole()]

    def get_throttles(self):
        self.throttle_scope = "catalog" if self.action in PUBLIC_ACTIONS else None
        return super().get_throttles()

    def get_queryset(self):
        return self._products.list_products()

    # ------------------------------------------------------------------
    # Public catalog
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/products/?page&limit&searchName&categoryFilters&sortByPrice"""
        params = CatalogQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        data = params.validated_data
        query = CatalogQueryDTO(
            page=data["page"],
            limit=data["limit"],
            search_name=data.get("searchName"),
            categories=data.get("categoryFilters"),
            sort_by_price=data.get("sortByPrice"),
        )
        return Response(self._catalog.list_public(query, user_id=viewer_id(request)))

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/products/{pk}/"""
        return Response(self._catalog.get_product(pk, user_id=viewer_id(request)))

    # ------------------------------------------------------------------
    # Back office
    # ------------------------------------------------------------------

    @action(detail=False, methods=["get"], url_path="admin/all")
    def admin_list(self, request: Request) -> Response:
        """GET /api/v1/products/admin/all/"""
        queryset = self.filter_queryset(self.get_queryset())
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        return paginator.get_paginated_response(
            ProductSerializer(page, many=True).data
        )

    def create(self, request: Request) -> Response:
        """POST /api/v1/products/"""
        serializer = ProductWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        product = self._products.create_product(
            CreateProductDTO(**serializer.validated_data)
        )
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT/PATCH /api/v1/products/{pk}/"""
        serializer = ProductWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        fields = dict(serializer.validated_data)
        fields.pop("sku", None)
        fields.pop("stock_quantity", None)
        product = self._products.update_product(pk, UpdateProductDTO(**fields))
        return Response(ProductSerializer(product).data)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        return self.update(request, pk)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/products/{pk}/ (soft delete)"""
        self._products.delete_product(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["patch"], url_path="stock")
    def stock(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/products/{pk}/stock/  ``{"quantity": N}``"""
        serializer = StockSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        quantity = self._products.set_stock(pk, serializer.validated_data["quantity"])
        return Response({"product_id": pk, "quantity": quantity})


class SpecialPriceViewSet(ViewSet):
    """Per-user special prices: ``/api/v1/users/{user_id}/special-prices/``."""

    permission_classes = [IsAdminRole]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = DiscountService(
            repository=DiscountDjangoRepository(),
            product_repository=ProductDjangoRepository(),
            role_repository=RoleDjangoRepository(),
            cache=CatalogCache(),
        )

    def list(self, request: Request, user_id: int) -> Response:
        discounts = self._service.list_for_user(
            int(user_id), request.query_params.get("product_id")
        )
        return Response(SpecialPriceSerializer(discounts, many=True).data)

    def create(self, request: Request, user_id: int) -> Response:
        serializer = SpecialPriceWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        discount = self._service.create(
            int(user_id), CreateDiscountDTO(**serializer.validated_data)
        )
        return Response(
            SpecialPriceSerializer(discount).data, status=status.HTTP_201_CREATED
        )

    def update(self, request: Request, user_id: int, pk: str | None = None) -> Response:
        serializer = SpecialPriceWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        fields = dict(serializer.validated_data)
        fields.pop("product_id", None)
        discount = self._service.update(int(user_id), pk, UpdateDiscountDTO(**fields))
        return Response(SpecialPriceSerializer(discount).data)

    def destroy(
        self, request: Request, user_id: int, pk: str | None = None
    ) -> Response:
        self._service.delete(int(user_id), pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
