import logging

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.response import Response

from apps.core.exceptions import InvalidInput
from apps.core.openapi import ERROR_RESPONSE, id_query_parameter
from apps.core.scoping import TenantScopedAPIView
from apps.products import services
from apps.products.serializers import ProductSerializer, ProductUpdateSerializer, ProductWriteSerializer

logger = logging.getLogger(__name__)


def _parse_bool(value):
    if value is None or value == '':
        return None
    lowered = value.lower()
    if lowered in ('true', '1', 'yes'):
        return True
    if lowered in ('false', '0', 'no'):
        return False
    raise InvalidInput(f"Invalid boolean: {value}")


class ProductAPIView(TenantScopedAPIView):
    """
    Product catalogue CRUD for the authenticated tenant.
    Stock can be set on creation only; afterwards orders move it.
    """

    @extend_schema(
        tags=["products"],
        summary="List products",
        parameters=[
            OpenApiParameter("category", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("active", OpenApiTypes.BOOL, OpenApiParameter.QUERY, required=False),
        ],
        responses={200: ProductSerializer(many=True), 401: ERROR_RESPONSE},
    )
    def get(self, request):
        products = services.list_products(
            self.scope,
            category=request.query_params.get('category'),
            active=_parse_bool(request.query_params.get('active')),
        )
        return Response(ProductSerializer(products, many=True).data)

    @extend_schema(
        tags=["products"],
        summary="Create product",
        request=ProductWriteSerializer,
        responses={201: ProductSerializer, 400: ERROR_RESPONSE, 401: ERROR_RESPONSE},
    )
    def post(self, request):
        serializer = ProductWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        product = services.create_product(self.scope, **serializer.validated_data)
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["products"],
        summary="Update product",
        description="Updates catalogue fields of the product with the given id. A stock value is ignored.",
        request=ProductUpdateSerializer,
        responses={200: ProductSerializer, 400: ERROR_RESPONSE, 404: ERROR_RESPONSE},
    )
    def put(self, request):
        product_id = request.data.get('id') if hasattr(request.data, 'get') else None
        if not product_id:
            raise InvalidInput("Product ID is required")
        serializer = ProductUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        product = services.update_product(self.scope, product_id, **serializer.validated_data)
        return Response(ProductSerializer(product).data)

    @extend_schema(
        tags=["products"],
        summary="Delete product",
        description="Products referenced by existing orders cannot be deleted.",
        parameters=[id_query_parameter("Product")],
        responses={
            200: OpenApiResponse(response=OpenApiTypes.OBJECT, description='{"success": true}'),
            400: ERROR_RESPONSE,
            404: ERROR_RESPONSE,
        },
    )
    def delete(self, request):
        product_id = self.required_query_param('id', "Product ID is required")
        services.delete_product(self.scope, product_id)
        return Response({'success': True})


class ProductClearAPIView(TenantScopedAPIView):
    @extend_schema(
        tags=["products"],
        summary="Delete all products",
        description="Deletes every order of the tenant (restoring stock), then every product.",
        request=None,
        responses={200: OpenApiResponse(response=OpenApiTypes.OBJECT, description="Clear summary")},
    )
    def delete(self, request):
        count = services.clear_products(self.scope)
        return Response({
            'success': True,
            'message': f"Deleted {count} products",
            'count': count,
        })
