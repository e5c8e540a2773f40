"""
Bulk import endpoints for customers, products and orders.
"""
import logging

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiExample, OpenApiResponse, extend_schema
from rest_framework.response import Response

from apps.core.exceptions import InvalidInput
from apps.core.openapi import ERROR_RESPONSE
from apps.core.scoping import TenantScopedAPIView
from apps.ingestions.importer import BulkImportReconciler

logger = logging.getLogger(__name__)

IMPORT_RESPONSES = {
    200: OpenApiResponse(
        response=OpenApiTypes.OBJECT,
        description='Per-row import summary',
        examples=[OpenApiExample(
            'ImportSummary',
            value={
                'message': 'Imported 2 customers. 1 failed.',
                'successCount': 2,
                'failureCount': 1,
                'errors': ['ana@example.com: Email already exists'],
            },
        )],
    ),
    400: ERROR_RESPONSE,
    401: ERROR_RESPONSE,
}


class BaseImportAPIView(TenantScopedAPIView):
    """
    Accepts ``{"<collection>": [rows...]}`` and applies the rows one by one.
    Individual row failures are reported in the response, never raised.
    """
    collection = None
    entity_label = None

    def get_rows(self, request):
        rows = request.data.get(self.collection) if hasattr(request.data, 'get') else None
        if not isinstance(rows, list) or not rows:
            raise InvalidInput(f"No {self.entity_label} data provided")
        return rows

    def run_import(self, reconciler: BulkImportReconciler, rows):
        raise NotImplementedError

    def post(self, request):
        rows = self.get_rows(request)
        logger.info(f"Received {len(rows)} {self.collection} rows for tenant {self.scope.tenant_id}")
        result = self.run_import(BulkImportReconciler(self.scope), rows)
        return Response(result.to_dict())


class CustomerImportAPIView(BaseImportAPIView):
    collection = 'customers'
    entity_label = 'customer'

    @extend_schema(
        tags=["imports"],
        summary="Import customers",
        description="Rows: name, email, phone?, address?, totalSpent?, visitCount?, loyaltyPoints?, lastVisit?",
        request=OpenApiTypes.OBJECT,
        responses=IMPORT_RESPONSES,
    )
    def post(self, request):
        return super().post(request)

    def run_import(self, reconciler, rows):
        return reconciler.import_customers(rows)


class ProductImportAPIView(BaseImportAPIView):
    collection = 'products'
    entity_label = 'product'

    @extend_schema(
        tags=["imports"],
        summary="Import products",
        description="Rows: name, category, price, cost, stock?, description?, isActive?",
        request=OpenApiTypes.OBJECT,
        responses=IMPORT_RESPONSES,
    )
    def post(self, request):
        return super().post(request)

    def run_import(self, reconciler, rows):
        return reconciler.import_products(rows)


class OrderImportAPIView(BaseImportAPIView):
    collection = 'orders'
    entity_label = 'order'

    @extend_schema(
        tags=["imports"],
        summary="Import orders",
        description=(
            "Rows: customerEmail, productName, quantity, orderDate?, paymentMethod?, status? "
            "(defaults to completed). Each row becomes a single-item order."
        ),
        request=OpenApiTypes.OBJECT,
        responses=IMPORT_RESPONSES,
    )
    def post(self, request):
        return super().post(request)

    def run_import(self, reconciler, rows):
        return reconciler.import_orders(rows)
